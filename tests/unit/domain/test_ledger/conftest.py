"""Fixtures for choice ledger domain tests."""

from __future__ import annotations

import itertools

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from volunteer.domain.ledger.entities import Choice
from volunteer.domain.ledger.value_objects import (
    ChoicePayload,
    ExamProfile,
    PartitionKey,
    ScoreSnapshot,
)
from volunteer.shared.types import (
    ChoiceId,
    OwnerId,
    RankPosition,
    SchoolCode,
    TargetGroupId,
)

BASE_TIME = datetime(2025, 6, 25, 8, 0, tzinfo=UTC)


@pytest.fixture
def key() -> PartitionKey:
    return PartitionKey(
        owner_id=OwnerId(1),
        region="江苏",
        primary_track="物理",
        secondary_subjects=frozenset({"化学", "生物"}),
        cycle_year="2025",
    )


@pytest.fixture
def profile() -> ExamProfile:
    return ExamProfile(
        owner_id=OwnerId(1),
        region="江苏",
        primary_track="物理",
        secondary_subjects=frozenset({"化学", "生物"}),
        exam_score=612,
        rank=8500,
    )


@pytest.fixture
def snapshots() -> tuple[ScoreSnapshot, ...]:
    return (
        ScoreSnapshot(year="2023", min_score=598, min_rank=9800),
        ScoreSnapshot(year=None, min_score=590, min_rank=None),
        ScoreSnapshot(year="2024", min_score=603, min_rank=8200),
    )


@pytest.fixture
def make_choice(key: PartitionKey) -> Callable[..., Choice]:
    """Factory for stored choices; each call is created one minute later."""
    counter = itertools.count(1)

    def _make(
        group_rank: int,
        item_rank: int,
        target_group: int | None = 10,
        major_name: str | None = None,
        school_code: str | None = "10284",
        created_at: datetime | None = None,
        partition: PartitionKey | None = None,
        choice_id: str | None = None,
        **payload_fields: Any,
    ) -> Choice:
        n = next(counter)
        return Choice(
            id=ChoiceId(choice_id or f"c{n}"),
            partition=partition or key,
            target_group=TargetGroupId(target_group) if target_group is not None else None,
            position=RankPosition(group_rank, item_rank),
            payload=ChoicePayload(
                major_name=major_name or f"专业{n}",
                school_code=SchoolCode(school_code) if school_code else None,
                **payload_fields,
            ),
            created_at=created_at or BASE_TIME + timedelta(minutes=n),
        )

    return _make
