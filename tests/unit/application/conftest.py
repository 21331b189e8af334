"""Fixtures for application use case tests."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from volunteer.domain.ledger.partition import PartitionKeyResolver
from volunteer.domain.ledger.value_objects import ExamProfile
from volunteer.infrastructure.storage.sqlite_ledger import SqliteChoiceLedger
from volunteer.shared.types import OwnerId


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
def profiles(profile: ExamProfile) -> MagicMock:
    mock = MagicMock()
    mock.get_profile.side_effect = lambda owner_id: (
        profile if owner_id == profile.owner_id else None
    )
    return mock


@pytest.fixture
def resolver(profiles: MagicMock) -> PartitionKeyResolver:
    return PartitionKeyResolver(profiles=profiles, default_cycle_year="2025")


@pytest.fixture
def ledger(tmp_path: Path) -> SqliteChoiceLedger:
    return SqliteChoiceLedger(path=tmp_path / "ledger.db", lock_timeout=1.0)
