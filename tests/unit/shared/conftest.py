"""Fixtures for shared kernel tests."""

from __future__ import annotations

import pytest

from volunteer.shared.types import ChoiceId, OwnerId, RankPosition


@pytest.fixture
def owner_id() -> OwnerId:
    return OwnerId(1001)


@pytest.fixture
def choice_id() -> ChoiceId:
    return ChoiceId("3f2a9c0e5b7d4e1f8a6c2b9d0e4f7a1c")


@pytest.fixture
def position() -> RankPosition:
    return RankPosition(group_rank=2, item_rank=3)
