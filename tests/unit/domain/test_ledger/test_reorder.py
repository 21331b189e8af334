"""Tests for the reorder engine."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from volunteer.domain.ledger.entities import Choice
from volunteer.domain.ledger.reorder import ReorderEngine
from volunteer.domain.ledger.value_objects import PartitionKey
from volunteer.shared.exceptions import BoundaryError, GroupNotFoundError
from volunteer.shared.types import Direction, RankPosition


@pytest.fixture
def engine() -> ReorderEngine:
    return ReorderEngine()


@pytest.fixture
def three_groups(make_choice: Callable[..., Choice]) -> list[Choice]:
    return [
        make_choice(1, 1, target_group=10, choice_id="a1"),
        make_choice(1, 2, target_group=10, choice_id="a2"),
        make_choice(2, 1, target_group=20, choice_id="b1"),
        make_choice(3, 1, target_group=30, choice_id="c1"),
        make_choice(3, 2, target_group=30, choice_id="c2"),
    ]


def _as_map(updates: list) -> dict[str, RankPosition]:
    return {str(u.choice_id): u.position for u in updates}


# =============================================================================
# Group moves
# =============================================================================


class TestPlanGroupMove:
    def test_move_down_swaps_with_next_group(
        self, engine: ReorderEngine, key: PartitionKey, three_groups: list[Choice]
    ) -> None:
        updates = engine.plan_group_move(key, three_groups, 1, Direction.DOWN)

        assert _as_map(updates) == {
            "a1": RankPosition(2, 1),
            "a2": RankPosition(2, 2),
            "b1": RankPosition(1, 1),
        }

    def test_move_up_swaps_with_previous_group(
        self, engine: ReorderEngine, key: PartitionKey, three_groups: list[Choice]
    ) -> None:
        updates = engine.plan_group_move(key, three_groups, 3, Direction.UP)

        assert _as_map(updates) == {
            "c1": RankPosition(2, 1),
            "c2": RankPosition(2, 2),
            "b1": RankPosition(3, 1),
        }

    def test_first_group_cannot_move_up(
        self, engine: ReorderEngine, key: PartitionKey, three_groups: list[Choice]
    ) -> None:
        with pytest.raises(BoundaryError):
            engine.plan_group_move(key, three_groups, 1, Direction.UP)

    def test_last_group_cannot_move_down(
        self, engine: ReorderEngine, key: PartitionKey, three_groups: list[Choice]
    ) -> None:
        with pytest.raises(BoundaryError):
            engine.plan_group_move(key, three_groups, 3, Direction.DOWN)

    def test_gap_below_is_a_boundary(
        self,
        engine: ReorderEngine,
        key: PartitionKey,
        make_choice: Callable[..., Choice],
    ) -> None:
        choices = [make_choice(1, 1, target_group=10), make_choice(3, 1, target_group=30)]
        with pytest.raises(BoundaryError):
            engine.plan_group_move(key, choices, 1, Direction.DOWN)

    def test_unknown_group(
        self, engine: ReorderEngine, key: PartitionKey, three_groups: list[Choice]
    ) -> None:
        with pytest.raises(GroupNotFoundError):
            engine.plan_group_move(key, three_groups, 7, Direction.UP)

    def test_empty_partition(self, engine: ReorderEngine, key: PartitionKey) -> None:
        with pytest.raises(GroupNotFoundError):
            engine.plan_group_move(key, [], 1, Direction.DOWN)


# =============================================================================
# Item moves
# =============================================================================


class TestPlanItemMove:
    def test_move_down_swaps_with_next_sibling(
        self, engine: ReorderEngine, three_groups: list[Choice]
    ) -> None:
        updates = engine.plan_item_move(three_groups, three_groups[0], Direction.DOWN)

        assert updates[0].choice_id == "a1"
        assert _as_map(updates) == {"a1": RankPosition(1, 2), "a2": RankPosition(1, 1)}

    def test_move_up(self, engine: ReorderEngine, three_groups: list[Choice]) -> None:
        updates = engine.plan_item_move(three_groups, three_groups[4], Direction.UP)
        assert _as_map(updates) == {"c2": RankPosition(3, 1), "c1": RankPosition(3, 2)}

    def test_first_item_cannot_move_up(
        self, engine: ReorderEngine, three_groups: list[Choice]
    ) -> None:
        with pytest.raises(BoundaryError):
            engine.plan_item_move(three_groups, three_groups[0], Direction.UP)

    def test_last_item_cannot_move_down(
        self, engine: ReorderEngine, three_groups: list[Choice]
    ) -> None:
        with pytest.raises(BoundaryError):
            engine.plan_item_move(three_groups, three_groups[1], Direction.DOWN)

    def test_single_item_group_cannot_move(
        self, engine: ReorderEngine, three_groups: list[Choice]
    ) -> None:
        with pytest.raises(BoundaryError):
            engine.plan_item_move(three_groups, three_groups[2], Direction.DOWN)

    def test_item_move_never_crosses_groups(
        self, engine: ReorderEngine, three_groups: list[Choice]
    ) -> None:
        # a2 is last in group 1; b1 at (2, 1) must not be picked up.
        with pytest.raises(BoundaryError):
            engine.plan_item_move(three_groups, three_groups[1], Direction.DOWN)
