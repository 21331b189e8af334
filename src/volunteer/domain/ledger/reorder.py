"""Move groups and items up or down by swapping ranks with a neighbour."""

from __future__ import annotations

from dataclasses import dataclass

from volunteer.domain.ledger.entities import Choice
from volunteer.domain.ledger.groups import GroupTable
from volunteer.domain.ledger.value_objects import PartitionKey, RankUpdate
from volunteer.shared.exceptions import BoundaryError, GroupNotFoundError
from volunteer.shared.types import Direction, RankPosition


@dataclass
class ReorderEngine:
    """Plans rank swaps. Payload fields are never part of a plan."""

    def plan_group_move(
        self,
        key: PartitionKey,
        choices: list[Choice],
        group_rank: int,
        direction: Direction,
    ) -> list[RankUpdate]:
        """Swap every row of group ``group_rank`` with its neighbour group.

        Raises:
            GroupNotFoundError: If no choice holds ``group_rank``.
            BoundaryError: If there is no neighbour in ``direction``.
        """
        table = GroupTable.from_choices(choices)
        moving = table.members(group_rank)
        if not moving:
            raise GroupNotFoundError(str(key), group_rank)

        target_rank = group_rank + direction.offset
        if target_rank < 1:
            raise BoundaryError(direction, group_rank)

        displaced = table.members(target_rank)
        if not displaced:
            raise BoundaryError(direction, group_rank)

        return [
            RankUpdate(c.id, RankPosition(target_rank, c.item_rank)) for c in moving
        ] + [
            RankUpdate(c.id, RankPosition(group_rank, c.item_rank)) for c in displaced
        ]

    def plan_item_move(
        self,
        choices: list[Choice],
        choice: Choice,
        direction: Direction,
    ) -> list[RankUpdate]:
        """Swap ``choice`` with its neighbour inside the same group.

        Raises:
            BoundaryError: If ``choice`` is already first/last in its group.
        """
        target_item = choice.item_rank + direction.offset
        if target_item < 1:
            raise BoundaryError(direction, choice.item_rank)

        sibling = next(
            (
                c
                for c in choices
                if c.group_rank == choice.group_rank and c.item_rank == target_item
            ),
            None,
        )
        if sibling is None:
            raise BoundaryError(direction, choice.item_rank)

        return [
            RankUpdate(choice.id, RankPosition(choice.group_rank, target_item)),
            RankUpdate(sibling.id, RankPosition(choice.group_rank, choice.item_rank)),
        ]
