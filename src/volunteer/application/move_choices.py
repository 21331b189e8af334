"""Move Group and Move Item use cases."""

from __future__ import annotations

import logging

from dataclasses import dataclass

from volunteer.application.dto import MoveGroupCommand, MoveGroupResult, MoveItemCommand
from volunteer.domain.ledger.entities import Choice
from volunteer.domain.ledger.partition import PartitionKeyResolver
from volunteer.domain.ledger.reorder import ReorderEngine
from volunteer.domain.ledger.repositories import ChoiceLedger
from volunteer.shared.exceptions import ChoiceNotFoundError

logger = logging.getLogger(__name__)

# =============================================================================
# MOVE GROUP
# =============================================================================


@dataclass
class MoveGroup:
    """Swap a whole group with its neighbour in one transaction."""

    resolver: PartitionKeyResolver
    ledger: ChoiceLedger
    engine: ReorderEngine

    def execute(self, cmd: MoveGroupCommand) -> MoveGroupResult:
        """Swap the group with the one above or below it.

        Raises:
            GroupNotFoundError: If the group rank is empty.
            BoundaryError: If the group is already first/last.
        """
        key = self.resolver.resolve(cmd.owner_id, cmd.cycle_year)

        with self.ledger.session() as session:
            choices = session.partition(key)
            updates = self.engine.plan_group_move(
                key, choices, cmd.group_rank, cmd.direction
            )
            updated = session.update_ranks(updates)

        logger.info(
            "Owner %s moved group %d %s, %d rows updated",
            cmd.owner_id,
            cmd.group_rank,
            cmd.direction,
            updated,
        )
        return MoveGroupResult(updated=updated)


# =============================================================================
# MOVE ITEM
# =============================================================================


@dataclass
class MoveItem:
    """Swap one choice with its neighbour inside the same group."""

    resolver: PartitionKeyResolver
    ledger: ChoiceLedger
    engine: ReorderEngine

    def execute(self, cmd: MoveItemCommand) -> Choice:
        """Return the moved choice with its new ranks.

        Raises:
            ChoiceNotFoundError: If the choice is missing, not owned, or not
                in the owner's current partition.
            BoundaryError: If the choice is already first/last in its group.
        """
        key = self.resolver.resolve(cmd.owner_id, cmd.cycle_year)

        with self.ledger.session() as session:
            choice = session.get(cmd.owner_id, cmd.choice_id)
            if choice is None or choice.partition != key:
                logger.warning(
                    "Owner %s tried to move unknown choice %s",
                    cmd.owner_id,
                    cmd.choice_id,
                )
                raise ChoiceNotFoundError(cmd.owner_id, cmd.choice_id)

            updates = self.engine.plan_item_move(
                session.partition(key), choice, cmd.direction
            )
            session.update_ranks(updates)

        moved = choice.with_position(updates[0].position)
        logger.info(
            "Owner %s moved choice %s %s to item %d",
            cmd.owner_id,
            moved.id,
            cmd.direction,
            moved.item_rank,
        )
        return moved
