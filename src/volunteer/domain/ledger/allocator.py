"""Rank allocation for new choices."""

from __future__ import annotations

import logging

from dataclasses import dataclass

from volunteer.domain.ledger.entities import Choice, semantic_key
from volunteer.domain.ledger.groups import GroupTable
from volunteer.domain.ledger.value_objects import ChoiceDraft, PartitionKey
from volunteer.shared.constants import MAX_ITEMS_PER_GROUP
from volunteer.shared.exceptions import DuplicateChoiceError, GroupCapacityExceededError
from volunteer.shared.types import RankPosition

logger = logging.getLogger(__name__)

# =============================================================================
# ALLOCATOR
# =============================================================================


@dataclass
class IndexAllocator:
    """Decides the group rank and item rank a new choice is stored with.

    Pure over the partition snapshot it is given; the caller must hold the
    partition's write lock between reading that snapshot and inserting.
    """

    capacity: int = MAX_ITEMS_PER_GROUP

    def allocate(
        self,
        key: PartitionKey,
        existing: list[Choice],
        draft: ChoiceDraft,
    ) -> RankPosition:
        """Compute ranks for ``draft`` inside the partition ``key``.

        Args:
            key: The partition the draft will be stored in.
            existing: Every choice currently stored in that partition.
            draft: Target group and payload of the new choice.

        Returns:
            The position to insert the new choice at.

        Raises:
            DuplicateChoiceError: If an identical choice already exists.
            GroupCapacityExceededError: If the target group is full.
        """
        wanted = semantic_key(draft.target_group, draft.payload)
        for choice in existing:
            if choice.semantic_key == wanted:
                logger.warning(
                    "Duplicate choice for owner %s, existing id %s",
                    key.owner_id,
                    choice.id,
                )
                raise DuplicateChoiceError(str(key), choice.id)

        table = GroupTable.from_choices(existing)
        group_rank = table.rank_of(draft.target_group)
        if group_rank is None:
            group_rank = table.next_group_rank()
            logger.debug("New group rank %d for owner %s", group_rank, key.owner_id)

        if len(table.members(group_rank)) >= self.capacity:
            logger.warning(
                "Owner %s group %d is full (%d items)",
                key.owner_id,
                group_rank,
                self.capacity,
            )
            raise GroupCapacityExceededError(str(key), group_rank, self.capacity)

        return RankPosition(
            group_rank=group_rank,
            item_rank=table.next_item_rank(group_rank),
        )
