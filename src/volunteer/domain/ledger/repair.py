"""Whole-ledger renumbering that restores contiguous, coherent ranks."""

from __future__ import annotations

import logging

from dataclasses import dataclass, field

from volunteer.domain.ledger.entities import Choice
from volunteer.domain.ledger.value_objects import PartitionKey, RankUpdate
from volunteer.shared.constants import MAX_ITEMS_PER_GROUP
from volunteer.shared.types import RankPosition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepairPlan:
    """Rank rewrites for one partition. Only rows that change are listed."""

    partition: PartitionKey
    size: int
    updates: list[RankUpdate] = field(default_factory=list[RankUpdate])


@dataclass
class RepairPlanner:
    """Computes canonical ranks from creation order.

    Group ranks follow the first-seen order of target groups, item ranks the
    creation order inside each group. Canonical ranks are a fixed point, so
    planning against an already-repaired ledger yields no updates.
    """

    capacity: int = MAX_ITEMS_PER_GROUP

    def plan(self, choices: list[Choice]) -> list[RepairPlan]:
        """Plan the repair of every partition present in ``choices``."""
        partitions: dict[PartitionKey, list[Choice]] = {}
        for choice in choices:
            partitions.setdefault(choice.partition, []).append(choice)

        return [self._plan_partition(key, members) for key, members in partitions.items()]

    def _plan_partition(self, key: PartitionKey, members: list[Choice]) -> RepairPlan:
        # Stable: rows created in the same instant keep their storage order.
        ordered = sorted(members, key=lambda c: c.created_at)

        identity_ranks: dict[object, int] = {}
        groups: dict[int, list[Choice]] = {}
        for choice in ordered:
            identity: object = choice.target_group
            if choice.target_group is None:
                identity = ("standalone", choice.id)
            rank = identity_ranks.setdefault(identity, len(identity_ranks) + 1)
            groups.setdefault(rank, []).append(choice)

        updates: list[RankUpdate] = []
        for rank, group in groups.items():
            if len(group) > self.capacity:
                logger.warning(
                    "Group %d in %s holds %d items, above capacity %d",
                    rank,
                    key,
                    len(group),
                    self.capacity,
                )
            for item_rank, choice in enumerate(group, start=1):
                position = RankPosition(rank, item_rank)
                if choice.position != position:
                    updates.append(RankUpdate(choice.id, position))

        return RepairPlan(partition=key, size=len(members), updates=updates)
