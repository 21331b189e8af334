"""Explicit group membership view shared by the allocator, repair and checks.

Group coherence (one target group per group rank, one group rank per target
group) is not something a schema can express on its own, so every component
that reasons about groups goes through ``GroupTable`` instead of re-deriving
it.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from volunteer.domain.ledger.entities import Choice
from volunteer.domain.ledger.value_objects import PartitionKey
from volunteer.shared.constants import MAX_ITEMS_PER_GROUP
from volunteer.shared.types import ChoiceId, TargetGroupId

# =============================================================================
# GROUP TABLE
# =============================================================================


@dataclass
class GroupTable:
    """Target group ↔ group rank lookup over the choices of one partition."""

    _identity_ranks: dict[TargetGroupId, int] = field(
        default_factory=dict[TargetGroupId, int],
    )
    _members: dict[int, list[Choice]] = field(default_factory=dict[int, list[Choice]])

    @classmethod
    def from_choices(cls, choices: Iterable[Choice]) -> GroupTable:
        """Build the table. Legacy rows split across ranks map to the lowest."""
        table = cls()
        for choice in sorted(choices, key=lambda c: c.position):
            table._members.setdefault(choice.group_rank, []).append(choice)
            if choice.target_group is not None:
                table._identity_ranks.setdefault(choice.target_group, choice.group_rank)
        return table

    def rank_of(self, target_group: TargetGroupId | None) -> int | None:
        """The group rank already held by a target group, if any."""
        if target_group is None:
            return None
        return self._identity_ranks.get(target_group)

    def next_group_rank(self) -> int:
        return max(self._members, default=0) + 1

    def members(self, group_rank: int) -> list[Choice]:
        """Choices in a group, ordered by item rank."""
        return list(self._members.get(group_rank, []))

    def next_item_rank(self, group_rank: int) -> int:
        return max((c.item_rank for c in self._members.get(group_rank, [])), default=0) + 1

    def ranks(self) -> list[int]:
        return sorted(self._members)

    def __contains__(self, group_rank: object) -> bool:
        return group_rank in self._members

    def __len__(self) -> int:
        return len(self._members)


# =============================================================================
# INVARIANT CHECK
# =============================================================================


def find_violations(
    choices: Iterable[Choice], capacity: int = MAX_ITEMS_PER_GROUP
) -> list[str]:
    """Describe every ledger invariant broken by ``choices``.

    Returns an empty list for a healthy ledger. Used by the repair job to
    report what it fixed and by tests as an oracle.
    """
    by_partition: dict[PartitionKey, list[Choice]] = defaultdict(list)
    for choice in choices:
        by_partition[choice.partition].append(choice)

    problems: list[str] = []
    for key, members in by_partition.items():
        problems.extend(_partition_violations(key, members, capacity))
    return problems


def _partition_violations(
    key: PartitionKey, members: list[Choice], capacity: int
) -> list[str]:
    problems: list[str] = []
    positions: dict[tuple[int, int], ChoiceId] = {}
    group_sizes: dict[int, int] = defaultdict(int)
    identity_ranks: dict[TargetGroupId, set[int]] = defaultdict(set)
    rank_identities: dict[int, set[object]] = defaultdict(set)
    semantic: dict[object, ChoiceId] = {}

    for choice in members:
        pos = (choice.group_rank, choice.item_rank)
        if pos in positions:
            problems.append(f"{key}: {choice.id} and {positions[pos]} share rank {pos}")
        positions[pos] = choice.id

        group_sizes[choice.group_rank] += 1

        # A stand-alone choice is its own identity.
        identity: object = choice.target_group
        if choice.target_group is None:
            identity = ("standalone", choice.id)
        else:
            identity_ranks[choice.target_group].add(choice.group_rank)
        rank_identities[choice.group_rank].add(identity)

        if choice.semantic_key in semantic:
            problems.append(
                f"{key}: {choice.id} duplicates {semantic[choice.semantic_key]}"
            )
        semantic[choice.semantic_key] = choice.id

    for rank, size in sorted(group_sizes.items()):
        if size > capacity:
            problems.append(f"{key}: group {rank} holds {size} > {capacity} items")
    for target, ranks in identity_ranks.items():
        if len(ranks) > 1:
            problems.append(f"{key}: target group {target} spans ranks {sorted(ranks)}")
    for rank, identities in sorted(rank_identities.items()):
        if len(identities) > 1:
            problems.append(f"{key}: group {rank} mixes {len(identities)} target groups")
    return problems
