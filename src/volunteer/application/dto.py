"""Application-layer command and result DTOs."""

from __future__ import annotations

from dataclasses import dataclass, field

from volunteer.domain.ledger.value_objects import ChoicePayload
from volunteer.shared.types import ChoiceId, Direction, OwnerId, TargetGroupId

# =============================================================================
# CREATE / LIST
# =============================================================================


@dataclass(frozen=True)
class CreateChoiceCommand:
    """Command to add one choice to the owner's current volunteer list."""

    owner_id: OwnerId
    target_group: TargetGroupId | None
    payload: ChoicePayload
    cycle_year: str | None = None


@dataclass(frozen=True)
class ListChoicesCommand:
    owner_id: OwnerId
    cycle_year: str | None = None


# =============================================================================
# DELETE
# =============================================================================


@dataclass(frozen=True)
class DeleteChoicesCommand:
    owner_id: OwnerId
    choice_ids: list[ChoiceId]


@dataclass(frozen=True)
class DeleteChoicesResult:
    """Outcome of a batch delete. ``failed`` lists ids not found for the owner."""

    deleted: int
    failed: list[ChoiceId] = field(default_factory=list[ChoiceId])


# =============================================================================
# REORDER
# =============================================================================


@dataclass(frozen=True)
class MoveGroupCommand:
    owner_id: OwnerId
    group_rank: int
    direction: Direction
    cycle_year: str | None = None


@dataclass(frozen=True)
class MoveGroupResult:
    updated: int


@dataclass(frozen=True)
class MoveItemCommand:
    owner_id: OwnerId
    choice_id: ChoiceId
    direction: Direction
    cycle_year: str | None = None


# =============================================================================
# REPAIR
# =============================================================================


@dataclass(frozen=True)
class RepairResult:
    """Outcome of a repair run.

    ``fixed`` counts rows whose ranks changed, so a second consecutive run
    reports zero.
    """

    fixed: int
    partitions: int = 0
    violations_found: int = 0
