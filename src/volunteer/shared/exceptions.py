"""Typed exception hierarchy for the volunteer engine.

Every error carries a stable ``kind`` plus the ids needed by the caller to
render a message. Nothing here knows how the message is worded for users.
"""

from __future__ import annotations

from typing import ClassVar

from volunteer.shared.types import ChoiceId, OwnerId

# =============================================================================
# BASE
# =============================================================================


class VolunteerError(Exception):
    """Base exception for all volunteer engine errors."""

    kind: ClassVar[str] = "volunteer_error"

    def __init__(self, message: str, context: dict[str, object] | None = None) -> None:
        self.context: dict[str, object] = context or {}
        super().__init__(message)


# =============================================================================
# OWNER / PARTITION
# =============================================================================


class OwnerNotFoundError(VolunteerError):
    """The referenced owner or exam profile does not exist."""

    kind = "owner_not_found"

    def __init__(self, owner_id: OwnerId) -> None:
        self.owner_id = owner_id
        super().__init__(f"Owner {owner_id} not found", {"owner_id": owner_id})


class IncompleteProfileError(VolunteerError):
    """The owner's exam profile lacks a field the partition key needs."""

    kind = "incomplete_profile"

    def __init__(self, owner_id: OwnerId, missing: str) -> None:
        self.owner_id = owner_id
        self.missing = missing
        super().__init__(
            f"Owner {owner_id} profile is missing {missing}",
            {"owner_id": owner_id, "missing": missing},
        )


# =============================================================================
# ALLOCATION
# =============================================================================


class DuplicateChoiceError(VolunteerError):
    """An identical choice already exists in the partition."""

    kind = "duplicate_choice"

    def __init__(self, partition: str, existing_id: ChoiceId) -> None:
        self.partition = partition
        self.existing_id = existing_id
        super().__init__(
            f"Duplicate of choice {existing_id} in {partition}",
            {"partition": partition, "existing_id": existing_id},
        )


class GroupCapacityExceededError(VolunteerError):
    """The target group already holds the maximum number of items."""

    kind = "group_capacity_exceeded"

    def __init__(self, partition: str, group_rank: int, capacity: int) -> None:
        self.partition = partition
        self.group_rank = group_rank
        self.capacity = capacity
        super().__init__(
            f"Group {group_rank} in {partition} already holds {capacity} items",
            {"partition": partition, "group_rank": group_rank, "capacity": capacity},
        )


class RaceConflictError(VolunteerError):
    """The store rejected a write because ranks collided with a concurrent one."""

    kind = "race_conflict"

    def __init__(self, partition: str, reason: str) -> None:
        self.partition = partition
        super().__init__(
            f"Rank conflict in {partition}: {reason}",
            {"partition": partition},
        )


# =============================================================================
# LOOKUP / REORDER
# =============================================================================


class ChoiceNotFoundError(VolunteerError):
    """The choice does not exist or is not owned by the caller."""

    kind = "choice_not_found"

    def __init__(self, owner_id: OwnerId, choice_id: ChoiceId) -> None:
        self.owner_id = owner_id
        self.choice_id = choice_id
        super().__init__(
            f"Choice {choice_id} not found for owner {owner_id}",
            {"owner_id": owner_id, "choice_id": choice_id},
        )


class GroupNotFoundError(VolunteerError):
    """No choice in the partition carries the requested group rank."""

    kind = "group_not_found"

    def __init__(self, partition: str, group_rank: int) -> None:
        self.partition = partition
        self.group_rank = group_rank
        super().__init__(
            f"Group {group_rank} not found in {partition}",
            {"partition": partition, "group_rank": group_rank},
        )


class BoundaryError(VolunteerError):
    """A move would leave the first or last position."""

    kind = "boundary"

    def __init__(self, direction: str, rank: int) -> None:
        self.direction = direction
        self.rank = rank
        super().__init__(
            f"Cannot move {direction} from rank {rank}",
            {"direction": direction, "rank": rank},
        )


class InvalidRequestError(VolunteerError):
    """The request is malformed (e.g. an empty id list)."""

    kind = "invalid_request"


# =============================================================================
# INFRASTRUCTURE
# =============================================================================


class LedgerUnavailableError(VolunteerError):
    """The ledger could not be opened or locked in time."""

    kind = "ledger_unavailable"


class CollaboratorError(VolunteerError):
    """An external collaborator (profile, score, catalog service) failed."""

    kind = "collaborator_error"

    def __init__(self, service: str, reason: str) -> None:
        self.service = service
        super().__init__(f"Service '{service}' error: {reason}", {"service": service})


# =============================================================================
# CONFIGURATION
# =============================================================================


class ConfigurationError(VolunteerError):
    """Invalid or missing configuration."""

    kind = "configuration"
