"""Repository and collaborator protocols for the choice ledger."""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import AbstractContextManager
from enum import StrEnum
from typing import Protocol

from volunteer.domain.ledger.entities import Choice
from volunteer.domain.ledger.value_objects import (
    ExamProfile,
    PartitionKey,
    RankUpdate,
    SchoolInfo,
    TargetGroupInfo,
)
from volunteer.shared.types import ChoiceId, OwnerId, TargetGroupId

# =============================================================================
# LEDGER STORE
# =============================================================================


class LedgerSession(Protocol):
    """One transaction against the ledger.

    Everything read and written through a session commits together or not
    at all.
    """

    def partition(self, key: PartitionKey) -> list[Choice]:
        """All choices in a partition, ordered by group rank then item rank."""
        ...

    def get(self, owner_id: OwnerId, choice_id: ChoiceId) -> Choice | None:
        """Load one choice, or None if it does not exist or is not owned."""
        ...

    def find_owned(
        self, owner_id: OwnerId, choice_ids: Sequence[ChoiceId]
    ) -> list[Choice]:
        """Load the subset of ``choice_ids`` that exist and belong to the owner."""
        ...

    def insert(self, choice: Choice) -> None:
        """Persist a new choice.

        Raises:
            RaceConflictError: If a uniqueness constraint rejects the row.
        """
        ...

    def delete(self, owner_id: OwnerId, choice_ids: Sequence[ChoiceId]) -> int:
        """Delete owned choices by id and return how many rows were removed."""
        ...

    def update_ranks(self, updates: Sequence[RankUpdate]) -> int:
        """Rewrite the rank fields of many rows at once.

        The final state must satisfy the uniqueness constraint; intermediate
        collisions between the rows being rewritten are the store's problem.

        Returns:
            Number of rows updated.
        """
        ...

    def scan_all(self) -> list[Choice]:
        """Every choice, ordered by owner, region, track, year, then creation."""
        ...


class SessionMode(StrEnum):
    """Locking level of a ledger session."""

    READ = "read"  # Consistent snapshot, no write lock.
    WRITE = "write"  # Serialized with every other writer.
    EXCLUSIVE = "exclusive"  # Also blocks readers; used by the repair job.


class ChoiceLedger(Protocol):
    """Persistence port for choices."""

    def session(
        self, mode: SessionMode = SessionMode.WRITE
    ) -> AbstractContextManager[LedgerSession]:
        """Open a transaction that commits on exit and rolls back on error.

        Raises:
            LedgerUnavailableError: If the lock cannot be taken in time.
        """
        ...


# =============================================================================
# COLLABORATORS
# =============================================================================


class ProfileLookup(Protocol):
    """Port for reading an owner's current exam profile."""

    def get_profile(self, owner_id: OwnerId) -> ExamProfile | None:
        """Return the profile, or None if the owner does not exist."""
        ...


class ScoreEnricher(Protocol):
    """Port for the external major-scoring engine."""

    def score_for_majors(
        self, owner_id: OwnerId, major_names: Sequence[str]
    ) -> dict[str, float | None]:
        """Score each major name for the owner.

        Raises:
            CollaboratorError: If the scoring service fails.
        """
        ...


class CatalogLookup(Protocol):
    """Port for school and program-group display metadata."""

    def target_groups(
        self, target_groups: Sequence[TargetGroupId]
    ) -> dict[TargetGroupId, TargetGroupInfo]:
        """Metadata keyed by target group id; unknown ids are omitted."""
        ...

    def schools(self, codes: Sequence[str]) -> dict[str, SchoolInfo]:
        """Metadata keyed by school code; unknown codes are omitted."""
        ...
