"""Create Choice use case."""

from __future__ import annotations

import logging
import uuid

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from volunteer.application.dto import CreateChoiceCommand
from volunteer.domain.ledger.allocator import IndexAllocator
from volunteer.domain.ledger.entities import Choice
from volunteer.domain.ledger.partition import PartitionKeyResolver
from volunteer.domain.ledger.repositories import ChoiceLedger
from volunteer.domain.ledger.value_objects import (
    ChoiceDraft,
    ChoicePayload,
    ExamProfile,
    PartitionKey,
)
from volunteer.shared.constants import RACE_RETRY_LIMIT
from volunteer.shared.exceptions import RaceConflictError
from volunteer.shared.types import ChoiceId

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _new_choice_id() -> ChoiceId:
    return ChoiceId(uuid.uuid4().hex)


# =============================================================================
# USE CASE
# =============================================================================


@dataclass
class CreateChoice:
    """Allocate ranks for a new choice and insert it in one transaction.

    A uniqueness conflict from the store means another writer won the race;
    the allocation is recomputed against fresh data ``retry_limit`` times
    before the conflict is surfaced.
    """

    resolver: PartitionKeyResolver
    allocator: IndexAllocator
    ledger: ChoiceLedger
    clock: Callable[[], datetime] = _utc_now
    id_factory: Callable[[], ChoiceId] = _new_choice_id
    retry_limit: int = RACE_RETRY_LIMIT

    def execute(self, cmd: CreateChoiceCommand) -> Choice:
        """Execute the create workflow.

        Raises:
            OwnerNotFoundError: If the owner does not exist.
            DuplicateChoiceError: If the same choice is already in the list.
            GroupCapacityExceededError: If the target group is full.
            RaceConflictError: If the conflict persists after retrying.
        """
        profile = self.resolver.profile(cmd.owner_id)
        key = self.resolver.key_for(profile, cmd.cycle_year)
        draft = ChoiceDraft(
            target_group=cmd.target_group,
            payload=_with_profile_defaults(cmd.payload, profile),
        )

        attempt = 0
        while True:
            try:
                return self._allocate_and_insert(key, draft)
            except RaceConflictError:
                if attempt >= self.retry_limit:
                    logger.error("Rank conflict persisted for owner %s", key.owner_id)
                    raise
                attempt += 1
                logger.warning(
                    "Rank conflict for owner %s, retrying (%d/%d)",
                    key.owner_id,
                    attempt,
                    self.retry_limit,
                )

    def _allocate_and_insert(self, key: PartitionKey, draft: ChoiceDraft) -> Choice:
        with self.ledger.session() as session:
            existing = session.partition(key)
            position = self.allocator.allocate(key, existing, draft)
            choice = Choice.from_draft(
                choice_id=self.id_factory(),
                partition=key,
                draft=draft,
                position=position,
                created_at=self.clock(),
            )
            session.insert(choice)

        logger.info(
            "Owner %s created choice %s at group %d item %d",
            key.owner_id,
            choice.id,
            choice.group_rank,
            choice.item_rank,
        )
        return choice


def _with_profile_defaults(payload: ChoicePayload, profile: ExamProfile) -> ChoicePayload:
    """Stamp the owner's exam score onto the payload when the caller omitted it."""
    if payload.exam_score is None and profile.exam_score is not None:
        return replace(payload, exam_score=profile.exam_score)
    return payload
