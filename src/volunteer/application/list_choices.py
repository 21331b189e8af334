"""List Choices use case."""

from __future__ import annotations

import logging

from dataclasses import dataclass

from volunteer.application.dto import ListChoicesCommand
from volunteer.domain.ledger.partition import PartitionKeyResolver
from volunteer.domain.ledger.projector import ChoiceBoard, GroupingProjector
from volunteer.domain.ledger.repositories import ChoiceLedger, SessionMode

logger = logging.getLogger(__name__)


@dataclass
class ListChoices:
    """Read the owner's current partition and project it into groups."""

    resolver: PartitionKeyResolver
    ledger: ChoiceLedger
    projector: GroupingProjector

    def execute(self, cmd: ListChoicesCommand) -> ChoiceBoard:
        profile = self.resolver.profile(cmd.owner_id)
        key = self.resolver.key_for(profile, cmd.cycle_year)

        with self.ledger.session(SessionMode.READ) as session:
            choices = session.partition(key)

        if not choices:
            logger.info("Owner %s has no choices in %s", key.owner_id, key.cycle_year)
        return self.projector.project(key, choices, owner_rank=profile.rank)
