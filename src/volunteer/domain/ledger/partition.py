"""Partition key resolution from the owner's current exam profile."""

from __future__ import annotations

import logging
import re

from dataclasses import dataclass

from volunteer.domain.ledger.repositories import ProfileLookup
from volunteer.domain.ledger.value_objects import (
    ExamProfile,
    PartitionKey,
    normalize_subjects,
)
from volunteer.shared.constants import DEFAULT_CYCLE_YEAR, SUBJECT_SEPARATORS
from volunteer.shared.exceptions import IncompleteProfileError, OwnerNotFoundError
from volunteer.shared.types import OwnerId

logger = logging.getLogger(__name__)

_SEPARATOR_RE = re.compile("|".join(re.escape(s) for s in SUBJECT_SEPARATORS))


def parse_secondary_subjects(raw: str | None) -> frozenset[str]:
    """Parse a comma-joined subject string into a normalized set."""
    if not raw:
        return frozenset()
    return normalize_subjects(_SEPARATOR_RE.split(raw))


@dataclass
class PartitionKeyResolver:
    """Derives the partition a request operates on.

    Stateless: the profile is read on every call, so a profile edit changes
    the partition of later requests but never moves stored choices.
    """

    profiles: ProfileLookup
    default_cycle_year: str = DEFAULT_CYCLE_YEAR

    def profile(self, owner_id: OwnerId) -> ExamProfile:
        """Load the owner's profile.

        Raises:
            OwnerNotFoundError: If the owner does not exist.
        """
        profile = self.profiles.get_profile(owner_id)
        if profile is None:
            logger.warning("Owner %s not found", owner_id)
            raise OwnerNotFoundError(owner_id)
        return profile

    def resolve(
        self, owner_id: OwnerId, cycle_year: str | None = None
    ) -> PartitionKey:
        """Resolve the owner's current partition key.

        Raises:
            OwnerNotFoundError: If the owner does not exist.
            IncompleteProfileError: If region or primary track is blank.
        """
        return self.key_for(self.profile(owner_id), cycle_year)

    def key_for(
        self, profile: ExamProfile, cycle_year: str | None = None
    ) -> PartitionKey:
        """Project an already-loaded profile onto a partition key."""
        region = (profile.region or "").strip()
        if not region:
            raise IncompleteProfileError(profile.owner_id, "region")
        track = (profile.primary_track or "").strip()
        if not track:
            raise IncompleteProfileError(profile.owner_id, "primary_track")

        return PartitionKey(
            owner_id=profile.owner_id,
            region=region,
            primary_track=track,
            secondary_subjects=profile.secondary_subjects,
            cycle_year=cycle_year or self.default_cycle_year,
        )
