"""ProfileLookup backed by the user profile service."""

from __future__ import annotations

import logging

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from volunteer.domain.ledger.partition import parse_secondary_subjects
from volunteer.domain.ledger.value_objects import ExamProfile
from volunteer.infrastructure.constants import ServicePath
from volunteer.infrastructure.services.client import ServiceClient
from volunteer.shared.exceptions import CollaboratorError
from volunteer.shared.types import OwnerId

logger = logging.getLogger(__name__)


class _ProfileResponse(BaseModel):
    """Wire shape of ``GET /users/{id}/exam-profile``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    province: str | None = None
    primary_track: str | None = Field(default=None, alias="preferredSubjects")
    secondary_subjects: str | None = Field(default=None, alias="secondarySubjects")
    score: int | None = None
    rank: int | None = None
    enroll_type: str | None = Field(default=None, alias="enrollType")


@dataclass
class HttpProfileLookup:
    """Reads the owner's exam profile; a 404 means the owner does not exist."""

    client: ServiceClient

    def get_profile(self, owner_id: OwnerId) -> ExamProfile | None:
        """Fetch and validate the profile.

        Raises:
            CollaboratorError: If the service fails or returns a malformed body.
        """
        path = ServicePath.PROFILE.format(owner_id=int(owner_id))
        body = self.client.get_json(path, allow_missing=True)
        if body is None:
            return None

        try:
            parsed = _ProfileResponse.model_validate(body)
        except ValidationError as e:
            logger.warning("Malformed profile for owner %s", owner_id)
            raise CollaboratorError(self.client.service, str(e)) from e

        return ExamProfile(
            owner_id=owner_id,
            region=parsed.province,
            primary_track=parsed.primary_track,
            secondary_subjects=parse_secondary_subjects(parsed.secondary_subjects),
            exam_score=parsed.score,
            rank=parsed.rank,
            preferred_group_label=parsed.enroll_type,
        )
