"""ScoreEnricher backed by the questionnaire scoring service."""

from __future__ import annotations

import logging

from collections.abc import Sequence
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from volunteer.infrastructure.constants import ServicePath
from volunteer.infrastructure.services.client import ServiceClient
from volunteer.shared.exceptions import CollaboratorError
from volunteer.shared.types import OwnerId

logger = logging.getLogger(__name__)


class _MajorScoresResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    class Entry(BaseModel):
        model_config = ConfigDict(populate_by_name=True, extra="ignore")

        major_name: str = Field(alias="majorName")
        score: float | None = None

    scores: list[Entry] = []


@dataclass
class HttpScoreEnricher:
    """Batch lookup of per-major suitability scores."""

    client: ServiceClient

    def score_for_majors(
        self, owner_id: OwnerId, major_names: Sequence[str]
    ) -> dict[str, float | None]:
        """Return a score per requested major; unknown majors map to ``None``.

        Raises:
            CollaboratorError: If the service fails or returns a malformed body.
        """
        if not major_names:
            return {}

        body = self.client.post_json(
            ServicePath.MAJOR_SCORES,
            {"userId": int(owner_id), "majorNames": list(major_names)},
        )
        try:
            parsed = _MajorScoresResponse.model_validate(body)
        except ValidationError as e:
            raise CollaboratorError(self.client.service, str(e)) from e

        found = {entry.major_name: entry.score for entry in parsed.scores}
        logger.debug(
            "Scored %d of %d majors for owner %s",
            len(found),
            len(major_names),
            owner_id,
        )
        return {name: found.get(name) for name in major_names}
