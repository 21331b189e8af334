"""CatalogLookup backed by the catalog browsing service."""

from __future__ import annotations

import logging
import urllib.parse

from collections.abc import Sequence
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from volunteer.domain.ledger.value_objects import SchoolInfo, TargetGroupInfo
from volunteer.infrastructure.constants import ServicePath
from volunteer.infrastructure.services.client import ServiceClient
from volunteer.shared.exceptions import CollaboratorError
from volunteer.shared.types import TargetGroupId

logger = logging.getLogger(__name__)

# =============================================================================
# WIRE MODELS
# =============================================================================


class _GroupItem(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )

    id: int
    name: str | None = None
    info: str | None = None
    school_code: str | None = Field(default=None, alias="schoolCode")
    batch: str | None = None
    year: str | None = None
    subject_selection_mode: str | None = Field(
        default=None, alias="subjectSelectionMode"
    )


class _SchoolItem(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )

    code: str
    name: str | None = None
    province_name: str | None = Field(default=None, alias="provinceName")
    city_name: str | None = Field(default=None, alias="cityName")
    nature: str | None = None
    level: str | None = None
    enrollment_rate: float | None = Field(default=None, alias="enrollmentRate")
    employment_rate: float | None = Field(default=None, alias="employmentRate")


class _GroupList(BaseModel):
    items: list[_GroupItem] = []


class _SchoolList(BaseModel):
    items: list[_SchoolItem] = []


# =============================================================================
# LOOKUP
# =============================================================================


@dataclass
class HttpCatalogLookup:
    """Batch metadata reads for program groups and schools."""

    client: ServiceClient

    def target_groups(
        self, target_groups: Sequence[TargetGroupId]
    ) -> dict[TargetGroupId, TargetGroupInfo]:
        """Fetch program-group metadata keyed by id.

        Raises:
            CollaboratorError: If the service fails or returns a malformed body.
        """
        if not target_groups:
            return {}

        ids = ",".join(str(int(g)) for g in target_groups)
        body = self.client.get_json(_with_query(ServicePath.TARGET_GROUPS, ids=ids))
        try:
            parsed = _GroupList.model_validate(body)
        except ValidationError as e:
            raise CollaboratorError(self.client.service, str(e)) from e

        return {
            TargetGroupId(item.id): TargetGroupInfo(
                target_group=TargetGroupId(item.id),
                name=item.name,
                info=item.info,
                school_code=item.school_code,
                batch=item.batch,
                year=item.year,
                subject_selection_mode=item.subject_selection_mode,
            )
            for item in parsed.items
        }

    def schools(self, codes: Sequence[str]) -> dict[str, SchoolInfo]:
        """Fetch school metadata keyed by school code.

        Raises:
            CollaboratorError: If the service fails or returns a malformed body.
        """
        if not codes:
            return {}

        body = self.client.get_json(
            _with_query(ServicePath.SCHOOLS, codes=",".join(codes))
        )
        try:
            parsed = _SchoolList.model_validate(body)
        except ValidationError as e:
            raise CollaboratorError(self.client.service, str(e)) from e

        logger.debug("Catalog returned %d of %d schools", len(parsed.items), len(codes))
        return {
            item.code: SchoolInfo(
                code=item.code,
                name=item.name,
                province_name=item.province_name,
                city_name=item.city_name,
                nature=item.nature,
                level=item.level,
                enrollment_rate=item.enrollment_rate,
                employment_rate=item.employment_rate,
            )
            for item in parsed.items
        }


def _with_query(path: str, **params: str) -> str:
    return f"{path}?{urllib.parse.urlencode(params)}"
