"""Value objects for the choice ledger bounded context."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from volunteer.shared.constants import DEFAULT_ENROLLMENT_TYPE
from volunteer.shared.types import (
    ChoiceId,
    OwnerId,
    RankPosition,
    SchoolCode,
    TargetGroupId,
)

# =============================================================================
# PARTITION
# =============================================================================


def normalize_subjects(subjects: Iterable[str]) -> frozenset[str]:
    """Strip, drop blanks, and dedupe a collection of subject names."""
    return frozenset(s.strip() for s in subjects if s and s.strip())


@dataclass(frozen=True)
class PartitionKey:
    """The scope inside which ranks are unique and groups are defined.

    The secondary subjects are a genuine set: ``{"化学", "生物"}`` and
    ``{"生物", "化学"}`` are the same partition.
    """

    owner_id: OwnerId
    region: str
    primary_track: str
    secondary_subjects: frozenset[str]
    cycle_year: str

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "secondary_subjects", normalize_subjects(self.secondary_subjects)
        )

    @property
    def secondary_key(self) -> str:
        """Sorted, comma-joined form used for storage and grouping."""
        return ",".join(sorted(self.secondary_subjects))

    def __str__(self) -> str:
        secondary = self.secondary_key or "-"
        return (
            f"owner={self.owner_id} region={self.region} track={self.primary_track} "
            f"secondary={secondary} year={self.cycle_year}"
        )


@dataclass(frozen=True)
class ExamProfile:
    """The owner's current exam profile as reported by the profile service."""

    owner_id: OwnerId
    region: str | None
    primary_track: str | None
    secondary_subjects: frozenset[str] = frozenset()
    exam_score: int | None = None
    rank: int | None = None
    preferred_group_label: str | None = None


# =============================================================================
# PAYLOAD
# =============================================================================


@dataclass(frozen=True)
class ScoreSnapshot:
    """One year of historical admission results, copied in at creation."""

    year: str | None = None
    min_score: float | None = None
    min_rank: int | None = None
    admit_count: int | None = None
    batch: str | None = None
    province: str | None = None
    school_code: str | None = None
    subject_selection_mode: str | None = None
    enrollment_type: str | None = None


@dataclass(frozen=True)
class ChoicePayload:
    """Everything about a choice except its identity, partition and ranks."""

    major_name: str | None
    batch: str | None = None
    remark: str = ""
    school_code: SchoolCode | None = None
    enrollment_type: str = DEFAULT_ENROLLMENT_TYPE
    subject_selection_mode: str | None = None
    study_period: str | None = None
    quota: str | None = None
    tuition: str | None = None
    currency_unit: str | None = None
    group_info: str | None = None
    exam_score: int | None = None
    exam_rank: int | None = None
    score_snapshots: tuple[ScoreSnapshot, ...] = ()


@dataclass(frozen=True)
class ChoiceDraft:
    """A choice that has not been given ranks yet."""

    target_group: TargetGroupId | None
    payload: ChoicePayload


@dataclass(frozen=True)
class RankUpdate:
    """A new rank position for one stored choice."""

    choice_id: ChoiceId
    position: RankPosition


# =============================================================================
# CATALOG METADATA
# =============================================================================


@dataclass(frozen=True)
class TargetGroupInfo:
    """Display fields for a school program group."""

    target_group: TargetGroupId
    name: str | None = None
    info: str | None = None
    school_code: str | None = None
    batch: str | None = None
    year: str | None = None
    subject_selection_mode: str | None = None


@dataclass(frozen=True)
class SchoolInfo:
    """Display fields for a school."""

    code: str
    name: str | None = None
    province_name: str | None = None
    city_name: str | None = None
    nature: str | None = None
    level: str | None = None
    enrollment_rate: float | None = None
    employment_rate: float | None = None
