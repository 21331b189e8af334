"""Infrastructure-layer constants and enums.

Eliminates magic strings across all infrastructure modules.
"""

from __future__ import annotations

from enum import StrEnum

# =============================================================================
# LEDGER SCHEMA
# =============================================================================

CHOICES_TABLE = "choices"

PARTITION_COLUMNS = (
    "owner_id",
    "region",
    "primary_track",
    "secondary_subjects",
    "cycle_year",
)

SCHEMA_STATEMENTS: tuple[str, ...] = (
    f"""
    CREATE TABLE IF NOT EXISTS {CHOICES_TABLE} (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        id TEXT NOT NULL UNIQUE,
        owner_id INTEGER NOT NULL,
        region TEXT NOT NULL,
        primary_track TEXT NOT NULL,
        secondary_subjects TEXT NOT NULL DEFAULT '',
        cycle_year TEXT NOT NULL,
        target_group INTEGER,
        group_rank INTEGER NOT NULL CHECK (group_rank >= 0),
        item_rank INTEGER NOT NULL CHECK (item_rank >= 0),
        major_name TEXT,
        batch TEXT,
        remark TEXT NOT NULL DEFAULT '',
        school_code TEXT,
        payload TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    # Rank uniqueness inside a partition.
    f"""
    CREATE UNIQUE INDEX IF NOT EXISTS idx_choices_partition_rank
    ON {CHOICES_TABLE} ({", ".join(PARTITION_COLUMNS)}, group_rank, item_rank)
    """,
    # Same major requested twice under one target group. NULL target groups
    # never collide here; those duplicates are caught by the allocator.
    # IFNULL so a missing major or batch still takes part in the comparison.
    f"""
    CREATE UNIQUE INDEX IF NOT EXISTS idx_choices_partition_semantic
    ON {CHOICES_TABLE} (
        {", ".join(PARTITION_COLUMNS)}, target_group,
        IFNULL(major_name, ''), IFNULL(batch, ''), remark
    )
    """,
    f"CREATE INDEX IF NOT EXISTS idx_choices_owner ON {CHOICES_TABLE} (owner_id)",
)


class TransactionMode(StrEnum):
    """SQLite ``BEGIN`` variants."""

    DEFERRED = "BEGIN DEFERRED"
    IMMEDIATE = "BEGIN IMMEDIATE"
    EXCLUSIVE = "BEGIN EXCLUSIVE"


# =============================================================================
# SERIALIZER FIELD NAMES
# =============================================================================


class PayloadField(StrEnum):
    """JSON field names for the stored choice payload."""

    ENROLLMENT_TYPE = "enrollment_type"
    SUBJECT_SELECTION_MODE = "subject_selection_mode"
    STUDY_PERIOD = "study_period"
    QUOTA = "quota"
    TUITION = "tuition"
    CURRENCY_UNIT = "currency_unit"
    GROUP_INFO = "group_info"
    EXAM_SCORE = "exam_score"
    EXAM_RANK = "exam_rank"
    SCORE_SNAPSHOTS = "score_snapshots"


# =============================================================================
# COLLABORATOR SERVICES
# =============================================================================


class ServiceName(StrEnum):
    """Names used in logs and ``CollaboratorError``."""

    PROFILE = "profile"
    SCORING = "scoring"
    CATALOG = "catalog"


class ServicePath(StrEnum):
    """Endpoint paths on the collaborator services."""

    PROFILE = "/users/{owner_id}/exam-profile"
    MAJOR_SCORES = "/scores/majors"
    TARGET_GROUPS = "/catalog/major-groups"
    SCHOOLS = "/catalog/schools"


ACCEPT_JSON = "application/json"
