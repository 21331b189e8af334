"""SQLite-backed choice ledger.

Each session is one connection and one transaction. Writers use
``BEGIN IMMEDIATE`` so allocate-then-insert and read-then-swap run
serialized; the repair job uses ``BEGIN EXCLUSIVE``. The UNIQUE indexes
are the last line of defense against rank collisions.
"""

from __future__ import annotations

import json
import logging
import sqlite3

from collections.abc import Iterator, Sequence
from contextlib import closing, contextmanager
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, cast

from volunteer.domain.ledger.entities import Choice
from volunteer.domain.ledger.repositories import SessionMode
from volunteer.domain.ledger.value_objects import (
    ChoicePayload,
    PartitionKey,
    RankUpdate,
    ScoreSnapshot,
)
from volunteer.infrastructure.constants import (
    CHOICES_TABLE,
    SCHEMA_STATEMENTS,
    PayloadField,
    TransactionMode,
)
from volunteer.shared.constants import DEFAULT_LOCK_TIMEOUT_SECONDS, PLACEHOLDER_RANK
from volunteer.shared.exceptions import LedgerUnavailableError, RaceConflictError
from volunteer.shared.types import (
    ChoiceId,
    OwnerId,
    RankPosition,
    SchoolCode,
    TargetGroupId,
)

logger = logging.getLogger(__name__)

_MODE_TO_BEGIN: dict[SessionMode, TransactionMode] = {
    SessionMode.READ: TransactionMode.DEFERRED,
    SessionMode.WRITE: TransactionMode.IMMEDIATE,
    SessionMode.EXCLUSIVE: TransactionMode.EXCLUSIVE,
}

_PARTITION_WHERE = (
    "owner_id = ? AND region = ? AND primary_track = ? "
    "AND secondary_subjects = ? AND cycle_year = ?"
)

# =============================================================================
# LEDGER
# =============================================================================


@dataclass
class SqliteChoiceLedger:
    """Implements ChoiceLedger on a SQLite database file."""

    path: Path
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as conn:
            for statement in SCHEMA_STATEMENTS:
                conn.execute(statement)
        logger.debug("Ledger schema ready at %s", self.path)

    @contextmanager
    def session(self, mode: SessionMode = SessionMode.WRITE) -> Iterator[SqliteLedgerSession]:
        """Open a transaction; commit on clean exit, roll back on any error.

        Raises:
            LedgerUnavailableError: If the database lock is not obtained in
                time, at ``BEGIN`` or at the first statement of a deferred
                read.
        """
        conn = self._connect()
        try:
            try:
                conn.execute(_MODE_TO_BEGIN[mode])
            except sqlite3.OperationalError as e:
                msg = f"Cannot lock ledger {self.path}: {e}"
                raise LedgerUnavailableError(msg) from e

            try:
                yield SqliteLedgerSession(conn)
            except sqlite3.OperationalError as e:
                # Deferred reads take their lock at the first statement.
                conn.rollback()
                msg = f"Ledger {self.path} busy: {e}"
                raise LedgerUnavailableError(msg) from e
            except BaseException:
                conn.rollback()
                raise
            try:
                conn.commit()
            except sqlite3.OperationalError as e:
                conn.rollback()
                msg = f"Cannot commit to ledger {self.path}: {e}"
                raise LedgerUnavailableError(msg) from e
        finally:
            conn.close()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self.path),
            timeout=self.lock_timeout,
            isolation_level=None,
        )
        conn.row_factory = sqlite3.Row
        return conn


# =============================================================================
# SESSION
# =============================================================================


@dataclass
class SqliteLedgerSession:
    """Implements LedgerSession over one open transaction."""

    conn: sqlite3.Connection

    def partition(self, key: PartitionKey) -> list[Choice]:
        rows = self.conn.execute(
            f"SELECT * FROM {CHOICES_TABLE} WHERE {_PARTITION_WHERE} "
            "ORDER BY group_rank, item_rank",
            _partition_params(key),
        ).fetchall()
        return [_deserialize(row) for row in rows]

    def get(self, owner_id: OwnerId, choice_id: ChoiceId) -> Choice | None:
        row = self.conn.execute(
            f"SELECT * FROM {CHOICES_TABLE} WHERE id = ? AND owner_id = ?",
            (str(choice_id), int(owner_id)),
        ).fetchone()
        return _deserialize(row) if row is not None else None

    def find_owned(
        self, owner_id: OwnerId, choice_ids: Sequence[ChoiceId]
    ) -> list[Choice]:
        if not choice_ids:
            return []
        placeholders = ", ".join("?" for _ in choice_ids)
        rows = self.conn.execute(
            f"SELECT * FROM {CHOICES_TABLE} "
            f"WHERE owner_id = ? AND id IN ({placeholders}) ORDER BY seq",
            (int(owner_id), *(str(cid) for cid in choice_ids)),
        ).fetchall()
        return [_deserialize(row) for row in rows]

    def insert(self, choice: Choice) -> None:
        """Insert a new row.

        Raises:
            RaceConflictError: If a UNIQUE index rejects the row.
        """
        params = _serialize(choice)
        columns = ", ".join(params)
        placeholders = ", ".join(f":{name}" for name in params)
        try:
            self.conn.execute(
                f"INSERT INTO {CHOICES_TABLE} ({columns}) VALUES ({placeholders})",
                params,
            )
        except sqlite3.IntegrityError as e:
            logger.warning("Insert of %s rejected by ledger: %s", choice.id, e)
            raise RaceConflictError(str(choice.partition), str(e)) from e

    def delete(self, owner_id: OwnerId, choice_ids: Sequence[ChoiceId]) -> int:
        if not choice_ids:
            return 0
        placeholders = ", ".join("?" for _ in choice_ids)
        cursor = self.conn.execute(
            f"DELETE FROM {CHOICES_TABLE} WHERE owner_id = ? AND id IN ({placeholders})",
            (int(owner_id), *(str(cid) for cid in choice_ids)),
        )
        return cursor.rowcount

    def update_ranks(self, updates: Sequence[RankUpdate]) -> int:
        """Rewrite ranks in two phases so no intermediate row collides.

        Phase one parks every row on the placeholder group with a distinct
        item rank; phase two writes the final positions.
        """
        if not updates:
            return 0
        self.conn.executemany(
            f"UPDATE {CHOICES_TABLE} SET group_rank = ?, item_rank = ? WHERE id = ?",
            [
                (PLACEHOLDER_RANK, parked, str(update.choice_id))
                for parked, update in enumerate(updates, start=1)
            ],
        )
        try:
            self.conn.executemany(
                f"UPDATE {CHOICES_TABLE} SET group_rank = ?, item_rank = ? WHERE id = ?",
                [
                    (
                        update.position.group_rank,
                        update.position.item_rank,
                        str(update.choice_id),
                    )
                    for update in updates
                ],
            )
        except sqlite3.IntegrityError as e:
            raise RaceConflictError("rank update", str(e)) from e
        return len(updates)

    def scan_all(self) -> list[Choice]:
        rows = self.conn.execute(
            f"SELECT * FROM {CHOICES_TABLE} "
            "ORDER BY owner_id, region, primary_track, cycle_year, created_at, seq"
        ).fetchall()
        return [_deserialize(row) for row in rows]


# =============================================================================
# SERIALIZATION
# =============================================================================


def _partition_params(key: PartitionKey) -> tuple[object, ...]:
    return (
        int(key.owner_id),
        key.region,
        key.primary_track,
        key.secondary_key,
        key.cycle_year,
    )


def _serialize(choice: Choice) -> dict[str, object]:
    payload = choice.payload
    extra: dict[str, object] = {
        PayloadField.ENROLLMENT_TYPE: payload.enrollment_type,
        PayloadField.SUBJECT_SELECTION_MODE: payload.subject_selection_mode,
        PayloadField.STUDY_PERIOD: payload.study_period,
        PayloadField.QUOTA: payload.quota,
        PayloadField.TUITION: payload.tuition,
        PayloadField.CURRENCY_UNIT: payload.currency_unit,
        PayloadField.GROUP_INFO: payload.group_info,
        PayloadField.EXAM_SCORE: payload.exam_score,
        PayloadField.EXAM_RANK: payload.exam_rank,
        PayloadField.SCORE_SNAPSHOTS: [asdict(s) for s in payload.score_snapshots],
    }
    key = choice.partition
    return {
        "id": str(choice.id),
        "owner_id": int(key.owner_id),
        "region": key.region,
        "primary_track": key.primary_track,
        "secondary_subjects": key.secondary_key,
        "cycle_year": key.cycle_year,
        "target_group": int(choice.target_group) if choice.target_group is not None else None,
        "group_rank": choice.group_rank,
        "item_rank": choice.item_rank,
        "major_name": payload.major_name,
        "batch": payload.batch,
        "remark": payload.remark or "",
        "school_code": str(payload.school_code) if payload.school_code else None,
        "payload": json.dumps(extra, ensure_ascii=False),
        "created_at": choice.created_at.astimezone(UTC).isoformat(),
    }


def _deserialize(row: sqlite3.Row) -> Choice:
    extra = cast(dict[str, Any], json.loads(row["payload"]))
    raw_snapshots = extra.get(PayloadField.SCORE_SNAPSHOTS) or []
    snapshots = tuple(
        ScoreSnapshot(**cast(dict[str, Any], s))
        for s in cast(list[object], raw_snapshots)
        if isinstance(s, dict)
    )
    target = row["target_group"]
    school = row["school_code"]
    payload = ChoicePayload(
        major_name=row["major_name"],
        batch=row["batch"],
        remark=row["remark"],
        school_code=SchoolCode(school) if school is not None else None,
        enrollment_type=extra.get(PayloadField.ENROLLMENT_TYPE) or "",
        subject_selection_mode=extra.get(PayloadField.SUBJECT_SELECTION_MODE),
        study_period=extra.get(PayloadField.STUDY_PERIOD),
        quota=extra.get(PayloadField.QUOTA),
        tuition=extra.get(PayloadField.TUITION),
        currency_unit=extra.get(PayloadField.CURRENCY_UNIT),
        group_info=extra.get(PayloadField.GROUP_INFO),
        exam_score=extra.get(PayloadField.EXAM_SCORE),
        exam_rank=extra.get(PayloadField.EXAM_RANK),
        score_snapshots=snapshots,
    )
    secondary = str(row["secondary_subjects"])
    return Choice(
        id=ChoiceId(row["id"]),
        partition=PartitionKey(
            owner_id=OwnerId(row["owner_id"]),
            region=row["region"],
            primary_track=row["primary_track"],
            secondary_subjects=frozenset(secondary.split(",")) if secondary else frozenset(),
            cycle_year=row["cycle_year"],
        ),
        target_group=TargetGroupId(target) if target is not None else None,
        position=RankPosition(row["group_rank"], row["item_rank"]),
        payload=payload,
        created_at=datetime.fromisoformat(row["created_at"]),
    )
