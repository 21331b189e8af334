"""Request boundary for the volunteer engine.

``ChoiceApi`` turns raw request values into commands, runs the use case and
wraps the outcome in a JSON-ready envelope::

    {"ok": true, "data": ...}
    {"ok": false, "error": {"kind": ..., "message": ..., "context": {...}}}

Only ``VolunteerError`` subclasses are turned into error envelopes; anything
else is a bug and propagates.

This module is the library entry point for host applications: they build a
``ChoiceApi`` with ``build_choice_api`` (typically from
``load_volunteer_config()`` and ``ServiceConfig.from_env()``) and mount its
methods on their own transport. The ``volunteer`` console script only runs
operator jobs.
"""

from __future__ import annotations

import logging

from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from volunteer.application.create_choice import CreateChoice
from volunteer.application.delete_choices import DeleteChoice, DeleteChoices
from volunteer.application.dto import (
    CreateChoiceCommand,
    DeleteChoicesCommand,
    ListChoicesCommand,
    MoveGroupCommand,
    MoveItemCommand,
)
from volunteer.application.list_choices import ListChoices
from volunteer.application.move_choices import MoveGroup, MoveItem
from volunteer.application.repair_ranks import RepairRanks
from volunteer.domain.ledger.allocator import IndexAllocator
from volunteer.domain.ledger.entities import Choice
from volunteer.domain.ledger.partition import PartitionKeyResolver
from volunteer.domain.ledger.projector import ChoiceBoard, GroupingProjector, ItemView
from volunteer.domain.ledger.reorder import ReorderEngine
from volunteer.domain.ledger.repair import RepairPlanner
from volunteer.domain.ledger.repositories import ChoiceLedger
from volunteer.domain.ledger.value_objects import ChoicePayload, ScoreSnapshot
from volunteer.infrastructure.constants import ServiceName
from volunteer.infrastructure.services.catalog import HttpCatalogLookup
from volunteer.infrastructure.services.client import ServiceClient
from volunteer.infrastructure.services.profiles import HttpProfileLookup
from volunteer.infrastructure.services.scores import HttpScoreEnricher
from volunteer.infrastructure.storage.sqlite_ledger import SqliteChoiceLedger
from volunteer.interfaces.config import ServiceConfig
from volunteer.interfaces.toml_config import VolunteerConfig
from volunteer.shared.constants import DEFAULT_ENROLLMENT_TYPE
from volunteer.shared.exceptions import InvalidRequestError, VolunteerError
from volunteer.shared.types import ChoiceId, Direction, OwnerId, SchoolCode, TargetGroupId

logger = logging.getLogger(__name__)

T = TypeVar("T")

Envelope = dict[str, Any]

# =============================================================================
# USER-FACING MESSAGES
# =============================================================================

ERROR_MESSAGES: dict[str, str] = {
    "owner_not_found": "用户不存在",
    "incomplete_profile": "请先完善高考信息（省份、首选科目）",
    "duplicate_choice": "该志愿已存在",
    "group_capacity_exceeded": "该专业组最多只能填报6个专业",
    "choice_not_found": "志愿不存在",
    "group_not_found": "志愿组不存在",
    "boundary": "已经是第一个或最后一个，无法移动",
    "race_conflict": "操作冲突，请稍后重试",
    "invalid_request": "请求参数有误",
    "ledger_unavailable": "系统繁忙，请稍后重试",
    "collaborator_error": "依赖服务暂不可用",
    "configuration": "服务配置错误",
}
_FALLBACK_MESSAGE = "操作失败"

# =============================================================================
# REQUEST MODELS
# =============================================================================


class _SnapshotRequest(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )

    year: str | None = None
    min_score: float | None = Field(default=None, alias="minScore")
    min_rank: int | None = Field(default=None, alias="minRank")
    admit_count: int | None = Field(default=None, alias="admitCount")
    batch: str | None = None
    province: str | None = None
    school_code: str | None = Field(default=None, alias="schoolCode")
    subject_selection_mode: str | None = Field(
        default=None, alias="subjectSelectionMode"
    )
    enrollment_type: str | None = Field(default=None, alias="enrollmentType")


class CreateChoiceRequest(BaseModel):
    """Body of a create request. Accepts camelCase or snake_case keys."""

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )

    target_group: int | None = Field(default=None, alias="targetGroup")
    major_name: str | None = Field(default=None, alias="majorName")
    batch: str | None = None
    remark: str | None = None
    school_code: str | None = Field(default=None, alias="schoolCode")
    enrollment_type: str | None = Field(default=None, alias="enrollmentType")
    subject_selection_mode: str | None = Field(
        default=None, alias="subjectSelectionMode"
    )
    study_period: str | None = Field(default=None, alias="studyPeriod")
    quota: str | None = None
    tuition: str | None = None
    currency_unit: str | None = Field(default=None, alias="currencyUnit")
    group_info: str | None = Field(default=None, alias="groupInfo")
    exam_score: int | None = Field(default=None, alias="examScore")
    exam_rank: int | None = Field(default=None, alias="examRank")
    score_snapshots: list[_SnapshotRequest] = Field(
        default_factory=list, alias="scoreSnapshots"
    )
    cycle_year: str | None = Field(default=None, alias="cycleYear")

    def to_payload(self) -> ChoicePayload:
        return ChoicePayload(
            major_name=self.major_name,
            batch=self.batch,
            remark=self.remark or "",
            school_code=SchoolCode(self.school_code) if self.school_code else None,
            enrollment_type=self.enrollment_type or DEFAULT_ENROLLMENT_TYPE,
            subject_selection_mode=self.subject_selection_mode,
            study_period=self.study_period,
            quota=self.quota,
            tuition=self.tuition,
            currency_unit=self.currency_unit,
            group_info=self.group_info,
            exam_score=self.exam_score,
            exam_rank=self.exam_rank,
            score_snapshots=tuple(
                ScoreSnapshot(**s.model_dump()) for s in self.score_snapshots
            ),
        )


# =============================================================================
# API
# =============================================================================


@dataclass
class ChoiceApi:
    """Envelope-returning facade over the use cases."""

    creator: CreateChoice
    lister: ListChoices
    deleter: DeleteChoice
    batch_deleter: DeleteChoices
    group_mover: MoveGroup
    item_mover: MoveItem
    repairer: RepairRanks

    def create_choice(self, owner_id: int, request: dict[str, Any]) -> Envelope:
        def run() -> dict[str, Any]:
            try:
                parsed = CreateChoiceRequest.model_validate(request)
            except ValidationError as e:
                msg = f"Invalid create request: {e.error_count()} field error(s)"
                raise InvalidRequestError(msg, {"owner_id": owner_id}) from e
            choice = self.creator.execute(
                CreateChoiceCommand(
                    owner_id=OwnerId(owner_id),
                    target_group=(
                        TargetGroupId(parsed.target_group)
                        if parsed.target_group is not None
                        else None
                    ),
                    payload=parsed.to_payload(),
                    cycle_year=parsed.cycle_year,
                )
            )
            return choice_to_dict(choice)

        return _guard("create_choice", run)

    def list_choices(self, owner_id: int, cycle_year: str | None = None) -> Envelope:
        def run() -> dict[str, Any]:
            board = self.lister.execute(
                ListChoicesCommand(owner_id=OwnerId(owner_id), cycle_year=cycle_year)
            )
            return board_to_dict(board)

        return _guard("list_choices", run)

    def delete_choice(self, owner_id: int, choice_id: str) -> Envelope:
        def run() -> None:
            self.deleter.execute(OwnerId(owner_id), ChoiceId(choice_id))

        return _guard("delete_choice", run)

    def delete_choices(self, owner_id: int, choice_ids: Sequence[str]) -> Envelope:
        def run() -> dict[str, Any]:
            result = self.batch_deleter.execute(
                DeleteChoicesCommand(
                    owner_id=OwnerId(owner_id),
                    choice_ids=[ChoiceId(cid) for cid in choice_ids],
                )
            )
            return {"deleted": result.deleted, "failed": list(result.failed)}

        return _guard("delete_choices", run)

    def move_group(
        self,
        owner_id: int,
        group_rank: int,
        direction: str,
        cycle_year: str | None = None,
    ) -> Envelope:
        def run() -> dict[str, Any]:
            result = self.group_mover.execute(
                MoveGroupCommand(
                    owner_id=OwnerId(owner_id),
                    group_rank=group_rank,
                    direction=_parse_direction(direction),
                    cycle_year=cycle_year,
                )
            )
            return {"updated": result.updated}

        return _guard("move_group", run)

    def move_item(
        self,
        owner_id: int,
        choice_id: str,
        direction: str,
        cycle_year: str | None = None,
    ) -> Envelope:
        def run() -> dict[str, Any]:
            moved = self.item_mover.execute(
                MoveItemCommand(
                    owner_id=OwnerId(owner_id),
                    choice_id=ChoiceId(choice_id),
                    direction=_parse_direction(direction),
                    cycle_year=cycle_year,
                )
            )
            return choice_to_dict(moved)

        return _guard("move_item", run)

    def repair_all(self) -> Envelope:
        """Operator-only: renumber every partition."""

        def run() -> dict[str, Any]:
            result = self.repairer.execute()
            return {
                "fixed": result.fixed,
                "partitions": result.partitions,
                "violations_found": result.violations_found,
            }

        return _guard("repair_all", run)


# =============================================================================
# WIRING
# =============================================================================


def build_choice_api(
    config: VolunteerConfig,
    services: ServiceConfig,
    ledger: ChoiceLedger | None = None,
) -> ChoiceApi:
    """Assemble a ``ChoiceApi`` with HTTP collaborators and a SQLite ledger."""
    if ledger is None:
        ledger = SqliteChoiceLedger(
            path=config.database_path, lock_timeout=config.lock_timeout_seconds
        )

    def client(name: ServiceName, url: str) -> ServiceClient:
        return ServiceClient(
            service=name, base_url=url, token=services.token, timeout=services.timeout
        )

    resolver = PartitionKeyResolver(
        profiles=HttpProfileLookup(client(ServiceName.PROFILE, services.profile_url)),
        default_cycle_year=config.cycle_year,
    )
    projector = GroupingProjector(
        scores=HttpScoreEnricher(client(ServiceName.SCORING, services.scoring_url)),
        catalog=HttpCatalogLookup(client(ServiceName.CATALOG, services.catalog_url)),
        region_slots=config.region_slots,
    )
    engine = ReorderEngine()

    return ChoiceApi(
        creator=CreateChoice(
            resolver=resolver,
            allocator=IndexAllocator(capacity=config.max_items_per_group),
            ledger=ledger,
        ),
        lister=ListChoices(resolver=resolver, ledger=ledger, projector=projector),
        deleter=DeleteChoice(ledger=ledger),
        batch_deleter=DeleteChoices(ledger=ledger),
        group_mover=MoveGroup(resolver=resolver, ledger=ledger, engine=engine),
        item_mover=MoveItem(resolver=resolver, ledger=ledger, engine=engine),
        repairer=RepairRanks(
            ledger=ledger,
            planner=RepairPlanner(capacity=config.max_items_per_group),
        ),
    )


# =============================================================================
# SERIALIZATION
# =============================================================================


def choice_to_dict(choice: Choice) -> dict[str, Any]:
    payload = asdict(choice.payload)
    payload["score_snapshots"] = [asdict(s) for s in choice.payload.score_snapshots]
    return {
        "id": str(choice.id),
        "owner_id": int(choice.partition.owner_id),
        "cycle_year": choice.partition.cycle_year,
        "target_group": choice.target_group,
        "group_rank": choice.group_rank,
        "item_rank": choice.item_rank,
        "created_at": choice.created_at.isoformat(),
        **payload,
    }


def _item_to_dict(item: ItemView) -> dict[str, Any]:
    data = choice_to_dict(item.choice)
    data["score"] = item.score
    data["score_snapshots"] = [
        {**asdict(view.snapshot), "rank_gap": view.rank_gap} for view in item.snapshots
    ]
    return data


def board_to_dict(board: ChoiceBoard) -> dict[str, Any]:
    return {
        "groups": [
            {
                "group_rank": group.group_rank,
                "school": asdict(group.school) if group.school else None,
                "sub_groups": [
                    {
                        "target_group": sub.target_group,
                        "info": asdict(sub.info) if sub.info else None,
                        "items": [_item_to_dict(item) for item in sub.items],
                    }
                    for sub in group.sub_groups
                ],
            }
            for group in board.groups
        ],
        "selected": board.selected,
        "total": board.total,
    }


# =============================================================================
# ENVELOPES
# =============================================================================


def _guard(operation: str, run: Callable[[], T]) -> Envelope:
    try:
        data = run()
    except VolunteerError as e:
        logger.warning("%s failed (%s): %s", operation, e.kind, e)
        return error_envelope(e)
    return {"ok": True, "data": data}


def error_envelope(error: VolunteerError) -> Envelope:
    return {
        "ok": False,
        "error": {
            "kind": error.kind,
            "message": ERROR_MESSAGES.get(error.kind, _FALLBACK_MESSAGE),
            "context": {k: _jsonable(v) for k, v in error.context.items()},
        },
    }


def _jsonable(value: object) -> object:
    if value is None or isinstance(value, bool | int | float | str):
        return value
    if isinstance(value, list | tuple | set | frozenset):
        return [_jsonable(v) for v in value]
    return str(value)


def _parse_direction(raw: str) -> Direction:
    try:
        return Direction(raw.strip().lower())
    except ValueError:
        valid = ", ".join(d.value for d in Direction)
        msg = f"Invalid direction {raw!r} (valid: {valid})"
        raise InvalidRequestError(msg, {"direction": raw}) from None
