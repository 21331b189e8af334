"""Tests for the envelope-returning request boundary."""

from __future__ import annotations

import json

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from volunteer.application.create_choice import CreateChoice
from volunteer.application.delete_choices import DeleteChoice, DeleteChoices
from volunteer.application.list_choices import ListChoices
from volunteer.application.move_choices import MoveGroup, MoveItem
from volunteer.application.repair_ranks import RepairRanks
from volunteer.domain.ledger.allocator import IndexAllocator
from volunteer.domain.ledger.partition import PartitionKeyResolver
from volunteer.domain.ledger.projector import GroupingProjector
from volunteer.domain.ledger.reorder import ReorderEngine
from volunteer.domain.ledger.repair import RepairPlanner
from volunteer.domain.ledger.value_objects import ExamProfile, SchoolInfo
from volunteer.infrastructure.storage.sqlite_ledger import SqliteChoiceLedger
from volunteer.interfaces.api import ERROR_MESSAGES, ChoiceApi, build_choice_api
from volunteer.interfaces.config import ServiceConfig
from volunteer.interfaces.toml_config import VolunteerConfig
from volunteer.shared.exceptions import VolunteerError
from volunteer.shared.types import OwnerId

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def api(tmp_path: Path) -> ChoiceApi:
    profiles = MagicMock()
    profiles.get_profile.side_effect = lambda owner_id: (
        ExamProfile(
            owner_id=owner_id,
            region="江苏",
            primary_track="物理",
            secondary_subjects=frozenset({"化学"}),
            exam_score=600,
            rank=10000,
        )
        if owner_id == 1
        else None
    )
    scores = MagicMock()
    scores.score_for_majors.side_effect = lambda owner, names: dict.fromkeys(names, 90.0)
    catalog = MagicMock()
    catalog.target_groups.return_value = {}
    catalog.schools.side_effect = lambda codes: {
        c: SchoolInfo(code=c, name="南京大学") for c in codes
    }

    ledger = SqliteChoiceLedger(path=tmp_path / "api.db")
    resolver = PartitionKeyResolver(profiles=profiles)
    engine = ReorderEngine()
    return ChoiceApi(
        creator=CreateChoice(resolver=resolver, allocator=IndexAllocator(), ledger=ledger),
        lister=ListChoices(
            resolver=resolver,
            ledger=ledger,
            projector=GroupingProjector(
                scores=scores, catalog=catalog, region_slots={"江苏": 40}
            ),
        ),
        deleter=DeleteChoice(ledger=ledger),
        batch_deleter=DeleteChoices(ledger=ledger),
        group_mover=MoveGroup(resolver=resolver, ledger=ledger, engine=engine),
        item_mover=MoveItem(resolver=resolver, ledger=ledger, engine=engine),
        repairer=RepairRanks(ledger=ledger, planner=RepairPlanner()),
    )


def _request(target_group: int | None, major: str, **extra: Any) -> dict[str, Any]:
    return {
        "targetGroup": target_group,
        "majorName": major,
        "schoolCode": "10284",
        "batch": "本科批",
        **extra,
    }


def _create(api: ChoiceApi, target_group: int | None, major: str) -> dict[str, Any]:
    envelope = api.create_choice(1, _request(target_group, major))
    assert envelope["ok"] is True
    return envelope["data"]


# =============================================================================
# Success envelopes
# =============================================================================


class TestCreate:
    def test_returns_choice(self, api: ChoiceApi) -> None:
        envelope = api.create_choice(
            1,
            _request(
                10,
                "计算机",
                quota=4,
                cycleYear=2025,
                scoreSnapshots=[{"year": 2024, "minScore": 650, "minRank": 1200}],
            ),
        )

        data = envelope["data"]
        assert envelope["ok"] is True
        assert data["group_rank"] == 1
        assert data["item_rank"] == 1
        assert data["target_group"] == 10
        assert data["major_name"] == "计算机"
        assert data["quota"] == "4"
        assert data["exam_score"] == 600
        assert data["enrollment_type"] == "普通类"
        assert data["score_snapshots"][0]["year"] == "2024"

    def test_envelope_is_json_serializable(self, api: ChoiceApi) -> None:
        json.dumps(api.create_choice(1, _request(10, "计算机")), ensure_ascii=False)

    def test_snake_case_keys_accepted(self, api: ChoiceApi) -> None:
        envelope = api.create_choice(1, {"target_group": 7, "major_name": "数学"})
        assert envelope["data"]["target_group"] == 7

    def test_invalid_body(self, api: ChoiceApi) -> None:
        envelope = api.create_choice(1, {"targetGroup": "not-a-number"})

        assert envelope["ok"] is False
        assert envelope["error"]["kind"] == "invalid_request"


class TestList:
    def test_grouped_board(self, api: ChoiceApi) -> None:
        _create(api, 10, "计算机")
        _create(api, 10, "软件工程")
        _create(api, None, "法学")

        data = api.list_choices(1)["data"]

        assert data["selected"] == 2
        assert data["total"] == 40
        first = data["groups"][0]
        assert first["school"]["name"] == "南京大学"
        items = first["sub_groups"][0]["items"]
        assert [i["major_name"] for i in items] == ["计算机", "软件工程"]
        assert items[0]["score"] == 90.0
        assert data["groups"][1]["sub_groups"][0]["target_group"] is None
        json.dumps(data, ensure_ascii=False)

    def test_empty(self, api: ChoiceApi) -> None:
        assert api.list_choices(1) == {
            "ok": True,
            "data": {"groups": [], "selected": 0, "total": 40},
        }


class TestDeleteAndMove:
    def test_delete_choice(self, api: ChoiceApi) -> None:
        created = _create(api, 10, "计算机")
        assert api.delete_choice(1, created["id"]) == {"ok": True, "data": None}

    def test_delete_choices_reports_failed(self, api: ChoiceApi) -> None:
        created = _create(api, 10, "计算机")
        envelope = api.delete_choices(1, [created["id"], "ghost"])

        assert envelope["data"] == {"deleted": 1, "failed": ["ghost"]}

    def test_move_group(self, api: ChoiceApi) -> None:
        _create(api, 10, "计算机")
        _create(api, 20, "数学")

        assert api.move_group(1, 1, "down") == {"ok": True, "data": {"updated": 2}}

    def test_move_item(self, api: ChoiceApi) -> None:
        first = _create(api, 10, "计算机")
        _create(api, 10, "软件工程")

        data = api.move_item(1, first["id"], "DOWN")["data"]
        assert data["id"] == first["id"]
        assert data["item_rank"] == 2

    def test_repair_all(self, api: ChoiceApi) -> None:
        _create(api, 10, "计算机")
        assert api.repair_all()["data"]["fixed"] == 0


# =============================================================================
# Error envelopes
# =============================================================================


class TestErrors:
    @pytest.mark.parametrize(
        ("call", "kind"),
        [
            (lambda a: a.list_choices(2), "owner_not_found"),
            (lambda a: a.delete_choice(1, "ghost"), "choice_not_found"),
            (lambda a: a.delete_choices(1, []), "invalid_request"),
            (lambda a: a.move_group(1, 1, "up"), "group_not_found"),
            (lambda a: a.move_group(1, 1, "sideways"), "invalid_request"),
            (lambda a: a.move_item(1, "ghost", "up"), "choice_not_found"),
        ],
    )
    def test_error_kinds(self, api: ChoiceApi, call: Any, kind: str) -> None:
        envelope = call(api)

        assert envelope["ok"] is False
        assert envelope["error"]["kind"] == kind
        assert envelope["error"]["message"] == ERROR_MESSAGES[kind]

    def test_duplicate(self, api: ChoiceApi) -> None:
        _create(api, 10, "计算机")
        envelope = api.create_choice(1, _request(10, "计算机"))

        assert envelope["error"]["kind"] == "duplicate_choice"
        assert envelope["error"]["message"] == "该志愿已存在"
        json.dumps(envelope, ensure_ascii=False)

    def test_boundary(self, api: ChoiceApi) -> None:
        _create(api, 10, "计算机")
        _create(api, 20, "数学")
        envelope = api.move_group(1, 1, "up")

        assert envelope["error"]["kind"] == "boundary"
        assert envelope["error"]["context"]["direction"] == "up"

    def test_every_kind_has_a_message(self) -> None:
        kinds = {cls.kind for cls in _all_subclasses(VolunteerError)}
        assert kinds <= set(ERROR_MESSAGES)

    def test_unexpected_errors_propagate(self, api: ChoiceApi) -> None:
        api.lister = MagicMock()
        api.lister.execute.side_effect = RuntimeError("bug")
        with pytest.raises(RuntimeError):
            api.list_choices(1)


def _all_subclasses(cls: type[VolunteerError]) -> set[type[VolunteerError]]:
    found: set[type[VolunteerError]] = set()
    for sub in cls.__subclasses__():
        found.add(sub)
        found |= _all_subclasses(sub)
    return found


# =============================================================================
# Wiring
# =============================================================================


def test_build_choice_api_uses_http_collaborators(tmp_path: Path) -> None:
    api = build_choice_api(
        VolunteerConfig(database_path=tmp_path / "wired.db"),
        ServiceConfig(
            profile_url="https://users",
            scoring_url="https://scores",
            catalog_url="https://catalog",
        ),
    )

    response = MagicMock()
    response.status_code = 404
    mock_client = MagicMock()
    mock_client.get.return_value = response
    mock_client.__enter__ = MagicMock(return_value=mock_client)
    mock_client.__exit__ = MagicMock(return_value=False)
    with patch(
        "volunteer.infrastructure.services.client.httpx.Client",
        return_value=mock_client,
    ):
        envelope = api.list_choices(OwnerId(5))

    assert envelope["error"]["kind"] == "owner_not_found"
    assert mock_client.get.call_args.args[0] == "https://users/users/5/exam-profile"
    assert (tmp_path / "wired.db").is_file()
