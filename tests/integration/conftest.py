"""Shared fixtures for integration tests.

The whole stack is wired through ``build_choice_api``: a real SQLite ledger
on disk and the HTTP collaborators, with ``httpx.Client`` replaced by a
router that answers like the profile, scoring and catalog services.
"""

from __future__ import annotations

import urllib.parse

from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from volunteer.infrastructure.storage.sqlite_ledger import SqliteChoiceLedger
from volunteer.interfaces.api import ChoiceApi, build_choice_api
from volunteer.interfaces.config import ServiceConfig
from volunteer.interfaces.toml_config import VolunteerConfig

PROFILES: dict[int, dict[str, Any]] = {
    1: {
        "province": "江苏",
        "preferredSubjects": "物理",
        "secondarySubjects": "化学,生物",
        "score": 612,
        "rank": 8500,
    },
}


def _response(status_code: int, body: Any = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = body if body is not None else {}
    resp.text = ""
    return resp


class FakeServices:
    """Routes GET/POST calls to canned collaborator answers."""

    def __init__(self) -> None:
        self.profiles = {k: dict(v) for k, v in PROFILES.items()}
        self.scoring_down = False

    def get(self, url: str, headers: dict[str, str] | None = None) -> MagicMock:
        parsed = urllib.parse.urlparse(url)
        parts = parsed.path.strip("/").split("/")
        query = urllib.parse.parse_qs(parsed.query)
        if parts[0] == "users":
            profile = self.profiles.get(int(parts[1]))
            return _response(404) if profile is None else _response(200, profile)
        if parts[-1] == "major-groups":
            ids = query["ids"][0].split(",")
            return _response(
                200, {"items": [{"id": int(i), "name": f"第{i}组"} for i in ids]}
            )
        if parts[-1] == "schools":
            codes = query["codes"][0].split(",")
            return _response(
                200, {"items": [{"code": c, "name": f"学校{c}"} for c in codes]}
            )
        return _response(404)

    def post(
        self,
        url: str,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> MagicMock:
        if self.scoring_down:
            return _response(503)
        names = (json or {}).get("majorNames", [])
        return _response(
            200, {"scores": [{"majorName": n, "score": 70.0} for n in names]}
        )


@pytest.fixture
def services() -> Iterator[FakeServices]:
    fake = FakeServices()
    mock_client = MagicMock()
    mock_client.get.side_effect = fake.get
    mock_client.post.side_effect = fake.post
    mock_client.__enter__ = MagicMock(return_value=mock_client)
    mock_client.__exit__ = MagicMock(return_value=False)
    with patch(
        "volunteer.infrastructure.services.client.httpx.Client",
        return_value=mock_client,
    ):
        yield fake


@pytest.fixture
def config(tmp_path: Path) -> VolunteerConfig:
    return VolunteerConfig(database_path=tmp_path / "volunteer.db")


@pytest.fixture
def api(config: VolunteerConfig, services: FakeServices) -> ChoiceApi:
    return build_choice_api(
        config,
        ServiceConfig(
            profile_url="https://users.example.com",
            scoring_url="https://scores.example.com",
            catalog_url="https://catalog.example.com",
        ),
    )


@pytest.fixture
def ledger(config: VolunteerConfig) -> SqliteChoiceLedger:
    """A second handle on the same database, for inspecting stored rows."""
    return SqliteChoiceLedger(path=config.database_path)
