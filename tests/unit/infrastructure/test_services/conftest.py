"""Fixtures for collaborator service adapter tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from volunteer.infrastructure.services.client import ServiceClient


def _mock_response(
    status_code: int = 200,
    json_data: Any = None,
    text: str = "",
) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = json_data if json_data is not None else {}
    resp.text = text
    return resp


@pytest.fixture
def mock_response() -> Callable[..., MagicMock]:
    return _mock_response


@pytest.fixture
def patch_httpx() -> Callable[[MagicMock], Any]:
    """Patch ``httpx.Client`` so every GET/POST returns *response*."""

    def _patch(response: MagicMock) -> Any:
        mock_client = MagicMock()
        mock_client.get.return_value = response
        mock_client.post.return_value = response
        mock_client.__enter__ = MagicMock(return_value=mock_client)
        mock_client.__exit__ = MagicMock(return_value=False)
        return patch(
            "volunteer.infrastructure.services.client.httpx.Client",
            return_value=mock_client,
        )

    return _patch


@pytest.fixture
def client() -> ServiceClient:
    return ServiceClient(
        service="profile", base_url="https://api.example.com/", token="secret"
    )
