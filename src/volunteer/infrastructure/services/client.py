"""Shared HTTP plumbing for the collaborator services."""

from __future__ import annotations

import logging

from dataclasses import dataclass

import httpx

from volunteer.infrastructure.constants import ACCEPT_JSON
from volunteer.shared.constants import DEFAULT_TIMEOUT_SECONDS
from volunteer.shared.exceptions import CollaboratorError

logger = logging.getLogger(__name__)

_STATUS_OK_MAX = 299
_STATUS_NOT_FOUND = 404


@dataclass
class ServiceClient:
    """Thin JSON client for one collaborator service."""

    service: str
    base_url: str
    token: str = ""
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def get_json(self, path: str, *, allow_missing: bool = False) -> object | None:
        """GET ``path`` and return the decoded body.

        Args:
            path: Path relative to ``base_url``.
            allow_missing: Return ``None`` on HTTP 404 instead of raising.

        Raises:
            CollaboratorError: On transport failure or a non-2xx status.
        """
        url = self._url(path)
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(url, headers=self._headers())
        except httpx.HTTPError as e:
            raise CollaboratorError(self.service, str(e)) from e

        if allow_missing and response.status_code == _STATUS_NOT_FOUND:
            logger.debug("%s returned 404 for %s", self.service, path)
            return None
        return self._decode(response)

    def post_json(self, path: str, payload: dict[str, object]) -> object:
        """POST ``payload`` as JSON and return the decoded body.

        Raises:
            CollaboratorError: On transport failure or a non-2xx status.
        """
        url = self._url(path)
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise CollaboratorError(self.service, str(e)) from e

        return self._decode(response)

    # =================================================================
    # HTTP helpers
    # =================================================================

    def _decode(self, response: httpx.Response) -> object:
        if response.status_code > _STATUS_OK_MAX:
            raise CollaboratorError(
                self.service, f"HTTP {response.status_code}: {response.text}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise CollaboratorError(self.service, f"invalid JSON body: {e}") from e

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}{path}"

    def _headers(self) -> dict[str, str]:
        headers = {"accept": ACCEPT_JSON}
        if self.token:
            headers["authorization"] = f"Bearer {self.token}"
        return headers
