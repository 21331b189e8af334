"""Configuration assembly from environment variables.

``ServiceConfig.from_env`` is called by host applications when they wire a
``ChoiceApi`` through ``build_choice_api``.
"""

from __future__ import annotations

from dataclasses import dataclass

from volunteer.interfaces.env_utils import (
    CATALOG_URL_ENV,
    HTTP_TIMEOUT_ENV,
    PROFILE_URL_ENV,
    SCORING_URL_ENV,
    SERVICE_TOKEN_ENV,
    check_service_url,
    env_or,
    require_service_url,
)
from volunteer.shared.constants import DEFAULT_TIMEOUT_SECONDS
from volunteer.shared.exceptions import ConfigurationError


def _parse_float(name: str, raw: str) -> float:
    """Parse a float env var or raise with a clear message."""
    try:
        value = float(raw)
    except ValueError:
        msg = f"Invalid float for {name}: {raw!r}"
        raise ConfigurationError(msg) from None
    if value <= 0:
        msg = f"{name} must be positive, got {value}"
        raise ConfigurationError(msg)
    return value


@dataclass(frozen=True)
class ServiceConfig:
    """Where the collaborator services live and how to call them."""

    profile_url: str
    scoring_url: str
    catalog_url: str
    token: str = ""
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> ServiceConfig:
        """Build config from environment variables.

        Required:
            VOLUNTEER_PROFILE_URL

        Optional (with defaults):
            VOLUNTEER_SCORING_URL, VOLUNTEER_CATALOG_URL (default to the
            profile URL), VOLUNTEER_SERVICE_TOKEN, VOLUNTEER_HTTP_TIMEOUT

        Raises:
            ConfigurationError: If a required variable is missing or a value
                does not parse.
        """
        profile_url = require_service_url(PROFILE_URL_ENV)
        return cls(
            profile_url=profile_url,
            scoring_url=check_service_url(
                SCORING_URL_ENV, env_or(SCORING_URL_ENV, profile_url)
            ),
            catalog_url=check_service_url(
                CATALOG_URL_ENV, env_or(CATALOG_URL_ENV, profile_url)
            ),
            token=env_or(SERVICE_TOKEN_ENV, ""),
            timeout=_parse_float(
                HTTP_TIMEOUT_ENV,
                env_or(HTTP_TIMEOUT_ENV, str(DEFAULT_TIMEOUT_SECONDS)),
            ),
        )
