"""Environment variable names and readers shared by the entry points."""

from __future__ import annotations

import os

from volunteer.shared.exceptions import ConfigurationError

# Entry point modes.
MODE_ENV = "VOLUNTEER_MODE"
DEFAULT_MODE = "repair"

# Project root holding ``pyproject.toml`` with ``[tool.volunteer]``.
PROJECT_ROOT_ENV = "VOLUNTEER_PROJECT_ROOT"

# Collaborator services.
PROFILE_URL_ENV = "VOLUNTEER_PROFILE_URL"
SCORING_URL_ENV = "VOLUNTEER_SCORING_URL"
CATALOG_URL_ENV = "VOLUNTEER_CATALOG_URL"
SERVICE_TOKEN_ENV = "VOLUNTEER_SERVICE_TOKEN"
HTTP_TIMEOUT_ENV = "VOLUNTEER_HTTP_TIMEOUT"

_URL_SCHEMES = ("http://", "https://")


def env_or(name: str, default: str) -> str:
    """Return the stripped value of *name*, or *default* when unset or blank."""
    value = os.environ.get(name, "").strip()
    return value or default


def require_service_url(name: str) -> str:
    """Read a collaborator base URL that must be set.

    Raises:
        ConfigurationError: If the variable is missing, blank, or not an
            http(s) URL.
    """
    value = env_or(name, "")
    if not value:
        msg = f"Missing required environment variable: {name}"
        raise ConfigurationError(msg)
    return check_service_url(name, value)


def check_service_url(name: str, value: str) -> str:
    if not value.startswith(_URL_SCHEMES):
        msg = f"{name} must be an http(s) URL, got {value!r}"
        raise ConfigurationError(msg)
    return value.rstrip("/")
