"""TOML-based configuration loader.

Reads ``[tool.volunteer]`` from ``pyproject.toml`` and produces a typed
``VolunteerConfig`` dataclass.  Missing file or missing section → all
defaults apply.
"""

from __future__ import annotations

import logging
import tomllib

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

from volunteer.shared.constants import (
    DEFAULT_CYCLE_YEAR,
    DEFAULT_DATABASE_PATH,
    DEFAULT_LOCK_TIMEOUT_SECONDS,
    MAX_ITEMS_PER_GROUP,
    REGION_VOLUNTEER_SLOTS,
)
from volunteer.shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# ── defaults ────────────────────────────────────────────────────────────
_DEFAULTS: dict[str, Any] = {
    "database_path": DEFAULT_DATABASE_PATH,
    "cycle_year": DEFAULT_CYCLE_YEAR,
    "max_items_per_group": MAX_ITEMS_PER_GROUP,
    "lock_timeout_seconds": DEFAULT_LOCK_TIMEOUT_SECONDS,
}

_ALL_KNOWN_KEYS = {*_DEFAULTS, "region_slots"}


@dataclass(frozen=True)
class VolunteerConfig:
    """Typed configuration produced by the TOML loader."""

    database_path: Path = Path(DEFAULT_DATABASE_PATH)
    cycle_year: str = DEFAULT_CYCLE_YEAR
    max_items_per_group: int = MAX_ITEMS_PER_GROUP
    lock_timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS
    region_slots: dict[str, int] = field(
        default_factory=lambda: dict(REGION_VOLUNTEER_SLOTS)
    )


def load_volunteer_config(project_root: Path | None = None) -> VolunteerConfig:
    """Load engine configuration from ``pyproject.toml``.

    Merge order (later wins): built-in defaults → ``[tool.volunteer]``.
    ``[tool.volunteer.region_slots]`` is overlaid onto the built-in
    province table rather than replacing it.

    Args:
        project_root: Directory containing ``pyproject.toml``.
            Defaults to ``Path.cwd()``. A relative ``database_path`` is
            resolved against it.

    Returns:
        A frozen ``VolunteerConfig`` dataclass.

    Raises:
        ConfigurationError: On TOML parse errors or invalid values.
    """
    if project_root is None:
        project_root = Path.cwd()

    merged: dict[str, Any] = dict(_DEFAULTS)
    slots = dict(REGION_VOLUNTEER_SLOTS)

    section = _read_tool_section(project_root / "pyproject.toml")
    if section is not None:
        _warn_unknown_keys(section)
        for key, value in section.items():
            if key == "region_slots":
                slots.update(_validate_region_slots(value))
            elif key in _DEFAULTS:
                merged[key] = value

    max_items = _positive_int("max_items_per_group", merged["max_items_per_group"])
    lock_timeout = _positive_float(
        "lock_timeout_seconds", merged["lock_timeout_seconds"]
    )
    cycle_year = str(merged["cycle_year"]).strip()
    if not cycle_year:
        msg = "cycle_year must not be empty"
        raise ConfigurationError(msg)

    database_path = Path(str(merged["database_path"]))
    if not database_path.is_absolute():
        database_path = project_root / database_path

    return VolunteerConfig(
        database_path=database_path,
        cycle_year=cycle_year,
        max_items_per_group=max_items,
        lock_timeout_seconds=lock_timeout,
        region_slots=slots,
    )


# ── internal helpers ────────────────────────────────────────────────────


def _read_tool_section(toml_path: Path) -> dict[str, Any] | None:
    """Read ``[tool.volunteer]`` from *toml_path*, or ``None`` if absent."""
    if not toml_path.is_file():
        return None
    try:
        with toml_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Failed to parse {toml_path}: {exc}"
        raise ConfigurationError(msg) from exc
    tool: dict[str, Any] | None = data.get("tool")
    if not isinstance(tool, dict):
        return None
    volunteer: dict[str, Any] | None = tool.get("volunteer")
    if not isinstance(volunteer, dict):
        return None
    return volunteer


def _warn_unknown_keys(section: dict[str, Any]) -> None:
    """Log a warning for any keys not in the known set."""
    for key in section:
        if key not in _ALL_KNOWN_KEYS:
            logger.warning("Unknown key in [tool.volunteer]: %r", key)


def _validate_region_slots(raw: Any) -> dict[str, int]:
    """Check that region overrides map province names to non-negative ints."""
    if not isinstance(raw, dict):
        msg = f"region_slots must be a table, got {type(raw).__name__}"
        raise ConfigurationError(msg)
    slots: dict[str, int] = {}
    for region, count in cast(dict[str, Any], raw).items():
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            msg = f"region_slots.{region} must be a non-negative integer, got {count!r}"
            raise ConfigurationError(msg)
        slots[str(region)] = count
    return slots


def _positive_int(name: str, raw: Any) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 1:
        msg = f"{name} must be a positive integer, got {raw!r}"
        raise ConfigurationError(msg)
    return raw


def _positive_float(name: str, raw: Any) -> float:
    if isinstance(raw, bool) or not isinstance(raw, int | float) or raw <= 0:
        msg = f"{name} must be a positive number, got {raw!r}"
        raise ConfigurationError(msg)
    return float(raw)
