"""Operator entry point: dispatches to the appropriate mode.

Reads ``VOLUNTEER_MODE`` from the environment and runs the corresponding
job against the ledger configured in ``[tool.volunteer]``:

- ``repair`` (default): renumber every partition to canonical ranks
- ``init-db``: create the ledger schema and exit
"""

from __future__ import annotations

import json
import logging
import os
import sys

from pathlib import Path

from volunteer.application.repair_ranks import RepairRanks
from volunteer.domain.ledger.repair import RepairPlanner
from volunteer.infrastructure.storage.sqlite_ledger import SqliteChoiceLedger
from volunteer.interfaces.env_utils import DEFAULT_MODE, MODE_ENV, PROJECT_ROOT_ENV
from volunteer.interfaces.toml_config import load_volunteer_config
from volunteer.shared.exceptions import VolunteerError

logger = logging.getLogger(__name__)

_VALID_MODES = {"repair", "init-db"}


def main() -> None:
    """Dispatch to the appropriate job based on VOLUNTEER_MODE."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    mode = os.environ.get(MODE_ENV, DEFAULT_MODE).strip().lower()

    if mode not in _VALID_MODES:
        valid = ", ".join(sorted(_VALID_MODES))
        logger.error("Unknown mode: %r (valid: %s)", mode, valid)
        sys.exit(1)

    raw_root = os.environ.get(PROJECT_ROOT_ENV)
    try:
        config = load_volunteer_config(Path(raw_root) if raw_root else None)
        ledger = SqliteChoiceLedger(
            path=config.database_path, lock_timeout=config.lock_timeout_seconds
        )
        if mode == "init-db":
            logger.info("Ledger initialized at %s", config.database_path)
            return

        result = RepairRanks(
            ledger=ledger,
            planner=RepairPlanner(capacity=config.max_items_per_group),
        ).execute()
    except VolunteerError as e:
        logger.error("%s failed: %s", mode, e)
        sys.exit(1)

    print(json.dumps({"fixed": result.fixed, "partitions": result.partitions}))


if __name__ == "__main__":
    main()
