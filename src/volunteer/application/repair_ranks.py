"""Repair Ranks use case (operator-triggered maintenance)."""

from __future__ import annotations

import logging

from dataclasses import dataclass

from volunteer.application.dto import RepairResult
from volunteer.domain.ledger.groups import find_violations
from volunteer.domain.ledger.repair import RepairPlanner
from volunteer.domain.ledger.repositories import ChoiceLedger, SessionMode

logger = logging.getLogger(__name__)


@dataclass
class RepairRanks:
    """Renumber every partition under an exclusive lock.

    Ordinary mutations block for the duration of the run.
    """

    ledger: ChoiceLedger
    planner: RepairPlanner

    def execute(self) -> RepairResult:
        logger.info("Starting rank repair")
        fixed = 0

        with self.ledger.session(SessionMode.EXCLUSIVE) as session:
            choices = session.scan_all()
            if not choices:
                logger.info("Ledger is empty, nothing to repair")
                return RepairResult(fixed=0)

            violations = find_violations(choices, self.planner.capacity)
            for problem in violations:
                logger.warning("Invariant violation: %s", problem)

            plans = self.planner.plan(choices)
            for plan in plans:
                if not plan.updates:
                    continue
                fixed += session.update_ranks(plan.updates)
                logger.info(
                    "Repaired %s: %d of %d rows renumbered",
                    plan.partition,
                    len(plan.updates),
                    plan.size,
                )

        logger.info("Rank repair finished, %d rows renumbered", fixed)
        return RepairResult(
            fixed=fixed,
            partitions=len(plans),
            violations_found=len(violations),
        )
