"""Delete Choice(s) use cases."""

from __future__ import annotations

import logging

from dataclasses import dataclass

from volunteer.application.dto import DeleteChoicesCommand, DeleteChoicesResult
from volunteer.domain.ledger.repositories import ChoiceLedger
from volunteer.shared.exceptions import ChoiceNotFoundError, InvalidRequestError
from volunteer.shared.types import ChoiceId, OwnerId

logger = logging.getLogger(__name__)

# =============================================================================
# SINGLE
# =============================================================================


@dataclass
class DeleteChoice:
    """Physically delete one owned choice. Remaining ranks are left as-is."""

    ledger: ChoiceLedger

    def execute(self, owner_id: OwnerId, choice_id: ChoiceId) -> None:
        """Delete the choice.

        Raises:
            ChoiceNotFoundError: If the choice is missing or owned by someone else.
        """
        with self.ledger.session() as session:
            if session.delete(owner_id, [choice_id]) == 0:
                logger.warning(
                    "Owner %s tried to delete missing choice %s", owner_id, choice_id
                )
                raise ChoiceNotFoundError(owner_id, choice_id)

        logger.info("Owner %s deleted choice %s", owner_id, choice_id)


# =============================================================================
# BATCH
# =============================================================================


@dataclass
class DeleteChoices:
    """Delete every owned choice in a batch; report the ids that were not."""

    ledger: ChoiceLedger

    def execute(self, cmd: DeleteChoicesCommand) -> DeleteChoicesResult:
        """Delete the owned subset of the requested ids.

        Raises:
            InvalidRequestError: If no ids were given.
        """
        if not cmd.choice_ids:
            msg = "At least one choice id is required"
            raise InvalidRequestError(msg, {"owner_id": cmd.owner_id})

        requested = list(dict.fromkeys(cmd.choice_ids))
        with self.ledger.session() as session:
            found = {c.id for c in session.find_owned(cmd.owner_id, requested)}
            deleted = session.delete(cmd.owner_id, sorted(found)) if found else 0

        failed = [cid for cid in requested if cid not in found]
        if failed:
            logger.warning(
                "Owner %s tried to delete missing choices: %s",
                cmd.owner_id,
                ", ".join(failed),
            )
        logger.info(
            "Owner %s deleted %d choices, %d failed", cmd.owner_id, deleted, len(failed)
        )
        return DeleteChoicesResult(deleted=deleted, failed=failed)
