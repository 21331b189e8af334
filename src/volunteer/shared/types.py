"""Domain-specific types that prevent primitive obsession."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

# =============================================================================
# NEWTYPES
# =============================================================================


class OwnerId(int):
    """The id of the student who owns a volunteer list."""


class ChoiceId(str):
    """Durable id of a single choice, stable across reorders."""


class TargetGroupId(int):
    """External id of the school program group a choice applies to."""


class SchoolCode(str):
    """Catalog code of a school."""


# =============================================================================
# VALUE OBJECTS
# =============================================================================


@dataclass(frozen=True, order=True)
class RankPosition:
    """A (group rank, item rank) pair inside one partition."""

    group_rank: int
    item_rank: int

    def __post_init__(self) -> None:
        if self.group_rank < 1 or self.item_rank < 1:
            msg = (
                f"ranks must be >= 1, got group_rank={self.group_rank}, "
                f"item_rank={self.item_rank}"
            )
            raise ValueError(msg)


# =============================================================================
# ENUMS
# =============================================================================


class Direction(StrEnum):
    """Direction of a reorder request."""

    UP = "up"
    DOWN = "down"

    @property
    def offset(self) -> int:
        """Rank delta applied by a move in this direction."""
        return -1 if self is Direction.UP else 1
