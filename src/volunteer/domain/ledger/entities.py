"""Entities for the choice ledger bounded context."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from volunteer.domain.ledger.value_objects import ChoiceDraft, ChoicePayload, PartitionKey
from volunteer.shared.types import ChoiceId, RankPosition, SchoolCode, TargetGroupId

SemanticKey = tuple[
    TargetGroupId | None, SchoolCode | None, str | None, str | None, str
]


def semantic_key(target_group: TargetGroupId | None, payload: ChoicePayload) -> SemanticKey:
    """Fields two choices must share to count as the same request.

    A stand-alone choice (no target group) is identified by its school instead.
    """
    school = payload.school_code if target_group is None else None
    return (target_group, school, payload.major_name, payload.batch, payload.remark or "")


# =============================================================================
# ENTITIES
# =============================================================================


@dataclass(frozen=True)
class Choice:
    """One applied-for (school, program group, major) entry in a volunteer list."""

    id: ChoiceId
    partition: PartitionKey
    target_group: TargetGroupId | None
    position: RankPosition
    payload: ChoicePayload
    created_at: datetime

    @classmethod
    def from_draft(
        cls,
        choice_id: ChoiceId,
        partition: PartitionKey,
        draft: ChoiceDraft,
        position: RankPosition,
        created_at: datetime,
    ) -> Choice:
        return cls(
            id=choice_id,
            partition=partition,
            target_group=draft.target_group,
            position=position,
            payload=draft.payload,
            created_at=created_at,
        )

    @property
    def group_rank(self) -> int:
        return self.position.group_rank

    @property
    def item_rank(self) -> int:
        return self.position.item_rank

    @property
    def semantic_key(self) -> SemanticKey:
        return semantic_key(self.target_group, self.payload)

    def with_position(self, position: RankPosition) -> Choice:
        """Return a copy with new ranks; nothing else changes."""
        return replace(self, position=position)
