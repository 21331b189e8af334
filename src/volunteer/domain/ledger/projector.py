"""Two-level grouped view of a partition's flat choice list."""

from __future__ import annotations

import logging

from collections.abc import Mapping
from dataclasses import dataclass, field

from volunteer.domain.ledger.entities import Choice
from volunteer.domain.ledger.groups import GroupTable
from volunteer.domain.ledger.repositories import CatalogLookup, ScoreEnricher
from volunteer.domain.ledger.value_objects import (
    PartitionKey,
    SchoolInfo,
    ScoreSnapshot,
    TargetGroupInfo,
)
from volunteer.shared.exceptions import CollaboratorError
from volunteer.shared.types import TargetGroupId

logger = logging.getLogger(__name__)

# =============================================================================
# VIEWS
# =============================================================================


@dataclass(frozen=True)
class SnapshotView:
    """A historical score snapshot plus the owner's distance from it.

    ``rank_gap`` is positive when the snapshot's minimum admitted rank is
    numerically higher (worse) than the owner's rank.
    """

    snapshot: ScoreSnapshot
    rank_gap: int | None


@dataclass(frozen=True)
class ItemView:
    choice: Choice
    score: float | None
    snapshots: list[SnapshotView] = field(default_factory=list[SnapshotView])


@dataclass(frozen=True)
class SubGroupView:
    """Items of one target group inside a group rank."""

    target_group: TargetGroupId | None
    info: TargetGroupInfo | None
    items: list[ItemView]


@dataclass(frozen=True)
class GroupView:
    group_rank: int
    school: SchoolInfo | None
    sub_groups: list[SubGroupView]


@dataclass(frozen=True)
class ChoiceBoard:
    """The grouped list plus the "selected / total" slot summary."""

    groups: list[GroupView]
    selected: int
    total: int


# =============================================================================
# PROJECTOR
# =============================================================================


@dataclass
class GroupingProjector:
    """Builds the grouped view and decorates it with external enrichment.

    Enrichment is best-effort: a failing score or catalog service degrades
    to ``None`` fields, it never fails the read.
    """

    scores: ScoreEnricher
    catalog: CatalogLookup
    region_slots: Mapping[str, int]

    def project(
        self,
        key: PartitionKey,
        choices: list[Choice],
        owner_rank: int | None = None,
    ) -> ChoiceBoard:
        """Group the partition's choices and attach enrichment.

        Args:
            key: The partition being viewed.
            choices: Every choice in that partition.
            owner_rank: The owner's current exam rank, for snapshot rank gaps.

        Returns:
            Groups ordered by group rank with the slot summary.
        """
        total = self.region_slots.get(key.region, 0)
        if not choices:
            return ChoiceBoard(groups=[], selected=0, total=total)

        table = GroupTable.from_choices(choices)
        scores = self._scores(key, choices)
        target_info, school_info = self._catalog(choices)

        groups: list[GroupView] = []
        for rank in table.ranks():
            members = table.members(rank)
            school_code = members[0].payload.school_code
            groups.append(
                GroupView(
                    group_rank=rank,
                    school=school_info.get(str(school_code)) if school_code else None,
                    sub_groups=self._sub_groups(members, scores, target_info, owner_rank),
                )
            )

        return ChoiceBoard(groups=groups, selected=len(table), total=total)

    def _sub_groups(
        self,
        members: list[Choice],
        scores: dict[str, float | None],
        target_info: dict[TargetGroupId, TargetGroupInfo],
        owner_rank: int | None,
    ) -> list[SubGroupView]:
        buckets: dict[object, list[Choice]] = {}
        for choice in members:
            # Stand-alone choices never share a bucket.
            bucket: object = choice.target_group
            if choice.target_group is None:
                bucket = ("standalone", choice.id)
            buckets.setdefault(bucket, []).append(choice)

        sub_groups: list[SubGroupView] = []
        for bucket_choices in buckets.values():
            bucket_choices.sort(key=lambda c: c.item_rank)
            target = bucket_choices[0].target_group
            sub_groups.append(
                SubGroupView(
                    target_group=target,
                    info=target_info.get(target) if target is not None else None,
                    items=[
                        ItemView(
                            choice=c,
                            score=scores.get(c.payload.major_name or ""),
                            snapshots=_snapshot_views(c, owner_rank),
                        )
                        for c in bucket_choices
                    ],
                )
            )
        return sub_groups

    def _scores(self, key: PartitionKey, choices: list[Choice]) -> dict[str, float | None]:
        """Score each distinct major name once for the whole projection."""
        names = sorted({c.payload.major_name for c in choices if c.payload.major_name})
        if not names:
            return {}
        try:
            return self.scores.score_for_majors(key.owner_id, names)
        except CollaboratorError as e:
            logger.warning("Scoring failed for owner %s, scores omitted: %s", key.owner_id, e)
            return {}

    def _catalog(
        self, choices: list[Choice]
    ) -> tuple[dict[TargetGroupId, TargetGroupInfo], dict[str, SchoolInfo]]:
        targets = sorted({c.target_group for c in choices if c.target_group is not None})
        codes = sorted({str(c.payload.school_code) for c in choices if c.payload.school_code})
        target_info: dict[TargetGroupId, TargetGroupInfo] = {}
        school_info: dict[str, SchoolInfo] = {}
        try:
            if targets:
                target_info = self.catalog.target_groups(targets)
            if codes:
                school_info = self.catalog.schools(codes)
        except CollaboratorError as e:
            logger.warning("Catalog lookup failed, metadata omitted: %s", e)
        return target_info, school_info


def _snapshot_views(choice: Choice, owner_rank: int | None) -> list[SnapshotView]:
    """Snapshots newest year first; undated ones last."""
    dated = sorted(
        (s for s in choice.payload.score_snapshots if s.year),
        key=lambda s: s.year or "",
        reverse=True,
    )
    undated = [s for s in choice.payload.score_snapshots if not s.year]
    return [
        SnapshotView(
            snapshot=s,
            rank_gap=(
                s.min_rank - owner_rank
                if s.min_rank is not None and owner_rank is not None
                else None
            ),
        )
        for s in dated + undated
    ]
