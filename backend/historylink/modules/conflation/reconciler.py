# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Post-Matching Reconciler
Three clean-up passes over the raw greedy output:

  merge_duplicate_matches  several partial matches between the same two
                           features collapse into one, geometries unioned
  reattach_remainders      unmatched remainder parts of a feature that has
                           exactly one match are folded back into it
  merge_deleted_created    a deletion and a creation of the same feature id
                           become one transition (optional simplification)
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from typing import Literal

from historylink.core.arena import EntityArena
from historylink.models.conflation import (
    AnyConflation,
    CreatedConflation,
    DeletedConflation,
    MatchedConflation,
)
from historylink.models.entity import Entity, Identity
from historylink.utils.geometry_utils import point_distance, union_geometries
from historylink.utils.logger import get_logger

log = get_logger(__name__)

Side = Literal["before", "after"]


def _union_into(target: Entity, part: Entity) -> Entity:
    return target.with_geometry(union_geometries(target.geometry, part.geometry))


def _refresh_point_distance(match: MatchedConflation) -> None:
    """Re-measure after a slot geometry grew."""
    before_geom = match.before.geometry
    after_geom = match.after.geometry
    match.point_distance = (
        point_distance(before_geom, after_geom)
        if before_geom is not None and after_geom is not None else None
    )


# ─── Uniqueness ──────────────────────────────────────────────────────────────

def merge_duplicate_matches(
    matches: list[MatchedConflation],
) -> list[MatchedConflation]:
    """
    Make (before identity, after identity) unique across matches.
    The first match of each group absorbs the geometry of the others.
    Running it on an already unique list returns the same records.
    """
    groups: dict[tuple[Identity, Identity], list[MatchedConflation]] = defaultdict(list)
    for match in matches:
        groups[(match.before.identity, match.after.identity)].append(match)

    merged: list[MatchedConflation] = []
    n_collapsed = 0
    for group in groups.values():
        head = group[0]
        for other in group[1:]:
            head.before = _union_into(head.before, other.before)
            head.after = _union_into(head.after, other.after)
            n_collapsed += 1
        if len(group) > 1:
            _refresh_point_distance(head)
        merged.append(head)

    log.info(
        "duplicate_matches_merged",
        input_matches=len(matches),
        output_matches=len(merged),
        collapsed=n_collapsed,
    )
    return merged


# ─── Remainder re-attachment ─────────────────────────────────────────────────

def reattach_remainders(
    matches: list[MatchedConflation],
    leftovers: EntityArena,
    side: Side,
) -> int:
    """
    Fold leftover parts back into the single match of their feature.

    Features matched more than once on this side are ambiguous (which part
    would the leftover belong to?) and are left alone, as are leftovers
    without a usable geometry.

    Args:
        matches:   Distance matches, updated in place
        leftovers: Unmatched arena for the same side, reattached entries
                   are removed
        side:      "before" or "after"

    Returns:
        Number of leftovers reattached.
    """
    groups: dict[Identity, list[MatchedConflation]] = defaultdict(list)
    for match in matches:
        groups[getattr(match, side).identity].append(match)
    index = {identity: group[0] for identity, group in groups.items() if len(group) == 1}

    n_reattached = 0
    for handle, entity in leftovers:
        match = index.get(entity.identity)
        if match is None or entity.geometry is None:
            continue
        setattr(match, side, _union_into(getattr(match, side), entity))
        _refresh_point_distance(match)
        leftovers.remove(handle)
        n_reattached += 1

    log.info(
        "remainders_reattached",
        side=side,
        reattached=n_reattached,
        still_unmatched=len(leftovers),
    )
    return n_reattached


# ─── Delete/create stitching ─────────────────────────────────────────────────

def merge_deleted_created(
    conflations: Sequence[AnyConflation],
) -> list[AnyConflation]:
    """
    Fuse "vN deleted" + "vM created" of the same feature into vN → vM.

    Models an object re-created under conditions the matcher cannot see
    (e.g. its category changed so tags are incomparable). Only identities
    with a single deletion and a single creation are fused. Fused records
    are appended after the untouched ones.
    """
    deleted_groups: dict[Identity, list[DeletedConflation]] = defaultdict(list)
    created_groups: dict[Identity, list[CreatedConflation]] = defaultdict(list)
    for conflation in conflations:
        if isinstance(conflation, DeletedConflation):
            deleted_groups[conflation.before.identity].append(conflation)
        elif isinstance(conflation, CreatedConflation):
            created_groups[conflation.after.identity].append(conflation)

    deleted = {k: g[0] for k, g in deleted_groups.items() if len(g) == 1}
    created = {k: g[0] for k, g in created_groups.items() if len(g) == 1}

    fused_ids: set[int] = set()
    stitched: list[AnyConflation] = []
    for identity, gone in deleted.items():
        born = created.get(identity)
        if born is None:
            continue
        fused_ids.update((id(gone), id(born)))
        before_geom = gone.before.geometry
        after_geom = born.after.geometry
        stitched.append(MatchedConflation(
            before=gone.before,
            before_at_now=gone.before_at_now,
            after=born.after,
            point_distance=(
                point_distance(before_geom, after_geom)
                if before_geom is not None and after_geom is not None else None
            ),
        ))

    log.info("deleted_created_stitched", stitched=len(stitched))

    kept = [c for c in conflations if id(c) not in fused_ids]
    return kept + stitched
