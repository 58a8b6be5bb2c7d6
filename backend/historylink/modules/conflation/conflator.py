# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Conflation Orchestrator
Wires the conflation passes into the complete before → after pipeline:

  Stage 1: Reference matching (exact, unique ref keys)
  Stage 2: Greedy distance matching with remainder expansion
  Stage 3: Duplicate match merging
  Stage 4: Remainder re-attachment (before side, then after side)
  Stage 5: Leftovers → deleted / created records
  Stage 6 (optional): Delete + create stitching

Each call is a pure function of its inputs: no state survives between
calls, so independent tiles may be conflated in parallel.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional

from historylink.core.arena import EntityArena
from historylink.models.conflation import (
    AnyConflation,
    CreatedConflation,
    DeletedConflation,
)
from historylink.models.entity import Entity, Identity
from historylink.modules.conflation.distance_matrix import resolve_demi_distance
from historylink.modules.conflation.greedy_matcher import match_greedy
from historylink.modules.conflation.reconciler import (
    merge_deleted_created,
    merge_duplicate_matches,
    reattach_remainders,
)
from historylink.modules.conflation.reference_matcher import match_by_reference
from historylink.modules.conflation.stats import compute_conflation_stats
from historylink.modules.metrics import DEFAULT_METRICS, Metrics
from historylink.utils.logger import get_logger

log = get_logger(__name__)


def conflate(
    befores: Iterable[Entity],
    afters: Iterable[Entity],
    demi_distance: Optional[float] = None,
    metrics: Optional[Metrics] = None,
) -> list[AnyConflation]:
    """
    Reconstruct what happened to every feature between two snapshots.

    Args:
        befores:       Entities of the earlier snapshot
        afters:        Entities of the later snapshot. Versions flagged
                       deleted are not matched but still serve as
                       before_at_now.
        demi_distance: Maximum attachment distance. Defaults to config.
        metrics:       Tag/geometry/reference functions. Defaults to the
                       bundled implementations.

    Returns:
        Reference matches, distance matches, deletions, creations, in that
        order. Every input entity not flagged deleted appears in exactly
        one record (remainder parts fold into their feature's record).
    """
    demi = resolve_demi_distance(demi_distance)
    metrics = metrics or DEFAULT_METRICS

    afters = list(afters)
    afters_index: dict[Identity, Entity] = {a.identity: a for a in afters}

    before_arena = EntityArena.deduplicated(befores)
    after_arena = EntityArena.deduplicated(a for a in afters if not a.deleted)

    log.info(
        "conflation_start",
        n_befores=len(before_arena),
        n_afters=len(after_arena),
        n_deleted_afters=len(afters) - len(after_arena),
        demi_distance=demi,
    )

    # ── Stage 1: Reference matching ─────────────────────────────────────────
    by_refs = match_by_reference(before_arena, after_arena, afters_index, metrics.refs)

    # ── Stage 2: Greedy distance matching ───────────────────────────────────
    by_distance = match_greedy(before_arena, after_arena, afters_index, demi, metrics)

    # ── Stage 3+4: Reconciliation ───────────────────────────────────────────
    by_distance = merge_duplicate_matches(by_distance)
    reattach_remainders(by_distance, before_arena, "before")
    reattach_remainders(by_distance, after_arena, "after")

    # ── Stage 5: Leftovers ──────────────────────────────────────────────────
    deleted = [
        DeletedConflation(before=b, before_at_now=afters_index.get(b.identity))
        for b in before_arena.entities()
    ]
    created = [CreatedConflation(after=a) for a in after_arena.entities()]

    result: list[AnyConflation] = [*by_refs, *by_distance, *deleted, *created]
    compute_conflation_stats(result)
    return result


def conflate_with_simplification(
    befores: Iterable[Entity],
    afters: Iterable[Entity],
    demi_distance: Optional[float] = None,
    metrics: Optional[Metrics] = None,
) -> list[AnyConflation]:
    """conflate(), then fuse same-feature deletion + creation pairs."""
    return merge_deleted_created(conflate(befores, afters, demi_distance, metrics))
