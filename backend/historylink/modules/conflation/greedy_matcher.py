# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Greedy Matcher / Remainder Expander
Iterative nearest-pair matching over a matrix that is rebuilt as it goes.

Algorithm:
  1. Pick the cheapest matrix entry (ties: see _selection_key)
  2. Emit a match and drop both entities from the working arenas
  3. Drop every matrix entry that references either of them
  4. Turn the pair's uncovered geometry into remainder entities
     (same identity, partial geometry)
  5. Score the remainders against the arenas and merge them back in
  6. Repeat until the matrix or either arena is empty

Not a one-shot optimal assignment (Hungarian): a bijection cannot express
one way becoming two. Re-injected remainders can.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Optional

from historylink.config import get_settings
from historylink.core.arena import EntityArena
from historylink.models.conflation import MatchedConflation
from historylink.models.entity import Entity, Identity
from historylink.modules.conflation.distance_matrix import (
    MatrixEntry,
    PairMatrix,
    build_matrix,
)
from historylink.modules.metrics import DEFAULT_METRICS, Metrics
from historylink.utils.geometry_utils import point_distance
from historylink.utils.logger import get_logger

log = get_logger(__name__)


def _selection_key(
    pair: tuple[int, int],
    entry: MatrixEntry,
    befores: EntityArena,
    afters: EntityArena,
) -> tuple:
    """
    Total order over candidate pairs: cost first, then identities and
    versions, then arena handles (older entities before remainders).
    Never depends on dict iteration order.
    """
    before = befores[pair[0]]
    after = afters[pair[1]]
    return (
        entry.total,
        before.identity,
        before.version,
        after.identity,
        after.version,
        pair[0],
        pair[1],
    )


def _remainders(
    before: Entity, after: Entity, entry: MatrixEntry
) -> tuple[Optional[Entity], Optional[Entity]]:
    geometry = entry.geometry
    remaining_before = (
        before.with_geometry(geometry.remaining_before)
        if geometry.remaining_before is not None else None
    )
    remaining_after = (
        after.with_geometry(geometry.remaining_after)
        if geometry.remaining_after is not None else None
    )
    return remaining_before, remaining_after


def match_greedy(
    befores: EntityArena,
    afters: EntityArena,
    afters_index: Mapping[Identity, Entity],
    demi_distance: float,
    metrics: Metrics = DEFAULT_METRICS,
    max_iterations: Optional[int] = None,
) -> list[MatchedConflation]:
    """
    Run the greedy matching loop.

    Args:
        befores:        Working before arena. Matched entities are removed,
                        unmatched remainders are added.
        afters:         Working after arena, same treatment.
        afters_index:   Identity → latest after entity (for before_at_now)
        demi_distance:  Maximum attachment distance
        metrics:        Tag/geometry metric bundle
        max_iterations: Safety cap on selections. Defaults to config (None
                        means unbounded).

    Returns:
        Matches in selection order. Leftovers stay in the arenas.
    """
    if max_iterations is None:
        max_iterations = get_settings().max_iterations

    matrix: PairMatrix = build_matrix(
        list(befores), list(afters), demi_distance, metrics
    )

    log.info(
        "greedy_matching_start",
        n_befores=len(befores),
        n_afters=len(afters),
        n_candidates=len(matrix),
    )

    matches: list[MatchedConflation] = []
    n_remainders = 0

    while matrix and befores and afters:
        if max_iterations is not None and len(matches) >= max_iterations:
            log.warning(
                "greedy_iteration_budget_exhausted",
                max_iterations=max_iterations,
                remaining_candidates=len(matrix),
            )
            break

        (h_before, h_after), entry = min(
            matrix.items(),
            key=lambda item: _selection_key(item[0], item[1], befores, afters),
        )
        before = befores.remove(h_before)
        after = afters.remove(h_after)

        matches.append(MatchedConflation(
            before=before,
            before_at_now=afters_index.get(before.identity),
            after=after,
            point_distance=point_distance(before.geometry, after.geometry),
        ))
        log.debug(
            "greedy_match_selected",
            before=str(before),
            after=str(after),
            cost=round(entry.total, 6),
        )

        matrix = {
            pair: e for pair, e in matrix.items()
            if pair[0] != h_before and pair[1] != h_after
        }

        remaining_before, remaining_after = _remainders(before, after, entry)
        if remaining_before is None and remaining_after is None:
            continue

        current_befores = list(befores)
        current_afters = list(afters)
        new_befores = []
        new_afters = []
        if remaining_before is not None:
            new_befores.append((befores.add(remaining_before), remaining_before))
        if remaining_after is not None:
            new_afters.append((afters.add(remaining_after), remaining_after))
        n_remainders += len(new_befores) + len(new_afters)

        matrix.update(build_matrix(new_befores, current_afters, demi_distance, metrics))
        matrix.update(build_matrix(current_befores, new_afters, demi_distance, metrics))
        matrix.update(build_matrix(new_befores, new_afters, demi_distance, metrics))

    log.info(
        "greedy_matching_complete",
        matched=len(matches),
        remainders_created=n_remainders,
        leftover_befores=len(befores),
        leftover_afters=len(afters),
    )
    return matches
