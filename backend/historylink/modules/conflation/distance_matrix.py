# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Distance Matrix Builder
Pairwise match costs for every compatible (before, after) combination.

Each entry is a 3-part cost:
  tag_cost       semantic distance of the tag sets
  geometry.cost  geometric distance (plus remainders, kept for expansion)
  identity_cost  0 for the same feature id, a tiny epsilon otherwise

The epsilon never outweighs a real difference. It only decides between
otherwise equal candidates in favour of the feature keeping its id.

Pairs are dropped, not scored high, when either side has no geometry or
either metric declares them incomparable. An absent entry means "never".
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import NamedTuple, Optional

from historylink.config import get_settings
from historylink.core.arena import EntityArena
from historylink.errors import InvalidDemiDistanceError
from historylink.models.entity import Entity, EntityKey
from historylink.modules.metrics import (
    DEFAULT_METRICS,
    EXACT_MATCH,
    GeometryDistance,
    Metrics,
)
from historylink.utils.geometry_utils import geometry_dimension, same_geometry
from historylink.utils.logger import get_logger

log = get_logger(__name__)

HandledEntity = tuple[int, Entity]


class MatrixEntry(NamedTuple):
    tag_cost: float
    geometry: GeometryDistance
    identity_cost: float

    @property
    def costs(self) -> tuple[float, float, float]:
        return (self.tag_cost, self.geometry.cost, self.identity_cost)

    @property
    def total(self) -> float:
        return self.tag_cost + self.geometry.cost + self.identity_cost


PairMatrix = dict[tuple[int, int], MatrixEntry]


def resolve_demi_distance(demi_distance: Optional[float]) -> float:
    """Fall back to config, and reject values no distance can be scaled by."""
    if demi_distance is None:
        demi_distance = get_settings().demi_distance
    value = float(demi_distance)
    if not math.isfinite(value) or value <= 0:
        raise InvalidDemiDistanceError(
            f"demi_distance must be a finite positive number, got {demi_distance!r}"
        )
    return value


def score_pair(
    before: Entity,
    after: Entity,
    demi_distance: float,
    metrics: Metrics,
    identity_epsilon: float,
    single_pair: bool = False,
) -> Optional[MatrixEntry]:
    """
    Score one (before, after) candidate pair.

    Args:
        single_pair: The two collections being compared hold one entity
                     each. Two areas are then accepted at zero geometric
                     cost: tags alone decided they are the same object.

    Returns:
        MatrixEntry, or None when the pair may never be matched.
    """
    before_geom = before.geometry
    if before_geom is None:
        return None
    after_geom = after.geometry
    if after_geom is None:
        return None

    t_dist = metrics.tag_distance(before.tags, after.tags)
    if t_dist is None:
        return None

    if same_geometry(before_geom, after_geom) or (
        single_pair
        and geometry_dimension(before_geom) == 2
        and geometry_dimension(after_geom) == 2
    ):
        g_dist: Optional[GeometryDistance] = EXACT_MATCH
    else:
        g_dist = metrics.geom_distance(before_geom, after_geom, demi_distance)
    if g_dist is None:
        return None

    identity_cost = 0.0 if before.identity == after.identity else identity_epsilon
    return MatrixEntry(float(t_dist), g_dist, identity_cost)


def build_matrix(
    befores: Sequence[HandledEntity],
    afters: Sequence[HandledEntity],
    demi_distance: float,
    metrics: Metrics = DEFAULT_METRICS,
    identity_epsilon: Optional[float] = None,
    workers: Optional[int] = None,
) -> PairMatrix:
    """
    Build the cost matrix over two handle-addressed collections.

    Args:
        befores:          (handle, Entity) pairs from the before arena
        afters:           (handle, Entity) pairs from the after arena
        demi_distance:    Maximum attachment distance
        metrics:          Tag/geometry metric bundle
        identity_epsilon: Cross-identity tie-break cost. Defaults to config.
        workers:          Thread pool width for row evaluation. Defaults to
                          config; 1 evaluates sequentially.

    Returns:
        (before_handle, after_handle) → MatrixEntry, in row-major order.
    """
    if not befores or not afters:
        return {}

    settings = get_settings()
    if identity_epsilon is None:
        identity_epsilon = settings.identity_epsilon
    if workers is None:
        workers = settings.matrix_workers

    single_pair = len(befores) == 1 and len(afters) == 1

    def _row(item: HandledEntity) -> list[tuple[tuple[int, int], MatrixEntry]]:
        h_before, before = item
        row = []
        for h_after, after in afters:
            entry = score_pair(
                before, after, demi_distance, metrics, identity_epsilon, single_pair
            )
            if entry is not None:
                row.append(((h_before, h_after), entry))
        return row

    if workers > 1 and len(befores) > 1:
        # Decode every geometry up front so worker threads only read caches
        for _, entity in (*befores, *afters):
            _ = entity.geometry
        with ThreadPoolExecutor(max_workers=workers) as pool:
            rows = list(pool.map(_row, befores))
    else:
        rows = [_row(item) for item in befores]

    matrix: PairMatrix = {}
    for row in rows:
        matrix.update(row)

    log.debug(
        "distance_matrix_built",
        n_befores=len(befores),
        n_afters=len(afters),
        n_entries=len(matrix),
        workers=workers,
    )
    return matrix


def conflate_matrix(
    befores: Iterable[Entity],
    afters: Iterable[Entity],
    demi_distance: Optional[float] = None,
    metrics: Optional[Metrics] = None,
) -> dict[tuple[EntityKey, EntityKey], tuple[float, float, float]]:
    """
    Inspection form of the matrix: entities in, composite keys out.
    Duplicate input records (same EntityKey) are compared once.

    Returns:
        (before.key, after.key) → (tag_cost, geometry_cost, identity_cost)
    """
    demi = resolve_demi_distance(demi_distance)
    before_arena = EntityArena.deduplicated(befores)
    after_arena = EntityArena.deduplicated(afters)

    matrix = build_matrix(
        list(before_arena), list(after_arena), demi, metrics or DEFAULT_METRICS
    )
    return {
        (before_arena[h_b].key, after_arena[h_a].key): entry.costs
        for (h_b, h_a), entry in matrix.items()
    }
