# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Geometry Distance
Compares two geometries of the same dimension and reports a cost plus the
parts of each geometry the other one does not account for.

Those leftover parts ("remainders") are what lets the greedy matcher
express splits and merges: a way cut in two matches its first half, then
its remainder re-enters the pool and matches the second half.

Per dimension:
  points  cost = hausdorff / demi, never any remainder
  lines   covered stretch found by projecting endpoints along each part,
          cost = hausdorff(covered A, covered B) / demi,
          remainders = uncovered stretches
  areas   cost = 1 - IoU, remainders = A - B and B - A
Anything farther apart than demi_distance is not a candidate (None).
"""

from __future__ import annotations

from typing import NamedTuple, Optional

from shapely.geometry import LineString, MultiLineString, Point
from shapely.geometry.base import BaseGeometry
from shapely.ops import substring, unary_union

from historylink.config import get_settings
from historylink.utils.geometry_utils import geometry_dimension, line_parts

# Relative tolerance for "strictly inside a line", in fractions of its length
_ALONG_EPS = 1e-9


class GeometryDistance(NamedTuple):
    cost: float
    remaining_before: Optional[BaseGeometry] = None
    remaining_after: Optional[BaseGeometry] = None


EXACT_MATCH = GeometryDistance(0.0, None, None)


def _whole(
    geom_a: BaseGeometry, geom_b: BaseGeometry, demi_distance: float
) -> Optional[GeometryDistance]:
    """Compare complete geometries, no remainders."""
    d = float(geom_a.hausdorff_distance(geom_b))
    if d > demi_distance:
        return None
    return GeometryDistance(d / demi_distance)


# ─── Lines ───────────────────────────────────────────────────────────────────

def _endpoints(geom: BaseGeometry) -> list[Point]:
    points: list[Point] = []
    for part in line_parts(geom):
        points.append(Point(part.coords[0]))
        points.append(Point(part.coords[-1]))
    return points


def _alongside(point: Point, parts: list[LineString], demi_distance: float) -> bool:
    """True if point projects strictly inside one of parts, within reach."""
    for part in parts:
        if part.distance(point) > demi_distance:
            continue
        pos = part.project(point)
        eps = _ALONG_EPS * part.length
        if eps < pos < part.length - eps:
            return True
    return False


def _covered_stretch(
    line: LineString, other: BaseGeometry, demi_distance: float
) -> Optional[tuple[float, float]]:
    """
    The [start, end] stretch of line that other runs along, as distances
    from line's start. None when other only touches line at a point.
    """
    positions = [
        line.project(p) for p in _endpoints(other)
        if line.distance(p) <= demi_distance
    ]
    other_parts = line_parts(other)
    for p in (Point(line.coords[0]), Point(line.coords[-1])):
        if _alongside(p, other_parts, demi_distance):
            positions.append(line.project(p))

    if not positions:
        return None
    start, end = min(positions), max(positions)
    if end - start <= _ALONG_EPS * line.length:
        return None
    return start, end


def _split_line(
    geom: BaseGeometry,
    other: BaseGeometry,
    demi_distance: float,
    min_ratio: float,
) -> tuple[list[LineString], list[LineString]]:
    """Cut geom into the stretches other covers and the ones it does not."""
    covered: list[LineString] = []
    remaining: list[LineString] = []
    min_length = max(min_ratio * geom.length, _ALONG_EPS * geom.length)

    for part in line_parts(geom):
        stretch = _covered_stretch(part, other, demi_distance)
        if stretch is None:
            if part.length > min_length:
                remaining.append(part)
            continue

        start, end = stretch
        covered.append(substring(part, start, end))
        for lo, hi in ((0.0, start), (end, part.length)):
            if hi - lo > min_length:
                remaining.append(substring(part, lo, hi))

    return covered, remaining


def _as_line_geometry(parts: list[LineString]) -> Optional[BaseGeometry]:
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return MultiLineString(parts)


def _line_distance(
    geom_a: BaseGeometry,
    geom_b: BaseGeometry,
    demi_distance: float,
    min_ratio: float,
) -> Optional[GeometryDistance]:
    covered_a, remaining_a = _split_line(geom_a, geom_b, demi_distance, min_ratio)
    covered_b, remaining_b = _split_line(geom_b, geom_a, demi_distance, min_ratio)

    if not covered_a or not covered_b:
        # No shared stretch to cut along (lines cross, meet end to end, or
        # lie apart). Compared whole: collinear lines separated by a gap
        # farther than demi_distance at their far ends are no candidates.
        return _whole(geom_a, geom_b, demi_distance)

    d = float(unary_union(covered_a).hausdorff_distance(unary_union(covered_b)))
    if d > demi_distance:
        return None

    return GeometryDistance(
        d / demi_distance,
        _as_line_geometry(remaining_a),
        _as_line_geometry(remaining_b),
    )


# ─── Areas ───────────────────────────────────────────────────────────────────

def _area_remainder(
    geom: BaseGeometry, other: BaseGeometry, min_ratio: float
) -> Optional[BaseGeometry]:
    rest = geom.difference(other)
    if rest.is_empty or geometry_dimension(rest) != 2:
        return None
    if rest.area <= min_ratio * geom.area:
        return None
    return rest


def _area_distance(
    geom_a: BaseGeometry,
    geom_b: BaseGeometry,
    demi_distance: float,
    min_ratio: float,
) -> Optional[GeometryDistance]:
    overlap = geom_a.intersection(geom_b).area
    if overlap == 0:
        return _whole(geom_a, geom_b, demi_distance)

    union = geom_a.union(geom_b).area
    return GeometryDistance(
        1.0 - overlap / union,
        _area_remainder(geom_a, geom_b, min_ratio),
        _area_remainder(geom_b, geom_a, min_ratio),
    )


# ─── Public API ──────────────────────────────────────────────────────────────

def geom_distance(
    geom_a: BaseGeometry,
    geom_b: BaseGeometry,
    demi_distance: float,
    remainder_min_ratio: Optional[float] = None,
) -> Optional[GeometryDistance]:
    """
    Cost of considering geom_b (after) the continuation of geom_a (before).

    Args:
        geom_a:              Before geometry, in a metric projection
        geom_b:              After geometry, same projection
        demi_distance:       Maximum attachment distance
        remainder_min_ratio: Remainders smaller than this fraction of their
                             source are dropped. Defaults to config.

    Returns:
        GeometryDistance(cost, remaining_before, remaining_after), or None
        when the geometries cannot correspond.
    """
    if remainder_min_ratio is None:
        remainder_min_ratio = get_settings().remainder_min_ratio

    dim = geometry_dimension(geom_a)
    if dim != geometry_dimension(geom_b):
        return None

    if dim == 0:
        return _whole(geom_a, geom_b, demi_distance)
    if dim == 1:
        return _line_distance(geom_a, geom_b, demi_distance, remainder_min_ratio)
    return _area_distance(geom_a, geom_b, demi_distance, remainder_min_ratio)
