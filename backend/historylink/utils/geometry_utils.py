# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Geometry Utilities
GeoJSON decoding, projection, union, and measurement helpers shared by the
entity model, the geometry metric, and the reconciliation passes.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Callable, Optional

import numpy as np
import shapely
from pyproj import Transformer
from pyproj.exceptions import CRSError, ProjError
from shapely.errors import ShapelyError
from shapely.geometry import LineString, MultiLineString, shape
from shapely.geometry.base import BaseGeometry
from shapely.ops import linemerge, transform, unary_union

from historylink.errors import GeometryDecodeError

WGS84_SRID = 4326


# ─── Decoding ────────────────────────────────────────────────────────────────

def decode_geojson(text: str) -> BaseGeometry:
    """
    Parse a GeoJSON geometry string into a shapely geometry.
    Raises GeometryDecodeError for malformed, empty, or invalid input.
    """
    try:
        geom = shape(json.loads(text))
    except (ValueError, TypeError, KeyError, AttributeError, ShapelyError) as exc:
        raise GeometryDecodeError(f"Unreadable GeoJSON geometry: {exc}") from exc

    if geom.is_empty:
        raise GeometryDecodeError("GeoJSON geometry is empty.")
    if not geom.is_valid:
        raise GeometryDecodeError(
            f"Invalid {geom.geom_type}: {shapely.is_valid_reason(geom)}"
        )
    return geom


@lru_cache(maxsize=16)
def _transformer(local_srid: int) -> Transformer:
    return Transformer.from_crs(
        f"EPSG:{WGS84_SRID}", f"EPSG:{local_srid}", always_xy=True
    )


def project(geom: BaseGeometry, local_srid: int) -> BaseGeometry:
    """
    Reproject a WGS84 geometry into local_srid.
    Identity for 4326. Raises GeometryDecodeError on unknown SRIDs or
    coordinates the projection cannot handle.
    """
    if local_srid == WGS84_SRID:
        return geom
    try:
        projected = transform(_transformer(local_srid).transform, geom)
    except (CRSError, ProjError, ShapelyError, ValueError) as exc:
        raise GeometryDecodeError(
            f"Cannot project geometry to EPSG:{local_srid}: {exc}"
        ) from exc
    if (
        projected.is_empty
        or not np.isfinite(shapely.get_coordinates(projected)).all()
        or not projected.is_valid
    ):
        raise GeometryDecodeError(f"Projection to EPSG:{local_srid} degenerated.")
    return projected


def build_geometry_decoder(
    local_srid: int = WGS84_SRID,
) -> Callable[[str], BaseGeometry]:
    """
    Return a decoder turning WGS84 GeoJSON text into a geometry expressed
    in local_srid, where distances are meaningful.
    The decoder raises GeometryDecodeError; Entity turns that into None.
    """
    def _decode(text: str) -> BaseGeometry:
        return project(decode_geojson(text), local_srid)

    return _decode


# ─── Comparison & Measurement ────────────────────────────────────────────────

def same_geometry(a: BaseGeometry, b: BaseGeometry) -> bool:
    """Byte-identical comparison (WKB), no tolerance and no normalisation."""
    return a.wkb == b.wkb


def geometry_dimension(geom: BaseGeometry) -> int:
    """Topological dimension: 0 point, 1 line, 2 area."""
    return int(shapely.get_dimensions(geom))


def point_distance(a: BaseGeometry, b: BaseGeometry) -> Optional[float]:
    """
    Minimum Euclidean distance between two geometries.
    Returns None for touching or overlapping geometries.
    """
    distance = float(a.distance(b))
    return None if distance == 0 else distance


def line_parts(geom: BaseGeometry) -> list[LineString]:
    """Split a linear geometry into LineStrings, merging contiguous parts."""
    if isinstance(geom, LineString):
        return [geom]
    merged = linemerge(geom) if isinstance(geom, MultiLineString) else geom
    if isinstance(merged, LineString):
        return [merged]
    return [g for g in getattr(merged, "geoms", []) if isinstance(g, LineString)]


def union_geometries(a: BaseGeometry, b: BaseGeometry) -> BaseGeometry:
    """
    Union two parts of the same feature.
    Linear results are re-merged so a split way stitched back together
    reads as one LineString again.
    """
    merged = unary_union([a, b])
    if geometry_dimension(merged) == 1 and isinstance(merged, MultiLineString):
        return linemerge(merged)
    return merged
