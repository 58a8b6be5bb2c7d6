# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Metrics Module
The three pluggable functions the conflation engine consults. Swap any of
them by passing a custom Metrics bundle to conflate().
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Callable, Hashable, Optional

from shapely.geometry.base import BaseGeometry

from historylink.modules.metrics.geom import (
    EXACT_MATCH,
    GeometryDistance,
    geom_distance,
)
from historylink.modules.metrics.refs import ReferenceKey, reference_key
from historylink.modules.metrics.tags import (
    PRIMARY_KEYS,
    tag_distance,
    tags_comparable,
    value_distance,
)

TagDistanceFn = Callable[[Mapping[str, str], Mapping[str, str]], Optional[float]]
GeomDistanceFn = Callable[[BaseGeometry, BaseGeometry, float], Optional[GeometryDistance]]
# Any hashable, sortable key; falsy means "no reference"
RefsFn = Callable[[Mapping[str, str]], Hashable]


@dataclass(frozen=True)
class Metrics:
    """Bundle of the collaborator functions used by one conflation run."""
    tag_distance: TagDistanceFn = tag_distance
    geom_distance: GeomDistanceFn = geom_distance
    refs: RefsFn = reference_key


DEFAULT_METRICS = Metrics()

__all__ = [
    # Bundle
    "Metrics",
    "DEFAULT_METRICS",
    # Reference keys
    "ReferenceKey",
    "reference_key",
    # Tags
    "PRIMARY_KEYS",
    "tag_distance",
    "tags_comparable",
    "value_distance",
    # Geometry
    "GeometryDistance",
    "EXACT_MATCH",
    "geom_distance",
]
