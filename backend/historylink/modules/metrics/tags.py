# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Tag Distance
Semantic distance between the tag sets of two feature versions.

Comparability gate (None = never match, whatever the geometry):
  - categorised features (at least one primary key on both sides) must
    share a primary key, and every shared primary key must hold the same
    value
  - a feature that gained or lost its category is a different object
  - uncategorised features (no primary key on either side, e.g. a
    name-only node) are comparable when the tag sets are equal or share
    at least one unchanged key=value pair

Score for comparable pairs, in [0, 1], averaged over before-side keys:
  unchanged value          0
  key removed              1
  value edited             normalised Levenshtein distance
Keys added on the after side are free: tagging tends to get richer over
time and that alone says nothing against identity.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Optional

from rapidfuzz.distance import Levenshtein

# Keys naming what a feature *is*. Two features whose categories disagree
# are different objects even when they sit at the same place.
PRIMARY_KEYS = frozenset({
    "aerialway", "aeroway", "amenity", "barrier", "boundary", "building",
    "craft", "emergency", "healthcare", "highway", "historic", "landuse",
    "leisure", "man_made", "military", "natural", "office", "place", "power",
    "public_transport", "railway", "route", "shop", "sport", "telecom",
    "tourism", "waterway",
})


def _split_values(value: str) -> frozenset[str]:
    """OSM multi-values are ';'-separated and unordered."""
    return frozenset(v.strip() for v in value.split(";") if v.strip())


def values_equal(a: str, b: str) -> bool:
    return a == b or _split_values(a) == _split_values(b)


def value_distance(a: str, b: str) -> float:
    """Distance in [0, 1] between two values of the same key."""
    if values_equal(a, b):
        return 0.0
    return float(Levenshtein.normalized_distance(a, b))


def primary_tags(tags: Mapping[str, str]) -> dict[str, str]:
    return {k: v for k, v in tags.items() if k in PRIMARY_KEYS}


def _share_unchanged_value(
    tags_a: Mapping[str, str], tags_b: Mapping[str, str]
) -> bool:
    return any(
        k in tags_b and values_equal(v, tags_b[k]) for k, v in tags_a.items()
    )


def tags_comparable(
    tags_a: Mapping[str, str], tags_b: Mapping[str, str]
) -> bool:
    primary_a = primary_tags(tags_a)
    primary_b = primary_tags(tags_b)
    if not primary_a and not primary_b:
        return dict(tags_a) == dict(tags_b) or _share_unchanged_value(tags_a, tags_b)
    shared = primary_a.keys() & primary_b.keys()
    if not shared:
        return False
    return all(values_equal(primary_a[k], primary_b[k]) for k in shared)


def tag_distance(
    tags_a: Mapping[str, str], tags_b: Mapping[str, str]
) -> Optional[float]:
    """
    Distance from the before tags (tags_a) to the after tags (tags_b).

    Returns:
        None when the two tag sets describe different kinds of objects,
        else a score in [0, 1], 0 meaning effectively identical.
    """
    if not tags_comparable(tags_a, tags_b):
        return None

    total = 0.0
    for key, value in tags_a.items():
        other = tags_b.get(key)
        total += 1.0 if other is None else value_distance(value, other)

    if not tags_a:
        # Both sides untagged
        return 0.0
    return total / len(tags_a)
