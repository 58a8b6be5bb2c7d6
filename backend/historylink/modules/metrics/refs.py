# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Reference Keys
Extracts the exact-match key used to link features 1:1 without looking at
geometry: official references (ref, ref:*) and Wikidata ids.
"""

from __future__ import annotations

from collections.abc import Mapping

ReferenceKey = tuple[tuple[str, str], ...]

_REFERENCE_TAGS = frozenset({"ref", "wikidata"})
_REFERENCE_PREFIX = "ref:"


def _is_reference_tag(key: str) -> bool:
    return key in _REFERENCE_TAGS or key.startswith(_REFERENCE_PREFIX)


def reference_key(tags: Mapping[str, str]) -> ReferenceKey:
    """
    Return the sorted (key, value) reference pairs found in tags.
    The empty tuple means the feature carries no reference.
    """
    return tuple(sorted(
        (k, v.strip()) for k, v in tags.items()
        if _is_reference_tag(k) and v.strip()
    ))
