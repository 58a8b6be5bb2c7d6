# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Reference Matcher
Fast exact 1:1 pass run before any geometry is looked at.

A reference key (ref=*, wikidata=*, ...) shared by exactly one before and
exactly one after feature links them, whatever else changed in their tags
or geometry. Keys held by several features on either side are ambiguous and
left to the distance matcher.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Hashable, Mapping

from historylink.core.arena import EntityArena
from historylink.models.conflation import MatchedConflation
from historylink.models.entity import Entity, Identity
from historylink.modules.metrics import RefsFn
from historylink.utils.logger import get_logger

log = get_logger(__name__)


def _unique_by_reference(arena: EntityArena, refs: RefsFn) -> dict[Hashable, int]:
    """reference key → handle, for keys carried by exactly one entity."""
    groups: dict[Hashable, list[int]] = defaultdict(list)
    for handle, entity in arena:
        key = refs(entity.tags)
        if key:
            groups[key].append(handle)
    return {key: handles[0] for key, handles in groups.items() if len(handles) == 1}


def match_by_reference(
    befores: EntityArena,
    afters: EntityArena,
    afters_index: Mapping[Identity, Entity],
    refs: RefsFn,
) -> list[MatchedConflation]:
    """
    Link features sharing a unique reference key.
    Matched entities are removed from both arenas.

    Args:
        befores:      Working before arena (mutated)
        afters:       Working after arena (mutated)
        afters_index: Identity → latest after entity, deleted ones included
        refs:         Reference-key extractor

    Returns:
        One MatchedConflation per shared key, in sorted key order.
    """
    before_refs = _unique_by_reference(befores, refs)
    after_refs = _unique_by_reference(afters, refs)

    shared = sorted(before_refs.keys() & after_refs.keys())

    matches: list[MatchedConflation] = []
    for key in shared:
        before = befores.remove(before_refs[key])
        after = afters.remove(after_refs[key])
        matches.append(MatchedConflation(
            before=before,
            before_at_now=afters_index.get(before.identity),
            after=after,
        ))

    log.info(
        "reference_matching_complete",
        before_keys=len(before_refs),
        after_keys=len(after_refs),
        matched=len(matches),
    )
    return matches
