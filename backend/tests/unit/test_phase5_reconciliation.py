# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Phase 5: Reconciliation tests.
Duplicate match merging, remainder re-attachment, delete/create stitching,
result completeness, and run statistics.
"""

import json

import pytest
from shapely.geometry import LineString


# ─── Helpers ─────────────────────────────────────────────────────────────────

def _point(x: float, y: float) -> str:
    return json.dumps({"type": "Point", "coordinates": [x, y]})


def _line(*coords) -> str:
    return json.dumps({"type": "LineString", "coordinates": [list(c) for c in coords]})


def _make_entity(id=1, kind="node", version=1, geom=None, tags=None, deleted=False):
    from historylink.models.entity import Entity, default_geometry_decoder
    return Entity(
        # Unprojected coordinates keep the unit-sized fixtures readable
        decoder=default_geometry_decoder(4326),
        kind=kind,
        id=id,
        version=version,
        geom=geom if geom is not None else _point(0, 0),
        tags=tags if tags is not None else {"amenity": "bench"},
        deleted=deleted,
    )


def _make_way(id, *coords, version=1):
    return _make_entity(
        id=id, kind="way", version=version, geom=_line(*coords),
        tags={"highway": "residential"},
    )


def _match(before, after):
    from historylink.models.conflation import MatchedConflation
    return MatchedConflation(before=before, after=after)


# ─── Duplicate merging ───────────────────────────────────────────────────────

def test_duplicate_matches_collapse_with_union():
    from historylink.modules.conflation import merge_duplicate_matches
    way = _make_way(1, (0, 0), (0, 2))
    after = _make_way(1, (0, 0), (0, 2), version=2)
    matches = [
        _match(way.with_geometry(LineString([(0, 0), (0, 1)])),
               after.with_geometry(LineString([(0, 0), (0, 1)]))),
        _match(way.with_geometry(LineString([(0, 1), (0, 2)])),
               after.with_geometry(LineString([(0, 1), (0, 2)]))),
    ]
    merged = merge_duplicate_matches(matches)
    assert len(merged) == 1
    assert merged[0].before.geometry.length == pytest.approx(2.0)
    assert merged[0].after.geometry.geom_type == "LineString"


def test_duplicate_merging_is_idempotent():
    from historylink.modules.conflation import merge_duplicate_matches
    matches = [
        _match(_make_entity(id=1), _make_entity(id=1, version=2)),
        _match(_make_entity(id=2), _make_entity(id=3)),
    ]
    once = merge_duplicate_matches(matches)
    twice = merge_duplicate_matches(once)
    assert twice == once
    assert [(m.before.id, m.after.id) for m in twice] == [(1, 1), (2, 3)]


def test_merged_match_remeasures_point_distance():
    from historylink.modules.conflation import merge_duplicate_matches
    way = _make_way(1, (0, 0), (0, 2))
    after = _make_way(1, (1, 0), (1, 1), version=2)
    far = _match(way.with_geometry(LineString([(0, 0), (0, 1)])), after)
    far.point_distance = 1.0
    touching = _match(
        way.with_geometry(LineString([(0, 1), (0, 2)])),
        after.with_geometry(LineString([(0, 1), (0, 2)])),
    )
    merged = merge_duplicate_matches([far, touching])
    assert merged[0].point_distance is None


def test_distinct_pairs_of_same_feature_are_kept():
    from historylink.modules.conflation import merge_duplicate_matches
    before = _make_way(1, (0, 0), (0, 2))
    matches = [
        _match(before, _make_way(1, (0, 0), (0, 1), version=2)),
        _match(before, _make_way(2, (0, 1), (0, 2))),
    ]
    assert len(merge_duplicate_matches(matches)) == 2


# ─── Remainder re-attachment ─────────────────────────────────────────────────

def test_shortened_way_remainder_folds_back():
    from historylink.models.conflation import MatchedConflation
    from historylink.modules import conflate
    before = _make_way(1, (0, 0), (0, 2))
    after = _make_way(1, (0, 0), (0, 1), version=2)
    result = conflate([before], [after], demi_distance=1.0)
    assert len(result) == 1
    assert isinstance(result[0], MatchedConflation)
    assert result[0].before.geometry.length == pytest.approx(2.0)
    # Serialized geometry is never rewritten
    assert result[0].before.geom == before.geom


def test_reattach_unions_into_single_match():
    from historylink.core.arena import EntityArena
    from historylink.modules.conflation import reattach_remainders
    way = _make_way(1, (0, 0), (0, 2))
    match = _match(way.with_geometry(LineString([(0, 0), (0, 1)])), _make_way(7, (0, 0), (0, 1)))
    leftovers = EntityArena([way.with_geometry(LineString([(0, 1), (0, 2)]))])
    assert reattach_remainders([match], leftovers, "before") == 1
    assert len(leftovers) == 0
    assert match.before.geometry.length == pytest.approx(2.0)


def test_reattach_remeasures_point_distance():
    from historylink.core.arena import EntityArena
    from historylink.modules.conflation import reattach_remainders
    way = _make_way(1, (0, 0), (0, 2.5))
    match = _match(way.with_geometry(LineString([(0, 0), (0, 1)])), _make_way(7, (0, 3), (0, 4)))
    match.point_distance = 2.0
    leftovers = EntityArena([way.with_geometry(LineString([(0, 1), (0, 2.5)]))])
    reattach_remainders([match], leftovers, "before")
    assert match.point_distance == pytest.approx(0.5)


def test_reattach_skips_ambiguous_features():
    from historylink.core.arena import EntityArena
    from historylink.modules.conflation import reattach_remainders
    way = _make_way(1, (0, 0), (0, 3))
    matches = [
        _match(way.with_geometry(LineString([(0, 0), (0, 1)])), _make_way(7, (0, 0), (0, 1))),
        _match(way.with_geometry(LineString([(0, 2), (0, 3)])), _make_way(8, (0, 2), (0, 3))),
    ]
    leftovers = EntityArena([way.with_geometry(LineString([(0, 1), (0, 2)]))])
    assert reattach_remainders(matches, leftovers, "before") == 0
    assert len(leftovers) == 1


def test_reattach_after_side():
    from historylink.core.arena import EntityArena
    from historylink.modules.conflation import reattach_remainders
    after = _make_way(4, (0, 0), (0, 2))
    match = _match(_make_way(1, (0, 0), (0, 1)), after.with_geometry(LineString([(0, 0), (0, 1)])))
    leftovers = EntityArena([after.with_geometry(LineString([(0, 1), (0, 2)]))])
    assert reattach_remainders([match], leftovers, "after") == 1
    assert match.after.geometry.length == pytest.approx(2.0)


def test_reattach_ignores_unrelated_leftovers():
    from historylink.core.arena import EntityArena
    from historylink.modules.conflation import reattach_remainders
    match = _match(_make_entity(id=1), _make_entity(id=1, version=2))
    leftovers = EntityArena([_make_entity(id=2)])
    assert reattach_remainders([match], leftovers, "before") == 0
    assert len(leftovers) == 1


# ─── Delete/create stitching ─────────────────────────────────────────────────

def test_category_change_stitched_with_simplification():
    from historylink.models.conflation import MatchedConflation
    from historylink.modules import conflate, conflate_with_simplification
    before = _make_entity(id=1, tags={"amenity": "a"})
    after = _make_entity(id=1, version=2, tags={"amenity": "b"})

    plain = conflate([before], [after], demi_distance=1.0)
    assert [c.kind for c in plain] == ["deleted", "created"]

    simplified = conflate_with_simplification([before], [after], demi_distance=1.0)
    assert len(simplified) == 1
    assert isinstance(simplified[0], MatchedConflation)
    assert simplified[0].before is before
    assert simplified[0].after is after
    assert simplified[0].before_at_now is after
    assert simplified[0].point_distance is None


def test_stitching_needs_same_identity():
    from historylink.modules import conflate_with_simplification
    before = _make_entity(id=1, tags={"amenity": "a"})
    after = _make_entity(id=2, tags={"amenity": "b"})
    result = conflate_with_simplification([before], [after], demi_distance=1.0)
    assert [c.kind for c in result] == ["deleted", "created"]


def test_stitched_records_go_last():
    from historylink.models.conflation import CreatedConflation, DeletedConflation
    from historylink.modules.conflation import merge_deleted_created
    gone = DeletedConflation(before=_make_entity(id=1))
    born = CreatedConflation(after=_make_entity(id=1, version=2, geom=_point(3, 4)))
    other = CreatedConflation(after=_make_entity(id=9))
    result = merge_deleted_created([gone, other, born])
    assert result[0] is other
    assert result[1].kind == "matched"
    assert result[1].point_distance == pytest.approx(5.0)


def test_stitching_skips_repeated_identities():
    from historylink.models.conflation import CreatedConflation, DeletedConflation
    from historylink.modules.conflation import merge_deleted_created
    records = [
        DeletedConflation(before=_make_entity(id=1)),
        CreatedConflation(after=_make_entity(id=1, version=2)),
        CreatedConflation(after=_make_entity(id=1, version=3)),
    ]
    assert merge_deleted_created(records) == records


# ─── Completeness ────────────────────────────────────────────────────────────

def test_every_input_accounted_for():
    from historylink.modules import conflate
    befores = [
        _make_way(1, (0, 0), (0, 2)),
        _make_entity(id=10, geom=_point(5, 5)),
        _make_entity(id=11, geom=_point(20, 20)),
        _make_entity(id=12, geom="broken"),
    ]
    afters = [
        _make_way(1, (0, 0), (0, 1), version=2),
        _make_way(2, (0, 1), (0, 2)),
        _make_entity(id=10, version=2, geom=_point(5, 5.2)),
        _make_entity(id=13, geom=_point(-20, -20)),
        _make_entity(id=11, version=2, deleted=True),
    ]
    result = conflate(befores, afters, demi_distance=1.0)

    seen_befores = {c.before.key for c in result if c.before is not None}
    seen_afters = {c.after.key for c in result if c.after is not None}
    assert seen_befores == {b.key for b in befores}
    assert seen_afters == {a.key for a in afters if not a.deleted}


# ─── Statistics ──────────────────────────────────────────────────────────────

def test_conflation_stats_counts():
    from historylink.modules import conflate
    from historylink.modules.conflation import compute_conflation_stats
    befores = [_make_entity(id=1, geom=_point(0, 0)), _make_entity(id=2, geom=_point(9, 9))]
    afters = [_make_entity(id=1, version=2, geom=_point(0, 0.5)), _make_entity(id=3, geom=_point(-9, -9))]
    stats = compute_conflation_stats(conflate(befores, afters, demi_distance=1.0))
    assert stats["total"] == 3
    assert stats["matched"] == 1
    assert stats["deleted"] == 1
    assert stats["created"] == 1
    assert stats["moved"] == 1
    assert stats["mean_point_distance"] == pytest.approx(0.5)
    assert stats["max_point_distance"] == pytest.approx(0.5)


def test_conflation_stats_empty():
    from historylink.modules.conflation import compute_conflation_stats
    stats = compute_conflation_stats([])
    assert stats["total"] == 0
    assert stats["mean_point_distance"] == 0.0
