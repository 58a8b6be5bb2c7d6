# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Phase 2: Metric tests.
Reference keys, tag distance, and geometry distance on synthetic shapes in
unprojected coordinates.
"""

import pytest
from shapely.geometry import LineString, Point, box


# ─── Reference Keys ──────────────────────────────────────────────────────────

def test_reference_key_collects_ref_tags_sorted():
    from historylink.modules.metrics import reference_key
    key = reference_key({
        "wikidata": "Q1",
        "name": "Main Street",
        "ref": " A1 ",
        "ref:fr:siret": "123",
    })
    assert key == (("ref", "A1"), ("ref:fr:siret", "123"), ("wikidata", "Q1"))


def test_reference_key_empty_without_refs():
    from historylink.modules.metrics import reference_key
    assert reference_key({"name": "x", "highway": "primary"}) == ()
    assert reference_key({"ref": "   "}) == ()


# ─── Tag Distance ────────────────────────────────────────────────────────────

def test_tag_distance_identical_is_zero():
    from historylink.modules.metrics import tag_distance
    tags = {"highway": "residential", "name": "Rue Haute"}
    assert tag_distance(tags, dict(tags)) == 0.0


def test_tag_distance_conflicting_primary_value():
    from historylink.modules.metrics import tag_distance
    assert tag_distance({"amenity": "bicycle_parking"}, {"amenity": "parking"}) is None


def test_tag_distance_no_shared_primary_key():
    from historylink.modules.metrics import tag_distance
    assert tag_distance({"highway": "footway"}, {"building": "yes"}) is None


def test_tag_distance_missing_primary_key():
    from historylink.modules.metrics import tag_distance
    assert tag_distance({}, {"highway": "residential"}) is None
    assert tag_distance({"ref": "a"}, {"ref": "b"}) is None


def test_uncategorised_identical_tags_cost_zero():
    from historylink.modules.metrics import tag_distance
    assert tag_distance({"name": "Old oak"}, {"name": "Old oak"}) == 0.0
    assert tag_distance({}, {}) == 0.0


def test_uncategorised_tags_scored_when_a_value_survives():
    from historylink.modules.metrics import tag_distance
    d = tag_distance({"name": "Old oak", "height": "12"}, {"name": "Old oak", "height": "14"})
    assert d == pytest.approx(0.25)


def test_lost_category_is_incomparable():
    from historylink.modules.metrics import tag_distance
    assert tag_distance({"amenity": "bench", "name": "x"}, {"name": "x"}) is None
    assert tag_distance({"name": "x"}, {"amenity": "bench", "name": "x"}) is None


def test_tag_distance_removed_key_costs_one():
    from historylink.modules.metrics import tag_distance
    d = tag_distance({"highway": "residential", "name": "A"}, {"highway": "residential"})
    assert d == pytest.approx(0.5)


def test_tag_distance_added_keys_are_free():
    from historylink.modules.metrics import tag_distance
    d = tag_distance({"highway": "residential"}, {"highway": "residential", "name": "A"})
    assert d == 0.0


def test_tag_distance_small_edit_stays_close():
    from historylink.modules.metrics import tag_distance
    before = {"amenity": "cinema", "name": "Le Grand Rex", "phone": "+33 1 45 08 93 89"}
    after = {
        "amenity": "cinema",
        "name": "Le Grand Rex",
        "phone": "+33 1 45 08 93 58",
        "website": "https://www.legrandrex.com",
        "wheelchair": "yes",
    }
    d = tag_distance(before, after)
    assert d is not None
    assert 0 < d < 0.5


def test_multi_values_compare_unordered():
    from historylink.modules.metrics import tag_distance
    from historylink.modules.metrics.tags import values_equal
    assert values_equal("bar;cafe", "cafe; bar")
    assert tag_distance({"amenity": "bar;cafe"}, {"amenity": "cafe;bar"}) == 0.0


def test_value_distance_bounds():
    from historylink.modules.metrics import value_distance
    assert value_distance("abc", "abc") == 0.0
    assert value_distance("abc", "xyz") == pytest.approx(1.0)
    assert 0 < value_distance("Main St", "Main Street") < 1


# ─── Geometry Distance: points ───────────────────────────────────────────────

def test_points_within_demi_distance():
    from historylink.modules.metrics import geom_distance
    d = geom_distance(Point(0, 0), Point(0, 1), 1.0)
    assert d.cost == pytest.approx(1.0)
    assert d.remaining_before is None
    assert d.remaining_after is None


def test_points_beyond_demi_distance():
    from historylink.modules.metrics import geom_distance
    assert geom_distance(Point(0, 0), Point(0, 2), 1.0) is None


def test_dimension_mismatch_is_incomparable():
    from historylink.modules.metrics import geom_distance
    assert geom_distance(Point(0, 0), LineString([(0, 0), (0, 1)]), 10.0) is None
    assert geom_distance(LineString([(0, 0), (0, 1)]), box(0, 0, 1, 1), 10.0) is None


# ─── Geometry Distance: lines ────────────────────────────────────────────────

def test_line_shortened_leaves_before_remainder():
    from historylink.modules.metrics import geom_distance
    d = geom_distance(LineString([(0, 0), (0, 2)]), LineString([(0, 0), (0, 1)]), 1.0)
    assert d.cost == pytest.approx(0.0)
    assert d.remaining_after is None
    assert d.remaining_before.length == pytest.approx(1.0)
    assert d.remaining_before.distance(Point(0, 2)) == pytest.approx(0.0)


def test_line_extended_leaves_after_remainder():
    from historylink.modules.metrics import geom_distance
    d = geom_distance(LineString([(0, 0), (0, 1)]), LineString([(0, 0), (0, 2)]), 1.0)
    assert d.cost == pytest.approx(0.0)
    assert d.remaining_before is None
    assert d.remaining_after.length == pytest.approx(1.0)


def test_parallel_offset_line_costs_offset():
    from historylink.modules.metrics import geom_distance
    d = geom_distance(
        LineString([(0, 0), (10, 0)]), LineString([(0, 1), (10, 1)]), 4.0
    )
    assert d.cost == pytest.approx(0.25)
    assert d.remaining_before is None
    assert d.remaining_after is None


def test_distant_lines_incomparable():
    from historylink.modules.metrics import geom_distance
    assert geom_distance(
        LineString([(0, 0), (0, 1)]), LineString([(50, 0), (50, 1)]), 1.0
    ) is None


def test_collinear_gap_compared_whole():
    from historylink.modules.metrics import geom_distance
    near_end, far_start = LineString([(0, 0), (0, 1)]), LineString([(0, 2), (0, 3)])
    assert geom_distance(near_end, far_start, 1.0) is None
    d = geom_distance(near_end, far_start, 3.0)
    assert d.cost == pytest.approx(2.0 / 3.0)
    assert d.remaining_before is None
    assert d.remaining_after is None


def test_tiny_remainders_are_dropped():
    from historylink.modules.metrics import geom_distance
    d = geom_distance(
        LineString([(0, 0), (0, 1000)]), LineString([(0, 0), (0, 999.99)]), 1.0,
        remainder_min_ratio=0.01,
    )
    assert d.remaining_before is None


# ─── Geometry Distance: areas ────────────────────────────────────────────────

def test_identical_areas_cost_zero():
    from historylink.modules.metrics import geom_distance
    d = geom_distance(box(0, 0, 1, 1), box(0, 0, 1, 1), 1.0)
    assert d.cost == pytest.approx(0.0)
    assert d.remaining_before is None
    assert d.remaining_after is None


def test_shrunk_area_leaves_before_remainder():
    from historylink.modules.metrics import geom_distance
    d = geom_distance(box(0, 0, 2, 2), box(0, 0, 2, 1), 1.0)
    assert d.cost == pytest.approx(0.5)
    assert d.remaining_before.area == pytest.approx(2.0)
    assert d.remaining_after is None


def test_disjoint_areas_fall_back_to_distance():
    from historylink.modules.metrics import geom_distance
    near = geom_distance(box(0, 0, 1, 1), box(1.5, 0, 2.5, 1), 10.0)
    assert near is not None
    assert 0 < near.cost <= 1
    assert geom_distance(box(0, 0, 1, 1), box(50, 50, 51, 51), 10.0) is None


# ─── Metrics bundle ──────────────────────────────────────────────────────────

def test_default_metrics_bundle():
    from historylink.modules.metrics import (
        DEFAULT_METRICS,
        geom_distance,
        reference_key,
        tag_distance,
    )
    assert DEFAULT_METRICS.tag_distance is tag_distance
    assert DEFAULT_METRICS.geom_distance is geom_distance
    assert DEFAULT_METRICS.refs is reference_key
