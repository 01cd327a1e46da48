"""Unit tests for AABBs, position keys and the key-bucket broad phase."""

from __future__ import annotations

import math

import pytest

from mazechase.simulation.geometry import (
    AABB,
    bearing,
    cell_box,
    cell_center,
    distance,
    first_overlap,
    neighbour_keys,
    position_key,
)

pytestmark = pytest.mark.unit

UNIT = 96.0


# --------------------------------------------------------------------------
# AABB
# --------------------------------------------------------------------------

class TestAABB:
    def test_from_center(self):
        box = AABB.from_center(100, 50, 40)
        assert (box.min_x, box.min_y, box.max_x, box.max_y) == (80, 30, 120, 70)
        assert box.center == (100, 50)

    def test_from_center_rectangular(self):
        box = AABB.from_center(0, 0, 10, 4)
        assert (box.min_x, box.max_x, box.min_y, box.max_y) == (-5, 5, -2, 2)

    def test_overlap(self):
        a = AABB(0, 0, 10, 10)
        b = AABB(5, 5, 15, 15)
        assert a.overlaps(b)
        assert b.overlaps(a)

    def test_touching_edges_do_not_overlap(self):
        a = AABB(0, 0, 10, 10)
        b = AABB(10, 0, 20, 10)
        assert not a.overlaps(b)

    def test_separated(self):
        assert not AABB(0, 0, 1, 1).overlaps(AABB(5, 5, 6, 6))


# --------------------------------------------------------------------------
# Position keys
# --------------------------------------------------------------------------

class TestPositionKey:
    def test_cell_center_maps_to_its_key(self):
        x, y = cell_center(3, 7, UNIT)
        assert position_key(x, y, UNIT) == (3, 7)

    def test_rounds_half_up(self):
        assert position_key(47.9, 0, UNIT) == (0, 0)
        assert position_key(48.0, 0, UNIT) == (1, 0)

    def test_negative_coordinates(self):
        assert position_key(-48.0, 0, UNIT) == (0, 0)
        assert position_key(-49.0, 0, UNIT) == (-1, 0)

    def test_same_tile_same_key(self):
        assert position_key(190, 200, UNIT) == position_key(200, 190, UNIT)

    def test_neighbour_keys(self):
        keys = list(neighbour_keys((5, 5)))
        assert len(keys) == 9
        assert (5, 5) in keys
        assert (4, 4) in keys and (6, 6) in keys
        assert (7, 5) not in keys


# --------------------------------------------------------------------------
# Broad phase
# --------------------------------------------------------------------------

class TestBroadPhase:
    def test_cell_box_scale(self):
        box = cell_box((1, 0), UNIT, 1.0)
        assert (box.min_x, box.max_x) == (48.0, 144.0)

    def test_first_overlap_hit(self):
        box = AABB.from_center(50, 0, 10)
        assert first_overlap(box, {(1, 0)}, UNIT, 1.0) == (1, 0)

    def test_first_overlap_miss(self):
        box = AABB.from_center(0, 0, 10)
        assert first_overlap(box, {(1, 0)}, UNIT, 1.0) is None

    def test_first_overlap_ignores_far_keys(self):
        box = AABB.from_center(0, 0, 10)
        assert first_overlap(box, {(5, 5)}, UNIT, 1.0) is None


class TestVectors:
    def test_bearing_down(self):
        assert bearing((0, 0), (0, 10)) == pytest.approx(math.pi / 2)

    def test_bearing_left(self):
        assert bearing((0, 0), (-10, 0)) == pytest.approx(math.pi)

    def test_distance(self):
        assert distance((0, 0), (3, 4)) == pytest.approx(5.0)
