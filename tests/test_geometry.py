"""
Geometry and hull tests
=======================
"""

import math

import numpy as np
import pytest

from clusterview.geometry import (
    box_corners, convex_hull, points_in_polygon, polygon_area, smooth_closed,
)
from clusterview.hulls import build_hulls, hull_for
from clusterview.view_graph import generate


def _is_simple_convex_ccw(poly):
    n = len(poly)
    turning = 0.0
    for i in range(n):
        o, a, b = poly[i - 1], poly[i], poly[(i + 1) % n]
        cross = (a[0] - o[0]) * (b[1] - a[1]) - (a[1] - o[1]) * (b[0] - a[0])
        if cross <= 0:
            return False
        h1 = math.atan2(a[1] - o[1], a[0] - o[0])
        h2 = math.atan2(b[1] - a[1], b[0] - a[0])
        turning += (h2 - h1 + math.pi) % (2 * math.pi) - math.pi
    # exactly one full turn: no self-intersection
    return turning == pytest.approx(2 * math.pi)


class TestConvexHull:

    def test_square_with_interior_and_collinear_points(self):
        pts = [(0, 0), (2, 0), (2, 2), (0, 2), (1, 1), (1, 0), (0, 1)]
        hull = convex_hull(pts)
        assert [tuple(p) for p in hull] == [(0, 0), (2, 0), (2, 2), (0, 2)]

    def test_duplicates_collapse(self):
        assert len(convex_hull([(1, 1), (1, 1), (1, 1)])) == 1
        assert len(convex_hull([])) == 0

    def test_area_sign(self):
        square = [(0, 0), (1, 0), (1, 1), (0, 1)]
        assert polygon_area(square) == pytest.approx(1.0)
        assert polygon_area(square[::-1]) == pytest.approx(-1.0)

    def test_random_hull_is_simple_and_encloses(self):
        rng = np.random.default_rng(7)
        pts = rng.normal(size=(200, 2)) * 50
        hull = convex_hull(pts)
        assert len(hull) >= 3
        assert _is_simple_convex_ccw(hull)
        # every point lies on the inner side of every hull edge
        for a, b in zip(hull, np.roll(hull, -1, axis=0)):
            cross = (b[0] - a[0]) * (pts[:, 1] - a[1]) - (b[1] - a[1]) * (pts[:, 0] - a[0])
            assert (cross >= -1e-9).all()


class TestHullFor:

    def test_degenerate_groups_have_no_hull(self):
        assert hull_for(np.empty((0, 2)), 10.0) is None
        assert hull_for([(5.0, 5.0)], 10.0) is None
        assert hull_for([(0.0, 0.0), (1.0, 1.0)], 0.0) is None

    def test_two_members_get_a_box(self):
        hull = hull_for([(0.0, 0.0), (100.0, 0.0)], 10.0)
        assert hull is not None
        assert len(hull) == 4
        assert polygon_area(hull) == pytest.approx(120.0 * 20.0)

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_hull_encloses_members(self, seed):
        rng = np.random.default_rng(seed)
        members = rng.uniform(-100, 100, size=(12, 2))
        hull = hull_for(members, 10.0)
        assert _is_simple_convex_ccw(hull)
        assert points_in_polygon(hull, members).all()

    def test_box_corners(self):
        corners = box_corners([(0.0, 0.0)], 2.0)
        assert sorted(map(tuple, corners)) == [(-2, -2), (-2, 2), (2, -2), (2, 2)]


def test_hulls_only_for_expanded_groups(scenario_model):
    view = generate(scenario_model, {"X": True})
    hulls = build_hulls(view, view.positions(), 10.0)
    assert [h.group for h in hulls] == ["Y"]


def test_smooth_closed_passes_through_vertices():
    square = np.array([(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)])
    curve = smooth_closed(square, samples=4)
    assert curve.shape == (16, 2)
    np.testing.assert_allclose(curve[::4], square)
    straight = smooth_closed(square, tension=1.0, samples=2)
    np.testing.assert_allclose(straight[1], (5.0, 0.0))
