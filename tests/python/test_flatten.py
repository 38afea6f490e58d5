from __future__ import annotations

import math

import pytest

from outlineforge.geometry.flatten import (
    arc_points,
    bezier_points,
    circle_ring,
    rotate_point,
    snap_point,
    steps_for_tolerance,
)
from outlineforge.geometry.primitives import Curve, Placement, Polygon


def test_snap_point_drops_negative_zero() -> None:
    x, y = snap_point((-1e-12, 2.0000000004))
    assert (x, y) == (0.0, 2.0)
    assert math.copysign(1.0, x) == 1.0


def test_rotate_point_counterclockwise() -> None:
    assert rotate_point((10, 0), (0, 0), 90) == (0.0, 10.0)
    assert rotate_point((0, 0), (0, 5), 180) == (0.0, 10.0)


def test_steps_for_tolerance_matches_chord_error() -> None:
    assert steps_for_tolerance(10, 0.005, 360) == 99
    # half the sweep, half the chords (rounded)
    assert steps_for_tolerance(10, 0.005, 180) == 50


@pytest.mark.parametrize(
    ("radius", "error", "angle", "expected"),
    [
        (10, 100, 360, 8),
        (10, 100, 10, 2),
        (0, 0.01, 360, 2),
        (-3, 0.01, 90, 2),
    ],
)
def test_steps_for_tolerance_limits(radius, error, angle, expected) -> None:
    assert steps_for_tolerance(radius, error, angle) == expected


def test_steps_for_tolerance_uses_fallback_error() -> None:
    assert steps_for_tolerance(10, 0, 360, fallback_error=0.005) == steps_for_tolerance(10, 0.005, 360)


def test_arc_points_skip_start_and_end_on_sweep() -> None:
    points = arc_points((10, 0), (0, 0), 90, 4)
    assert len(points) == 4
    assert (10, 0) not in points
    assert points[-1] == (0.0, 10.0)
    for x, y in points:
        assert math.hypot(x, y) == pytest.approx(10, abs=1e-6)


def test_circle_ring_starts_at_angle_zero() -> None:
    ring = circle_ring((5, 5), 2, 8)
    assert len(ring) == 8
    assert ring[0] == (7.0, 5.0)
    assert ring[2] == (5.0, 7.0)


def test_bezier_keeps_exact_end_points() -> None:
    points = bezier_points((0, 0), (3, 5), (7, 5), (10, 0), 0.01)
    assert points[0] == (0.0, 0.0)
    assert points[-1] == (10.0, 0.0)
    assert len(points) > 3
    assert max(y for _, y in points) == pytest.approx(3.75, abs=0.05)


def test_degenerate_bezier_is_a_line() -> None:
    assert bezier_points((0, 0), (0, 0), (4, 4), (4, 4), 0.01) == [(0.0, 0.0), (4.0, 4.0)]


def test_curve_flattening_is_cached_and_invalidated() -> None:
    curve = Curve(start=(0, 0), c1=(3, 5), c2=(7, 5), end=(10, 0))
    first = curve.flattened(0.01)
    assert curve.flattened(0.01) == first
    curve.c1 = (3, -5)
    moved = curve.flattened(0.01)
    assert moved != first
    assert min(y for _, y in moved) < 0


def test_polygon_placement_rotates_then_offsets() -> None:
    poly = Polygon(
        [(0, 0), (10, 0), (10, 5), (0, 5)],
        placement=Placement(offset=(100, 0), rotation=90),
    )
    assert poly.transformed_points() == [(100.0, 0.0), (100.0, 10.0), (95.0, 10.0), (95.0, 0.0)]


def test_steps_for_tolerance_rounds_half_away_from_zero() -> None:
    # 112.5 / 45 = 2.5 chords
    assert steps_for_tolerance(10, 100, 112.5) == 3
    assert steps_for_tolerance(10, 100, -112.5) == 3
