"""Curve flattening helpers: arcs, circles and cubic Bezier curves to point runs."""

from __future__ import annotations

import math

Point2D = tuple[float, float]

DEFAULT_DIGITS = 6
MIN_SEGCOUNT_FOR_CIRCLE = 8
MAX_BEZIER_SEGMENTS = 200


def snap_point(point: Point2D, digits: int = DEFAULT_DIGITS) -> Point2D:
    # 固定精度，保证点的相等比较是精确的
    x = round(float(point[0]), digits)
    y = round(float(point[1]), digits)
    # avoid -0.0 leaking into exact comparisons
    return (x + 0.0, y + 0.0)


def rotate_point(point: Point2D, center: Point2D, angle_deg: float, digits: int = DEFAULT_DIGITS) -> Point2D:
    """Rotate ``point`` counterclockwise about ``center`` by ``angle_deg`` degrees."""
    angle = math.radians(angle_deg)
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    dx = point[0] - center[0]
    dy = point[1] - center[1]
    return snap_point(
        (center[0] + dx * cos_a - dy * sin_a, center[1] + dx * sin_a + dy * cos_a),
        digits,
    )


def steps_for_tolerance(radius: float, error: float, angle_deg: float, fallback_error: float = 0.005) -> int:
    """Number of chords needed so an arc of ``angle_deg`` stays within ``error``.

    The angular increment is capped so a full circle never gets fewer than
    eight chords, and the result is never below two.
    """
    if radius <= 0:
        return 2
    if error <= 0:
        error = fallback_error
    rel_error = min(error / radius, 2.0)
    arc_increment = math.degrees(math.acos(1.0 - rel_error) * 2)
    arc_increment = min(360.0 / MIN_SEGCOUNT_FOR_CIRCLE, arc_increment)
    if arc_increment <= 0:
        return 2
    # 半数向上取整（远离零），不用 round 的银行家舍入
    seg_count = int(math.floor(abs(angle_deg) / arc_increment + 0.5))
    return max(seg_count, 2)


def arc_points(
    start: Point2D,
    center: Point2D,
    angle_deg: float,
    steps: int,
    digits: int = DEFAULT_DIGITS,
) -> list[Point2D]:
    # 起点不输出，从第 1 步到第 steps 步
    return [rotate_point(start, center, angle_deg * step / steps, digits) for step in range(1, steps + 1)]


def circle_ring(center: Point2D, radius: float, steps: int, digits: int = DEFAULT_DIGITS) -> list[Point2D]:
    start = (center[0] + radius, center[1])
    return [rotate_point(start, center, 360.0 * step / steps, digits) for step in range(steps)]


def bezier_segment_count(p0: Point2D, p1: Point2D, p2: Point2D, p3: Point2D, error: float) -> int:
    # Wang's bound for a cubic: n >= sqrt(3/4 * max|second difference| / error)
    ddx = max(abs(p0[0] - 2 * p1[0] + p2[0]), abs(p1[0] - 2 * p2[0] + p3[0]))
    ddy = max(abs(p0[1] - 2 * p1[1] + p2[1]), abs(p1[1] - 2 * p2[1] + p3[1]))
    bound = math.hypot(ddx, ddy)
    if bound == 0 or error <= 0:
        return 1
    count = int(math.ceil(math.sqrt(0.75 * bound / error)))
    return max(1, min(count, MAX_BEZIER_SEGMENTS))


def bezier_points(
    p0: Point2D,
    p1: Point2D,
    p2: Point2D,
    p3: Point2D,
    error: float,
    digits: int = DEFAULT_DIGITS,
) -> list[Point2D]:
    """Sample a cubic Bezier within ``error``; both end points are kept (snapped) so chains match."""
    start = snap_point(p0, digits)
    end = snap_point(p3, digits)
    # 退化曲线（直线）不需要中间点
    if p0 == p1 and p2 == p3:
        return [start, end]
    count = bezier_segment_count(p0, p1, p2, p3, error)
    points = [start]
    for idx in range(1, count):
        t = idx / count
        mt = 1.0 - t
        a = mt * mt * mt
        b = 3 * mt * mt * t
        c = 3 * mt * t * t
        d = t * t * t
        point = snap_point(
            (
                a * p0[0] + b * p1[0] + c * p2[0] + d * p3[0],
                a * p0[1] + b * p1[1] + c * p2[1] + d * p3[1],
            ),
            digits,
        )
        if point != points[-1]:
            points.append(point)
    if end != points[-1]:
        points.append(end)
    return points
