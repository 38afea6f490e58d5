"""Endpoint proximity tests and the nearest-primitive search used while chaining."""

from __future__ import annotations

from .flatten import DEFAULT_DIGITS, rotate_point, snap_point
from .primitives import Arc, Primitive

Point2D = tuple[float, float]


def manhattan_distance(p: Point2D, q: Point2D) -> float:
    # 只用于相对排序，不需要欧氏距离
    return abs(p[0] - q[0]) + abs(p[1] - q[1])


def close_enough(p: Point2D, q: Point2D, tol: float) -> bool:
    return manhattan_distance(p, q) <= tol


def closer_endpoint(reference: Point2D, a: Point2D, b: Point2D) -> bool:
    """True when ``a`` is at least as close to ``reference`` as ``b``."""
    return manhattan_distance(reference, a) <= manhattan_distance(reference, b)


def endpoints(prim: Primitive, digits: int = DEFAULT_DIGITS) -> tuple[Point2D, Point2D]:
    """Start and end of ``prim`` at fixed precision, so matching endpoints compare equal."""
    start = snap_point(prim.start, digits)
    if isinstance(prim, Arc):
        return start, rotate_point(prim.start, prim.center, prim.angle, digits)
    return start, snap_point(prim.end, digits)


def find_nearest_primitive(
    point: Point2D,
    pool: list[Primitive],
    tol: float,
    digits: int = DEFAULT_DIGITS,
) -> Primitive | None:
    """Remove and return the pool primitive with an endpoint nearest ``point``.

    An exact endpoint match wins immediately (first in pool order). Otherwise
    the closest candidate is taken only when it lies within ``tol``; the pool
    is left untouched when nothing qualifies.
    """
    min_dist = None
    min_idx = -1
    for idx, prim in enumerate(pool):
        start, end = endpoints(prim, digits)
        if point == start or point == end:
            return pool.pop(idx)
        for candidate in (start, end):
            dist = manhattan_distance(point, candidate)
            if min_dist is None or dist < min_dist:
                min_dist = dist
                min_idx = idx
    if min_dist is not None and min_dist <= tol:
        return pool.pop(min_idx)
    return None
