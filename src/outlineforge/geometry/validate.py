"""Sanity scan of a finished polygon set: duplicate edges and crossing edges."""

from __future__ import annotations

import logging

from shapely.geometry import LineString
from shapely.strtree import STRtree

from .flatten import DEFAULT_DIGITS, snap_point
from .polyset import OutlineError, OutlineErrorKind, PolySet

logger = logging.getLogger(__name__)

Point2D = tuple[float, float]
Segment2D = tuple[Point2D, Point2D]


def segment_intersection(seg1: Segment2D, seg2: Segment2D) -> Point2D | None:
    """Crossing point of two segments, ignoring parallel overlaps and shared end points."""
    (ax, ay), (bx, by) = seg1
    (cx, cy), (dx, dy) = seg2
    if seg1[0] in seg2 or seg1[1] in seg2:
        return None
    ex, ey = bx - ax, by - ay
    fx, fy = dx - cx, dy - cy
    acx, acy = cx - ax, cy - ay
    den = fx * ey - fy * ex
    if den == 0:
        return None
    p = fx * acy - fy * acx
    q = ex * acy - ey * acx
    if den > 0 and (q < 0 or q > den or p < 0 or p > den):
        return None
    if den < 0 and (q < den or p < den or p > 0 or q > 0):
        return None
    if (q == 0 or q == den) and (p == 0 or p == den):
        return None
    return (cx + q * fx / den, cy + q * fy / den)


def _collect_segments(polys: PolySet) -> list[Segment2D]:
    segments = []
    for contour in polys.contours():
        for seg in contour.segments():
            if seg[0] == seg[1]:
                continue
            segments.append(seg)
    return segments


def find_outline_defect(polys: PolySet, digits: int = DEFAULT_DIGITS) -> OutlineError | None:
    """Return the first overlapping or crossing edge pair, in segment order."""
    segments = _collect_segments(polys)
    if len(segments) < 2:
        return None
    # 用 STRtree 做包围盒预筛，顺序仍按线段序号
    lines = [LineString(seg) for seg in segments]
    tree = STRtree(lines)
    for i, seg1 in enumerate(segments):
        candidates = sorted(int(j) for j in tree.query(lines[i]) if j > i)
        for j in candidates:
            seg2 = segments[j]
            if seg1 == seg2 or (seg1[0] == seg2[1] and seg1[1] == seg2[0]):
                logger.warning("Outline edge overlaps another edge at %s", seg1[0])
                return OutlineError(
                    OutlineErrorKind.OVERLAPPING_EDGE,
                    "Overlapping outline edges at (%s, %s)." % seg1[0],
                    seg1[0],
                )
            point = segment_intersection(seg1, seg2)
            if point is not None:
                point = snap_point(point, digits)
                logger.warning("Outline edges cross at %s", point)
                return OutlineError(
                    OutlineErrorKind.SELF_INTERSECTION,
                    "Self-intersecting outline at (%s, %s)." % point,
                    point,
                )
    return None
