"""Polygon-with-holes container produced by the outline converter."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from shapely.geometry import MultiPolygon
from shapely.geometry import Polygon as ShapelyPolygon

Point2D = tuple[float, float]
Segment2D = tuple[Point2D, Point2D]


@dataclass
class Contour:
    """Implicitly closed point run. ``closed`` is False when chaining gave up early."""

    points: list[Point2D] = field(default_factory=list)
    closed: bool = True

    def append(self, point: Point2D) -> None:
        if self.points and self.points[-1] == point:
            return
        self.points.append(point)

    def extend(self, points) -> None:
        for point in points:
            self.append(point)

    def segments(self) -> list[Segment2D]:
        pts = self.points
        segs = [(pts[i], pts[i + 1]) for i in range(len(pts) - 1)]
        if self.closed and len(pts) > 2:
            segs.append((pts[-1], pts[0]))
        return segs

    def area(self) -> float:
        pts = self.points
        if len(pts) < 3:
            return 0.0
        total = 0.0
        for i, (x0, y0) in enumerate(pts):
            x1, y1 = pts[(i + 1) % len(pts)]
            total += x0 * y1 - x1 * y0
        return abs(total) / 2.0

    def __len__(self) -> int:
        return len(self.points)


@dataclass
class Outline:
    contour: Contour = field(default_factory=Contour)
    holes: list[Contour] = field(default_factory=list)


@dataclass
class PolySet:
    outlines: list[Outline] = field(default_factory=list)

    def new_outline(self) -> Contour:
        outline = Outline()
        self.outlines.append(outline)
        return outline.contour

    def new_hole(self, outline_idx: int = -1) -> Contour:
        hole = Contour()
        self.outlines[outline_idx].holes.append(hole)
        return hole

    def add_outline(self, points, closed: bool = True) -> Contour:
        contour = self.new_outline()
        contour.extend(points)
        contour.closed = closed
        return contour

    def add_hole(self, points, outline_idx: int = -1, closed: bool = True) -> Contour:
        contour = self.new_hole(outline_idx)
        contour.extend(points)
        contour.closed = closed
        return contour

    @property
    def outline_count(self) -> int:
        return len(self.outlines)

    def hole_count(self, outline_idx: int = 0) -> int:
        return len(self.outlines[outline_idx].holes)

    def contours(self) -> Iterator[Contour]:
        for outline in self.outlines:
            yield outline.contour
            yield from outline.holes

    @property
    def is_complete(self) -> bool:
        return all(contour.closed for contour in self.contours())

    def bounds(self) -> tuple[float, float, float, float] | None:
        xs = []
        ys = []
        for contour in self.contours():
            for x, y in contour.points:
                xs.append(x)
                ys.append(y)
        if not xs:
            return None
        return (min(xs), min(ys), max(xs), max(ys))

    @classmethod
    def from_shapely(cls, geom) -> "PolySet":
        polys = cls()
        if geom is None or geom.is_empty:
            return polys
        if geom.geom_type == "Polygon":
            parts = [geom]
        else:
            parts = [g for g in getattr(geom, "geoms", []) if g.geom_type == "Polygon"]
        for poly in parts:
            polys.add_outline(_ring_points(poly.exterior))
            for interior in poly.interiors:
                polys.add_hole(_ring_points(interior))
        return polys

    def to_shapely(self):
        # 不足三个点的轮廓无法构成面，直接忽略
        polygons = []
        for outline in self.outlines:
            if len(outline.contour) < 3:
                continue
            holes = [hole.points for hole in outline.holes if len(hole) >= 3]
            polygons.append(ShapelyPolygon(outline.contour.points, holes))
        if not polygons:
            return ShapelyPolygon()
        if len(polygons) == 1:
            return polygons[0]
        return MultiPolygon(polygons)


def _ring_points(ring) -> list[Point2D]:
    coords = [(float(x), float(y)) for x, y in ring.coords]
    if len(coords) > 1 and coords[0] == coords[-1]:
        coords = coords[:-1]
    return coords


class OutlineErrorKind(str, Enum):
    UNSUPPORTED_PRIMITIVE = "unsupported_primitive"
    UNCLOSED_CHAIN = "unclosed_chain"
    OVERLAPPING_EDGE = "overlapping_edge"
    SELF_INTERSECTION = "self_intersection"
    NO_EDGES = "no_edges"


@dataclass(frozen=True)
class OutlineError:
    kind: OutlineErrorKind
    message: str
    location: Point2D | None = None


@dataclass
class OutlineResult:
    polygons: PolySet
    complete: bool
    error: OutlineError | None = None

    @property
    def ok(self) -> bool:
        return self.complete and self.error is None
