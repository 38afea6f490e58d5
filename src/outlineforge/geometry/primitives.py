"""Graphic primitives found on an outline layer."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union

from .flatten import DEFAULT_DIGITS, bezier_points, rotate_point, snap_point

Point2D = tuple[float, float]

EDGE_LAYER = "Edge.Cuts"


class PrimitiveKind(str, Enum):
    SEGMENT = "segment"
    ARC = "arc"
    CIRCLE = "circle"
    RECTANGLE = "rectangle"
    CURVE = "curve"
    POLYGON = "polygon"


@dataclass(frozen=True)
class Placement:
    """Position and rotation of a parent part, applied to embedded polygons."""

    offset: Point2D = (0.0, 0.0)
    rotation: float = 0.0

    def apply(self, point: Point2D, digits: int = DEFAULT_DIGITS) -> Point2D:
        # 先绕原点旋转，再平移
        if self.rotation:
            point = rotate_point(point, (0.0, 0.0), self.rotation, digits)
        return snap_point((point[0] + self.offset[0], point[1] + self.offset[1]), digits)


@dataclass
class Segment:
    start: Point2D
    end: Point2D
    layer: str = EDGE_LAYER
    width: float = 0.0

    kind: ClassVar[PrimitiveKind] = PrimitiveKind.SEGMENT

    @property
    def position(self) -> Point2D:
        return self.start


@dataclass
class Arc:
    """Circular arc swept ``angle`` degrees counterclockwise from ``start`` around ``center``."""

    center: Point2D
    start: Point2D
    angle: float
    layer: str = EDGE_LAYER
    width: float = 0.0

    kind: ClassVar[PrimitiveKind] = PrimitiveKind.ARC

    @property
    def end(self) -> Point2D:
        return rotate_point(self.start, self.center, self.angle)

    @property
    def radius(self) -> float:
        return math.hypot(self.start[0] - self.center[0], self.start[1] - self.center[1])

    @property
    def position(self) -> Point2D:
        return self.center


@dataclass
class Circle:
    center: Point2D
    radius: float
    layer: str = EDGE_LAYER
    width: float = 0.0

    kind: ClassVar[PrimitiveKind] = PrimitiveKind.CIRCLE

    @property
    def start(self) -> Point2D:
        return self.center

    @property
    def end(self) -> Point2D:
        return (self.center[0] + self.radius, self.center[1])

    @property
    def position(self) -> Point2D:
        return self.center


@dataclass
class Rectangle:
    start: Point2D
    end: Point2D
    layer: str = EDGE_LAYER
    width: float = 0.0

    kind: ClassVar[PrimitiveKind] = PrimitiveKind.RECTANGLE

    def corners(self) -> list[Point2D]:
        (x0, y0), (x1, y1) = self.start, self.end
        return [(x0, y0), (x1, y0), (x1, y1), (x0, y1)]

    @property
    def position(self) -> Point2D:
        return self.start


@dataclass
class Curve:
    """Cubic Bezier curve. The flattened polyline is cached per chord error."""

    start: Point2D
    c1: Point2D
    c2: Point2D
    end: Point2D
    layer: str = EDGE_LAYER
    width: float = 0.0

    kind: ClassVar[PrimitiveKind] = PrimitiveKind.CURVE

    _flat_cache: dict = field(default_factory=dict, init=False, repr=False, compare=False)

    def flattened(self, error: float, digits: int = DEFAULT_DIGITS) -> list[Point2D]:
        # 缓存键包含定义参数，参数变化后自动失效
        key = (error, digits, self.start, self.c1, self.c2, self.end)
        points = self._flat_cache.get(key)
        if points is None:
            self._flat_cache.clear()
            points = bezier_points(self.start, self.c1, self.c2, self.end, error, digits)
            self._flat_cache[key] = points
        return list(points)

    @property
    def position(self) -> Point2D:
        return self.start


@dataclass
class Polygon:
    points: list[Point2D]
    holes: list[list[Point2D]] = field(default_factory=list)
    placement: Placement | None = None
    layer: str = EDGE_LAYER
    width: float = 0.0

    kind: ClassVar[PrimitiveKind] = PrimitiveKind.POLYGON

    def transformed_points(self, digits: int = DEFAULT_DIGITS) -> list[Point2D]:
        if self.placement is None:
            return [snap_point(pt, digits) for pt in self.points]
        return [self.placement.apply(pt, digits) for pt in self.points]

    def transformed_holes(self, digits: int = DEFAULT_DIGITS) -> list[list[Point2D]]:
        if self.placement is None:
            return [[snap_point(pt, digits) for pt in hole] for hole in self.holes]
        return [[self.placement.apply(pt, digits) for pt in hole] for hole in self.holes]

    @property
    def start(self) -> Point2D:
        return self.position

    @property
    def end(self) -> Point2D:
        return self.position

    @property
    def position(self) -> Point2D:
        if self.placement is not None:
            return self.placement.offset
        if self.points:
            return self.points[0]
        return (0.0, 0.0)


Primitive = Union[Segment, Arc, Circle, Rectangle, Curve, Polygon]

CLOSED_KINDS = frozenset({PrimitiveKind.CIRCLE, PrimitiveKind.RECTANGLE, PrimitiveKind.POLYGON})


def is_closed_shape(prim: Primitive) -> bool:
    return prim.kind in CLOSED_KINDS


def on_layer(primitives, layer: str) -> list[Primitive]:
    return [prim for prim in primitives if prim.layer == layer]
