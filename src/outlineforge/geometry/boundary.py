"""Board and part boundaries built from outline-layer graphics, with a bounding-box fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Protocol

from shapely.geometry import LineString
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.ops import split, unary_union

from ..config import OutlineConfig
from .flatten import arc_points, steps_for_tolerance
from .outline import OutlineConverter
from .polyset import OutlineError, OutlineErrorKind, OutlineResult, PolySet
from .primitives import Arc, Circle, Curve, Polygon, Primitive, Rectangle, on_layer

logger = logging.getLogger(__name__)

Point2D = tuple[float, float]
BBox = tuple[float, float, float, float]


class ItemSource(Protocol):
    def primitives(self) -> Iterable[Primitive]: ...

    def edges_bounding_box(self, layer: str) -> BBox | None: ...

    def bounding_box(self) -> BBox | None: ...

    def copper_regions(self) -> list[list[Point2D]]: ...


@dataclass
class BoardItems:
    """In-memory item source: graphics, copper regions and extra item extents.

    ``chord_error`` bounds how far arc extents may fall inside the true arc.
    """

    items: list[Primitive] = field(default_factory=list)
    copper: list[list[Point2D]] = field(default_factory=list)
    extents: list[BBox] = field(default_factory=list)
    chord_error: float = 0.005

    def primitives(self) -> list[Primitive]:
        return list(self.items)

    def edges_bounding_box(self, layer: str) -> BBox | None:
        points = []
        for prim in on_layer(self.items, layer):
            points.extend(primitive_extent_points(prim, self.chord_error))
        return _points_bbox(points)

    def bounding_box(self) -> BBox | None:
        points = []
        for prim in self.items:
            points.extend(primitive_extent_points(prim, self.chord_error))
        for region in self.copper:
            points.extend(region)
        for min_x, min_y, max_x, max_y in self.extents:
            points.extend([(min_x, min_y), (max_x, max_y)])
        return _points_bbox(points)

    def copper_regions(self) -> list[list[Point2D]]:
        return [list(region) for region in self.copper]


def primitive_extent_points(prim: Primitive, chord_error: float = 0.005) -> list[Point2D]:
    if isinstance(prim, Circle):
        if prim.radius <= 0:
            return [prim.center]
        cx, cy = prim.center
        r = prim.radius
        return [(cx - r, cy - r), (cx + r, cy + r)]
    if isinstance(prim, Arc):
        steps = steps_for_tolerance(prim.radius, chord_error, prim.angle)
        return [prim.start] + arc_points(prim.start, prim.center, prim.angle, steps)
    if isinstance(prim, Rectangle):
        return prim.corners()
    if isinstance(prim, Curve):
        return [prim.start, prim.c1, prim.c2, prim.end]
    if isinstance(prim, Polygon):
        return prim.transformed_points()
    return [prim.start, prim.end]


def _points_bbox(points: list[Point2D]) -> BBox | None:
    if not points:
        return None
    xs = [pt[0] for pt in points]
    ys = [pt[1] for pt in points]
    return (min(xs), min(ys), max(xs), max(ys))


def _is_degenerate(bbox: BBox | None) -> bool:
    if bbox is None:
        return True
    min_x, min_y, max_x, max_y = bbox
    return max_x - min_x == 0 or max_y - min_y == 0


def fallback_bbox(items: ItemSource, config: OutlineConfig, edges_first: bool = True) -> BBox:
    bbox = items.edges_bounding_box(config.edge_layer) if edges_first else None
    # 面积为零时改用全部元素的包围盒
    if _is_degenerate(bbox):
        bbox = items.bounding_box()
    if _is_degenerate(bbox):
        margin = config.min_board_margin
        if bbox is None:
            bbox = (0.0, 0.0, 0.0, 0.0)
        min_x, min_y, max_x, max_y = bbox
        bbox = (min_x - margin, min_y - margin, max_x + margin, max_y + margin)
        logger.debug("Bounding box inflated by %s", margin)
    return bbox


def _bbox_points(bbox: BBox) -> list[Point2D]:
    min_x, min_y, max_x, max_y = bbox
    return [(min_x, min_y), (min_x, max_y), (max_x, max_y), (max_x, min_y)]


def bounding_box_polyset(items: ItemSource, config: OutlineConfig | None = None, edges_first: bool = True) -> PolySet:
    """Single rectangular outline: origin, (origin.x, end.y), end, (end.x, origin.y)."""
    config = config or OutlineConfig.from_dict({})
    polys = PolySet()
    polys.add_outline(_bbox_points(fallback_bbox(items, config, edges_first)))
    return polys


def _convert_edges(items: ItemSource, tolerance: float, config: OutlineConfig) -> OutlineResult:
    edges = on_layer(items.primitives(), config.edge_layer)
    if not edges:
        logger.warning("No edges found on %s", config.edge_layer)
        return OutlineResult(
            PolySet(),
            False,
            OutlineError(OutlineErrorKind.NO_EDGES, "No edges found on %s layer." % config.edge_layer),
        )
    logger.info("Outline edges: %s", len(edges))
    return OutlineConverter(config, tolerance).convert(edges)


def build_board_boundary(items: ItemSource, tolerance: float, config: OutlineConfig | None = None) -> OutlineResult:
    """Board outline with holes; a bounding rectangle replaces anything unusable."""
    config = config or OutlineConfig.from_dict({})
    result = _convert_edges(items, tolerance, config)
    if not result.complete or result.error is not None or not result.polygons.outline_count:
        logger.warning("Outline fallback: bounding box")
        return OutlineResult(bounding_box_polyset(items, config), result.complete, result.error)
    return result


def build_part_boundary(items: ItemSource, tolerance: float, config: OutlineConfig | None = None) -> OutlineResult:
    """Boundary of a single part.

    A closed outline that leaves copper outside is treated as a cutout of the
    part's bounding rectangle. An unclosed outline is joined onto the
    rectangle and the side holding the copper is kept.
    """
    config = config or OutlineConfig.from_dict({})
    result = _convert_edges(items, tolerance, config)
    copper = [ShapelyPolygon(region) for region in items.copper_regions() if len(region) >= 3]
    converted = result.polygons

    if result.complete and result.error is None and converted.outline_count:
        if is_copper_outside(copper, converted):
            logger.info("Copper outside the closed outline, treating it as a hole")
            polys = bounding_box_polyset(items, config, edges_first=False)
            for contour in converted.contours():
                polys.add_hole(contour.points)
            return OutlineResult(polys, result.complete, result.error)
        return result

    if not converted.outline_count:
        return OutlineResult(bounding_box_polyset(items, config, edges_first=False), result.complete, result.error)

    bbox = fallback_bbox(items, config, edges_first=False)
    polys = close_against_bbox(converted, bbox, copper)
    return OutlineResult(polys, result.complete, result.error)


def is_copper_outside(copper: list[ShapelyPolygon], polys: PolySet) -> bool:
    if not copper:
        return False
    shape = polys.to_shapely()
    if not shape.is_valid:
        shape = shape.buffer(0)
    for region in copper:
        if not shape.covers(region):
            logger.debug("Copper region outside outline: %s", region.bounds)
            return True
    return False


def _project_outward(point: Point2D, bbox: BBox) -> Point2D:
    # 投影到最近的包围盒边，并稍微推出边外，保证切割线穿过矩形
    min_x, min_y, max_x, max_y = bbox
    x = min(max(point[0], min_x), max_x)
    y = min(max(point[1], min_y), max_y)
    pad = max(max_x - min_x, max_y - min_y) * 1e-3 or 1e-3
    sides = [
        (abs(x - min_x), (min_x - pad, y)),
        (abs(max_x - x), (max_x + pad, y)),
        (abs(y - min_y), (x, min_y - pad)),
        (abs(max_y - y), (x, max_y + pad)),
    ]
    return min(sides, key=lambda item: item[0])[1]


def close_against_bbox(polys: PolySet, bbox: BBox, copper: list[ShapelyPolygon]) -> PolySet:
    """Close every open contour against ``bbox`` and keep the copper-bearing side."""
    region = ShapelyPolygon(_bbox_points(bbox))
    closed = []
    for contour in polys.contours():
        if contour.closed:
            if len(contour) >= 3:
                closed.append(ShapelyPolygon(contour.points))
            continue
        if len(contour) < 2:
            continue
        pts = contour.points
        cutter = LineString([_project_outward(pts[0], bbox), *pts, _project_outward(pts[-1], bbox)])
        try:
            pieces = [p for p in split(region, cutter).geoms if p.geom_type == "Polygon" and p.area > 0]
        except Exception as exc:
            logger.warning("Open outline split failed: %s", exc)
            continue
        if len(pieces) < 2:
            continue
        keep = [p for p in pieces if any(p.intersects(c) for c in copper)]
        if not keep:
            keep = [max(pieces, key=lambda p: p.area)]
        region = unary_union(keep)
        logger.info("Open outline closed against bounding box: pieces=%s kept=%s", len(pieces), len(keep))
    for poly in closed:
        if not poly.is_valid:
            poly = poly.buffer(0)
        if region.contains(poly) and not any(poly.intersects(c) for c in copper):
            region = region.difference(poly)
    return PolySet.from_shapely(region)
