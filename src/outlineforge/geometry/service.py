"""Gerber item source: load outline/copper layers into outline primitives (mm)."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Iterable

from gerber import load_layer
from gerber import primitives as gprim

from ..config import OutlineConfig
from .boundary import BoardItems
from .flatten import DEFAULT_DIGITS, arc_points, snap_point, steps_for_tolerance
from .gerber_compat import pcb_tools_compat
from .primitives import Arc, Circle, Polygon, Primitive, Rectangle, Segment

logger = logging.getLogger(__name__)

Point2D = tuple[float, float]


class GerberItemSource:
    def __init__(self, config: OutlineConfig) -> None:
        self._config = config

    def load(self, outline_path: Path, copper_paths: Iterable[Path] = ()) -> BoardItems:
        layer = self._load_layer(outline_path, "outline")
        scale = self._unit_scale(layer.cam_source.units)
        items = self.primitives_from_gerber(layer.primitives, scale)
        logger.info("Outline primitives: %s -> %s", len(layer.primitives), len(items))
        copper = []
        extents = []
        for path in copper_paths:
            copper_layer = self._load_layer(path, "copper")
            copper_scale = self._unit_scale(copper_layer.cam_source.units)
            for prim in copper_layer.primitives:
                region = self._copper_region(prim, copper_scale)
                if region is not None:
                    copper.append(region)
                    extents.append((region[0][0], region[0][1], region[2][0], region[2][1]))
        if copper:
            logger.info("Copper regions: %s", len(copper))
        return BoardItems(
            items=items,
            copper=copper,
            extents=extents,
            chord_error=self._config.arc_max_chord_error,
        )

    def primitives_from_gerber(self, primitives, scale: float = 1.0) -> list[Primitive]:
        result: list[Primitive] = []
        for prim in primitives:
            converted = self._convert_primitive(prim, scale)
            if converted is None:
                logger.debug("Skipping unsupported outline primitive: %s", type(prim).__name__)
                continue
            result.append(converted)
        return result

    def _convert_primitive(self, prim, scale: float) -> Primitive | None:
        layer = self._config.edge_layer
        digits = self._config.coordinate_digits
        if isinstance(prim, gprim.Line):
            return Segment(_scaled(prim.start, scale, digits), _scaled(prim.end, scale, digits), layer=layer)
        if isinstance(prim, gprim.Arc):
            return Arc(
                _scaled(prim.center, scale, digits),
                _scaled(prim.start, scale, digits),
                _arc_sweep_degrees(prim),
                layer=layer,
            )
        if isinstance(prim, gprim.Circle):
            return Circle(_scaled(prim.position, scale, digits), float(prim.radius) * scale, layer=layer)
        if isinstance(prim, gprim.Rectangle):
            if getattr(prim, "rotation", 0):
                return Polygon([_scaled(pt, scale, digits) for pt in prim.vertices], layer=layer)
            x, y = _scaled(prim.position, scale, digits)
            half_w = float(prim.width) * scale / 2.0
            half_h = float(prim.height) * scale / 2.0
            return Rectangle(
                snap_point((x - half_w, y - half_h), digits),
                snap_point((x + half_w, y + half_h), digits),
                layer=layer,
            )
        if isinstance(prim, gprim.Region):
            points = _region_points(prim, scale, self._config.arc_max_chord_error, digits)
            if len(points) >= 3:
                return Polygon(points, layer=layer)
        return None

    @staticmethod
    def _copper_region(prim, scale: float) -> list[Point2D] | None:
        # 铜皮区域用原语包围盒近似
        try:
            (min_x, max_x), (min_y, max_y) = prim.bounding_box
        except Exception as exc:
            logger.debug("Copper primitive without bounds skipped: %s", exc)
            return None
        if max_x <= min_x or max_y <= min_y:
            return None
        return [
            (min_x * scale, min_y * scale),
            (max_x * scale, min_y * scale),
            (max_x * scale, max_y * scale),
            (min_x * scale, max_y * scale),
        ]

    @staticmethod
    def _unit_scale(units: str) -> float:
        return 25.4 if units == "inch" else 1.0

    @staticmethod
    def _load_layer(path: Path, label: str):
        if not path.exists():
            raise FileNotFoundError(f"{label} layer not found: {path}")
        logger.info("Loading %s layer: %s", label, path.name)
        with pcb_tools_compat():
            layer = load_layer(str(path))
        logger.info("Units: %s, primitives: %s", layer.cam_source.units, len(layer.primitives))
        return layer


def _scaled(point, scale: float, digits: int = DEFAULT_DIGITS) -> Point2D:
    # 英寸换算后的浮点误差在这里消掉，端点才能精确相等
    return snap_point((float(point[0]) * scale, float(point[1]) * scale), digits)


def _arc_sweep_degrees(arc) -> float:
    # 逆时针为正，顺时针为负；起止角相同视为整圆
    start = float(arc.start_angle)
    end = float(arc.end_angle)
    if arc.direction == "counterclockwise":
        if end <= start:
            end += 2 * math.pi
        return math.degrees(end - start)
    if end >= start:
        end -= 2 * math.pi
    return math.degrees(end - start)


def _region_points(region, scale: float, chord_error: float, digits: int = DEFAULT_DIGITS) -> list[Point2D]:
    # Region 由线段/圆弧闭合而成，圆弧离散后拼成点序列
    points: list[Point2D] = []
    for prim in region.primitives:
        if isinstance(prim, gprim.Line):
            if not points:
                points.append(_scaled(prim.start, scale, digits))
            points.append(_scaled(prim.end, scale, digits))
        elif isinstance(prim, gprim.Arc):
            start = _scaled(prim.start, scale, digits)
            center = _scaled(prim.center, scale, digits)
            angle = _arc_sweep_degrees(prim)
            if not points:
                points.append(start)
            steps = steps_for_tolerance(float(prim.radius) * scale, chord_error, angle)
            arc_run = arc_points(start, center, angle, steps, digits)
            # 终点用文件里的坐标，和下一段精确衔接
            arc_run[-1] = _scaled(prim.end, scale, digits)
            points.extend(arc_run)
    if len(points) > 1 and points[0] == points[-1]:
        points.pop()
    return points
