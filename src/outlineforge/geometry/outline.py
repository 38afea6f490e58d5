"""板框重建：把离散的线段/圆弧/曲线按端点拼接成带孔多边形。"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable

from ..config import OutlineConfig
from .flatten import arc_points, circle_ring, snap_point, steps_for_tolerance
from .polyset import Contour, OutlineError, OutlineErrorKind, OutlineResult, PolySet
from .primitives import Arc, Circle, Curve, Polygon, Primitive, Rectangle, Segment, is_closed_shape
from .proximity import close_enough, closer_endpoint, endpoints, find_nearest_primitive
from .validate import find_outline_defect

logger = logging.getLogger(__name__)

Point2D = tuple[float, float]


class OutlineConverter:
    """Chains outline-layer primitives into one outer boundary plus holes.

    The primitive holding the leftmost point seeds the outer boundary; every
    primitive left over afterwards seeds a hole. Failures are reported in the
    returned ``OutlineResult`` rather than raised.
    """

    def __init__(self, config: OutlineConfig | None = None, tolerance: float | None = None) -> None:
        self._config = config or OutlineConfig.from_dict({})
        self._tolerance = float(self._config.tolerance if tolerance is None else tolerance)
        self._digits = self._config.coordinate_digits
        if self._tolerance > 0:
            self._chord_error = self._tolerance
        else:
            self._chord_error = self._config.arc_max_chord_error
        self.debug: Dict[str, Any] = {}

    @property
    def tolerance(self) -> float:
        return self._tolerance

    def convert(self, primitives: Iterable[Primitive]) -> OutlineResult:
        # 工作副本：拼接过程中会逐个移除
        pool = list(primitives)
        polys = PolySet()
        self.debug = {"primitive_count": len(pool), "tolerance": self._tolerance}
        if not pool:
            return OutlineResult(polys, True)

        complete = True
        first_error: OutlineError | None = None

        start_idx = self.find_leftmost(pool)
        prim = pool.pop(start_idx)
        logger.debug("Outline start primitive: %s at %s", prim.kind.value, prim.position)
        if is_closed_shape(prim):
            self._emit_closed_shape(prim, polys, as_hole=False)
        else:
            contour = polys.new_outline()
            error = self._walk_chain(prim, pool, contour)
            if error is not None:
                if error.kind == OutlineErrorKind.UNSUPPORTED_PRIMITIVE:
                    return OutlineResult(polys, False, error)
                complete = False
                first_error = error

        while pool:
            prim = pool.pop(0)
            if is_closed_shape(prim):
                self._emit_closed_shape(prim, polys, as_hole=True)
                continue
            contour = polys.new_hole() if polys.outline_count else polys.new_outline()
            error = self._walk_chain(prim, pool, contour)
            if error is None:
                continue
            if error.kind == OutlineErrorKind.UNSUPPORTED_PRIMITIVE:
                return OutlineResult(polys, False, error)
            complete = False
            if first_error is None:
                first_error = error

        self.debug["outline_count"] = polys.outline_count
        self.debug["hole_count"] = sum(len(outline.holes) for outline in polys.outlines)
        logger.info(
            "Outline converted: outlines=%s holes=%s complete=%s",
            self.debug["outline_count"],
            self.debug["hole_count"],
            complete,
        )

        if self._config.validate_result:
            defect = find_outline_defect(polys, self._digits)
            if defect is not None:
                return OutlineResult(polys, False, defect)
        return OutlineResult(polys, complete, first_error)

    def find_leftmost(self, pool: list[Primitive]) -> int:
        """Index of the primitive owning the point with the smallest x (first wins on ties)."""
        xmin = None
        xmin_idx = 0
        for idx, prim in enumerate(pool):
            for x in self._candidate_xs(prim):
                if xmin is None or x < xmin:
                    xmin = x
                    xmin_idx = idx
        return xmin_idx

    def _candidate_xs(self, prim: Primitive) -> list[float]:
        if isinstance(prim, Segment):
            return [prim.start[0], prim.end[0]]
        if isinstance(prim, Rectangle):
            return [pt[0] for pt in prim.corners()]
        if isinstance(prim, Arc):
            steps = self._arc_steps(prim.radius, prim.angle)
            return [pt[0] for pt in arc_points(prim.start, prim.center, prim.angle, steps, self._digits)]
        if isinstance(prim, Circle):
            # 半径 <= 0 的圆是畸形的，跳过
            if prim.radius <= 0:
                logger.debug("Skipping degenerate circle at %s", prim.center)
                return []
            return [prim.center[0] - prim.radius]
        if isinstance(prim, Curve):
            return [pt[0] for pt in prim.flattened(self._chord_error, self._digits)]
        if isinstance(prim, Polygon):
            return [pt[0] for pt in prim.transformed_points(self._digits)]
        return []

    def _arc_steps(self, radius: float, angle: float) -> int:
        return steps_for_tolerance(radius, self._chord_error, angle, self._config.arc_max_chord_error)

    def _emit_closed_shape(self, prim: Primitive, polys: PolySet, as_hole: bool) -> None:
        if isinstance(prim, Circle):
            if prim.radius <= 0:
                logger.debug("Skipping degenerate circle at %s", prim.center)
                return
            steps = self._arc_steps(prim.radius, 360.0)
            points = circle_ring(prim.center, prim.radius, steps, self._digits)
            holes: list[list[Point2D]] = []
        elif isinstance(prim, Rectangle):
            points = [snap_point(pt, self._digits) for pt in prim.corners()]
            holes = []
        else:
            points = prim.transformed_points(self._digits)
            holes = prim.transformed_holes(self._digits)
        if as_hole and polys.outline_count:
            polys.add_hole(points)
            return
        polys.add_outline(points)
        for hole in holes:
            polys.add_hole(hole)

    def _walk_chain(self, prim: Primitive, pool: list[Primitive], contour: Contour) -> OutlineError | None:
        tol = self._tolerance
        # 起点任取一端（远端），另一端留到最后闭合时匹配
        start_pt = endpoints(prim, self._digits)[1]
        prev_pt = start_pt
        contour.append(start_pt)

        while True:
            if isinstance(prim, Segment):
                # 取离 prev_pt 较远的端点，另一端视为与 prev_pt 重合
                pstart, pend = endpoints(prim, self._digits)
                next_pt = pend if closer_endpoint(prev_pt, pstart, pend) else pstart
                contour.append(next_pt)
                prev_pt = next_pt
            elif isinstance(prim, Arc):
                pstart, pend = endpoints(prim, self._digits)
                angle = prim.angle
                steps = self._arc_steps(prim.radius, angle)
                if not closer_endpoint(prev_pt, pstart, pend):
                    angle = -angle
                    pstart, pend = pend, pstart
                points = arc_points(pstart, prim.center, angle, steps, self._digits)
                points[-1] = pend
                contour.extend(points)
                prev_pt = points[-1]
            elif isinstance(prim, Curve):
                points = prim.flattened(self._chord_error, self._digits)
                pstart, pend = endpoints(prim, self._digits)
                if not closer_endpoint(prev_pt, pstart, pend):
                    points.reverse()
                contour.extend(points)
                prev_pt = points[-1]
            else:
                logger.warning("Unsupported %s inside an outline chain at %s", prim.kind.value, prim.position)
                return OutlineError(
                    OutlineErrorKind.UNSUPPORTED_PRIMITIVE,
                    "Unsupported outline item type %s." % prim.kind.value,
                    prim.position,
                )

            prim = find_nearest_primitive(prev_pt, pool, tol, self._digits)
            if prim is not None:
                continue

            if close_enough(start_pt, prev_pt, tol):
                # 闭合是隐式的，末点与起点重合时去掉
                if len(contour.points) > 1 and contour.points[-1] == contour.points[0]:
                    contour.points.pop()
                return None

            contour.closed = False
            logger.warning("Unable to find edge with an endpoint of %s", prev_pt)
            return OutlineError(
                OutlineErrorKind.UNCLOSED_CHAIN,
                "Unable to find edge with an endpoint of (%s, %s)." % prev_pt,
                prev_pt,
            )


def convert_outline_to_polygon(
    primitives: Iterable[Primitive],
    tolerance: float,
    config: OutlineConfig | None = None,
) -> OutlineResult:
    return OutlineConverter(config, tolerance).convert(primitives)
