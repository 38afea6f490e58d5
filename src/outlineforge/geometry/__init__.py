"""几何子模块导出集合。"""

from .boundary import BoardItems, bounding_box_polyset, build_board_boundary, build_part_boundary
from .outline import OutlineConverter, convert_outline_to_polygon
from .polyset import Contour, Outline, OutlineError, OutlineErrorKind, OutlineResult, PolySet
from .primitives import Arc, Circle, Curve, Placement, Polygon, PrimitiveKind, Rectangle, Segment

__all__ = [
    "Arc",
    "BoardItems",
    "Circle",
    "Contour",
    "Curve",
    "Outline",
    "OutlineConverter",
    "OutlineError",
    "OutlineErrorKind",
    "OutlineResult",
    "Placement",
    "PolySet",
    "Polygon",
    "PrimitiveKind",
    "Rectangle",
    "Segment",
    "bounding_box_polyset",
    "build_board_boundary",
    "build_part_boundary",
    "convert_outline_to_polygon",
]
