from __future__ import annotations

import builtins
import math
from pathlib import Path
from types import SimpleNamespace

import gerber.am_statements as am_statements
from gerber import primitives as gprim
import pytest

from outlineforge.config import OutlineConfig
from outlineforge.geometry import BoardItems, build_board_boundary
from outlineforge.geometry.primitives import Arc, Circle, Polygon, Rectangle, Segment
from outlineforge.geometry.service import GerberItemSource, _arc_sweep_degrees


class _DummyLayer:
    def __init__(self, primitives=None, units: str = "mm") -> None:
        self.cam_source = SimpleNamespace(units=units)
        self.primitives = list(primitives or [])


def _gerber_file(tmp_path: Path, name: str = "layer.gbr") -> Path:
    path = tmp_path / name
    path.write_text("G04 test*", encoding="utf-8")
    return path


def test_load_layer_accepts_legacy_rU_mode(monkeypatch, tmp_path: Path) -> None:
    gerber_file = _gerber_file(tmp_path)

    def fake_load_layer(path: str):
        with open(path, "rU", encoding="utf-8") as fp:
            _ = fp.read()
        return _DummyLayer()

    monkeypatch.setattr("outlineforge.geometry.service.load_layer", fake_load_layer)

    layer = GerberItemSource._load_layer(gerber_file, "outline")
    assert layer.cam_source.units == "mm"
    assert isinstance(layer.primitives, list)


def test_load_layer_accepts_unclosed_outline_primitive(monkeypatch, tmp_path: Path) -> None:
    gerber_file = _gerber_file(tmp_path)

    def fake_load_layer(path: str):
        _ = path
        prim = am_statements.AMOutlinePrimitive(
            4,
            "on",
            (0.0, 0.0),
            [(1.0, 0.0), (1.0, 1.0)],
            0.0,
        )
        return _DummyLayer([prim])

    monkeypatch.setattr("outlineforge.geometry.service.load_layer", fake_load_layer)
    layer = GerberItemSource._load_layer(gerber_file, "outline")
    assert len(layer.primitives) == 1


def test_load_layer_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="outline layer not found"):
        GerberItemSource._load_layer(tmp_path / "missing.gko", "outline")


def test_load_converts_outline_and_copper(monkeypatch, tmp_path: Path) -> None:
    outline = _gerber_file(tmp_path, "board.gko")
    copper = _gerber_file(tmp_path, "board.gtl")
    aperture = gprim.Circle((0, 0), 0.1)
    layers = {
        str(outline): _DummyLayer(
            [
                gprim.Line((0, 0), (1, 0), aperture),
                gprim.Circle((0.5, 0.5), 0.2),
                gprim.Rectangle((0.5, 0.5), 0.2, 0.4),
                SimpleNamespace(),
            ],
            units="inch",
        ),
        str(copper): _DummyLayer(
            [
                SimpleNamespace(bounding_box=((1.0, 3.0), (2.0, 4.0))),
                SimpleNamespace(bounding_box=((1.0, 1.0), (2.0, 4.0))),
                SimpleNamespace(),
            ]
        ),
    }
    monkeypatch.setattr("outlineforge.geometry.service.load_layer", lambda path: layers[path])

    items = GerberItemSource(OutlineConfig.from_dict({})).load(outline, [copper])

    prims = items.primitives()
    assert len(prims) == 3
    segment, circle, rect = prims
    assert isinstance(segment, Segment)
    assert segment.end == pytest.approx((25.4, 0.0))
    assert segment.layer == "Edge.Cuts"
    assert isinstance(circle, Circle)
    assert circle.radius == pytest.approx(2.54)
    assert isinstance(rect, Rectangle)
    assert rect.start == pytest.approx((10.16, 7.62))
    assert rect.end == pytest.approx((15.24, 17.78))
    assert items.copper_regions() == [[(1.0, 2.0), (3.0, 2.0), (3.0, 4.0), (1.0, 4.0)]]
    assert items.bounding_box() == pytest.approx((0.0, 0.0, 25.4, 17.78))
    assert items.chord_error == 0.005


@pytest.mark.parametrize(
    ("direction", "start", "end", "expected"),
    [
        ("counterclockwise", 0.0, 1.5707963267948966, 90.0),
        ("clockwise", 1.5707963267948966, 0.0, -90.0),
        ("counterclockwise", 0.0, 0.0, 360.0),
        ("clockwise", 0.0, 0.0, -360.0),
        ("counterclockwise", 4.71238898038469, 1.5707963267948966, 180.0),
    ],
)
def test_arc_sweep_degrees(direction: str, start: float, end: float, expected: float) -> None:
    arc = SimpleNamespace(direction=direction, start_angle=start, end_angle=end)
    assert _arc_sweep_degrees(arc) == pytest.approx(expected)


def _aperture():
    return gprim.Circle((0, 0), 0.01)


def _arc(start, end, center, direction: str = "counterclockwise"):
    return gprim.Arc(start, end, center, direction, _aperture(), "multi-quadrant")


def test_arc_converts_with_signed_sweep() -> None:
    source = GerberItemSource(OutlineConfig.from_dict({}))
    ccw, cw = source.primitives_from_gerber(
        [_arc((1, 0), (0, 1), (0, 0)), _arc((1, 0), (0, 1), (0, 0), "clockwise")]
    )
    assert isinstance(ccw, Arc)
    assert ccw.center == (0.0, 0.0)
    assert ccw.start == (1.0, 0.0)
    assert ccw.angle == pytest.approx(90.0)
    assert ccw.end == (0.0, 1.0)
    assert cw.angle == pytest.approx(-270.0)
    assert cw.end == (0.0, 1.0)


def test_rotated_rectangle_becomes_polygon() -> None:
    rect = gprim.Rectangle((1, 1), 2, 1, rotation=45)
    (poly,) = GerberItemSource(OutlineConfig.from_dict({})).primitives_from_gerber([rect], 25.4)
    assert isinstance(poly, Polygon)
    assert len(poly.points) == 4
    expected = [(float(x) * 25.4, float(y) * 25.4) for x, y in rect.vertices]
    for got, want in zip(poly.points, expected):
        assert got == pytest.approx(want, abs=1e-6)


def test_region_flattens_arc_corner() -> None:
    region = gprim.Region(
        [
            gprim.Line((0, 0), (2, 0), _aperture()),
            gprim.Line((2, 0), (2, 1), _aperture()),
            _arc((2, 1), (1, 2), (1, 1)),
            gprim.Line((1, 2), (0, 2), _aperture()),
            gprim.Line((0, 2), (0, 0), _aperture()),
        ]
    )
    (poly,) = GerberItemSource(OutlineConfig.from_dict({})).primitives_from_gerber([region])
    assert isinstance(poly, Polygon)
    points = poly.points
    assert points[0] == (0.0, 0.0)
    assert points[-1] == (0.0, 2.0)
    assert (1.0, 2.0) in points
    corner = points[points.index((2.0, 1.0)) + 1 : points.index((1.0, 2.0))]
    assert len(corner) > 2
    for x, y in corner:
        assert math.hypot(x - 1, y - 1) == pytest.approx(1, abs=1e-5)


def test_inch_board_with_arc_corner_closes_without_tolerance() -> None:
    gerber_prims = [
        gprim.Line((0, 0), (0.3, 0), _aperture()),
        gprim.Line((0.3, 0), (0.3, 0.2), _aperture()),
        _arc((0.3, 0.2), (0.2, 0.3), (0.2, 0.2)),
        gprim.Line((0.2, 0.3), (0, 0.3), _aperture()),
        gprim.Line((0, 0.3), (0, 0), _aperture()),
    ]
    config = OutlineConfig.from_dict({})
    items = BoardItems(items=GerberItemSource(config).primitives_from_gerber(gerber_prims, 25.4))
    result = build_board_boundary(items, 0.0, config)
    assert result.ok
    assert result.polygons.outline_count == 1
    side = 0.3 * 25.4
    radius = 0.1 * 25.4
    expected = side * side - radius * radius * (1 - math.pi / 4)
    assert result.polygons.to_shapely().area == pytest.approx(expected, rel=1e-3)


def test_load_layer_restores_builtin_open(monkeypatch, tmp_path: Path) -> None:
    gerber_file = _gerber_file(tmp_path)
    before = builtins.open
    monkeypatch.setattr("outlineforge.geometry.service.load_layer", lambda path: _DummyLayer())
    GerberItemSource._load_layer(gerber_file, "outline")
    assert builtins.open is before
