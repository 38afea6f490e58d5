from __future__ import annotations

import json
from pathlib import Path

import pytest

from outlineforge.config import OutlineConfig


def test_default_config_values() -> None:
    cfg = OutlineConfig.from_dict({})
    assert cfg.tolerance == 0.0
    assert cfg.arc_max_chord_error == 0.005
    assert cfg.coordinate_digits == 6
    assert cfg.edge_layer == "Edge.Cuts"
    assert cfg.min_board_margin == 1.0
    assert cfg.validate_result is True
    assert "*.gko" in cfg.outline_patterns
    cfg.validate()


def test_single_pattern_string_becomes_list() -> None:
    cfg = OutlineConfig.from_dict({"outline_patterns": "*.gm1"})
    assert cfg.outline_patterns == ["*.gm1"]


def test_with_tolerance_keeps_other_fields() -> None:
    cfg = OutlineConfig.from_dict({"edge_layer": "Edge", "arc_max_chord_error": 0.01})
    tuned = cfg.with_tolerance(0.25)
    assert tuned.tolerance == 0.25
    assert tuned.edge_layer == "Edge"
    assert tuned.arc_max_chord_error == 0.01
    assert cfg.tolerance == 0.0


def test_from_json_reads_file(tmp_path: Path) -> None:
    path = tmp_path / "outlineforge.json"
    path.write_text(json.dumps({"tolerance": 0.05, "validate_result": False}), encoding="utf-8")
    cfg = OutlineConfig.from_json(path)
    assert cfg.tolerance == 0.05
    assert cfg.validate_result is False


def test_load_default_prefers_user_config(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    user_dir = tmp_path / "outlineforge"
    user_dir.mkdir()
    (user_dir / "outlineforge.json").write_text(json.dumps({"tolerance": 0.1}), encoding="utf-8")
    cfg = OutlineConfig.load_default(tmp_path / "project")
    assert cfg.tolerance == 0.1


def test_load_default_without_files(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    cfg = OutlineConfig.load_default(tmp_path / "project")
    assert cfg == OutlineConfig.from_dict({})


@pytest.mark.parametrize(
    ("patch", "message"),
    [
        ({"tolerance": -1}, "tolerance must be >= 0"),
        ({"arc_max_chord_error": 0}, "arc_max_chord_error must be > 0"),
        ({"coordinate_digits": 13}, "coordinate_digits must be in \\[0, 12\\]"),
        ({"edge_layer": ""}, "edge_layer must not be empty"),
        ({"min_board_margin": 0}, "min_board_margin must be > 0"),
    ],
)
def test_validation_errors(patch: dict, message: str) -> None:
    cfg = OutlineConfig.from_dict(patch)
    with pytest.raises(ValueError, match=message):
        cfg.validate()
