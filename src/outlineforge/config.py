from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable


@dataclass(frozen=True)
class OutlineConfig:
    tolerance: float
    arc_max_chord_error: float
    coordinate_digits: int
    edge_layer: str
    min_board_margin: float
    validate_result: bool
    outline_patterns: list[str]
    copper_patterns: list[str]

    @staticmethod
    def default_path(project_root: Path) -> Path:
        return _user_config_dir() / "outlineforge.json"

    @staticmethod
    def load_default(project_root: Path) -> "OutlineConfig":
        user_path = OutlineConfig.default_path(project_root)
        if user_path.exists():
            return OutlineConfig.from_json(user_path)
        bundled_path = project_root / "config" / "outlineforge.json"
        if bundled_path.exists():
            return OutlineConfig.from_json(bundled_path)
        return OutlineConfig.from_dict({})

    @staticmethod
    def from_json(path: Path) -> "OutlineConfig":
        data = json.loads(path.read_text(encoding="utf-8"))
        return OutlineConfig.from_dict(data)

    @staticmethod
    def from_dict(data: dict) -> "OutlineConfig":
        tolerance = float(data.get("tolerance", 0.0))
        arc_max_chord_error = float(data.get("arc_max_chord_error", 0.005))
        coordinate_digits = int(data.get("coordinate_digits", 6))
        edge_layer = str(data.get("edge_layer", "Edge.Cuts"))
        min_board_margin = float(data.get("min_board_margin", 1.0))
        validate_result = bool(data.get("validate_result", True))
        outline_patterns = _ensure_list(
            data.get("outline_patterns", ["*.gko", "*.gm1", "*edge_cuts*", "*outline*"])
        )
        copper_patterns = _ensure_list(data.get("copper_patterns", ["*.gtl", "*.gbl", "*-f_cu*", "*-b_cu*"]))
        return OutlineConfig(
            tolerance=tolerance,
            arc_max_chord_error=arc_max_chord_error,
            coordinate_digits=coordinate_digits,
            edge_layer=edge_layer,
            min_board_margin=min_board_margin,
            validate_result=validate_result,
            outline_patterns=outline_patterns,
            copper_patterns=copper_patterns,
        )

    def with_tolerance(self, tolerance: float) -> "OutlineConfig":
        data = dict(self.__dict__)
        data["tolerance"] = float(tolerance)
        return OutlineConfig(**data)

    def validate(self) -> None:
        if self.tolerance < 0:
            raise ValueError("tolerance must be >= 0")
        if self.arc_max_chord_error <= 0:
            raise ValueError("arc_max_chord_error must be > 0")
        if not 0 <= self.coordinate_digits <= 12:
            raise ValueError("coordinate_digits must be in [0, 12]")
        if not self.edge_layer:
            raise ValueError("edge_layer must not be empty")
        if self.min_board_margin <= 0:
            raise ValueError("min_board_margin must be > 0")


def _ensure_list(value: Iterable[str] | str | None) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def _user_config_dir() -> Path:
    if os.name == "nt":
        base = os.environ.get("APPDATA") or os.environ.get("USERPROFILE")
        if base:
            return Path(base) / "OutlineForge"
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / "outlineforge"
    return Path.home() / ".config" / "outlineforge"
