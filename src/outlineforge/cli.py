from __future__ import annotations

import argparse
from fnmatch import fnmatch
import logging
from pathlib import Path

from .config import OutlineConfig
from .geometry import build_board_boundary, build_part_boundary
from .geometry.service import GerberItemSource

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Rebuild a board outline from Gerber edge graphics.")
    parser.add_argument("input", type=Path, help="Outline Gerber file or a directory of Gerber files")
    parser.add_argument(
        "--copper",
        type=Path,
        action="append",
        default=None,
        help="Copper layer Gerber (repeatable)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to outlineforge.json config",
    )
    parser.add_argument("--tolerance", type=float, default=None, help="Endpoint tolerance in mm")
    parser.add_argument("--part", action="store_true", help="Build a part boundary instead of a board boundary")
    args = parser.parse_args(argv)

    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    if args.config is not None:
        config = OutlineConfig.from_json(args.config)
    else:
        config = OutlineConfig.load_default(Path.cwd())
    if args.tolerance is not None:
        config = config.with_tolerance(args.tolerance)
    config.validate()

    outline_path, copper_paths = _resolve_inputs(args.input, args.copper, config)
    if outline_path is None:
        raise SystemExit(f"no outline layer found in: {args.input}")

    items = GerberItemSource(config).load(outline_path, copper_paths)
    build = build_part_boundary if args.part else build_board_boundary
    result = build(items, config.tolerance, config)

    polys = result.polygons
    geom = polys.to_shapely()
    print(f"outlines: {polys.outline_count}")
    print(f"holes: {sum(polys.hole_count(i) for i in range(polys.outline_count))}")
    print(f"bbox: {polys.bounds()}")
    print(f"area: {geom.area}")
    print(f"complete: {result.complete}")
    if result.error is not None:
        print(f"error: {result.error.message}")
        print(f"error_location: {result.error.location}")
    return 0 if result.ok else 1


def _resolve_inputs(path: Path, copper: list[Path] | None, config: OutlineConfig) -> tuple[Path | None, list[Path]]:
    if not path.is_dir():
        return path, list(copper or [])
    outline_files = _find_files(path, config.outline_patterns)
    copper_files = list(copper) if copper else _find_files(path, config.copper_patterns)
    if outline_files:
        logger.info("Outline layer: %s", outline_files[0].name)
    return (outline_files[0] if outline_files else None), copper_files


def _find_files(input_dir: Path, patterns: list[str]) -> list[Path]:
    if not patterns:
        return []
    files = []
    for path in input_dir.rglob("*"):
        if not path.is_file():
            continue
        name = path.name.lower()
        for pattern in patterns:
            if fnmatch(name, pattern.lower()):
                files.append(path)
                break
    return sorted(set(files))


if __name__ == "__main__":
    raise SystemExit(main())
