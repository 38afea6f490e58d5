"""pcb-tools 0.1.6 patches needed to parse Gerber files on current Python."""

from __future__ import annotations

import builtins
from contextlib import contextmanager
import logging
from threading import RLock
from typing import Callable

logger = logging.getLogger(__name__)

_PATCH_LOCK = RLock()


@contextmanager
def pcb_tools_compat():
    """Apply every parser patch for the duration of one ``load_layer`` call."""
    with _PATCH_LOCK:
        undo = [_patch_open_mode(), _patch_outline_primitive()]
        try:
            yield
        finally:
            for restore in reversed(undo):
                restore()


def _patch_open_mode() -> Callable[[], None]:
    # "rU" 模式在 Python 3.11 中已移除
    original_open = builtins.open

    def open_without_universal(file, mode="r", *args, **kwargs):
        if isinstance(mode, str) and "U" in mode:
            mode = mode.replace("U", "") or "r"
        return original_open(file, mode, *args, **kwargs)

    builtins.open = open_without_universal

    def restore() -> None:
        builtins.open = original_open

    return restore


def _patch_outline_primitive() -> Callable[[], None]:
    try:
        import gerber.am_statements as am_statements
    except ImportError:
        logger.debug("gerber.am_statements unavailable, outline primitive patch skipped")
        return lambda: None

    outline_cls = am_statements.AMOutlinePrimitive
    original_init = outline_cls.__init__

    def init_closing_outline(self, code, exposure, start_point, points, rotation):
        try:
            return original_init(self, code, exposure, start_point, points, rotation)
        except ValueError as exc:
            if "must be closed" not in str(exc):
                raise
        # 未闭合的宏轮廓：补上起点后重试
        closed_points = list(points)
        if closed_points and closed_points[-1] != start_point:
            closed_points.append(start_point)
        return original_init(self, code, exposure, start_point, closed_points, rotation)

    outline_cls.__init__ = init_closing_outline

    def restore() -> None:
        outline_cls.__init__ = original_init

    return restore
