from __future__ import annotations

import time
from typing import Tuple


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def clamp_int(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


def now_ms() -> int:
    """Wall-clock time in integer milliseconds."""
    return int(time.time() * 1000)


def to_pixel(x_norm: float, y_norm: float, w: int, h: int) -> Tuple[int, int]:
    x_px = clamp_int(int(round(x_norm * w)), 0, max(0, w - 1))
    y_px = clamp_int(int(round(y_norm * h)), 0, max(0, h - 1))
    return x_px, y_px
