"""Price rounding helpers."""

from __future__ import annotations

import math


def _round_half_away(x: float) -> float:
    truncated = math.trunc(x)
    if abs(x - truncated) >= 0.5:
        return truncated + math.copysign(1.0, x)
    return float(truncated)


def to_fixed(num: float, precision: int) -> float:
    """Round ``num`` to ``precision`` decimals, halves away from zero."""
    scale = math.pow(10, precision)
    return _round_half_away(num * scale) / scale


def to_fixed_e5(x: float) -> float:
    """Round to the nearest step of 0.5 (0, 0.5, 1.0, 1.5, ...)."""
    t = float(math.trunc(x))
    if x > t + 0.5:
        t += 0.5
    if abs(x - t) > 0.25:
        return t + math.copysign(0.5, x)
    return t


def to_fixed_e5p(x: float, precision: int) -> float:
    """Round to steps of 0.5 at the given decimal precision (0.05 for precision 1)."""
    if precision == 0:
        return to_fixed_e5(x)
    scale = math.pow(10, precision)
    return to_fixed_e5(x * scale) / scale