"""Lenient string-to-number parsing and integer sorting."""

from __future__ import annotations

import re

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


def parse_float64(s: str) -> float:
    """Parse a float; text that is not a number gives 0.0."""
    if not s or s != s.strip() or "_" in s:
        return 0.0
    try:
        return float(s)
    except ValueError:
        pass
    if "0x" in s.lower() and "p" in s.lower():
        try:
            return float.fromhex(s)
        except (ValueError, OverflowError):
            return 0.0
    return 0.0


def parse_int(s: str) -> int:
    """Parse a decimal integer; bad text gives 0, overflow clamps to the 64-bit range."""
    if not _INT_PATTERN.fullmatch(s):
        return 0
    return max(_INT64_MIN, min(_INT64_MAX, int(s)))


def sort_int64(values: list[int]) -> None:
    """Sort the list in place in increasing order."""
    values.sort()