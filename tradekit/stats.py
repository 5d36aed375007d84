"""Backtest statistics and their printed report."""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def _trim_fraction(value: int, digits: int) -> str:
    whole, frac = divmod(value, 10**digits)
    if not frac:
        return str(whole)
    return f"{whole}." + f"{frac:0{digits}d}".rstrip("0")


def _format_duration(duration: timedelta) -> str:
    micros = duration // timedelta(microseconds=1)
    if micros == 0:
        return "0s"
    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    if micros < 1000:
        return f"{sign}{micros}µs"
    if micros < 1_000_000:
        return f"{sign}{_trim_fraction(micros, 3)}ms"
    total_seconds, frac = divmod(micros, 1_000_000)
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    text = sign
    if hours:
        text += f"{hours}h"
    if hours or minutes:
        text += f"{minutes}m"
    return text + _trim_fraction(seconds * 1_000_000 + frac, 6) + "s"


def _format_time(moment: datetime) -> str:
    if moment.tzinfo is None:
        return str(moment)
    text = moment.strftime("%Y-%m-%d %H:%M:%S")
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    return f"{text} {moment.strftime('%z')} {moment.tzname()}"


def _format_float(value: float) -> str:
    """Shortest general float form, switching to exponent notation like %g."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    sign, digit_tuple, exponent = Decimal(repr(value)).as_tuple()
    digits = "".join(map(str, digit_tuple))
    point = len(digits) + exponent
    digits = digits.rstrip("0")
    exp = point - 1
    prefix = "-" if sign else ""
    if exp < -4 or exp >= 6:
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        return f"{prefix}{mantissa}e{'+' if exp >= 0 else '-'}{abs(exp):02d}"
    if point <= 0:
        return f"{prefix}0.{'0' * -point}{digits}"
    if point >= len(digits):
        return prefix + digits + "0" * (point - len(digits))
    return f"{prefix}{digits[:point]}.{digits[point:]}"


@dataclass
class Stats:
    """Backtest statistics."""

    start: datetime = _ZERO_TIME
    end: datetime = _ZERO_TIME
    duration: timedelta = field(default_factory=timedelta)
    run_duration: timedelta = field(default_factory=timedelta)
    entry_price: float = 0.0
    exit_price: float = 0.0
    entry_equity: float = 0.0
    exit_equity: float = 0.0
    bah_return: float = 0.0
    bah_return_pnt: float = 0.0
    equity_return: float = 0.0
    equity_return_pnt: float = 0.0
    ann_return: float = 0.0
    max_draw_down: float = 0.0

    def format_result(self) -> str:
        """The result report as text, one line per figure."""
        lines = [
            "======================== RESULT ========================",
            f"Start: \t\t\t\t{_format_time(self.start)}",
            f"End: \t\t\t\t{_format_time(self.end)}",
            f"Duration: \t\t\t{_format_duration(self.duration)}",
            f"Run Duration: \t\t{_format_duration(self.run_duration)}",
            f"Entry Price: \t\t{_format_float(self.entry_price)}",
            f"Exit Price: \t\t{_format_float(self.exit_price)}",
            f"Initial Equity: \t{_format_float(self.entry_equity)}",
            f"Exit Equity: \t\t{_format_float(self.exit_equity)}",
            f"Return: \t\t\t{self.equity_return:.8f}",
            f"Return [%]: \t\t{self.equity_return_pnt * 100:.4f}%",
            f"Buy & Hold Return: \t{self.bah_return:.8f}",
            f"Buy & Hold Return [%]: \t{self.bah_return_pnt * 100:.4f}%",
            f"Ann Return [%]: \t\t{self.ann_return * 100:.4f}%",
            f"Max Drawdown [%]: \t\t{self.max_draw_down * 100:.4f}%",
        ]
        return "\n".join(lines) + "\n"

    def print_result(self) -> str:
        """Write the report to standard output and return it."""
        text = self.format_result()
        sys.stdout.write(text)
        sys.stdout.flush()
        return text