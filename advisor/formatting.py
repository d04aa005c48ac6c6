"""Display formatting and lenient number parsing for calculator fields."""
from __future__ import annotations

import math
import re
from typing import Any

_NON_NUMERIC = re.compile(r"[^0-9.\-]+")


def _to_number(value: Any) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def format_currency(value: Any) -> str:
    if value is None or value == "":
        return ""
    num = _to_number(value)
    if num is None:
        return "$0"
    rounded = round_half_up(num)
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded):,}"


def format_percentage(value: Any) -> str:
    num = _to_number(value)
    if num is None:
        return "0.00%"
    return f"{num:.2f}%"


def parse_number(value: Any, default: float = 0.0) -> float:
    """Parse '$1,200', '2.5%' or 1200 into a float; anything else gives `default`."""
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else default
    cleaned = _NON_NUMERIC.sub("", str(value or ""))
    if not cleaned:
        return default
    try:
        return float(cleaned)
    except ValueError:
        return default


def round_half_up(value: float) -> int:
    """Whole-dollar rounding with .5 going up, matching spreadsheet output."""
    return int(math.floor(value + 0.5))


def round_cents(value: float) -> float:
    return math.floor(value * 100.0 + 0.5) / 100.0
