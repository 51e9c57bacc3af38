from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any

UNASSIGNED = "unassigned"


def enum_token(value: Any) -> str:
    return str(getattr(value, "value", value) or "").strip().lower()


def as_float(value: Any) -> float:
    """Coerce loose numeric input to a finite float; anything else is 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def safe_ratio(numerator: float, denominator: float, default: float | None = 0.0) -> float | None:
    num = as_float(numerator)
    den = as_float(denominator)
    if den > 0.0:
        return num / den
    return default


def percent(numerator: float, denominator: float) -> float | None:
    ratio = safe_ratio(numerator, denominator, default=None)
    return None if ratio is None else ratio * 100.0


def parse_date(value: Any) -> date | None:
    """Accept date, datetime or ISO text; malformed values are treated as absent."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    return None


def month_difference(start: date, end: date) -> int:
    """Whole calendar months from start to end, counting a month only once the day is reached."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and end.day < start.day:
        months -= 1
    elif months < 0 and end.day > start.day:
        months += 1
    return months


def milestone_key(milestone_id: Any, known_ids: set[str] | None = None) -> str:
    key = str(milestone_id or "").strip()
    if not key:
        return UNASSIGNED
    if known_ids is not None and key not in known_ids:
        return UNASSIGNED
    return key


__all__ = [
    "UNASSIGNED",
    "enum_token",
    "as_float",
    "safe_ratio",
    "percent",
    "parse_date",
    "month_difference",
    "milestone_key",
]
