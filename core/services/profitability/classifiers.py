"""Free-text heuristics for quality and adjustment signals.

Tasks and expenses carry no category field for rework or system adjustments,
so both are detected by keyword. Keeping the matching here means a tagged
field can replace it without touching scoring or leakage code.
"""
from __future__ import annotations

from typing import Iterable

REWORK_KEYWORD = "rework"
ADJUSTMENT_KEYWORD = "adjustment"


def _contains(keyword: str, *texts: object) -> bool:
    return any(keyword in str(text or "").lower() for text in texts)


def is_rework(title: object, description: object = None) -> bool:
    return _contains(REWORK_KEYWORD, title, description)


def is_adjustment(description: object, category: object = None) -> bool:
    return _contains(ADJUSTMENT_KEYWORD, description, category)


def any_rework(items: Iterable[tuple[object, object]]) -> bool:
    return any(is_rework(title, description) for title, description in items)


__all__ = ["REWORK_KEYWORD", "ADJUSTMENT_KEYWORD", "is_rework", "is_adjustment", "any_rework"]
