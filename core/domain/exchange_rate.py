from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

REFERENCE_CURRENCY = "EUR"


@dataclass(frozen=True)
class ExchangeRate:
    """Stored reference rate: 1 ``base_currency`` buys ``rate`` units of ``currency``."""

    currency: str
    rate: float
    updated_at: datetime
    base_currency: str = REFERENCE_CURRENCY


__all__ = ["REFERENCE_CURRENCY", "ExchangeRate"]
