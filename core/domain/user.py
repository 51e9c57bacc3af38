from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class UserProfile:
    email: str
    full_name: str = ""
    hourly_rate: float = 0.0
    ctc_currency: Optional[str] = None


__all__ = ["UserProfile"]
