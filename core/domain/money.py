from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CURRENCY_CODE = "INR"


def normalize_currency(value: str | None, fallback: str | None = DEFAULT_CURRENCY_CODE) -> str:
    code = (value or "").strip().upper()
    if code:
        return code
    fb = (fallback or "").strip().upper()
    return fb or DEFAULT_CURRENCY_CODE


@dataclass(frozen=True)
class Money:
    """An amount tagged with the currency it is denominated in."""

    amount: float
    currency: str


def format_money(amount: float, currency: str) -> str:
    return f"{normalize_currency(currency)} {float(amount or 0.0):,.2f}"


__all__ = ["DEFAULT_CURRENCY_CODE", "Money", "format_money", "normalize_currency"]
