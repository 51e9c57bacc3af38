from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timedelta, timezone
from http.client import HTTPException
from threading import Lock
from typing import Callable
from urllib.error import URLError
from urllib.parse import urlencode
from urllib.request import urlopen

from core.domain import REFERENCE_CURRENCY, normalize_currency
from core.exceptions import RateUnavailableError
from core.interfaces import ConversionRateService, ExchangeRateRepository
from infra.operational_support import redact_text

logger = logging.getLogger(__name__)


def _checked_rate(value: object, source: str, target: str) -> float:
    try:
        rate = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise RateUnavailableError(
            f"Rate service returned no usable rate for {source}->{target}.",
            code="RATE_INVALID",
        ) from None
    if rate <= 0.0 or not math.isfinite(rate):
        raise RateUnavailableError(
            f"Rate service returned a non-positive rate for {source}->{target}.",
            code="RATE_INVALID",
        )
    return rate


class HttpConversionRateService(ConversionRateService):
    """Asks the currency backend for the value of one unit of ``from`` in ``to``.

    ``GET {base_url}/api/currency/convert?from=USD&to=INR&amount=1`` answers
    ``{"rate": 83.1, ...}``.
    """

    def __init__(self, base_url: str, *, timeout: float = 10.0) -> None:
        self._base_url = (base_url or "").strip().rstrip("/")
        self._timeout = float(timeout)

    def build_url(self, from_currency: str, to_currency: str) -> str:
        query = urlencode({"from": from_currency, "to": to_currency, "amount": 1})
        return f"{self._base_url}/api/currency/convert?{query}"

    def get_rate(self, from_currency: str, to_currency: str) -> float:
        source = normalize_currency(from_currency)
        target = normalize_currency(to_currency)
        if source == target:
            return 1.0
        if not self._base_url:
            raise RateUnavailableError("Rate service URL is not configured.", code="RATE_SERVICE_UNCONFIGURED")

        url = self.build_url(source, target)
        try:
            with urlopen(url, timeout=self._timeout) as response:  # noqa: S310
                payload = json.loads(response.read().decode("utf-8"))
        except (URLError, HTTPException, TimeoutError, OSError) as exc:
            logger.warning("Rate request failed for %s->%s: %s", source, target, redact_text(str(exc)))
            raise RateUnavailableError(
                f"Rate service unreachable for {source}->{target}: {exc}",
                code="RATE_SERVICE_UNREACHABLE",
            ) from exc
        except ValueError as exc:
            raise RateUnavailableError(
                f"Rate service sent malformed JSON for {source}->{target}.",
                code="RATE_INVALID",
            ) from exc

        if not isinstance(payload, dict):
            raise RateUnavailableError(
                f"Rate service response for {source}->{target} must be a JSON object.",
                code="RATE_INVALID",
            )
        return _checked_rate(payload.get("rate"), source, target)


class StoredConversionRateService(ConversionRateService):
    """Cross rates from locally stored reference-currency quotes.

    With quotes ``1 EUR = a USD`` and ``1 EUR = b INR``, one USD is worth
    ``b / a`` INR. Quotes older than ``max_age`` are treated as missing.
    """

    def __init__(
        self,
        rate_repo: ExchangeRateRepository,
        *,
        max_age: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._rate_repo = rate_repo
        self._max_age = max_age
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        # sessions are not thread-safe; fetches arrive from the rate worker pool
        self._lock = Lock()

    def _reference_rate(self, currency: str) -> float:
        if currency == REFERENCE_CURRENCY:
            return 1.0
        with self._lock:
            stored = self._rate_repo.get(currency, REFERENCE_CURRENCY)
        if stored is None:
            raise RateUnavailableError(f"No stored rate for {currency}.", code="RATE_NOT_STORED")

        updated_at = stored.updated_at
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        if self._clock() - updated_at > self._max_age:
            raise RateUnavailableError(
                f"Stored rate for {currency} is older than {self._max_age}.",
                code="RATE_STALE",
            )
        return _checked_rate(stored.rate, REFERENCE_CURRENCY, currency)

    def get_rate(self, from_currency: str, to_currency: str) -> float:
        source = normalize_currency(from_currency)
        target = normalize_currency(to_currency)
        if source == target:
            return 1.0
        return self._reference_rate(target) / self._reference_rate(source)


__all__ = ["HttpConversionRateService", "StoredConversionRateService"]
