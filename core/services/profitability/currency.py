from __future__ import annotations

import logging
import math
from concurrent.futures import Future, ThreadPoolExecutor, wait
from threading import RLock
from typing import Iterable, Mapping

from core.domain.money import Money, normalize_currency
from core.events.signal import Signal
from core.exceptions import RateUnavailableError
from core.interfaces import ConversionRateService

logger = logging.getLogger(__name__)

FALLBACK_RATE = 1.0


class ConversionRateCache:
    """Per-report-view cache of currency rates routed through one hub currency.

    Every stored rate is keyed ``(source, target)`` where ``target`` is the
    report's display currency. A pairwise rate is derived as
    ``rate_to_target(from) / rate_to_target(to)``. Lookups never raise: when a
    hub rate is missing the pair resolves to 1.0 and :attr:`rates_pending`
    reports the gap until the rate lands.
    """

    def __init__(
        self,
        target_currency: str,
        rate_service: ConversionRateService | None = None,
        *,
        max_workers: int = 4,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self._target: str = normalize_currency(target_currency)
        self._service: ConversionRateService | None = rate_service
        self._rates: dict[tuple[str, str], float] = {}
        self._failed: dict[tuple[str, str], str] = {}
        self._missing: set[str] = set()
        self._inflight: dict[tuple[str, str], Future] = {}
        self._outstanding: set[Future] = set()
        self._lock: RLock = RLock()
        self._executor: ThreadPoolExecutor | None = executor
        self._owns_executor: bool = executor is None
        self._max_workers: int = max(1, int(max_workers))
        self._generation: int = 0
        self._closed: bool = False
        self.rate_resolved: Signal[str] = Signal()

    # ------------------------------------------------------------------ lookup

    @property
    def target_currency(self) -> str:
        return self._target

    @property
    def closed(self) -> bool:
        return self._closed

    def rate_to_target(self, currency: str | None) -> float | None:
        code = normalize_currency(currency, self._target)
        if code == self._target:
            return 1.0
        with self._lock:
            return self._rates.get((code, self._target))

    def rate(self, from_currency: str | None, to_currency: str | None) -> float:
        source = normalize_currency(from_currency, self._target)
        dest = normalize_currency(to_currency, self._target)
        if source == dest:
            return 1.0

        from_rate = self.rate_to_target(source)
        to_rate = self.rate_to_target(dest)
        if from_rate and to_rate:
            return from_rate / to_rate

        with self._lock:
            if not from_rate:
                self._missing.add(source)
            if not to_rate:
                self._missing.add(dest)
        return FALLBACK_RATE

    __call__ = rate

    def convert(self, money: Money, to_currency: str | None = None) -> Money:
        dest = normalize_currency(to_currency, self._target)
        return Money(money.amount * self.rate(money.currency, dest), dest)

    @property
    def rates_pending(self) -> bool:
        return bool(self.missing_currencies())

    def missing_currencies(self) -> list[str]:
        with self._lock:
            return sorted(
                code for code in self._missing if (code, self._target) not in self._rates
            )

    def unavailable_currencies(self) -> dict[str, str]:
        with self._lock:
            return {source: reason for (source, _target), reason in self._failed.items()}

    def cached_rates(self) -> dict[str, float]:
        with self._lock:
            return {source: rate for (source, _target), rate in self._rates.items()}

    # ------------------------------------------------------------------ filling

    def prime(self, rates: Mapping[str, float]) -> None:
        """Seed hub rates (source currency -> rate into the target currency)."""
        resolved: list[str] = []
        with self._lock:
            for currency, value in rates.items():
                code = normalize_currency(currency, self._target)
                rate = float(value or 0.0)
                if code == self._target or rate <= 0.0 or not math.isfinite(rate):
                    continue
                self._rates[(code, self._target)] = rate
                self._failed.pop((code, self._target), None)
                resolved.append(code)
        for code in resolved:
            self.rate_resolved.emit(code)

    def request_rates(self, currencies: Iterable[str | None], *, retry_failed: bool = False) -> list[Future]:
        """Issue one concurrent lookup per distinct uncached source currency.

        Requests already in flight are shared rather than re-issued. Returns
        the futures covering the requested currencies; callers are not
        expected to wait on them.
        """
        futures: list[Future] = []
        with self._lock:
            sources = {normalize_currency(code, self._target) for code in currencies if code}
            sources.discard(self._target)
            for source in sorted(sources):
                key = (source, self._target)
                if key in self._rates:
                    continue
                self._missing.add(source)
                inflight = self._inflight.get(key)
                if inflight is not None:
                    futures.append(inflight)
                    continue
                if key in self._failed and not retry_failed:
                    continue
                if self._closed or self._service is None:
                    continue
                future = self._ensure_executor().submit(self._fetch, source, self._target, self._generation)
                self._inflight[key] = future
                self._outstanding.add(future)
                future.add_done_callback(self._forget)
                futures.append(future)
        return futures

    def wait_for_pending(self, timeout: float | None = None) -> bool:
        """Block until every issued fetch, including its subscriber callbacks, has finished."""
        with self._lock:
            futures = list(self._outstanding)
        if not futures:
            return True
        _done, not_done = wait(futures, timeout=timeout)
        return not not_done

    def _fetch(self, source: str, target: str, generation: int) -> float | None:
        key = (source, target)
        rate: float | None = None
        reason: str | None = None
        try:
            rate = float(self._service.get_rate(source, target))  # type: ignore[union-attr]
            if rate <= 0.0 or not math.isfinite(rate):
                reason = f"Invalid rate {rate!r} returned for {source}->{target}"
                rate = None
        except RateUnavailableError as exc:
            reason = str(exc)
        except Exception as exc:
            reason = f"{exc.__class__.__name__}: {exc}"
        finally:
            with self._lock:
                if generation == self._generation:
                    self._inflight.pop(key, None)
                    if rate is not None:
                        self._rates[key] = rate
                        self._failed.pop(key, None)
                    elif reason is not None:
                        self._failed[key] = reason

        if generation != self._generation:
            logger.debug("Discarding stale rate %s->%s after target change", source, target)
            return None
        if rate is None:
            logger.warning("Conversion rate unavailable for %s->%s: %s", source, target, reason)
            return None

        logger.debug("Cached conversion rate %s->%s = %s", source, target, rate)
        self.rate_resolved.emit(source)
        return rate

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._outstanding.discard(future)

    def _ensure_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers,
                thread_name_prefix="rate-fetch",
            )
        return self._executor

    # ------------------------------------------------------------------ lifecycle

    def set_target_currency(self, currency: str) -> None:
        code = normalize_currency(currency)
        with self._lock:
            if code == self._target:
                return
            logger.info("Display currency changed %s -> %s; invalidating rate cache", self._target, code)
            self._target = code
            self._generation += 1
            self._rates.clear()
            self._failed.clear()
            self._missing.clear()
            self._inflight.clear()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._inflight.clear()
            self._outstanding.clear()
        self.rate_resolved.disconnect_all()
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)


__all__ = ["FALLBACK_RATE", "ConversionRateCache"]
