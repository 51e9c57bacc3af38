from __future__ import annotations

import logging
from datetime import date
from threading import RLock

from core.events.signal import Signal
from core.interfaces import ConversionRateService
from core.services.profitability.currency import ConversionRateCache
from core.services.profitability.models import ProfitabilitySnapshot
from core.services.profitability.service import ProfitabilityService

logger = logging.getLogger(__name__)


class ProfitabilityReportView:
    """One open profitability report.

    The view owns its rate cache, so two reports in different display
    currencies never share rates. Every rate that lands triggers a recompute
    and a ``snapshot_changed`` emission; once closed, no further fetches are
    issued and late arrivals are ignored.
    """

    def __init__(
        self,
        service: ProfitabilityService,
        project_id: str,
        display_currency: str,
        rate_service: ConversionRateService | None = None,
        *,
        milestone_id: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        today: date | None = None,
        max_workers: int = 4,
    ) -> None:
        self._service = service
        self._project_id = project_id
        self._milestone_id = milestone_id
        self._date_from = date_from
        self._date_to = date_to
        self._today = today
        self._lock = RLock()
        self._snapshot: ProfitabilitySnapshot | None = None
        self._closed = False
        self.snapshot_changed: Signal[ProfitabilitySnapshot] = Signal()
        self.rate_cache = ConversionRateCache(display_currency, rate_service, max_workers=max_workers)
        self.rate_cache.rate_resolved.connect(self._on_rate_resolved)

    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def display_currency(self) -> str:
        return self.rate_cache.target_currency

    @property
    def snapshot(self) -> ProfitabilitySnapshot | None:
        with self._lock:
            return self._snapshot

    @property
    def closed(self) -> bool:
        return self._closed

    def refresh(self) -> ProfitabilitySnapshot | None:
        """Recompute from current entity state and cached rates, then notify."""
        with self._lock:
            if self._closed:
                return self._snapshot
            snapshot = self._service.get_profitability_snapshot(
                self._project_id,
                rate_cache=self.rate_cache,
                milestone_id=self._milestone_id,
                date_from=self._date_from,
                date_to=self._date_to,
                today=self._today,
            )
            self._snapshot = snapshot
        self.snapshot_changed.emit(snapshot)
        return snapshot

    def set_filters(
        self,
        *,
        milestone_id: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> ProfitabilitySnapshot | None:
        with self._lock:
            self._milestone_id = milestone_id
            self._date_from = date_from
            self._date_to = date_to
        return self.refresh()

    def set_display_currency(self, currency: str) -> ProfitabilitySnapshot | None:
        self.rate_cache.set_target_currency(currency)
        return self.refresh()

    def wait_for_rates(self, timeout: float | None = None) -> bool:
        return self.rate_cache.wait_for_pending(timeout)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self.rate_cache.close()
        self.snapshot_changed.disconnect_all()
        logger.debug("Closed profitability view for project %s", self._project_id)

    def _on_rate_resolved(self, currency: str) -> None:
        if self._closed:
            return
        logger.debug("Rate for %s resolved; recomputing project %s", currency, self._project_id)
        self.refresh()

    def __enter__(self) -> "ProfitabilityReportView":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["ProfitabilityReportView"]
