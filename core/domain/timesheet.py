from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from core.domain.enums import TimesheetStatus
from core.domain.identifiers import generate_id

# Ordered per-entry rate fields, most authoritative first. snapshot_rate is the
# legacy name of snapshot_hourly_rate.
SNAPSHOT_RATE_FIELDS = ("snapshot_hourly_rate", "snapshot_rate", "hourly_rate")


@dataclass(frozen=True)
class ResolvedRate:
    """Hourly rate of one timesheet entry, in the logging user's currency."""

    rate: float
    source: str
    native_cost: float


@dataclass
class TimesheetEntry:
    id: str
    user_email: str
    project_id: str
    task_id: Optional[str] = None
    milestone_id: Optional[str] = None
    date: Optional[date] = None
    total_minutes: float = 0.0
    is_billable: bool = True
    status: TimesheetStatus = TimesheetStatus.SUBMITTED
    snapshot_hourly_rate: Optional[float] = None
    snapshot_rate: Optional[float] = None
    snapshot_total_cost: Optional[float] = None
    hourly_rate: Optional[float] = None

    @property
    def hours(self) -> float:
        return float(self.total_minutes or 0.0) / 60.0

    @property
    def is_approved(self) -> bool:
        return str(getattr(self.status, "value", self.status) or "").lower() == TimesheetStatus.APPROVED.value

    @property
    def counts_as_cost(self) -> bool:
        return bool(self.is_billable) and self.is_approved

    def resolve_rate(self, profile_rate: float | None) -> ResolvedRate:
        """Walk the rate fallback chain once.

        snapshot_total_cost -> snapshot_hourly_rate -> snapshot_rate -> hourly_rate -> profile rate.
        Zero or missing values are skipped, so historical entries keep the rate in
        force when they were logged.
        """
        hours = self.hours
        total_cost = float(self.snapshot_total_cost or 0.0)
        if total_cost > 0.0 and hours > 0.0:
            return ResolvedRate(rate=total_cost / hours, source="snapshot_total_cost", native_cost=total_cost)

        for field_name in SNAPSHOT_RATE_FIELDS:
            value = float(getattr(self, field_name, None) or 0.0)
            if value > 0.0:
                return ResolvedRate(rate=value, source=field_name, native_cost=hours * value)

        fallback = float(profile_rate or 0.0)
        return ResolvedRate(rate=fallback, source="profile", native_cost=hours * fallback)

    @staticmethod
    def create(user_email: str, project_id: str, **extra) -> "TimesheetEntry":
        return TimesheetEntry(
            id=generate_id(),
            user_email=user_email,
            project_id=project_id,
            **extra,
        )


__all__ = ["SNAPSHOT_RATE_FIELDS", "ResolvedRate", "TimesheetEntry"]
