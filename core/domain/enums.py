from __future__ import annotations

from enum import Enum


class BillingModel(str, Enum):
    FIXED_PRICE = "fixed_price"
    RETAINER = "retainer"
    TIME_AND_MATERIALS = "time_and_materials"
    NON_BILLABLE = "non_billable"

    @classmethod
    def coerce(cls, value: object) -> "BillingModel":
        if isinstance(value, cls):
            return value
        token = str(getattr(value, "value", value) or "").strip().lower()
        try:
            return cls(token)
        except ValueError:
            return cls.FIXED_PRICE


class RetainerPeriod(str, Enum):
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"

    @classmethod
    def coerce(cls, value: object) -> "RetainerPeriod":
        if isinstance(value, cls):
            return value
        token = str(getattr(value, "value", value) or "").strip().lower()
        try:
            return cls(token)
        except ValueError:
            return cls.MONTH


class ProjectStatus(str, Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class MilestoneStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    MISSED = "missed"


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETED = "completed"


class TimesheetStatus(str, Enum):
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class ExpenseStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RowType(str, Enum):
    LABOR = "labor"
    EXPENSE = "expense"


class RiskTier(str, Enum):
    HEALTHY = "Healthy"
    AT_RISK = "At Risk"
    HIGH_RISK = "High Risk"
    CRITICAL = "Critical"


__all__ = [
    "BillingModel",
    "RetainerPeriod",
    "ProjectStatus",
    "RiskLevel",
    "MilestoneStatus",
    "TaskStatus",
    "TimesheetStatus",
    "ExpenseStatus",
    "RowType",
    "RiskTier",
]
