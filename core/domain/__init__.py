from core.domain.enums import (
    BillingModel,
    ExpenseStatus,
    MilestoneStatus,
    ProjectStatus,
    RetainerPeriod,
    RiskLevel,
    RiskTier,
    RowType,
    TaskStatus,
    TimesheetStatus,
)
from core.domain.exchange_rate import REFERENCE_CURRENCY, ExchangeRate
from core.domain.expense import ExpenseRecord
from core.domain.identifiers import generate_id
from core.domain.money import DEFAULT_CURRENCY_CODE, Money, format_money, normalize_currency
from core.domain.project import Milestone, Project
from core.domain.task import Task
from core.domain.timesheet import ResolvedRate, TimesheetEntry
from core.domain.user import UserProfile

__all__ = [
    "generate_id",
    "BillingModel",
    "RetainerPeriod",
    "ProjectStatus",
    "RiskLevel",
    "RiskTier",
    "MilestoneStatus",
    "TaskStatus",
    "TimesheetStatus",
    "ExpenseStatus",
    "RowType",
    "DEFAULT_CURRENCY_CODE",
    "Money",
    "normalize_currency",
    "format_money",
    "Project",
    "Milestone",
    "Task",
    "TimesheetEntry",
    "ResolvedRate",
    "ExpenseRecord",
    "ExchangeRate",
    "REFERENCE_CURRENCY",
    "UserProfile",
]
