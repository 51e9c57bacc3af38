from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from core.domain import BillingModel, Money, RiskTier, RowType


@dataclass(frozen=True)
class CostRow:
    """One normalized labor aggregate or expense, in project currency."""

    type: RowType
    milestone_id: str
    milestone_name: str
    task_id: str | None
    task_title: str
    label: str
    currency: str
    cost: float
    logged_cost: float
    original_cost: Money
    logged_hours: float = 0.0
    approved_hours: float = 0.0
    non_billable_hours: float = 0.0
    hourly_rate: float = 0.0
    original_rate: float = 0.0
    user_email: str | None = None
    detail: str = ""
    last_date: date | None = None

    @property
    def is_labor(self) -> bool:
        return self.type == RowType.LABOR

    @property
    def cost_money(self) -> Money:
        return Money(self.cost, self.currency)


@dataclass(frozen=True)
class BudgetResolution:
    total: Money
    model: BillingModel
    periods: int | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def amount(self) -> float:
        return self.total.amount


@dataclass(frozen=True)
class MilestonePnL:
    milestone_id: str
    name: str
    currency: str
    budget: float
    labor_cost: float
    expense_cost: float
    total_phase_cost: float
    phase_profit: float
    margin_percent: float | None
    logged_hours: float
    approved_hours: float
    expense_budget: float
    due_date: date | None = None
    status: str | None = None


@dataclass(frozen=True)
class UnallocatedPnL:
    currency: str
    labor_cost: float
    expense_cost: float
    total_cost: float
    logged_hours: float
    approved_hours: float


@dataclass(frozen=True)
class PnLTotals:
    currency: str
    model: BillingModel
    budget: float
    labor_cost: float
    expense_cost: float
    total_cost: float
    logged_cost: float
    unallocated_cost: float
    net_profit: float
    margin_percent: float | None
    labor_leakage: float
    leakage: float
    leakage_percent: float | None
    logged_hours: float
    approved_hours: float
    non_billable_hours: float
    billable_efficiency: float
    expense_budget: float
    expense_budget_used_percent: float | None


@dataclass(frozen=True)
class PnLAggregation:
    per_milestone: list[MilestonePnL]
    unallocated: UnallocatedPnL
    totals: PnLTotals


@dataclass(frozen=True)
class HealthScore:
    score: int
    tier: RiskTier
    formula: str
    components: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ProfitabilitySnapshot:
    project_id: str
    project_name: str
    project_currency: str
    display_currency: str
    milestone_id: str | None
    budget: BudgetResolution
    budget_display: Money
    rows: list[CostRow]
    aggregation: PnLAggregation
    health: HealthScore
    insights: list[str]
    overdue_impact: str | None
    rates_pending: bool
    missing_currencies: list[str]
    notes: list[str]

    @property
    def totals(self) -> PnLTotals:
        return self.aggregation.totals


@dataclass(frozen=True)
class PortfolioSummary:
    display_currency: str
    projects: list[ProfitabilitySnapshot]
    total_revenue: float
    total_labor_cost: float
    total_expense_cost: float
    total_cost: float
    total_profit: float
    total_leakage: float
    margin_percent: float | None
    leakage_percent: float | None
    rates_pending: bool


__all__ = [
    "CostRow",
    "BudgetResolution",
    "MilestonePnL",
    "UnallocatedPnL",
    "PnLTotals",
    "PnLAggregation",
    "HealthScore",
    "ProfitabilitySnapshot",
    "PortfolioSummary",
]
