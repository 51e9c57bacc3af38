from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from core.domain import BillingModel, Project, RowType, format_money, normalize_currency
from core.services.profitability.classifiers import is_adjustment
from core.services.profitability.helpers import as_float, parse_date, safe_ratio
from core.services.profitability.models import BudgetResolution, CostRow, PnLTotals

EXPENSE_DOMINANCE_THRESHOLD = 0.8
LOW_EFFICIENCY_THRESHOLD = 0.70
DEFAULT_BURN_WINDOW_DAYS = 30


def detect_leakage(
    project: Project,
    rows: Iterable[CostRow],
    totals: PnLTotals,
    budget: BudgetResolution,
) -> list[str]:
    """Advisory insight strings; every applicable check fires."""
    rows = list(rows)
    currency = normalize_currency(getattr(project, "currency", None))
    model = BillingModel.coerce(budget.model)
    total_cost = as_float(totals.total_cost)
    insights: list[str] = []

    if model == BillingModel.RETAINER and budget.amount > 0.0 and total_cost > budget.amount:
        multiple = total_cost / budget.amount
        insights.append(f"Retainer Over-Servicing Alert: Current cost = {multiple:.1f}× retainer value")

    expense_share = float(safe_ratio(totals.expense_cost, total_cost) or 0.0)
    if expense_share > EXPENSE_DOMINANCE_THRESHOLD:
        insights.append(
            f"Expense Dominance Alert: Non-labor expenses = {expense_share * 100:.0f}% of total cost"
        )

    adjustments = [
        row for row in rows if row.type == RowType.EXPENSE and is_adjustment(row.task_title, row.detail)
    ]
    if adjustments:
        amount = sum(row.cost for row in adjustments)
        insights.append(f"Adjustment Detected: {format_money(amount, currency)} system adjustment applied")

    if model == BillingModel.TIME_AND_MATERIALS:
        if as_float(totals.net_profit) < 0.0:
            insights.append("Budget Cap Exceeded: Total costs have surpassed the estimated T&M budget.")
        if totals.billable_efficiency < LOW_EFFICIENCY_THRESHOLD:
            insights.append(
                f"Low Efficiency: Only {totals.billable_efficiency * 100:.1f}% of logged hours are billable."
            )

    return insights


def overdue_cost_impact(project: Project, total_cost: float, today: date | None = None) -> str | None:
    """Cost impact of running past the deadline, priced at the average daily burn.

    Returns None when the project has no deadline or is not overdue.
    """
    today = today or date.today()
    deadline = parse_date(project.deadline)
    if deadline is None or deadline >= today:
        return None

    days_over = (today - deadline).days
    start = (
        parse_date(project.start_date)
        or parse_date(project.contract_start_date)
        or today - timedelta(days=DEFAULT_BURN_WINDOW_DAYS)
    )
    elapsed = max(1, (today - start).days)
    daily_burn = as_float(total_cost) / elapsed

    if BillingModel.coerce(project.billing_model) == BillingModel.RETAINER:
        return (
            f"Timeline deviation detected ({days_over} days). "
            "Impact assessed via cost over-servicing, not schedule."
        )
    impact = format_money(days_over * daily_burn, getattr(project, "currency", None))
    return f"Project exceeded by {days_over} days → {impact} cost impact."


__all__ = [
    "EXPENSE_DOMINANCE_THRESHOLD",
    "LOW_EFFICIENCY_THRESHOLD",
    "detect_leakage",
    "overdue_cost_impact",
]
