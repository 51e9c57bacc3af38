from __future__ import annotations

from typing import Callable, Iterable

from core.domain import BillingModel, Milestone, Money, RowType
from core.services.profitability.helpers import UNASSIGNED, as_float, enum_token, percent, safe_ratio
from core.services.profitability.models import (
    BudgetResolution,
    CostRow,
    MilestonePnL,
    PnLAggregation,
    PnLTotals,
    UnallocatedPnL,
)

BudgetResolver = Callable[[str | None], BudgetResolution]


def labor_leakage(rows: Iterable[CostRow]) -> float:
    """Logged labor cost that never became approved, billable cost."""
    logged = 0.0
    approved = 0.0
    for row in rows:
        if row.type != RowType.LABOR:
            continue
        logged += row.logged_cost
        approved += row.cost
    return max(0.0, logged - approved)


def model_leakage(model: BillingModel | str, *, total_cost: float, budget: float, labor_leak: float) -> float:
    model = BillingModel.coerce(model)
    if model == BillingModel.RETAINER:
        return max(0.0, total_cost - budget)
    if model == BillingModel.TIME_AND_MATERIALS:
        # overrun is reported as a budget-cap insight, not leakage
        return max(0.0, labor_leak)
    if model == BillingModel.NON_BILLABLE:
        return max(0.0, total_cost)
    return max(0.0, total_cost - budget) + max(0.0, labor_leak)


def _sum_costs(rows: list[CostRow]) -> tuple[float, float, float, float]:
    labor = 0.0
    expense = 0.0
    logged_hours = 0.0
    approved_hours = 0.0
    for row in rows:
        if row.type == RowType.LABOR:
            labor += row.cost
            logged_hours += row.logged_hours
            approved_hours += row.approved_hours
        else:
            expense += row.cost
    return labor, expense, logged_hours, approved_hours


def build_milestone_pnl(
    milestone: Milestone,
    rows: list[CostRow],
    *,
    budget: float,
    currency: str,
) -> MilestonePnL:
    labor, expense, logged_hours, approved_hours = _sum_costs(rows)
    total = labor + expense
    profit = budget - total
    return MilestonePnL(
        milestone_id=milestone.id,
        name=milestone.name,
        currency=currency,
        budget=budget,
        labor_cost=labor,
        expense_cost=expense,
        total_phase_cost=total,
        phase_profit=profit,
        margin_percent=percent(profit, budget),
        logged_hours=logged_hours,
        approved_hours=approved_hours,
        expense_budget=as_float(milestone.expense_budget),
        due_date=milestone.due_date,
        status=(enum_token(milestone.status) or None),
    )


def aggregate(
    rows: Iterable[CostRow],
    milestones: Iterable[Milestone],
    budget_resolver: BudgetResolver,
    *,
    scope_milestone_id: str | None = None,
    expense_budget: Money | None = None,
) -> PnLAggregation:
    """Roll normalized rows up into milestone and project profit/loss.

    Project totals are the sum of milestone totals plus unallocated cost, so
    the milestone table always reconciles with the summary.
    """
    rows = list(rows)
    milestones = list(milestones)
    scope_budget = budget_resolver(scope_milestone_id)
    currency = scope_budget.total.currency

    rows_by_milestone: dict[str, list[CostRow]] = {m.id: [] for m in milestones}
    unallocated_rows: list[CostRow] = []
    for row in rows:
        bucket = rows_by_milestone.get(row.milestone_id) if row.milestone_id != UNASSIGNED else None
        if bucket is None:
            unallocated_rows.append(row)
        else:
            bucket.append(row)

    per_milestone: list[MilestonePnL] = []
    for milestone in milestones:
        per_milestone.append(
            build_milestone_pnl(
                milestone,
                rows_by_milestone[milestone.id],
                budget=budget_resolver(milestone.id).amount,
                currency=currency,
            )
        )

    u_labor, u_expense, u_logged, u_approved = _sum_costs(unallocated_rows)
    unallocated = UnallocatedPnL(
        currency=currency,
        labor_cost=u_labor,
        expense_cost=u_expense,
        total_cost=u_labor + u_expense,
        logged_hours=u_logged,
        approved_hours=u_approved,
    )

    total_cost = 0.0
    labor_cost = 0.0
    expense_cost = 0.0
    logged_hours = 0.0
    approved_hours = 0.0
    for phase in per_milestone:
        total_cost += phase.total_phase_cost
        labor_cost += phase.labor_cost
        expense_cost += phase.expense_cost
        logged_hours += phase.logged_hours
        approved_hours += phase.approved_hours
    total_cost += unallocated.total_cost
    labor_cost += unallocated.labor_cost
    expense_cost += unallocated.expense_cost
    logged_hours += unallocated.logged_hours
    approved_hours += unallocated.approved_hours

    non_billable_hours = sum(row.non_billable_hours for row in rows if row.type == RowType.LABOR)
    logged_cost = sum(row.logged_cost for row in rows)
    labor_leak = labor_leakage(rows)

    budget = scope_budget.amount
    leakage = model_leakage(scope_budget.model, total_cost=total_cost, budget=budget, labor_leak=labor_leak)
    net_profit = budget - total_cost
    expense_cap = expense_budget.amount if expense_budget is not None else 0.0

    totals = PnLTotals(
        currency=currency,
        model=scope_budget.model,
        budget=budget,
        labor_cost=labor_cost,
        expense_cost=expense_cost,
        total_cost=total_cost,
        logged_cost=logged_cost,
        unallocated_cost=unallocated.total_cost,
        net_profit=net_profit,
        margin_percent=percent(net_profit, budget),
        labor_leakage=labor_leak,
        leakage=leakage,
        leakage_percent=percent(leakage, budget),
        logged_hours=logged_hours,
        approved_hours=approved_hours,
        non_billable_hours=non_billable_hours,
        billable_efficiency=float(safe_ratio(approved_hours, logged_hours) or 0.0),
        expense_budget=expense_cap,
        expense_budget_used_percent=percent(expense_cost, expense_cap),
    )
    return PnLAggregation(per_milestone=per_milestone, unallocated=unallocated, totals=totals)


__all__ = ["BudgetResolver", "labor_leakage", "model_leakage", "build_milestone_pnl", "aggregate"]
