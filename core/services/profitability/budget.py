from __future__ import annotations

import math
from datetime import date
from typing import Iterable

from core.domain import BillingModel, Milestone, Money, Project, RetainerPeriod, normalize_currency
from core.services.profitability.helpers import as_float, month_difference, parse_date
from core.services.profitability.models import BudgetResolution


def retainer_periods(start: date, end: date, period: RetainerPeriod | str) -> int:
    """Number of billable retainer periods between two dates, never below 1.

    A started month counts once its day-of-month is passed; quarters and years
    are whole months rounded up.
    """
    period = RetainerPeriod.coerce(period)
    if end <= start:
        return 1

    months = month_difference(start, end) + (1 if end.day > start.day else 0)
    if period == RetainerPeriod.WEEK:
        count = math.ceil((end - start).days / 7)
    elif period == RetainerPeriod.QUARTER:
        count = math.ceil(months / 3)
    elif period == RetainerPeriod.YEAR:
        count = math.ceil(months / 12)
    else:
        count = months
    return max(1, int(count))


def _project_currency(project: Project) -> str:
    return normalize_currency(getattr(project, "currency", None))


def resolve_project_budget(project: Project, *, today: date | None = None) -> BudgetResolution:
    currency = _project_currency(project)
    model = BillingModel.coerce(project.billing_model)

    if model == BillingModel.RETAINER:
        amount = as_float(project.retainer_amount)
        start = parse_date(project.contract_start_date)
        if amount <= 0.0 or start is None:
            return BudgetResolution(total=Money(0.0, currency), model=model, details={"amount_per_period": amount})
        end = parse_date(project.contract_end_date) or today or date.today()
        period = RetainerPeriod.coerce(project.retainer_period)
        periods = retainer_periods(start, end, period)
        return BudgetResolution(
            total=Money(amount * periods, currency),
            model=model,
            periods=periods,
            details={
                "period": period.value,
                "amount_per_period": amount,
                "start_date": start,
                "end_date": end,
            },
        )

    if model == BillingModel.TIME_AND_MATERIALS:
        hours = as_float(project.estimated_duration)
        rate = as_float(project.default_bill_rate_per_hour)
        return BudgetResolution(
            total=Money(hours * rate, currency),
            model=model,
            details={"hours": hours, "rate": rate},
        )

    if model == BillingModel.NON_BILLABLE:
        return BudgetResolution(total=Money(0.0, currency), model=model)

    amount = as_float(project.contract_amount) or as_float(project.budget)
    return BudgetResolution(
        total=Money(amount, currency),
        model=BillingModel.FIXED_PRICE,
        details={"amount": amount} if amount > 0.0 else {},
    )


def resolve_budget(
    project: Project,
    milestones: Iterable[Milestone] = (),
    scope_milestone_id: str | None = None,
    *,
    today: date | None = None,
) -> BudgetResolution:
    """Contract value that applies to the report scope, in project currency.

    A scoped milestone is always a discrete contracted amount, so it resolves
    as fixed-price whatever the project's billing model.
    """
    if scope_milestone_id:
        milestone = next((m for m in milestones if m.id == scope_milestone_id), None)
        if milestone is not None:
            value = as_float(milestone.budget_value)
            return BudgetResolution(
                total=Money(value, _project_currency(project)),
                model=BillingModel.FIXED_PRICE,
                details={"milestone_id": milestone.id, "milestone_name": milestone.name},
            )
    return resolve_project_budget(project, today=today)


def resolve_expense_budget(project: Project, milestone: Milestone | None = None) -> Money:
    currency = _project_currency(project)
    if milestone is not None:
        return Money(as_float(milestone.expense_budget), currency)
    raw = as_float(project.expense_budget)
    if BillingModel.coerce(project.billing_model) == BillingModel.TIME_AND_MATERIALS:
        raw *= as_float(project.estimated_duration)
    return Money(raw, currency)


__all__ = [
    "retainer_periods",
    "resolve_project_budget",
    "resolve_budget",
    "resolve_expense_budget",
]
