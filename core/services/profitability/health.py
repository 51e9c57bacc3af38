from __future__ import annotations

import math
from datetime import date
from typing import Iterable

from core.domain import BillingModel, Milestone, MilestoneStatus, Project, RiskTier, RowType, Task
from core.services.profitability.classifiers import any_rework
from core.services.profitability.helpers import as_float, enum_token, parse_date, safe_ratio
from core.services.profitability.models import BudgetResolution, CostRow, HealthScore, PnLTotals

# (upper bound exclusive, tier), checked in order
RETAINER_TIER_THRESHOLDS: tuple[tuple[int, RiskTier], ...] = (
    (40, RiskTier.CRITICAL),
    (60, RiskTier.HIGH_RISK),
    (80, RiskTier.AT_RISK),
)
STANDARD_TIER_THRESHOLDS: tuple[tuple[int, RiskTier], ...] = (
    (40, RiskTier.CRITICAL),
    (60, RiskTier.HIGH_RISK),
    (80, RiskTier.AT_RISK),
)

RISK_LEVEL_PENALTY = {"critical": 20.0, "high": 15.0, "medium": 5.0}
COMPLETED_TASK_STATUSES = {"completed", "done"}


def _tier(score: int, thresholds: tuple[tuple[int, RiskTier], ...]) -> RiskTier:
    for upper, tier in thresholds:
        if score < upper:
            return tier
    return RiskTier.HEALTHY


def _round_half_up(value: float) -> int:
    if not math.isfinite(value):
        return 0
    return int(math.floor(value + 0.5))


def _clamp_score(value: float) -> int:
    return max(0, min(100, _round_half_up(value)))


def _labor_hours(rows: list[CostRow]) -> tuple[float, float]:
    logged = sum(r.logged_hours for r in rows if r.type == RowType.LABOR)
    approved = sum(r.approved_hours for r in rows if r.type == RowType.LABOR)
    return logged, approved


def retainer_score(
    rows: list[CostRow],
    budget: BudgetResolution,
    totals: PnLTotals,
    tasks: Iterable[Task] = (),
) -> HealthScore:
    retainer_value = budget.amount
    components: dict[str, float] = {}

    billable_value = sum(
        as_float(r.approved_hours) * as_float(r.hourly_rate) for r in rows if r.type == RowType.LABOR
    )
    realization = float(safe_ratio(billable_value, retainer_value) or 0.0)
    if 0.7 <= realization <= 1.1:
        components["revenue_realization"] = 25.0
    elif realization > 0.4:
        components["revenue_realization"] = 15.0
    else:
        components["revenue_realization"] = 5.0

    cost_ratio = float(safe_ratio(totals.total_cost, retainer_value) or 0.0)
    if cost_ratio <= 0.8:
        components["cost_control"] = 25.0
    elif cost_ratio <= 1.0:
        components["cost_control"] = 15.0
    elif cost_ratio <= 1.2:
        components["cost_control"] = 5.0
    else:
        components["cost_control"] = 0.0

    logged, approved = _labor_hours(rows)
    efficiency = float(safe_ratio(approved, logged) or 0.0)
    if efficiency >= 0.85:
        components["utilization_balance"] = 25.0
    elif efficiency >= 0.70:
        components["utilization_balance"] = 15.0
    else:
        components["utilization_balance"] = 5.0

    texts = [(t.title, t.description) for t in tasks]
    texts.extend((r.task_title, None) for r in rows if r.type == RowType.LABOR)
    components["quality"] = 10.0 if any_rework(texts) else 25.0

    score = _clamp_score(sum(components.values()))
    return HealthScore(
        score=score,
        tier=_tier(score, RETAINER_TIER_THRESHOLDS),
        formula="retainer",
        components=components,
    )


def _scope_progress(project: Project, tasks: list[Task], milestone: Milestone | None) -> float:
    if milestone is None:
        return as_float(project.progress)
    if enum_token(milestone.status) == MilestoneStatus.COMPLETED.value:
        return 100.0
    completed = sum(1 for t in tasks if enum_token(t.status) in COMPLETED_TASK_STATUSES)
    return float(safe_ratio(completed, len(tasks)) or 0.0) * 100.0


def standard_score(
    project: Project,
    budget: BudgetResolution,
    totals: PnLTotals,
    tasks: Iterable[Task] = (),
    *,
    milestone: Milestone | None = None,
    today: date | None = None,
) -> HealthScore:
    today = today or date.today()
    tasks = list(tasks)
    if milestone is not None:
        tasks = [t for t in tasks if t.milestone_id == milestone.id]
    components: dict[str, float] = {"base": 70.0}

    components["progress"] = _scope_progress(project, tasks, milestone) * 0.3

    completed = sum(1 for t in tasks if enum_token(t.status) in COMPLETED_TASK_STATUSES)
    components["task_completion"] = float(safe_ratio(completed, len(tasks)) or 0.0) * 20.0

    due = parse_date(milestone.due_date if milestone is not None else project.deadline)
    deadline_penalty = 0.0
    if due is not None:
        days_left = (due - today).days
        if days_left < 0:
            deadline_penalty = -20.0
        elif days_left < 7:
            deadline_penalty = -10.0
    components["deadline"] = deadline_penalty

    budget_penalty = 0.0
    if budget.amount > 0.0:
        utilization = as_float(totals.total_cost) / budget.amount
        if utilization > 1.0:
            budget_penalty = -40.0
        elif utilization > 0.9:
            budget_penalty = -20.0
        elif utilization > 0.75:
            budget_penalty = -10.0
    components["budget_utilization"] = budget_penalty

    raw = sum(components.values())
    status = enum_token(project.status)
    if status == "on_hold":
        components["status"] = -15.0
        raw -= 15.0
    if status == "completed":
        components["status"] = 100.0 - raw
        raw = 100.0

    risk_penalty = RISK_LEVEL_PENALTY.get(enum_token(project.risk_level), 0.0)
    if risk_penalty:
        components["risk_level"] = -risk_penalty
        raw -= risk_penalty

    score = _clamp_score(raw)
    return HealthScore(
        score=score,
        tier=_tier(score, STANDARD_TIER_THRESHOLDS),
        formula="standard",
        components=components,
    )


def score(
    project: Project,
    rows: Iterable[CostRow],
    budget: BudgetResolution,
    totals: PnLTotals,
    *,
    tasks: Iterable[Task] = (),
    milestone: Milestone | None = None,
    today: date | None = None,
) -> HealthScore:
    """0-100 health score; retainer engagements use their own formula."""
    rows = list(rows)
    if BillingModel.coerce(budget.model) == BillingModel.RETAINER:
        return retainer_score(rows, budget, totals, tasks)
    return standard_score(project, budget, totals, tasks, milestone=milestone, today=today)


__all__ = [
    "RETAINER_TIER_THRESHOLDS",
    "STANDARD_TIER_THRESHOLDS",
    "retainer_score",
    "standard_score",
    "score",
]
