from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

from core.domain import DEFAULT_CURRENCY_CODE, Milestone, normalize_currency
from core.exceptions import NotFoundError, ValidationError
from core.interfaces import (
    ExpenseRepository,
    MilestoneRepository,
    ProjectRepository,
    TaskRepository,
    TimesheetRepository,
    UserRepository,
)
from core.services.profitability.aggregator import aggregate
from core.services.profitability.budget import resolve_budget, resolve_expense_budget
from core.services.profitability.currency import ConversionRateCache
from core.services.profitability.health import score
from core.services.profitability.helpers import percent
from core.services.profitability.leakage import detect_leakage, overdue_cost_impact
from core.services.profitability.models import PortfolioSummary, ProfitabilitySnapshot
from core.services.profitability.normalizer import normalize

logger = logging.getLogger(__name__)


class ProfitabilityService:
    """Project and portfolio profit/loss read models over the entity repositories."""

    def __init__(
        self,
        *,
        project_repo: ProjectRepository,
        milestone_repo: MilestoneRepository,
        task_repo: TaskRepository,
        timesheet_repo: TimesheetRepository,
        expense_repo: ExpenseRepository,
        user_repo: UserRepository,
    ) -> None:
        self._project_repo: ProjectRepository = project_repo
        self._milestone_repo: MilestoneRepository = milestone_repo
        self._task_repo: TaskRepository = task_repo
        self._timesheet_repo: TimesheetRepository = timesheet_repo
        self._expense_repo: ExpenseRepository = expense_repo
        self._user_repo: UserRepository = user_repo

    def get_profitability_snapshot(
        self,
        project_id: str,
        *,
        rate_cache: ConversionRateCache,
        milestone_id: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        today: date | None = None,
    ) -> ProfitabilitySnapshot:
        """Compute the report for one project with whatever rates are cached now.

        Missing rates are requested on ``rate_cache`` without waiting; the
        snapshot reports them through ``rates_pending`` and the figures use a
        rate of 1.0 until they arrive.
        """
        if date_from is not None and date_to is not None and date_from > date_to:
            raise ValidationError("Report start date must not be after its end date.", code="INVALID_DATE_RANGE")
        today = today or date.today()
        project = self._project_repo.get(project_id)
        if project is None:
            raise NotFoundError("Project not found.", code="PROJECT_NOT_FOUND")

        project_currency = normalize_currency(getattr(project, "currency", None))
        milestones = self._milestone_repo.list_by_project(project_id)
        tasks = self._task_repo.list_by_project(project_id)
        timesheets = self._timesheet_repo.list_by_project(project_id)
        expenses = self._expense_repo.list_by_project(project_id)
        users = self._user_repo.list_by_emails({t.user_email for t in timesheets if t.user_email})
        notes: list[str] = []

        scope: Milestone | None = None
        if milestone_id:
            scope = next((m for m in milestones if m.id == milestone_id), None)
            if scope is None:
                notes.append("Selected milestone was not found; showing the whole project.")
            else:
                timesheets = [t for t in timesheets if t.milestone_id == scope.id]
                expenses = [e for e in expenses if e.milestone_id == scope.id]
                milestones = [scope]

        known_emails = {str(u.email or "").strip().lower() for u in users}
        needed = {project_currency}
        needed.update(normalize_currency(u.ctc_currency) for u in users)
        needed.update(normalize_currency(e.currency, project_currency) for e in expenses)
        if any(str(t.user_email or "").strip().lower() not in known_emails for t in timesheets):
            needed.add(DEFAULT_CURRENCY_CODE)
        rate_cache.request_rates(needed)

        rows = normalize(
            timesheets,
            expenses,
            users,
            tasks,
            milestones,
            project_currency,
            rate_cache.rate,
            date_from=date_from,
            date_to=date_to,
        )
        scope_id = scope.id if scope is not None else None
        budget = resolve_budget(project, milestones, scope_id, today=today)
        aggregation = aggregate(
            rows,
            milestones,
            lambda mid: resolve_budget(project, milestones, mid, today=today),
            scope_milestone_id=scope_id,
            expense_budget=resolve_expense_budget(project, scope),
        )
        totals = aggregation.totals
        health = score(project, rows, budget, totals, tasks=tasks, milestone=scope, today=today)
        insights = detect_leakage(project, rows, totals, budget)
        overdue = overdue_cost_impact(project, totals.total_cost, today) if scope is None else None

        missing = rate_cache.missing_currencies()
        if missing:
            notes.append(
                "Conversion rates pending for "
                + ", ".join(missing)
                + "; affected amounts use a rate of 1.0 until they resolve."
            )
        for currency, reason in sorted(rate_cache.unavailable_currencies().items()):
            notes.append(f"Rate unavailable for {currency}: {reason}")

        logger.debug(
            "Profitability snapshot project=%s milestone=%s rows=%s pending=%s",
            project_id,
            scope_id,
            len(rows),
            missing,
        )
        return ProfitabilitySnapshot(
            project_id=project_id,
            project_name=getattr(project, "name", "") or "",
            project_currency=project_currency,
            display_currency=rate_cache.target_currency,
            milestone_id=scope_id,
            budget=budget,
            budget_display=rate_cache.convert(budget.total),
            rows=rows,
            aggregation=aggregation,
            health=health,
            insights=insights,
            overdue_impact=overdue,
            rates_pending=bool(missing),
            missing_currencies=missing,
            notes=notes,
        )

    def get_portfolio_summary(
        self,
        project_ids: Iterable[str] | None = None,
        *,
        rate_cache: ConversionRateCache,
        date_from: date | None = None,
        date_to: date | None = None,
        today: date | None = None,
    ) -> PortfolioSummary:
        """Per-project snapshots plus totals converted into the display currency."""
        if project_ids is None:
            project_ids = [p.id for p in self._project_repo.list_all()]

        snapshots: list[ProfitabilitySnapshot] = []
        revenue = labor = expense = cost = leakage = 0.0
        for project_id in project_ids:
            snap = self.get_profitability_snapshot(
                project_id,
                rate_cache=rate_cache,
                date_from=date_from,
                date_to=date_to,
                today=today,
            )
            snapshots.append(snap)
            to_display = rate_cache.rate(snap.project_currency, rate_cache.target_currency)
            totals = snap.totals
            revenue += totals.budget * to_display
            labor += totals.labor_cost * to_display
            expense += totals.expense_cost * to_display
            cost += totals.total_cost * to_display
            leakage += totals.leakage * to_display

        profit = revenue - cost
        logger.info("Portfolio summary built for %s projects in %s", len(snapshots), rate_cache.target_currency)
        return PortfolioSummary(
            display_currency=rate_cache.target_currency,
            projects=snapshots,
            total_revenue=revenue,
            total_labor_cost=labor,
            total_expense_cost=expense,
            total_cost=cost,
            total_profit=profit,
            total_leakage=leakage,
            margin_percent=percent(profit, revenue),
            leakage_percent=percent(leakage, revenue),
            rates_pending=rate_cache.rates_pending,
        )


__all__ = ["ProfitabilityService"]
