from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from sqlalchemy.orm import Session

from core.interfaces import ConversionRateService
from core.services.profitability import ProfitabilityReportView, ProfitabilityService
from infra.config import Settings
from infra.db.repositories import (
    SqlAlchemyExchangeRateRepository,
    SqlAlchemyExpenseRepository,
    SqlAlchemyMilestoneRepository,
    SqlAlchemyProjectRepository,
    SqlAlchemyTaskRepository,
    SqlAlchemyTimesheetRepository,
    SqlAlchemyUserRepository,
)
from infra.rates import HttpConversionRateService, StoredConversionRateService


@dataclass(frozen=True)
class ServiceGraph:
    session: Session
    settings: Settings
    project_repo: SqlAlchemyProjectRepository
    milestone_repo: SqlAlchemyMilestoneRepository
    task_repo: SqlAlchemyTaskRepository
    timesheet_repo: SqlAlchemyTimesheetRepository
    expense_repo: SqlAlchemyExpenseRepository
    user_repo: SqlAlchemyUserRepository
    exchange_rate_repo: SqlAlchemyExchangeRateRepository
    rate_service: ConversionRateService
    profitability_service: ProfitabilityService
    rate_session: Session | None = None

    def open_report_view(
        self,
        project_id: str,
        display_currency: str | None = None,
        **filters: Any,
    ) -> ProfitabilityReportView:
        return ProfitabilityReportView(
            self.profitability_service,
            project_id,
            display_currency or self.settings.display_currency,
            self.rate_service,
            max_workers=self.settings.rate_max_workers,
            **filters,
        )

    def close(self) -> None:
        if self.rate_session is not None:
            self.rate_session.close()

    def as_dict(self) -> dict[str, Any]:
        return {
            "session": self.session,
            "settings": self.settings,
            "project_repo": self.project_repo,
            "milestone_repo": self.milestone_repo,
            "task_repo": self.task_repo,
            "timesheet_repo": self.timesheet_repo,
            "expense_repo": self.expense_repo,
            "user_repo": self.user_repo,
            "exchange_rate_repo": self.exchange_rate_repo,
            "rate_service": self.rate_service,
            "profitability_service": self.profitability_service,
        }


def build_rate_service(
    settings: Settings,
    exchange_rate_repo: SqlAlchemyExchangeRateRepository | None = None,
) -> ConversionRateService:
    """HTTP backend by default; stored EUR quotes when ``rate_source`` is "stored"."""
    if settings.rate_source != "stored" or exchange_rate_repo is None:
        return HttpConversionRateService(settings.rate_service_url, timeout=settings.rate_timeout_seconds)
    return StoredConversionRateService(
        exchange_rate_repo,
        max_age=timedelta(hours=settings.rate_freshness_hours),
    )


def build_service_graph(
    session: Session,
    settings: Settings | None = None,
    *,
    rate_service: ConversionRateService | None = None,
) -> ServiceGraph:
    settings = settings or Settings.from_env()
    project_repo = SqlAlchemyProjectRepository(session)
    milestone_repo = SqlAlchemyMilestoneRepository(session)
    task_repo = SqlAlchemyTaskRepository(session)
    timesheet_repo = SqlAlchemyTimesheetRepository(session)
    expense_repo = SqlAlchemyExpenseRepository(session)
    user_repo = SqlAlchemyUserRepository(session)
    exchange_rate_repo = SqlAlchemyExchangeRateRepository(session)

    rate_session: Session | None = None
    if rate_service is None:
        if settings.rate_source == "stored":
            # rate lookups run on worker threads, so they get their own session
            rate_session = Session(bind=session.get_bind())
            rate_service = build_rate_service(settings, SqlAlchemyExchangeRateRepository(rate_session))
        else:
            rate_service = build_rate_service(settings)

    profitability_service = ProfitabilityService(
        project_repo=project_repo,
        milestone_repo=milestone_repo,
        task_repo=task_repo,
        timesheet_repo=timesheet_repo,
        expense_repo=expense_repo,
        user_repo=user_repo,
    )

    return ServiceGraph(
        session=session,
        settings=settings,
        project_repo=project_repo,
        milestone_repo=milestone_repo,
        task_repo=task_repo,
        timesheet_repo=timesheet_repo,
        expense_repo=expense_repo,
        user_repo=user_repo,
        exchange_rate_repo=exchange_rate_repo,
        rate_service=rate_service,
        profitability_service=profitability_service,
        rate_session=rate_session,
    )
