# infra/db/repositories.py
from __future__ import annotations
from typing import Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from core.interfaces import (
    ExchangeRateRepository,
    ExpenseRepository,
    MilestoneRepository,
    ProjectRepository,
    TaskRepository,
    TimesheetRepository,
    UserRepository,
)
from core.models import (
    ExchangeRate,
    ExpenseRecord,
    Milestone,
    Project,
    Task,
    TimesheetEntry,
    UserProfile,
    generate_id,
)
from infra.db.mappers import (
    expense_from_orm,
    expense_to_orm,
    milestone_from_orm,
    milestone_to_orm,
    project_from_orm,
    project_to_orm,
    task_from_orm,
    task_to_orm,
    timesheet_from_orm,
    timesheet_to_orm,
    user_from_orm,
    user_to_orm,
)
from infra.db.models import (
    ExchangeRateORM,
    ExpenseORM,
    MilestoneORM,
    ProjectORM,
    TaskORM,
    TimesheetORM,
    UserORM,
)


class SqlAlchemyProjectRepository(ProjectRepository):
    def __init__(self, session: Session):
        self.session = session

    def add(self, project: Project) -> None:
        self.session.add(project_to_orm(project))

    def get(self, project_id: str) -> Optional[Project]:
        obj = self.session.get(ProjectORM, project_id)
        return project_from_orm(obj) if obj else None

    def list_all(self) -> List[Project]:
        stmt = select(ProjectORM).order_by(ProjectORM.name)
        rows = self.session.execute(stmt).scalars().all()
        return [project_from_orm(row) for row in rows]


class SqlAlchemyMilestoneRepository(MilestoneRepository):
    def __init__(self, session: Session):
        self.session = session

    def add(self, milestone: Milestone) -> None:
        self.session.add(milestone_to_orm(milestone))

    def list_by_project(self, project_id: str) -> List[Milestone]:
        stmt = (
            select(MilestoneORM)
            .where(MilestoneORM.project_id == project_id)
            .order_by(MilestoneORM.due_date, MilestoneORM.name)
        )
        rows = self.session.execute(stmt).scalars().all()
        return [milestone_from_orm(row) for row in rows]


class SqlAlchemyTaskRepository(TaskRepository):
    def __init__(self, session: Session):
        self.session = session

    def add(self, task: Task) -> None:
        self.session.add(task_to_orm(task))

    def list_by_project(self, project_id: str) -> List[Task]:
        stmt = select(TaskORM).where(TaskORM.project_id == project_id)
        rows = self.session.execute(stmt).scalars().all()
        return [task_from_orm(row) for row in rows]


class SqlAlchemyTimesheetRepository(TimesheetRepository):
    def __init__(self, session: Session):
        self.session = session

    def add(self, entry: TimesheetEntry) -> None:
        self.session.add(timesheet_to_orm(entry))

    def list_by_project(self, project_id: str) -> List[TimesheetEntry]:
        stmt = (
            select(TimesheetORM)
            .where(TimesheetORM.project_id == project_id)
            .order_by(TimesheetORM.work_date, TimesheetORM.id)
        )
        rows = self.session.execute(stmt).scalars().all()
        return [timesheet_from_orm(row) for row in rows]


class SqlAlchemyExpenseRepository(ExpenseRepository):
    def __init__(self, session: Session):
        self.session = session

    def add(self, expense: ExpenseRecord) -> None:
        self.session.add(expense_to_orm(expense))

    def list_by_project(self, project_id: str) -> List[ExpenseRecord]:
        stmt = (
            select(ExpenseORM)
            .where(ExpenseORM.project_id == project_id)
            .order_by(ExpenseORM.incurred_date, ExpenseORM.id)
        )
        rows = self.session.execute(stmt).scalars().all()
        return [expense_from_orm(row) for row in rows]


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, session: Session):
        self.session = session

    def add(self, user: UserProfile) -> None:
        self.session.add(user_to_orm(user))

    def list_by_emails(self, emails: Iterable[str]) -> List[UserProfile]:
        wanted = {str(e or "").strip().lower() for e in emails if e}
        if not wanted:
            return []
        stmt = select(UserORM).where(func.lower(UserORM.email).in_(wanted))
        rows = self.session.execute(stmt).scalars().all()
        return [user_from_orm(row) for row in rows]


class SqlAlchemyExchangeRateRepository(ExchangeRateRepository):
    def __init__(self, session: Session):
        self.session = session

    def get(self, currency: str, base_currency: str = "EUR") -> Optional[ExchangeRate]:
        stmt = select(ExchangeRateORM).where(
            ExchangeRateORM.base_currency == base_currency,
            ExchangeRateORM.currency == currency,
        )
        obj = self.session.execute(stmt).scalars().first()
        if obj is None:
            return None
        return ExchangeRate(
            currency=obj.currency,
            rate=float(obj.rate),
            updated_at=obj.updated_at,
            base_currency=obj.base_currency,
        )

    def upsert(self, rate: ExchangeRate) -> None:
        stmt = select(ExchangeRateORM).where(
            ExchangeRateORM.base_currency == rate.base_currency,
            ExchangeRateORM.currency == rate.currency,
        )
        obj = self.session.execute(stmt).scalars().first()
        if obj is None:
            self.session.add(
                ExchangeRateORM(
                    id=generate_id(),
                    base_currency=rate.base_currency,
                    currency=rate.currency,
                    rate=rate.rate,
                    updated_at=rate.updated_at,
                )
            )
            return
        obj.rate = rate.rate
        obj.updated_at = rate.updated_at
