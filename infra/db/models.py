# infra/db/models.py
from __future__ import annotations
from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from infra.db.base import Base
from core.models import (
    ExpenseStatus,
    MilestoneStatus,
    ProjectStatus,
    TaskStatus,
    TimesheetStatus,
)


class ProjectORM(Base):
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    currency: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)  # EUR, USD, INR...
    # free text so legacy/unknown models load and resolve as fixed_price
    billing_model: Mapped[str] = mapped_column(String(32), default="fixed_price", nullable=False)
    contract_amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    budget: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    retainer_amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    retainer_period: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    contract_start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    contract_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    estimated_duration: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    default_bill_rate_per_hour: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    expense_budget: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    deadline: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[ProjectStatus] = mapped_column(
        SAEnum(ProjectStatus), default=ProjectStatus.ACTIVE, nullable=False
    )
    progress: Mapped[float] = mapped_column(Float, default=0.0)
    risk_level: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)


class MilestoneORM(Base):
    __tablename__ = "milestones"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    project_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    budget_value: Mapped[float] = mapped_column(Float, default=0.0)
    expense_budget: Mapped[float] = mapped_column(Float, default=0.0)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[MilestoneStatus] = mapped_column(
        SAEnum(MilestoneStatus), default=MilestoneStatus.PENDING, nullable=False
    )
Index("idx_milestones_project_id", MilestoneORM.project_id)


class TaskORM(Base):
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    project_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    milestone_id: Mapped[Optional[str]] = mapped_column(
        String, ForeignKey("milestones.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(String, default="")
    status: Mapped[TaskStatus] = mapped_column(
        SAEnum(TaskStatus), default=TaskStatus.TODO, nullable=False
    )
Index("idx_tasks_project_id", TaskORM.project_id)


class UserORM(Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String, primary_key=True)
    full_name: Mapped[str] = mapped_column(String, default="")
    hourly_rate: Mapped[float] = mapped_column(Float, default=0.0)
    ctc_currency: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)


class TimesheetORM(Base):
    __tablename__ = "timesheets"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    user_email: Mapped[str] = mapped_column(String, nullable=False)
    project_id: Mapped[str] = mapped_column(
        String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    # no FK: dangling task/milestone references are tolerated and reported as unassigned
    task_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    milestone_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    work_date: Mapped[Optional[date]] = mapped_column("date", Date, nullable=True)
    total_minutes: Mapped[float] = mapped_column(Float, default=0.0)
    is_billable: Mapped[bool] = mapped_column(Boolean, default=True)
    status: Mapped[TimesheetStatus] = mapped_column(
        SAEnum(TimesheetStatus), default=TimesheetStatus.SUBMITTED, nullable=False
    )
    snapshot_hourly_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    snapshot_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    snapshot_total_cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    hourly_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
Index("idx_timesheets_project_id", TimesheetORM.project_id)


class ExpenseORM(Base):
    __tablename__ = "expenses"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    project_id: Mapped[str] = mapped_column(
        String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    milestone_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    amount: Mapped[float] = mapped_column(Float, default=0.0)
    currency: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    category: Mapped[str] = mapped_column(String, default="")
    description: Mapped[str] = mapped_column(String, default="")
    vendor: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    status: Mapped[ExpenseStatus] = mapped_column(
        SAEnum(ExpenseStatus), default=ExpenseStatus.APPROVED, nullable=False
    )
    incurred_date: Mapped[Optional[date]] = mapped_column("date", Date, nullable=True)
Index("idx_expenses_project_id", ExpenseORM.project_id)


class ExchangeRateORM(Base):
    """EUR-based reference rate: 1 EUR = ``rate`` units of ``currency``."""

    __tablename__ = "exchange_rates"
    __table_args__ = (UniqueConstraint("base_currency", "currency", name="ux_exchange_rates_pair"),)

    id: Mapped[str] = mapped_column(String, primary_key=True)
    base_currency: Mapped[str] = mapped_column(String(8), default="EUR", nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False)
    rate: Mapped[float] = mapped_column(Float, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
