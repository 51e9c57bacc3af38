from __future__ import annotations

from core.models import (
    BillingModel,
    ExpenseRecord,
    Milestone,
    Project,
    RetainerPeriod,
    RiskLevel,
    Task,
    TimesheetEntry,
    UserProfile,
)
from infra.db.models import (
    ExpenseORM,
    MilestoneORM,
    ProjectORM,
    TaskORM,
    TimesheetORM,
    UserORM,
)


def _risk_level(value: str | None) -> RiskLevel | None:
    token = (value or "").strip().lower()
    try:
        return RiskLevel(token) if token else None
    except ValueError:
        return None


def project_to_orm(project: Project) -> ProjectORM:
    return ProjectORM(
        id=project.id,
        name=project.name,
        currency=project.currency,
        billing_model=str(getattr(project.billing_model, "value", project.billing_model) or ""),
        contract_amount=project.contract_amount,
        budget=project.budget,
        retainer_amount=project.retainer_amount,
        retainer_period=str(getattr(project.retainer_period, "value", project.retainer_period) or ""),
        contract_start_date=project.contract_start_date,
        contract_end_date=project.contract_end_date,
        start_date=project.start_date,
        estimated_duration=project.estimated_duration,
        default_bill_rate_per_hour=project.default_bill_rate_per_hour,
        expense_budget=project.expense_budget,
        deadline=project.deadline,
        status=project.status,
        progress=project.progress,
        risk_level=(getattr(project.risk_level, "value", project.risk_level) or None),
    )


def project_from_orm(obj: ProjectORM) -> Project:
    return Project(
        id=obj.id,
        name=obj.name,
        currency=obj.currency,
        billing_model=BillingModel.coerce(obj.billing_model),
        contract_amount=obj.contract_amount,
        budget=obj.budget,
        retainer_amount=obj.retainer_amount,
        retainer_period=RetainerPeriod.coerce(obj.retainer_period),
        contract_start_date=obj.contract_start_date,
        contract_end_date=obj.contract_end_date,
        start_date=obj.start_date,
        estimated_duration=obj.estimated_duration,
        default_bill_rate_per_hour=obj.default_bill_rate_per_hour,
        expense_budget=obj.expense_budget,
        deadline=obj.deadline,
        status=obj.status,
        progress=float(obj.progress or 0.0),
        risk_level=_risk_level(obj.risk_level),
    )


def milestone_to_orm(milestone: Milestone) -> MilestoneORM:
    return MilestoneORM(
        id=milestone.id,
        project_id=milestone.project_id,
        name=milestone.name,
        budget_value=milestone.budget_value,
        expense_budget=milestone.expense_budget,
        due_date=milestone.due_date,
        status=milestone.status,
    )


def milestone_from_orm(obj: MilestoneORM) -> Milestone:
    return Milestone(
        id=obj.id,
        project_id=obj.project_id,
        name=obj.name,
        budget_value=float(obj.budget_value or 0.0),
        expense_budget=float(obj.expense_budget or 0.0),
        due_date=obj.due_date,
        status=obj.status,
    )


def task_to_orm(task: Task) -> TaskORM:
    return TaskORM(
        id=task.id,
        project_id=task.project_id,
        milestone_id=task.milestone_id,
        title=task.title,
        description=task.description,
        status=task.status,
    )


def task_from_orm(obj: TaskORM) -> Task:
    return Task(
        id=obj.id,
        project_id=obj.project_id,
        title=obj.title,
        description=obj.description or "",
        status=obj.status,
        milestone_id=obj.milestone_id,
    )


def user_to_orm(user: UserProfile) -> UserORM:
    return UserORM(
        email=user.email,
        full_name=user.full_name,
        hourly_rate=user.hourly_rate,
        ctc_currency=user.ctc_currency,
    )


def user_from_orm(obj: UserORM) -> UserProfile:
    return UserProfile(
        email=obj.email,
        full_name=obj.full_name or "",
        hourly_rate=float(obj.hourly_rate or 0.0),
        ctc_currency=obj.ctc_currency,
    )


def timesheet_to_orm(entry: TimesheetEntry) -> TimesheetORM:
    return TimesheetORM(
        id=entry.id,
        user_email=entry.user_email,
        project_id=entry.project_id,
        task_id=entry.task_id,
        milestone_id=entry.milestone_id,
        work_date=entry.date,
        total_minutes=entry.total_minutes,
        is_billable=entry.is_billable,
        status=entry.status,
        snapshot_hourly_rate=entry.snapshot_hourly_rate,
        snapshot_rate=entry.snapshot_rate,
        snapshot_total_cost=entry.snapshot_total_cost,
        hourly_rate=entry.hourly_rate,
    )


def timesheet_from_orm(obj: TimesheetORM) -> TimesheetEntry:
    return TimesheetEntry(
        id=obj.id,
        user_email=obj.user_email,
        project_id=obj.project_id,
        task_id=obj.task_id,
        milestone_id=obj.milestone_id,
        date=obj.work_date,
        total_minutes=float(obj.total_minutes or 0.0),
        is_billable=bool(obj.is_billable),
        status=obj.status,
        snapshot_hourly_rate=obj.snapshot_hourly_rate,
        snapshot_rate=obj.snapshot_rate,
        snapshot_total_cost=obj.snapshot_total_cost,
        hourly_rate=obj.hourly_rate,
    )


def expense_to_orm(expense: ExpenseRecord) -> ExpenseORM:
    return ExpenseORM(
        id=expense.id,
        project_id=expense.project_id,
        milestone_id=expense.milestone_id,
        amount=expense.amount,
        currency=expense.currency,
        category=expense.category,
        description=expense.description,
        vendor=expense.vendor,
        status=expense.status,
        incurred_date=expense.date,
    )


def expense_from_orm(obj: ExpenseORM) -> ExpenseRecord:
    return ExpenseRecord(
        id=obj.id,
        project_id=obj.project_id,
        amount=float(obj.amount or 0.0),
        currency=obj.currency,
        milestone_id=obj.milestone_id,
        category=obj.category or "",
        description=obj.description or "",
        vendor=obj.vendor,
        status=obj.status,
        date=obj.incurred_date,
    )
