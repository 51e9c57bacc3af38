from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable

from core.domain import (
    ExpenseRecord,
    ExpenseStatus,
    Milestone,
    Money,
    RowType,
    Task,
    TimesheetEntry,
    UserProfile,
    normalize_currency,
)
from core.domain.money import DEFAULT_CURRENCY_CODE
from core.services.profitability.helpers import (
    UNASSIGNED,
    as_float,
    enum_token,
    milestone_key,
    parse_date,
)
from core.services.profitability.models import CostRow

RateFn = Callable[[str, str], float]

UNALLOCATED_LABEL = "Unallocated"
GENERAL_TASK_LABEL = "General Task"


@dataclass
class _LaborBucket:
    user_email: str
    user_name: str
    user_currency: str
    profile_rate: float
    milestone_id: str
    task_id: str | None
    logged_hours: float = 0.0
    approved_hours: float = 0.0
    non_billable_hours: float = 0.0
    cost: float = 0.0
    logged_cost: float = 0.0
    original_cost: float = 0.0
    first_rate: float = 0.0
    first_original_rate: float = 0.0
    last_date: date | None = None


def _in_window(day: date | None, date_from: date | None, date_to: date | None) -> bool:
    if date_from is None and date_to is None:
        return True
    if day is None:
        return False
    if date_from is not None and day < date_from:
        return False
    if date_to is not None and day > date_to:
        return False
    return True


def build_labor_rows(
    *,
    timesheets: Iterable[TimesheetEntry],
    users: Iterable[UserProfile],
    tasks: Iterable[Task],
    milestones: Iterable[Milestone],
    project_currency: str,
    rate_fn: RateFn,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[CostRow]:
    currency = normalize_currency(project_currency)
    user_map = {str(u.email or "").strip().lower(): u for u in users}
    task_map = {t.id: t for t in tasks}
    milestone_map = {m.id: m for m in milestones}
    known_milestones = set(milestone_map)

    buckets: dict[tuple[str, str, str], _LaborBucket] = {}
    for entry in timesheets:
        day = parse_date(entry.date)
        if not _in_window(day, date_from, date_to):
            continue

        email = str(entry.user_email or "").strip()
        ms_key = milestone_key(entry.milestone_id, known_milestones)
        task_id = str(entry.task_id) if entry.task_id else None
        key = (email.lower(), ms_key, task_id or "")

        bucket = buckets.get(key)
        if bucket is None:
            user = user_map.get(email.lower())
            bucket = _LaborBucket(
                user_email=email,
                user_name=(user.full_name if user is not None and user.full_name else email),
                user_currency=normalize_currency(
                    None if user is None else user.ctc_currency, DEFAULT_CURRENCY_CODE
                ),
                profile_rate=as_float(None if user is None else user.hourly_rate),
                milestone_id=ms_key,
                task_id=task_id,
            )
            buckets[key] = bucket

        hours = as_float(entry.hours)
        resolved = entry.resolve_rate(bucket.profile_rate)
        conversion = rate_fn(bucket.user_currency, currency)
        effective_rate = resolved.rate * conversion
        converted_cost = resolved.native_cost * conversion

        bucket.logged_hours += hours
        bucket.logged_cost += converted_cost
        if day is not None and (bucket.last_date is None or day > bucket.last_date):
            bucket.last_date = day

        if effective_rate > 0.0 and bucket.first_rate == 0.0:
            bucket.first_rate = effective_rate
            bucket.first_original_rate = resolved.rate

        if entry.counts_as_cost:
            bucket.approved_hours += hours
            bucket.cost += converted_cost
            bucket.original_cost += resolved.native_cost
        elif not entry.is_billable:
            bucket.non_billable_hours += hours

    rows: list[CostRow] = []
    for bucket in buckets.values():
        if bucket.approved_hours > 0.0:
            display_rate = bucket.cost / bucket.approved_hours
            original_rate = bucket.original_cost / bucket.approved_hours
        else:
            display_rate = bucket.first_rate
            original_rate = bucket.first_original_rate
        # a group without approved hours must not report a rate of 0
        if not display_rate:
            display_rate = bucket.profile_rate * rate_fn(bucket.user_currency, currency)
        if not original_rate:
            original_rate = bucket.profile_rate

        task = task_map.get(bucket.task_id) if bucket.task_id else None
        milestone = milestone_map.get(bucket.milestone_id)
        rows.append(
            CostRow(
                type=RowType.LABOR,
                milestone_id=bucket.milestone_id,
                milestone_name=(milestone.name if milestone is not None else UNALLOCATED_LABEL),
                task_id=(task.id if task is not None else bucket.task_id),
                task_title=(task.title if task is not None else GENERAL_TASK_LABEL),
                label=bucket.user_name,
                currency=currency,
                cost=bucket.cost,
                logged_cost=bucket.logged_cost,
                original_cost=Money(bucket.original_cost, bucket.user_currency),
                logged_hours=bucket.logged_hours,
                approved_hours=bucket.approved_hours,
                non_billable_hours=bucket.non_billable_hours,
                hourly_rate=display_rate,
                original_rate=original_rate,
                user_email=bucket.user_email,
                detail=(task.description if task is not None else ""),
                last_date=bucket.last_date,
            )
        )

    rows.sort(key=lambda row: row.last_date or date.min, reverse=True)
    return rows


def build_expense_rows(
    *,
    expenses: Iterable[ExpenseRecord],
    milestones: Iterable[Milestone],
    project_currency: str,
    rate_fn: RateFn,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[CostRow]:
    currency = normalize_currency(project_currency)
    milestone_map = {m.id: m for m in milestones}
    known_milestones = set(milestone_map)

    rows: list[CostRow] = []
    for expense in expenses:
        if enum_token(expense.status or ExpenseStatus.APPROVED) != ExpenseStatus.APPROVED.value:
            continue
        day = parse_date(expense.date)
        if not _in_window(day, date_from, date_to):
            continue

        source_currency = normalize_currency(expense.currency, currency)
        amount = as_float(expense.amount)
        cost = amount * rate_fn(source_currency, currency)
        ms_key = milestone_key(expense.milestone_id, known_milestones)
        milestone = milestone_map.get(ms_key)
        rows.append(
            CostRow(
                type=RowType.EXPENSE,
                milestone_id=ms_key,
                milestone_name=(milestone.name if milestone is not None else UNALLOCATED_LABEL),
                task_id=None,
                task_title=(expense.description or expense.category or "Expense"),
                label=(expense.vendor or "Expense"),
                currency=currency,
                cost=cost,
                logged_cost=cost,
                original_cost=Money(amount, source_currency),
                detail=(expense.category or ""),
                last_date=day,
            )
        )
    return rows


def normalize(
    timesheets: Iterable[TimesheetEntry],
    expenses: Iterable[ExpenseRecord],
    users: Iterable[UserProfile],
    tasks: Iterable[Task],
    milestones: Iterable[Milestone],
    project_currency: str,
    rate_fn: RateFn,
    *,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[CostRow]:
    """Labor aggregates followed by expense rows, all in project currency."""
    milestones = list(milestones)
    labor = build_labor_rows(
        timesheets=timesheets,
        users=users,
        tasks=tasks,
        milestones=milestones,
        project_currency=project_currency,
        rate_fn=rate_fn,
        date_from=date_from,
        date_to=date_to,
    )
    expense = build_expense_rows(
        expenses=expenses,
        milestones=milestones,
        project_currency=project_currency,
        rate_fn=rate_fn,
        date_from=date_from,
        date_to=date_to,
    )
    return labor + expense


__all__ = ["UNASSIGNED", "build_labor_rows", "build_expense_rows", "normalize"]
