from datetime import date
from threading import Event

import pytest

from core.domain import (
    BillingModel,
    ExpenseRecord,
    ExpenseStatus,
    Milestone,
    Project,
    RiskTier,
    Task,
    TaskStatus,
    TimesheetEntry,
    TimesheetStatus,
    UserProfile,
)
from core.exceptions import NotFoundError, ValidationError
from core.services.profitability import ConversionRateCache

TODAY = date(2024, 4, 1)


def _seed_fixed_price_project(services, project_id="p1", currency="INR"):
    services["project_repo"].add(
        Project(
            id=project_id,
            name="Website Rebuild",
            currency=currency,
            billing_model=BillingModel.FIXED_PRICE,
            contract_amount=10000,
            progress=40,
            deadline=date(2024, 12, 31),
        )
    )
    services["milestone_repo"].add(
        Milestone(id=f"{project_id}-m1", project_id=project_id, name="Build", budget_value=10000)
    )
    services["task_repo"].add(
        Task(
            id=f"{project_id}-t1",
            project_id=project_id,
            title="Frontend",
            milestone_id=f"{project_id}-m1",
            status=TaskStatus.COMPLETED,
        )
    )
    services["user_repo"].add(
        UserProfile(email=f"dev@{project_id}.example", full_name="Dev", hourly_rate=50, ctc_currency=currency)
    )
    services["timesheet_repo"].add(
        TimesheetEntry(
            id=f"{project_id}-ts1",
            user_email=f"dev@{project_id}.example",
            project_id=project_id,
            task_id=f"{project_id}-t1",
            milestone_id=f"{project_id}-m1",
            date=date(2024, 2, 1),
            total_minutes=120 * 60,
            status=TimesheetStatus.APPROVED,
        )
    )
    services["timesheet_repo"].add(
        TimesheetEntry(
            id=f"{project_id}-ts2",
            user_email=f"dev@{project_id}.example",
            project_id=project_id,
            task_id=f"{project_id}-t1",
            milestone_id=f"{project_id}-m1",
            date=date(2024, 2, 2),
            total_minutes=40 * 60,
            is_billable=False,
            status=TimesheetStatus.APPROVED,
        )
    )
    services["expense_repo"].add(
        ExpenseRecord(
            id=f"{project_id}-e1",
            project_id=project_id,
            amount=1000,
            milestone_id=f"{project_id}-m1",
            category="Hosting",
            date=date(2024, 2, 10),
        )
    )


def test_snapshot_for_fixed_price_project(services, session):
    _seed_fixed_price_project(services)
    session.commit()
    svc = services["profitability_service"]

    snap = svc.get_profitability_snapshot("p1", rate_cache=ConversionRateCache("INR"), today=TODAY)

    totals = snap.totals
    assert snap.project_name == "Website Rebuild"
    assert snap.budget.amount == 10000
    assert totals.labor_cost == 6000
    assert totals.expense_cost == 1000
    assert totals.total_cost == 7000
    assert totals.net_profit == 3000
    assert totals.labor_leakage == 2000
    assert totals.leakage == 2000
    assert snap.aggregation.per_milestone[0].phase_profit == 3000
    assert snap.rates_pending is False
    assert snap.notes == []
    assert snap.overdue_impact is None
    assert snap.health.tier == RiskTier.HEALTHY
    assert [r.type.value for r in snap.rows] == ["labor", "expense"]


def test_unknown_project_raises_not_found(services):
    with pytest.raises(NotFoundError) as exc:
        services["profitability_service"].get_profitability_snapshot(
            "missing", rate_cache=ConversionRateCache("INR")
        )
    assert exc.value.code == "PROJECT_NOT_FOUND"


def test_inverted_date_window_is_rejected(services, session):
    _seed_fixed_price_project(services)
    session.commit()

    with pytest.raises(ValidationError) as exc:
        services["profitability_service"].get_profitability_snapshot(
            "p1",
            rate_cache=ConversionRateCache("INR"),
            date_from=date(2024, 3, 1),
            date_to=date(2024, 2, 1),
        )
    assert exc.value.code == "INVALID_DATE_RANGE"


def test_missing_rates_are_reported_and_resolve_on_recompute(services, session, rate_service):
    _seed_fixed_price_project(services)
    services["expense_repo"].add(
        ExpenseRecord(id="usd-expense", project_id="p1", amount=10, currency="USD", date=date(2024, 2, 11))
    )
    session.commit()
    svc = services["profitability_service"]
    gate = Event()
    rate_service.gate = gate
    cache = ConversionRateCache("INR", rate_service)
    try:
        first = svc.get_profitability_snapshot("p1", rate_cache=cache, today=TODAY)
        assert first.rates_pending is True
        assert first.missing_currencies == ["USD"]
        assert any("USD" in note for note in first.notes)
        assert first.totals.expense_cost == 1010

        gate.set()
        cache.wait_for_pending(timeout=5)
        second = svc.get_profitability_snapshot("p1", rate_cache=cache, today=TODAY)
        assert second.rates_pending is False
        assert second.totals.expense_cost == 1800
        assert rate_service.calls == [("USD", "INR")]
    finally:
        cache.close()


def test_unavailable_rate_is_noted(services, session):
    _seed_fixed_price_project(services)
    services["expense_repo"].add(
        ExpenseRecord(id="gbp-expense", project_id="p1", amount=10, currency="GBP")
    )
    session.commit()
    cache = ConversionRateCache("INR", services["rate_service"])
    try:
        services["profitability_service"].get_profitability_snapshot("p1", rate_cache=cache, today=TODAY)
        cache.wait_for_pending(timeout=5)
        snap = services["profitability_service"].get_profitability_snapshot("p1", rate_cache=cache, today=TODAY)
    finally:
        cache.close()

    assert snap.rates_pending is True
    assert any(note.startswith("Rate unavailable for GBP") for note in snap.notes)


def test_display_currency_converts_budget_but_not_row_amounts(services, session):
    _seed_fixed_price_project(services)
    session.commit()
    cache = ConversionRateCache("USD")
    cache.prime({"INR": 1 / 80})

    snap = services["profitability_service"].get_profitability_snapshot("p1", rate_cache=cache, today=TODAY)

    assert snap.display_currency == "USD"
    assert snap.budget_display.currency == "USD"
    assert snap.budget_display.amount == pytest.approx(125)
    assert snap.totals.total_cost == 7000


def test_milestone_scope_filters_records(services, session):
    _seed_fixed_price_project(services)
    services["milestone_repo"].add(Milestone(id="p1-m2", project_id="p1", name="Launch", budget_value=2000))
    services["expense_repo"].add(
        ExpenseRecord(id="launch-ads", project_id="p1", amount=500, milestone_id="p1-m2")
    )
    services["expense_repo"].add(
        ExpenseRecord(id="rejected", project_id="p1", amount=900, milestone_id="p1-m2", status=ExpenseStatus.REJECTED)
    )
    session.commit()
    svc = services["profitability_service"]

    scoped = svc.get_profitability_snapshot("p1", rate_cache=ConversionRateCache("INR"), milestone_id="p1-m2", today=TODAY)

    assert scoped.milestone_id == "p1-m2"
    assert scoped.budget.amount == 2000
    assert scoped.totals.total_cost == 500
    assert scoped.totals.net_profit == 1500
    assert [m.milestone_id for m in scoped.aggregation.per_milestone] == ["p1-m2"]


def test_unknown_milestone_falls_back_to_whole_project(services, session):
    _seed_fixed_price_project(services)
    session.commit()

    snap = services["profitability_service"].get_profitability_snapshot(
        "p1", rate_cache=ConversionRateCache("INR"), milestone_id="nope", today=TODAY
    )

    assert snap.milestone_id is None
    assert snap.totals.total_cost == 7000
    assert snap.notes == ["Selected milestone was not found; showing the whole project."]


def test_date_window_limits_costs(services, session):
    _seed_fixed_price_project(services)
    session.commit()

    snap = services["profitability_service"].get_profitability_snapshot(
        "p1",
        rate_cache=ConversionRateCache("INR"),
        date_from=date(2024, 2, 5),
        date_to=date(2024, 2, 28),
        today=TODAY,
    )

    assert snap.totals.labor_cost == 0
    assert snap.totals.expense_cost == 1000


def test_overdue_project_reports_cost_impact(services, session):
    services["project_repo"].add(
        Project(
            id="late",
            name="Late",
            contract_amount=1000,
            start_date=date(2024, 3, 1),
            deadline=date(2024, 3, 21),
        )
    )
    services["expense_repo"].add(ExpenseRecord(id="late-e", project_id="late", amount=310))
    session.commit()

    snap = services["profitability_service"].get_profitability_snapshot(
        "late", rate_cache=ConversionRateCache("INR"), today=TODAY
    )

    assert snap.overdue_impact == "Project exceeded by 11 days → INR 110.00 cost impact."


def test_portfolio_summary_converts_each_project_to_display_currency(services, session):
    _seed_fixed_price_project(services, "p1", "INR")
    _seed_fixed_price_project(services, "p2", "USD")
    session.commit()
    cache = ConversionRateCache("INR")
    cache.prime({"USD": 80.0})

    summary = services["profitability_service"].get_portfolio_summary(rate_cache=cache, today=TODAY)

    # p2 is the same project in USD, so it counts 80 times over
    assert summary.display_currency == "INR"
    assert len(summary.projects) == 2
    assert summary.total_revenue == pytest.approx(10000 * 81)
    assert summary.total_cost == pytest.approx(7000 * 81)
    assert summary.total_profit == pytest.approx(3000 * 81)
    assert summary.total_leakage == pytest.approx(2000 * 81)
    assert summary.margin_percent == pytest.approx(30)
    assert summary.rates_pending is False


def test_portfolio_summary_for_selected_projects(services, session):
    _seed_fixed_price_project(services, "p1")
    _seed_fixed_price_project(services, "p2")
    session.commit()

    summary = services["profitability_service"].get_portfolio_summary(
        ["p2"], rate_cache=ConversionRateCache("INR"), today=TODAY
    )

    assert [s.project_id for s in summary.projects] == ["p2"]
    assert summary.total_cost == 7000
