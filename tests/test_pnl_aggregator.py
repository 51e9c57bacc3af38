from __future__ import annotations

import pytest

from core.domain import BillingModel, Milestone, Money, RowType
from core.services.profitability.aggregator import aggregate, model_leakage
from core.services.profitability.helpers import UNASSIGNED
from core.services.profitability.models import BudgetResolution, CostRow


def _labor(milestone_id, cost, logged_cost, *, logged_hours=0.0, approved_hours=0.0, non_billable_hours=0.0):
    return CostRow(
        type=RowType.LABOR,
        milestone_id=milestone_id,
        milestone_name="",
        task_id=None,
        task_title="General Task",
        label="Dev",
        currency="INR",
        cost=cost,
        logged_cost=logged_cost,
        original_cost=Money(cost, "INR"),
        logged_hours=logged_hours,
        approved_hours=approved_hours,
        non_billable_hours=non_billable_hours,
    )


def _expense(milestone_id, cost):
    return CostRow(
        type=RowType.EXPENSE,
        milestone_id=milestone_id,
        milestone_name="",
        task_id=None,
        task_title="Hosting",
        label="Vendor",
        currency="INR",
        cost=cost,
        logged_cost=cost,
        original_cost=Money(cost, "INR"),
    )


def _resolver(project_budget, model=BillingModel.FIXED_PRICE, milestone_budgets=None):
    milestone_budgets = milestone_budgets or {}

    def resolve(milestone_id):
        if milestone_id in milestone_budgets:
            return BudgetResolution(Money(milestone_budgets[milestone_id], "INR"), BillingModel.FIXED_PRICE)
        return BudgetResolution(Money(project_budget, "INR"), model)

    return resolve


def test_fixed_price_leakage_counts_unapproved_labor():
    milestone = Milestone(id="m1", project_id="p1", name="Build", budget_value=10000)
    rows = [
        _labor("m1", 6000, 8000, logged_hours=80, approved_hours=60, non_billable_hours=20),
        _expense("m1", 1000),
    ]

    result = aggregate(rows, [milestone], _resolver(10000, milestone_budgets={"m1": 10000}))

    phase = result.per_milestone[0]
    assert phase.labor_cost == 6000
    assert phase.expense_cost == 1000
    assert phase.total_phase_cost == 7000
    assert phase.phase_profit == 3000
    assert phase.margin_percent == pytest.approx(30)
    totals = result.totals
    assert totals.total_cost == 7000
    assert totals.net_profit == 3000
    assert totals.labor_leakage == 2000
    assert totals.leakage == 2000
    assert totals.leakage_percent == pytest.approx(20)
    assert totals.billable_efficiency == 0.75
    assert totals.non_billable_hours == 20


def test_totals_reconcile_with_milestones_plus_unallocated():
    milestones = [
        Milestone(id="m1", project_id="p1", name="One"),
        Milestone(id="m2", project_id="p1", name="Two"),
    ]
    rows = [
        _labor("m1", 100, 100),
        _expense("m2", 50),
        _labor(UNASSIGNED, 30, 40),
        _expense("deleted-milestone", 20),
    ]

    result = aggregate(rows, milestones, _resolver(1000))

    phase_total = sum(p.total_phase_cost for p in result.per_milestone)
    assert result.unallocated.total_cost == 50
    assert result.totals.unallocated_cost == 50
    assert result.totals.total_cost == phase_total + result.unallocated.total_cost == 200
    assert result.totals.labor_cost + result.totals.expense_cost == result.totals.total_cost


def test_aggregation_is_idempotent():
    milestones = [Milestone(id="m1", project_id="p1", name="One")]
    rows = [_labor("m1", 400, 500), _expense(UNASSIGNED, 75)]
    resolver = _resolver(2000)

    assert aggregate(rows, milestones, resolver) == aggregate(rows, milestones, resolver)


def test_leakage_is_never_negative():
    for model in BillingModel:
        assert model_leakage(model, total_cost=10, budget=1000, labor_leak=-5) >= 0
    result = aggregate([_labor(UNASSIGNED, 50, 10)], [], _resolver(1000))
    assert result.totals.labor_leakage == 0
    assert result.totals.leakage == 0


def test_time_and_materials_overrun_is_not_leakage():
    rows = [_labor(UNASSIGNED, 5500, 5800)]

    result = aggregate(rows, [], _resolver(5000, BillingModel.TIME_AND_MATERIALS))

    assert result.totals.net_profit == -500
    assert result.totals.leakage == 300
    assert result.totals.leakage == result.totals.labor_leakage


def test_retainer_leakage_is_cost_over_retainer_value():
    rows = [_labor(UNASSIGNED, 3500, 4000)]

    result = aggregate(rows, [], _resolver(3000, BillingModel.RETAINER))

    assert result.totals.leakage == 500


def test_non_billable_leakage_is_all_cost():
    rows = [_labor(UNASSIGNED, 700, 700), _expense(UNASSIGNED, 300)]

    result = aggregate(rows, [], _resolver(0, BillingModel.NON_BILLABLE))

    assert result.totals.leakage == 1000
    assert result.totals.margin_percent is None
    assert result.totals.leakage_percent is None


def test_expense_budget_usage_is_expense_cost_against_cap():
    rows = [_expense(UNASSIGNED, 150)]

    result = aggregate(rows, [], _resolver(1000), expense_budget=Money(600, "INR"))

    assert result.totals.expense_budget == 600
    assert result.totals.expense_budget_used_percent == pytest.approx(25)


def test_scope_milestone_budget_drives_totals():
    milestones = [Milestone(id="m1", project_id="p1", name="One")]
    rows = [_labor("m1", 900, 900)]

    result = aggregate(
        rows,
        milestones,
        _resolver(50000, milestone_budgets={"m1": 1000}),
        scope_milestone_id="m1",
    )

    assert result.totals.budget == 1000
    assert result.totals.net_profit == 100
    assert result.totals.model == BillingModel.FIXED_PRICE
