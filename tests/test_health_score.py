from __future__ import annotations

from datetime import date

from core.domain import (
    BillingModel,
    Milestone,
    MilestoneStatus,
    Money,
    Project,
    ProjectStatus,
    RiskLevel,
    RiskTier,
    RowType,
    Task,
    TaskStatus,
)
from core.services.profitability.aggregator import aggregate
from core.services.profitability.health import score
from core.services.profitability.models import BudgetResolution, CostRow

TODAY = date(2024, 6, 1)


def _labor(cost, *, logged_hours=0.0, approved_hours=0.0, hourly_rate=0.0, task_title="General Task"):
    return CostRow(
        type=RowType.LABOR,
        milestone_id="unassigned",
        milestone_name="Unallocated",
        task_id=None,
        task_title=task_title,
        label="Dev",
        currency="INR",
        cost=cost,
        logged_cost=cost,
        original_cost=Money(cost, "INR"),
        logged_hours=logged_hours,
        approved_hours=approved_hours,
        hourly_rate=hourly_rate,
    )


def _evaluate(project, rows, budget_amount, model=BillingModel.FIXED_PRICE, **kwargs):
    budget = BudgetResolution(Money(budget_amount, "INR"), model)
    totals = aggregate(rows, [], lambda _mid: budget).totals
    return score(project, rows, budget, totals, today=TODAY, **kwargs)


def test_score_stays_in_bounds_for_pathological_inputs():
    for progress in (float("nan"), float("inf"), -1e12, 1e12):
        project = Project(id="p1", name="Odd", progress=progress, deadline=date(1900, 1, 1))
        result = _evaluate(project, [_labor(1e15)], 0)
        assert 0 <= result.score <= 100
        assert isinstance(result.score, int)


def test_standard_score_for_a_quiet_project():
    project = Project(id="p1", name="Quiet", progress=50)
    tasks = [
        Task(id="t1", project_id="p1", title="A", status=TaskStatus.COMPLETED),
        Task(id="t2", project_id="p1", title="B"),
    ]

    result = _evaluate(project, [_labor(100)], 1000, tasks=tasks)

    # 70 + 50 * 0.3 + 0.5 * 20
    assert result.formula == "standard"
    assert result.score == 95
    assert result.tier == RiskTier.HEALTHY


def test_standard_score_penalties_stack_down_to_critical():
    project = Project(
        id="p1",
        name="Troubled",
        progress=50,
        status=ProjectStatus.ON_HOLD,
        risk_level=RiskLevel.HIGH,
        deadline=date(2024, 5, 1),
    )

    result = _evaluate(project, [_labor(1500)], 1000)

    assert result.components["deadline"] == -20
    assert result.components["budget_utilization"] == -40
    assert result.components["status"] == -15
    assert result.components["risk_level"] == -15
    assert result.score == 0
    assert result.tier == RiskTier.CRITICAL


def test_deadline_within_a_week_costs_ten_points():
    project = Project(id="p1", name="Close", deadline=date(2024, 6, 4))

    result = _evaluate(project, [], 1000)

    assert result.components["deadline"] == -10
    assert result.score == 60
    assert result.tier == RiskTier.AT_RISK


def test_completed_project_scores_full_before_risk_penalty():
    done = Project(id="p1", name="Done", status=ProjectStatus.COMPLETED, deadline=date(2024, 1, 1))
    risky = Project(
        id="p2",
        name="Done but risky",
        status=ProjectStatus.COMPLETED,
        risk_level=RiskLevel.CRITICAL,
    )

    assert _evaluate(done, [_labor(5000)], 1000).score == 100
    assert _evaluate(risky, [], 1000).score == 80
    assert _evaluate(risky, [], 1000).tier == RiskTier.HEALTHY


def test_milestone_scope_uses_milestone_progress_and_due_date():
    project = Project(id="p1", name="Phased", progress=0, deadline=date(2020, 1, 1))
    milestone = Milestone(
        id="m1",
        project_id="p1",
        name="Phase 1",
        status=MilestoneStatus.COMPLETED,
        due_date=date(2024, 12, 1),
    )
    tasks = [
        Task(id="t1", project_id="p1", title="In scope", milestone_id="m1", status=TaskStatus.COMPLETED),
        Task(id="t2", project_id="p1", title="Elsewhere", milestone_id="m2"),
    ]

    result = _evaluate(project, [], 1000, tasks=tasks, milestone=milestone)

    assert result.components["progress"] == 30
    assert result.components["task_completion"] == 20
    assert result.components["deadline"] == 0
    assert result.score == 100


def test_retainer_score_uses_four_components():
    project = Project(id="p1", name="Support", billing_model=BillingModel.RETAINER)
    rows = [_labor(3000, logged_hours=100, approved_hours=100, hourly_rate=30)]

    result = _evaluate(project, rows, 3000, BillingModel.RETAINER)

    assert result.formula == "retainer"
    assert result.components == {
        "revenue_realization": 25.0,
        "cost_control": 15.0,
        "utilization_balance": 25.0,
        "quality": 25.0,
    }
    assert result.score == 90
    assert result.tier == RiskTier.HEALTHY


def test_retainer_rework_lowers_quality():
    project = Project(id="p1", name="Support", billing_model=BillingModel.RETAINER)
    rows = [_labor(3000, logged_hours=100, approved_hours=100, hourly_rate=30)]
    tasks = [Task(id="t1", project_id="p1", title="Login fix", description="Rework after QA")]

    result = _evaluate(project, rows, 3000, BillingModel.RETAINER, tasks=tasks)

    assert result.components["quality"] == 10
    assert result.score == 75
    assert result.tier == RiskTier.AT_RISK


def test_retainer_overrun_and_idle_time_scores_low():
    project = Project(id="p1", name="Support", billing_model=BillingModel.RETAINER)
    rows = [_labor(5000, logged_hours=100, approved_hours=20, hourly_rate=10, task_title="Rework login")]

    result = _evaluate(project, rows, 3000, BillingModel.RETAINER)

    # 5 + 0 + 5 + 10
    assert result.score == 20
    assert result.tier == RiskTier.CRITICAL


def test_malformed_deadlines_carry_no_penalty():
    project = Project(id="p1", name="Loose dates", deadline="next sprint")
    milestone = Milestone(id="m1", project_id="p1", name="Phase 1", due_date="2024-13-45")

    project_result = _evaluate(project, [], 1000)
    milestone_result = _evaluate(project, [], 1000, milestone=milestone)

    assert project_result.components["deadline"] == 0
    assert project_result.score == 70
    assert milestone_result.components["deadline"] == 0
    assert milestone_result.score == 70
