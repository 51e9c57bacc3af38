from datetime import date

from openpyxl import load_workbook

from core.domain import ExpenseRecord, Milestone, Project, Task, TimesheetEntry, TimesheetStatus, UserProfile
from core.reporting.api import generate_profitability_excel
from core.services.profitability import ConversionRateCache


def _summary_values(sheet):
    return {row[0]: row[1] for row in sheet.iter_rows(min_row=3, max_col=2, values_only=True) if row[0]}


def test_profitability_workbook_has_summary_milestones_and_rows(services, session, tmp_path):
    project = Project.create("ERP Rollout", currency="INR", contract_amount=20000, deadline=date(2024, 3, 1))
    milestone = Milestone.create(project.id, "Discovery", budget_value=5000)
    task = Task.create(project.id, "Process mapping", milestone_id=milestone.id)
    services["project_repo"].add(project)
    services["milestone_repo"].add(milestone)
    services["task_repo"].add(task)
    services["user_repo"].add(UserProfile(email="ana@example.com", full_name="Ana", hourly_rate=100))
    services["timesheet_repo"].add(
        TimesheetEntry.create(
            "ana@example.com",
            project.id,
            task_id=task.id,
            milestone_id=milestone.id,
            date=date(2024, 1, 15),
            total_minutes=1800,
            status=TimesheetStatus.APPROVED,
        )
    )
    services["expense_repo"].add(
        ExpenseRecord.create(project.id, 250, vendor="Travel Co", date=date(2024, 1, 20))
    )
    session.commit()
    snapshot = services["profitability_service"].get_profitability_snapshot(
        project.id, rate_cache=ConversionRateCache("INR"), today=date(2024, 3, 11)
    )

    out = generate_profitability_excel(snapshot, tmp_path / "exports" / "p1.xlsx")

    assert out.exists()
    wb = load_workbook(out)
    assert wb.sheetnames == ["Summary", "Milestones", "Cost Rows"]

    summary = wb["Summary"]
    assert summary["A1"].value == "Project Profitability - ERP Rollout"
    values = _summary_values(summary)
    assert values["Budget"] == 20000
    assert values["Total cost"] == 3250
    assert values["Net profit"] == 16750
    assert values["Rates pending"] == "No"
    assert values["Risk tier"] == snapshot.health.tier.value
    texts = [row[0] for row in summary.iter_rows(max_col=1, values_only=True) if row[0]]
    assert snapshot.overdue_impact in texts

    milestones = wb["Milestones"]
    rows = list(milestones.iter_rows(min_row=2, values_only=True))
    assert rows[0][:6] == ("Discovery", 5000, 3000, 0, 3000, 2000)
    assert rows[1][0] == "Unallocated"
    assert rows[1][4] == 250

    cost_rows = list(wb["Cost Rows"].iter_rows(min_row=2, values_only=True))
    assert [r[0] for r in cost_rows] == ["labor", "expense"]
    assert cost_rows[0][3] == "Ana"
    assert cost_rows[1][3] == "Travel Co"
    assert cost_rows[1][10] == "2024-01-20"


def test_margin_without_budget_is_written_as_not_available(services, session, tmp_path):
    services["project_repo"].add(Project(id="p2", name="Internal", billing_model="non_billable"))
    session.commit()
    snapshot = services["profitability_service"].get_profitability_snapshot(
        "p2", rate_cache=ConversionRateCache("INR"), today=date(2024, 3, 11)
    )

    out = generate_profitability_excel(snapshot, tmp_path / "p2.xlsx")

    values = _summary_values(load_workbook(out)["Summary"])
    assert values["Margin %"] == "n/a"
    assert values["Billing model"] == "non_billable"
    assert values["Total cost"] == 0


def test_negative_unallocated_adjustment_still_gets_a_row(services, session, tmp_path):
    project = Project.create("Support Desk", currency="INR", contract_amount=10000)
    milestone = Milestone.create(project.id, "Setup", budget_value=4000)
    services["project_repo"].add(project)
    services["milestone_repo"].add(milestone)
    services["expense_repo"].add(
        ExpenseRecord.create(project.id, 1000, milestone_id=milestone.id, date=date(2024, 2, 1))
    )
    services["expense_repo"].add(
        ExpenseRecord.create(project.id, -300, description="Credit adjustment", date=date(2024, 2, 2))
    )
    session.commit()
    snapshot = services["profitability_service"].get_profitability_snapshot(
        project.id, rate_cache=ConversionRateCache("INR"), today=date(2024, 3, 1)
    )

    out = generate_profitability_excel(snapshot, tmp_path / "support.xlsx")

    wb = load_workbook(out)
    rows = list(wb["Milestones"].iter_rows(min_row=2, values_only=True))
    assert [r[0] for r in rows] == ["Setup", "Unallocated"]
    assert rows[1][4] == -300
    assert rows[0][4] + rows[1][4] == _summary_values(wb["Summary"])["Total cost"] == 700
