from pathlib import Path
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side

from core.services.profitability.helpers import UNASSIGNED
from core.services.profitability.models import ProfitabilitySnapshot


def _money(value):
    return None if value is None else round(float(value), 2)


def _pct(value):
    return "n/a" if value is None else round(float(value), 1)


class ProfitabilityExcelRenderer:
    def render(self, snapshot: ProfitabilitySnapshot, output_path: Path) -> Path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb = Workbook()
        totals = snapshot.totals

        header_font = Font(bold=True)
        title_font = Font(bold=True, size=14)
        center = Alignment(horizontal="center")
        thin_border = Border(
            left=Side(style="thin"),
            right=Side(style="thin"),
            top=Side(style="thin"),
            bottom=Side(style="thin"),
        )
        header_fill = PatternFill("solid", fgColor="DDDDDD")

        def header_row(sheet, headers):
            for col_index, h in enumerate(headers, start=1):
                cell = sheet.cell(row=1, column=col_index, value=h)
                cell.font = header_font
                cell.alignment = center
                cell.fill = header_fill
                cell.border = thin_border

        # ---------------- Summary ----------------
        ws = wb.active
        ws.title = "Summary"

        ws["A1"] = f"Project Profitability - {snapshot.project_name or snapshot.project_id}"
        ws["A1"].font = title_font

        row = 3

        def kv(key, value):
            nonlocal row
            ws[f"A{row}"] = key
            ws[f"B{row}"] = value
            ws[f"A{row}"].font = header_font
            ws[f"A{row}"].border = thin_border
            ws[f"B{row}"].border = thin_border
            row += 1

        kv("Project ID", snapshot.project_id)
        kv("Project currency", snapshot.project_currency)
        kv("Billing model", totals.model.value)
        if snapshot.milestone_id:
            kv("Milestone scope", snapshot.milestone_id)

        row += 1
        kv("Budget", _money(totals.budget))
        kv(f"Budget ({snapshot.display_currency})", _money(snapshot.budget_display.amount))
        kv("Labor cost", _money(totals.labor_cost))
        kv("Expense cost", _money(totals.expense_cost))
        kv("Total cost", _money(totals.total_cost))
        kv("Unallocated cost", _money(totals.unallocated_cost))
        kv("Net profit", _money(totals.net_profit))
        kv("Margin %", _pct(totals.margin_percent))
        kv("Leakage", _money(totals.leakage))
        kv("Leakage %", _pct(totals.leakage_percent))

        row += 1
        kv("Logged hours", round(totals.logged_hours, 2))
        kv("Approved billable hours", round(totals.approved_hours, 2))
        kv("Non-billable hours", round(totals.non_billable_hours, 2))
        kv("Billable efficiency %", round(totals.billable_efficiency * 100.0, 1))
        kv("Expense budget", _money(totals.expense_budget))
        kv("Expense budget used %", _pct(totals.expense_budget_used_percent))

        row += 1
        kv("Health score", snapshot.health.score)
        kv("Risk tier", snapshot.health.tier.value)
        kv("Rates pending", "Yes" if snapshot.rates_pending else "No")

        if snapshot.insights or snapshot.overdue_impact or snapshot.notes:
            row += 1
            ws[f"A{row}"] = "Insights"
            ws[f"A{row}"].font = header_font
            row += 1
            for line in [*snapshot.insights, *([snapshot.overdue_impact] if snapshot.overdue_impact else [])]:
                ws[f"A{row}"] = line
                row += 1
            for note in snapshot.notes:
                ws[f"A{row}"] = f"Note: {note}"
                row += 1

        ws.column_dimensions["A"].width = 32
        ws.column_dimensions["B"].width = 25

        # ---------------- Milestones ----------------
        ws_ms = wb.create_sheet("Milestones")
        header_row(
            ws_ms,
            ["Milestone", "Budget", "Labor cost", "Expense cost", "Total cost", "Profit", "Margin %", "Status"],
        )
        r = 2
        for phase in snapshot.aggregation.per_milestone:
            values = [
                phase.name,
                _money(phase.budget),
                _money(phase.labor_cost),
                _money(phase.expense_cost),
                _money(phase.total_phase_cost),
                _money(phase.phase_profit),
                _pct(phase.margin_percent),
                phase.status or "",
            ]
            for c, v in enumerate(values, 1):
                ws_ms.cell(r, c, v).border = thin_border
            r += 1

        unallocated = snapshot.aggregation.unallocated
        if any(row.milestone_id == UNASSIGNED for row in snapshot.rows):
            values = [
                "Unallocated",
                None,
                _money(unallocated.labor_cost),
                _money(unallocated.expense_cost),
                _money(unallocated.total_cost),
                None,
                "n/a",
                "",
            ]
            for c, v in enumerate(values, 1):
                ws_ms.cell(r, c, v).border = thin_border

        ws_ms.column_dimensions["A"].width = 30
        for col_letter in ("B", "C", "D", "E", "F", "G", "H"):
            ws_ms.column_dimensions[col_letter].width = 15

        # ---------------- Cost Rows ----------------
        ws_rows = wb.create_sheet("Cost Rows")
        header_row(
            ws_rows,
            [
                "Type",
                "Milestone",
                "Task",
                "Resource / vendor",
                "Logged hours",
                "Approved hours",
                "Rate",
                "Original cost",
                "Original currency",
                f"Cost ({snapshot.project_currency})",
                "Last date",
            ],
        )
        for r, item in enumerate(snapshot.rows, start=2):
            values = [
                item.type.value,
                item.milestone_name,
                item.task_title,
                item.label,
                round(item.logged_hours, 2) if item.is_labor else None,
                round(item.approved_hours, 2) if item.is_labor else None,
                _money(item.hourly_rate) if item.is_labor else None,
                _money(item.original_cost.amount),
                item.original_cost.currency,
                _money(item.cost),
                item.last_date.isoformat() if item.last_date else "",
            ]
            for c, v in enumerate(values, 1):
                ws_rows.cell(r, c, v).border = thin_border

        ws_rows.column_dimensions["B"].width = 24
        ws_rows.column_dimensions["C"].width = 30
        ws_rows.column_dimensions["D"].width = 28

        wb.save(output_path)
        return output_path
