"""create profitability source tables

Revision ID: 4b8e2d71c9a0
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "4b8e2d71c9a0"
down_revision = None
branch_labels = None
depends_on = None


PROJECT_STATUS = sa.Enum("PLANNED", "ACTIVE", "ON_HOLD", "COMPLETED", name="projectstatus")
MILESTONE_STATUS = sa.Enum("PENDING", "IN_PROGRESS", "COMPLETED", "MISSED", name="milestonestatus")
TASK_STATUS = sa.Enum("TODO", "IN_PROGRESS", "REVIEW", "COMPLETED", name="taskstatus")
TIMESHEET_STATUS = sa.Enum("SUBMITTED", "APPROVED", "REJECTED", name="timesheetstatus")
EXPENSE_STATUS = sa.Enum("PENDING", "APPROVED", "REJECTED", name="expensestatus")


def upgrade() -> None:
    op.create_table(
        "projects",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("currency", sa.String(length=8), nullable=True),
        sa.Column("billing_model", sa.String(length=32), nullable=False, server_default="fixed_price"),
        sa.Column("contract_amount", sa.Float(), nullable=True),
        sa.Column("budget", sa.Float(), nullable=True),
        sa.Column("retainer_amount", sa.Float(), nullable=True),
        sa.Column("retainer_period", sa.String(length=16), nullable=True),
        sa.Column("contract_start_date", sa.Date(), nullable=True),
        sa.Column("contract_end_date", sa.Date(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("estimated_duration", sa.Float(), nullable=True),
        sa.Column("default_bill_rate_per_hour", sa.Float(), nullable=True),
        sa.Column("expense_budget", sa.Float(), nullable=True),
        sa.Column("deadline", sa.Date(), nullable=True),
        sa.Column("status", PROJECT_STATUS, nullable=False),
        sa.Column("progress", sa.Float(), nullable=True),
        sa.Column("risk_level", sa.String(length=16), nullable=True),
    )

    op.create_table(
        "milestones",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("project_id", sa.String(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("budget_value", sa.Float(), nullable=True),
        sa.Column("expense_budget", sa.Float(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("status", MILESTONE_STATUS, nullable=False),
    )
    op.create_index("idx_milestones_project_id", "milestones", ["project_id"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("project_id", sa.String(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("milestone_id", sa.String(), sa.ForeignKey("milestones.id", ondelete="SET NULL"), nullable=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("status", TASK_STATUS, nullable=False),
    )
    op.create_index("idx_tasks_project_id", "tasks", ["project_id"])

    op.create_table(
        "users",
        sa.Column("email", sa.String(), primary_key=True),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("hourly_rate", sa.Float(), nullable=True),
        sa.Column("ctc_currency", sa.String(length=8), nullable=True),
    )

    op.create_table(
        "timesheets",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_email", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("task_id", sa.String(), nullable=True),
        sa.Column("milestone_id", sa.String(), nullable=True),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("total_minutes", sa.Float(), nullable=True),
        sa.Column("is_billable", sa.Boolean(), nullable=True),
        sa.Column("status", TIMESHEET_STATUS, nullable=False),
        sa.Column("snapshot_hourly_rate", sa.Float(), nullable=True),
        sa.Column("snapshot_rate", sa.Float(), nullable=True),
        sa.Column("snapshot_total_cost", sa.Float(), nullable=True),
        sa.Column("hourly_rate", sa.Float(), nullable=True),
    )
    op.create_index("idx_timesheets_project_id", "timesheets", ["project_id"])

    op.create_table(
        "expenses",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("project_id", sa.String(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("milestone_id", sa.String(), nullable=True),
        sa.Column("amount", sa.Float(), nullable=True),
        sa.Column("currency", sa.String(length=8), nullable=True),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("vendor", sa.String(), nullable=True),
        sa.Column("status", EXPENSE_STATUS, nullable=False),
        sa.Column("date", sa.Date(), nullable=True),
    )
    op.create_index("idx_expenses_project_id", "expenses", ["project_id"])

    op.create_table(
        "exchange_rates",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("base_currency", sa.String(length=8), nullable=False, server_default="EUR"),
        sa.Column("currency", sa.String(length=8), nullable=False),
        sa.Column("rate", sa.Float(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("base_currency", "currency", name="ux_exchange_rates_pair"),
    )


def downgrade() -> None:
    op.drop_table("exchange_rates")
    op.drop_index("idx_expenses_project_id", table_name="expenses")
    op.drop_table("expenses")
    op.drop_index("idx_timesheets_project_id", table_name="timesheets")
    op.drop_table("timesheets")
    op.drop_table("users")
    op.drop_index("idx_tasks_project_id", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("idx_milestones_project_id", table_name="milestones")
    op.drop_table("milestones")
    op.drop_table("projects")
