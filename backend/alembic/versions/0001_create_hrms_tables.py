"""create hrms tables

Revision ID: 0001
Revises: None
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "stores",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("late_entry_threshold", sa.Integer(), nullable=True),
        sa.Column("early_exit_threshold", sa.Integer(), nullable=True),
        sa.Column("expected_in_time", sa.Time(), nullable=True),
        sa.Column("expected_out_time", sa.Time(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index(op.f("ix_stores_id"), "stores", ["id"], unique=False)
    op.create_index("ix_stores_name_lower", "stores", [sa.text("lower(name)")], unique=True)

    op.create_table(
        "calendars",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("store_id", sa.Integer(), nullable=False),
        sa.Column("weekday_off", sa.String(length=20), nullable=False, server_default="Sunday"),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("store_id"),
    )
    op.create_index(op.f("ix_calendars_id"), "calendars", ["id"], unique=False)

    op.create_table(
        "holidays",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("calendar_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["calendar_id"], ["calendars.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_holidays_id"), "holidays", ["id"], unique=False)
    op.create_index(op.f("ix_holidays_calendar_id"), "holidays", ["calendar_id"], unique=False)
    op.create_index(op.f("ix_holidays_date"), "holidays", ["date"], unique=False)

    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("username", sa.String(length=200), nullable=False),
        sa.Column("emp_no", sa.String(length=50), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="BASIC"),
        sa.Column("profile", sa.String(length=50), nullable=True),
        sa.Column("store_id", sa.Integer(), nullable=True),
        sa.Column("reporting_manager_id", sa.Integer(), nullable=True),
        sa.Column("expected_in_time", sa.Time(), nullable=True),
        sa.Column("expected_out_time", sa.Time(), nullable=True),
        sa.Column("leave_days", sa.Float(), nullable=False, server_default="0"),
        sa.Column("comp_off", sa.Float(), nullable=False, server_default="0"),
        sa.Column("basic_salary", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"]),
        sa.ForeignKeyConstraint(["reporting_manager_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index(op.f("ix_employees_id"), "employees", ["id"], unique=False)
    op.create_index(op.f("ix_employees_store_id"), "employees", ["store_id"], unique=False)

    op.create_table(
        "store_hrs",
        sa.Column("store_id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("store_id", "employee_id"),
    )

    op.create_table(
        "attendance",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="absent"),
        sa.Column("in_time", sa.DateTime(), nullable=True),
        sa.Column("out_time", sa.DateTime(), nullable=True),
        sa.Column("is_late_entry", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_early_exit", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_id", "date", name="uq_attendance_employee_date"),
    )
    op.create_index(op.f("ix_attendance_id"), "attendance", ["id"], unique=False)
    op.create_index(op.f("ix_attendance_employee_id"), "attendance", ["employee_id"], unique=False)
    op.create_index(op.f("ix_attendance_date"), "attendance", ["date"], unique=False)

    op.create_table(
        "leaves",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("is_half_day_start", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_half_day_end", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("start_half_period", sa.String(length=20), nullable=True),
        sa.Column("end_half_period", sa.String(length=20), nullable=True),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("approval_stage", sa.String(length=20), nullable=False, server_default="hr_coordinator"),
        sa.Column("effective_days", sa.Float(), nullable=False, server_default="0"),
        sa.Column("manager_id", sa.Integer(), nullable=True),
        sa.Column("approved_by_id", sa.Integer(), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("manager_approval_status", sa.String(length=20), nullable=True),
        sa.Column("manager_approved_by_id", sa.Integer(), nullable=True),
        sa.Column("manager_approved_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["manager_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["approved_by_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["manager_approved_by_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_leaves_id"), "leaves", ["id"], unique=False)
    op.create_index(op.f("ix_leaves_employee_id"), "leaves", ["employee_id"], unique=False)

    op.create_table(
        "leave_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("leave_id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("remark", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["leave_id"], ["leaves.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_leave_history_id"), "leave_history", ["id"], unique=False)
    op.create_index(op.f("ix_leave_history_leave_id"), "leave_history", ["leave_id"], unique=False)

    op.create_table(
        "overtime_requests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("hours", sa.Float(), nullable=False),
        sa.Column("remarks", sa.Text(), nullable=False),
        sa.Column("manager_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("approver_id", sa.Integer(), nullable=True),
        sa.Column("approved_hours", sa.Float(), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["manager_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["approver_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_overtime_requests_id"), "overtime_requests", ["id"], unique=False)
    op.create_index(
        op.f("ix_overtime_requests_employee_id"), "overtime_requests", ["employee_id"], unique=False
    )

    op.create_table(
        "salaries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("basic_salary", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("per_hour_salary", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("overtime_rate", sa.Numeric(precision=12, scale=2), nullable=False, server_default="0"),
        sa.Column("bonus", sa.Numeric(precision=12, scale=2), nullable=False, server_default="0"),
        sa.Column("deduction_of_hours", sa.Float(), nullable=False, server_default="0"),
        sa.Column("deduction_of_days", sa.Float(), nullable=False, server_default="0"),
        sa.Column("overtime_hours_override", sa.Float(), nullable=False, server_default="0"),
        sa.Column("per_day_salary", sa.Numeric(precision=12, scale=2), nullable=False, server_default="0"),
        sa.Column("absent_days", sa.Float(), nullable=False, server_default="0"),
        sa.Column("absent_hours", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_deductions", sa.Numeric(precision=12, scale=2), nullable=False, server_default="0"),
        sa.Column("overtime_hours", sa.Float(), nullable=False, server_default="0"),
        sa.Column("overtime_payable", sa.Numeric(precision=12, scale=2), nullable=False, server_default="0"),
        sa.Column("expenses", sa.Numeric(precision=12, scale=2), nullable=False, server_default="0"),
        sa.Column("salary_gt", sa.Numeric(precision=12, scale=2), nullable=False, server_default="0"),
        sa.Column("net_salary", sa.Numeric(precision=12, scale=2), nullable=False, server_default="0"),
        sa.Column("publish", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_id", "month", "year", name="uq_salary_employee_period"),
    )
    op.create_index(op.f("ix_salaries_id"), "salaries", ["id"], unique=False)
    op.create_index(op.f("ix_salaries_employee_id"), "salaries", ["employee_id"], unique=False)

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("initial_reading", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("final_reading", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("total_distance", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("rate", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("fuel_total", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("miscellaneous_expense", sa.Numeric(precision=12, scale=2), nullable=False, server_default="0"),
        sa.Column("amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_id", "date", name="uq_expense_employee_date"),
    )
    op.create_index(op.f("ix_expenses_id"), "expenses", ["id"], unique=False)
    op.create_index(op.f("ix_expenses_employee_id"), "expenses", ["employee_id"], unique=False)

    op.create_table(
        "comp_off_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("attendance_date", sa.Date(), nullable=True),
        sa.Column("action", sa.String(length=20), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("comp_off_days", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_comp_off_history_id"), "comp_off_history", ["id"], unique=False)
    op.create_index(
        op.f("ix_comp_off_history_employee_id"), "comp_off_history", ["employee_id"], unique=False
    )


def downgrade() -> None:
    op.drop_table("comp_off_history")
    op.drop_table("expenses")
    op.drop_table("salaries")
    op.drop_table("overtime_requests")
    op.drop_table("leave_history")
    op.drop_table("leaves")
    op.drop_table("attendance")
    op.drop_table("store_hrs")
    op.drop_table("employees")
    op.drop_table("holidays")
    op.drop_table("calendars")
    op.drop_index("ix_stores_name_lower", table_name="stores")
    op.drop_table("stores")
