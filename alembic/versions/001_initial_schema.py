"""001: Initial schema: employees, users, leave, attendance, shifts, audit log.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ENUM_TYPES: dict[str, list[str]] = {
    "user_role": ["Admin", "HR", "Staff"],
    "employment_status": ["Active", "Inactive", "On Leave", "Terminated"],
    "contract_type": ["Full-time", "Part-time", "Contract", "Internship"],
    "leave_category": ["Annual", "Sick", "Personal", "Maternity", "Paternity", "Unpaid"],
    "leave_status": ["Pending", "Approved", "Rejected", "Cancelled"],
    "attendance_source": ["Manual", "Web", "Mobile"],
    "audit_category": ["Employee", "Leave", "Approval", "System", "Report"],
    "audit_severity": ["Low", "Medium", "High", "Critical"],
}


def _enum(name: str) -> sa.Enum:
    return sa.Enum(*ENUM_TYPES[name], name=name)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    ]


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── 1. employees ──────────────────────────────────────────────────────
    op.create_table(
        "employees",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("employee_code", sa.String(50), nullable=False, unique=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("phone", sa.String(30)),
        sa.Column("location", sa.String(150)),
        sa.Column("department", sa.String(100), nullable=False),
        sa.Column("job_role", sa.String(100), nullable=False),
        sa.Column("status", _enum("employment_status"), nullable=False, server_default="Active"),
        sa.Column("date_of_joining", sa.Date, nullable=False, server_default=sa.func.current_date()),
        sa.Column("contract_type", _enum("contract_type"), nullable=False, server_default="Full-time"),
        sa.Column("contract_end_date", sa.Date),
        sa.Column("annual_balance", sa.Integer, nullable=False, server_default=sa.text("20")),
        sa.Column("sick_balance", sa.Integer, nullable=False, server_default=sa.text("10")),
        sa.Column("personal_balance", sa.Integer, nullable=False, server_default=sa.text("5")),
        sa.Column("maternity_balance", sa.Integer, nullable=False, server_default=sa.text("90")),
        sa.Column("paternity_balance", sa.Integer, nullable=False, server_default=sa.text("10")),
        sa.Column("last_profile_update", sa.DateTime),
        *_timestamps(),
        sa.CheckConstraint(
            "annual_balance >= 0 AND sick_balance >= 0 AND personal_balance >= 0 "
            "AND maternity_balance >= 0 AND paternity_balance >= 0",
            name="ck_employees_balances_non_negative",
        ),
    )

    # ── 2. users ──────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", _enum("user_role"), nullable=False, server_default="Staff"),
        sa.Column(
            "employee_id",
            sa.Uuid,
            sa.ForeignKey("employees.id", ondelete="SET NULL"),
        ),
        *_timestamps(),
    )

    # ── 3. leave_requests ─────────────────────────────────────────────────
    op.create_table(
        "leave_requests",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("employee_id", sa.Uuid, sa.ForeignKey("employees.id"), nullable=False),
        sa.Column("category", _enum("leave_category"), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("days", sa.Integer, nullable=False),
        sa.Column("reason", sa.Text),
        sa.Column("status", _enum("leave_status"), nullable=False, server_default="Pending"),
        sa.Column("decided_by", sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("decided_at", sa.DateTime),
        *_timestamps(),
        sa.CheckConstraint("days >= 1", name="ck_leave_requests_days_positive"),
        sa.CheckConstraint("end_date >= start_date", name="ck_leave_requests_date_order"),
    )
    op.create_index(
        "ix_leave_requests_employee_status", "leave_requests", ["employee_id", "status"],
    )

    # ── 4. attendance_records ─────────────────────────────────────────────
    op.create_table(
        "attendance_records",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("employee_id", sa.Uuid, sa.ForeignKey("employees.id"), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("clock_in", sa.DateTime),
        sa.Column("clock_out", sa.DateTime),
        sa.Column("total_minutes", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("source", _enum("attendance_source"), nullable=False, server_default="Web"),
        sa.Column("notes", sa.Text),
        *_timestamps(),
        sa.UniqueConstraint("employee_id", "date", name="uq_attendance_employee_date"),
        sa.CheckConstraint("total_minutes >= 0", name="ck_attendance_total_minutes"),
    )

    # ── 5. shifts ─────────────────────────────────────────────────────────
    op.create_table(
        "shifts",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column(
            "employee_id",
            sa.Uuid,
            sa.ForeignKey("employees.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False, server_default="Default"),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("days_of_week", sa.JSON, nullable=False),
        sa.Column("effective_from", sa.Date, nullable=False, server_default=sa.func.current_date()),
        sa.Column("effective_to", sa.Date),
        *_timestamps(),
    )
    op.create_index(
        "ix_shifts_employee_effective_from", "shifts", ["employee_id", "effective_from"],
    )

    # ── 6. audit_logs (append-only) ───────────────────────────────────────
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("user", sa.String(255), nullable=False),
        sa.Column("user_id", sa.Uuid),
        sa.Column("target", sa.Text),
        sa.Column("target_id", sa.Uuid),
        sa.Column("details", sa.JSON),
        sa.Column("ip_address", sa.String(64)),
        sa.Column("user_agent", sa.Text),
        sa.Column("category", _enum("audit_category"), nullable=False),
        sa.Column("severity", _enum("audit_severity"), nullable=False, server_default="Low"),
        sa.Column("timestamp", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_action_timestamp", "audit_logs", ["action", "timestamp"])
    op.create_index("ix_audit_logs_category_timestamp", "audit_logs", ["category", "timestamp"])
    op.create_index("ix_audit_logs_user_timestamp", "audit_logs", ["user", "timestamp"])


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("shifts")
    op.drop_table("attendance_records")
    op.drop_table("leave_requests")
    op.drop_table("users")
    op.drop_table("employees")

    bind = op.get_bind()
    for name in reversed(list(ENUM_TYPES)):
        sa.Enum(name=name).drop(bind, checkfirst=True)
