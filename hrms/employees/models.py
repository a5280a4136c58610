"""Employee ORM model with its fixed leave-balance record.

Balances live in five named integer columns; ``LeaveCategory.balance_field``
maps a category to its column, and categories without one (Unpaid) are not
balance-tracked.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.constants import (
    DEFAULT_LEAVE_BALANCES,
    ContractType,
    EmploymentStatus,
    LeaveCategory,
    enum_values,
)
from hrms.database import Base

if TYPE_CHECKING:
    from hrms.auth.models import User


def generate_employee_code() -> str:
    return f"EMP-{uuid.uuid4().hex[:8].upper()}"


def _balance_column(category: LeaveCategory) -> Mapped[int]:
    return mapped_column(
        sa.Integer,
        nullable=False,
        default=DEFAULT_LEAVE_BALANCES[category],
        server_default=sa.text(str(DEFAULT_LEAVE_BALANCES[category])),
    )


class Employee(Base):
    """Employee identity record."""

    __tablename__ = "employees"

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_code: Mapped[str] = mapped_column(
        sa.String(50), unique=True, nullable=False, default=generate_employee_code,
    )
    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(sa.String(30))
    location: Mapped[Optional[str]] = mapped_column(sa.String(150))
    department: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    job_role: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    status: Mapped[EmploymentStatus] = mapped_column(
        sa.Enum(EmploymentStatus, name="employment_status", values_callable=enum_values),
        nullable=False,
        default=EmploymentStatus.active,
    )
    date_of_joining: Mapped[date] = mapped_column(
        sa.Date, nullable=False, default=date.today,
    )
    contract_type: Mapped[ContractType] = mapped_column(
        sa.Enum(ContractType, name="contract_type", values_callable=enum_values),
        nullable=False,
        default=ContractType.full_time,
    )
    contract_end_date: Mapped[Optional[date]] = mapped_column(sa.Date)

    # ── Leave balance (whole days) ──────────────────────────────────
    annual_balance: Mapped[int] = _balance_column(LeaveCategory.annual)
    sick_balance: Mapped[int] = _balance_column(LeaveCategory.sick)
    personal_balance: Mapped[int] = _balance_column(LeaveCategory.personal)
    maternity_balance: Mapped[int] = _balance_column(LeaveCategory.maternity)
    paternity_balance: Mapped[int] = _balance_column(LeaveCategory.paternity)

    last_profile_update: Mapped[Optional[datetime]] = mapped_column(sa.DateTime)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime, nullable=False, default=datetime.now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime, nullable=False, default=datetime.now, onupdate=datetime.now,
    )

    __table_args__ = (
        sa.CheckConstraint(
            "annual_balance >= 0 AND sick_balance >= 0 AND personal_balance >= 0 "
            "AND maternity_balance >= 0 AND paternity_balance >= 0",
            name="ck_employees_balances_non_negative",
        ),
    )

    # ── Relationships ───────────────────────────────────────────────
    user: Mapped[Optional["User"]] = relationship(back_populates="employee")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def balance_for(self, category: LeaveCategory) -> Optional[int]:
        """Remaining days for *category*, or None when it is not balance-tracked."""
        field = category.balance_field
        if field is None:
            return None
        return getattr(self, field)

    @property
    def leave_balance(self) -> dict[str, int]:
        return {
            category.value.lower(): getattr(self, category.balance_field)
            for category in LeaveCategory
            if category.is_balance_tracked
        }

    def audit_label(self) -> str:
        return f"Employee: {self.full_name} ({self.employee_code})"

    def __repr__(self) -> str:
        return f"<Employee {self.employee_code} {self.full_name!r}>"
