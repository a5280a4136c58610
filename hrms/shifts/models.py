"""Shift ORM model: an employee's working hours on given weekdays."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.constants import DEFAULT_SHIFT_DAYS
from hrms.database import Base

if TYPE_CHECKING:
    from hrms.employees.models import Employee


class Shift(Base):
    __tablename__ = "shifts"
    __table_args__ = (
        sa.Index("ix_shifts_employee_effective_from", "employee_id", "effective_from"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False,
    )
    name: Mapped[str] = mapped_column(sa.String(100), nullable=False, default="Default")
    # "HH:MM", local wall-clock
    start_time: Mapped[str] = mapped_column(sa.String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(sa.String(5), nullable=False)
    # 0=Sun .. 6=Sat
    days_of_week: Mapped[list[int]] = mapped_column(
        sa.JSON, nullable=False, default=lambda: list(DEFAULT_SHIFT_DAYS),
    )
    effective_from: Mapped[date] = mapped_column(sa.Date, nullable=False, default=date.today)
    effective_to: Mapped[Optional[date]] = mapped_column(sa.Date)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime, nullable=False, default=datetime.now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime, nullable=False, default=datetime.now, onupdate=datetime.now,
    )

    # Relationships
    employee: Mapped["Employee"] = relationship()

    def __repr__(self) -> str:
        return f"<Shift {self.name!r} {self.start_time}-{self.end_time}>"
