"""Attendance ORM model: one AttendanceRecord per employee per calendar day."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.constants import AttendanceSource, enum_values
from hrms.database import Base

if TYPE_CHECKING:
    from hrms.employees.models import Employee


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "date", name="uq_attendance_employee_date"),
        sa.CheckConstraint("total_minutes >= 0", name="ck_attendance_total_minutes"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id"), nullable=False,
    )
    date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    clock_in: Mapped[Optional[datetime]] = mapped_column(sa.DateTime)
    clock_out: Mapped[Optional[datetime]] = mapped_column(sa.DateTime)
    total_minutes: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0, server_default=sa.text("0"),
    )
    source: Mapped[AttendanceSource] = mapped_column(
        sa.Enum(AttendanceSource, name="attendance_source", values_callable=enum_values),
        nullable=False,
        default=AttendanceSource.web,
    )
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime, nullable=False, default=datetime.now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime, nullable=False, default=datetime.now, onupdate=datetime.now,
    )

    # Relationships
    employee: Mapped["Employee"] = relationship()

    @property
    def total_hours(self) -> float:
        return round(self.total_minutes / 60, 2)

    def __repr__(self) -> str:
        return f"<AttendanceRecord {self.employee_id} {self.date}>"
