"""Attendance service layer: clock-in/out and history.

Business logic:
  - At most one AttendanceRecord per employee per calendar day (DB unique key)
  - Clock-in and clock-out writes are conditional, so a second caller racing
    on the same day gets AlreadyClockedIn / AlreadyClockedOut, never a
    second record or an overwritten timestamp
  - Worked minutes are rounded half-up and never negative
"""

from __future__ import annotations

import logging
import math
import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.attendance.models import AttendanceRecord
from hrms.attendance.schemas import AttendanceRecordOut
from hrms.auth.guard import CallerIdentity
from hrms.common import store
from hrms.common.audit import AuditContext, audit_recorder
from hrms.common.constants import AttendanceSource, AuditAction
from hrms.common.exceptions import (
    AlreadyClockedInError,
    AlreadyClockedOutError,
    DuplicateRecordError,
    InvalidRangeError,
    NotClockedInError,
    NotFoundException,
)
from hrms.common.filters import apply_filters
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.employees.models import Employee

logger = logging.getLogger(__name__)


def worked_minutes(clock_in: datetime, clock_out: datetime) -> int:
    """Whole minutes between two instants, rounded half-up, floored at zero."""
    seconds = (clock_out - clock_in).total_seconds()
    return max(0, math.floor(seconds / 60 + 0.5))


# ═════════════════════════════════════════════════════════════════════
# AttendanceService
# ═════════════════════════════════════════════════════════════════════


class AttendanceService:
    """Daily attendance tracking."""

    @staticmethod
    async def _get_employee(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        employee = await store.find_one(db, Employee, Employee.id == employee_id)
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))
        return employee

    @staticmethod
    async def _get_day_record(
        db: AsyncSession,
        employee_id: uuid.UUID,
        day: date,
    ) -> Optional[AttendanceRecord]:
        return await store.find_one(
            db,
            AttendanceRecord,
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.date == day,
        )

    @staticmethod
    def _record_event(
        action: AuditAction,
        employee: Employee,
        record: AttendanceRecord,
        actor: Optional[CallerIdentity],
        context: Optional[AuditContext],
    ) -> None:
        details = {
            "attendance_id": str(record.id),
            "date": record.date.isoformat(),
        }
        if record.clock_out is not None:
            details["total_minutes"] = record.total_minutes
        audit_recorder.record(
            action,
            actor.email if actor else employee.email,
            employee.audit_label(),
            details,
            context,
            user_id=actor.user_id if actor else None,
            target_id=employee.id,
        )

    # ─────────────────────────────────────────────────────────────────
    # Clock In
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def clock_in(
        db: AsyncSession,
        employee_id: uuid.UUID,
        now: Optional[datetime] = None,
        source: AttendanceSource = AttendanceSource.web,
        *,
        notes: Optional[str] = None,
        actor: Optional[CallerIdentity] = None,
        context: Optional[AuditContext] = None,
    ) -> AttendanceRecord:
        """Record the first clock-in of the day for *employee_id*."""
        now = now or datetime.now()
        today = now.date()
        employee = await AttendanceService._get_employee(db, employee_id)

        record = await AttendanceService._get_day_record(db, employee_id, today)
        if record is not None:
            if record.clock_in is not None:
                raise AlreadyClockedInError()
            # Pre-created day record (e.g. a manual entry) without a clock-in
            written = await store.update_atomic(
                db,
                AttendanceRecord,
                record.id,
                {"clock_in": now, "source": source, "notes": notes or record.notes},
                AttendanceRecord.clock_in.is_(None),
            )
            if not written:
                raise AlreadyClockedInError()
            await db.refresh(record)
        else:
            try:
                record = await store.create(
                    db,
                    AttendanceRecord(
                        employee_id=employee_id,
                        date=today,
                        clock_in=now,
                        source=source,
                        notes=notes,
                    ),
                )
            except DuplicateRecordError:
                # Another request inserted today's record first
                raise AlreadyClockedInError()

        logger.info("Employee %s clocked in at %s", employee.employee_code, now.isoformat())
        AttendanceService._record_event(AuditAction.clocked_in, employee, record, actor, context)
        return record

    # ─────────────────────────────────────────────────────────────────
    # Clock Out
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def clock_out(
        db: AsyncSession,
        employee_id: uuid.UUID,
        now: Optional[datetime] = None,
        *,
        notes: Optional[str] = None,
        actor: Optional[CallerIdentity] = None,
        context: Optional[AuditContext] = None,
    ) -> AttendanceRecord:
        """Close today's record and compute the worked minutes."""
        now = now or datetime.now()
        today = now.date()
        employee = await AttendanceService._get_employee(db, employee_id)

        record = await AttendanceService._get_day_record(db, employee_id, today)
        if record is None or record.clock_in is None:
            raise NotClockedInError()
        if record.clock_out is not None:
            raise AlreadyClockedOutError()

        values = {
            "clock_out": now,
            "total_minutes": worked_minutes(record.clock_in, now),
        }
        if notes:
            values["notes"] = notes
        written = await store.update_atomic(
            db,
            AttendanceRecord,
            record.id,
            values,
            AttendanceRecord.clock_out.is_(None),
        )
        if not written:
            raise AlreadyClockedOutError()
        await db.refresh(record)

        logger.info(
            "Employee %s clocked out after %d minutes",
            employee.employee_code,
            record.total_minutes,
        )
        AttendanceService._record_event(AuditAction.clocked_out, employee, record, actor, context)
        return record

    # ─────────────────────────────────────────────────────────────────
    # History / listing
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _validate_date_range(from_date: Optional[date], to_date: Optional[date]) -> None:
        if from_date and to_date and from_date > to_date:
            raise InvalidRangeError("from_date must be before or equal to to_date.")

    @staticmethod
    async def history(
        db: AsyncSession,
        employee_id: uuid.UUID,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> list[AttendanceRecord]:
        """An employee's records, most recent day first."""
        AttendanceService._validate_date_range(from_date, to_date)
        criteria = [AttendanceRecord.employee_id == employee_id]
        if from_date:
            criteria.append(AttendanceRecord.date >= from_date)
        if to_date:
            criteria.append(AttendanceRecord.date <= to_date)
        return await store.find(
            db, AttendanceRecord, *criteria, order_by=(AttendanceRecord.date.desc(),),
        )

    @staticmethod
    async def list_records(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        employee_id: Optional[uuid.UUID] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> PaginatedResponse:
        """HR/Admin listing across employees."""
        AttendanceService._validate_date_range(from_date, to_date)
        query = select(AttendanceRecord).order_by(
            AttendanceRecord.date.desc(), AttendanceRecord.clock_in.desc(),
        )
        query = apply_filters(
            query,
            AttendanceRecord,
            {"employee_id": employee_id, "date__from": from_date, "date__to": to_date},
        )
        return await paginate(
            db, query, pagination, model=AttendanceRecord, schema=AttendanceRecordOut,
        )
