"""Shift registry: create, update, list and delete employee shifts."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.guard import CallerIdentity, is_hr_or_admin
from hrms.common import store
from hrms.common.audit import AuditContext, audit_recorder
from hrms.common.constants import AuditAction
from hrms.common.exceptions import InvalidRangeError, NotFoundException
from hrms.employees.models import Employee
from hrms.shifts.models import Shift
from hrms.shifts.schemas import ShiftCreate, ShiftUpdate


def _shift_details(shift: Shift) -> dict[str, Any]:
    return {
        "shift_id": str(shift.id),
        "name": shift.name,
        "start_time": shift.start_time,
        "end_time": shift.end_time,
        "days_of_week": list(shift.days_of_week),
    }


class ShiftService:
    """Async CRUD for shifts. Mutations are HR/Admin only (enforced by the router)."""

    @staticmethod
    async def _get_shift(db: AsyncSession, shift_id: uuid.UUID) -> Shift:
        shift = await store.find_one(db, Shift, Shift.id == shift_id)
        if shift is None:
            raise NotFoundException("Shift", str(shift_id))
        return shift

    @staticmethod
    async def _get_employee(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        employee = await store.find_one(db, Employee, Employee.id == employee_id)
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))
        return employee

    @staticmethod
    async def create_shift(
        db: AsyncSession,
        caller: CallerIdentity,
        data: ShiftCreate,
        context: Optional[AuditContext] = None,
    ) -> Shift:
        employee = await ShiftService._get_employee(db, data.employee_id)
        values = data.model_dump(exclude_none=True)
        shift = await store.create(db, Shift(**values))

        audit_recorder.record(
            AuditAction.shift_added,
            caller.email,
            employee.audit_label(),
            _shift_details(shift),
            context,
            user_id=caller.user_id,
            target_id=employee.id,
        )
        return shift

    @staticmethod
    async def update_shift(
        db: AsyncSession,
        caller: CallerIdentity,
        shift_id: uuid.UUID,
        data: ShiftUpdate,
        context: Optional[AuditContext] = None,
    ) -> Shift:
        shift = await ShiftService._get_shift(db, shift_id)
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return shift

        effective_from = changes.get("effective_from", shift.effective_from)
        effective_to = changes.get("effective_to", shift.effective_to)
        if effective_from and effective_to and effective_to < effective_from:
            raise InvalidRangeError("effective_to must not be before effective_from.")

        for field, value in changes.items():
            setattr(shift, field, value)
        shift.updated_at = datetime.now()
        await db.flush()

        employee = await ShiftService._get_employee(db, shift.employee_id)
        audit_recorder.record(
            AuditAction.shift_updated,
            caller.email,
            employee.audit_label(),
            {**_shift_details(shift), "updated_fields": sorted(changes)},
            context,
            user_id=caller.user_id,
            target_id=employee.id,
        )
        return shift

    @staticmethod
    async def list_shifts(
        db: AsyncSession,
        caller: CallerIdentity,
        *,
        employee_id: Optional[uuid.UUID] = None,
        active_on: Optional[date] = None,
    ) -> list[Shift]:
        """Shifts ordered by start date, newest first. Staff only see their own."""
        if not is_hr_or_admin(caller):
            if caller.employee_id is None:
                return []
            employee_id = caller.employee_id

        criteria = []
        if employee_id is not None:
            criteria.append(Shift.employee_id == employee_id)
        if active_on is not None:
            criteria.append(Shift.effective_from <= active_on)
            criteria.append((Shift.effective_to.is_(None)) | (Shift.effective_to >= active_on))
        return await store.find(
            db, Shift, *criteria, order_by=(Shift.effective_from.desc(), Shift.created_at.desc()),
        )

    @staticmethod
    async def delete_shift(
        db: AsyncSession,
        caller: CallerIdentity,
        shift_id: uuid.UUID,
        context: Optional[AuditContext] = None,
    ) -> None:
        shift = await ShiftService._get_shift(db, shift_id)
        employee = await ShiftService._get_employee(db, shift.employee_id)
        details = _shift_details(shift)

        await db.execute(delete(Shift).where(Shift.id == shift.id))
        await db.flush()

        audit_recorder.record(
            AuditAction.shift_deleted,
            caller.email,
            employee.audit_label(),
            details,
            context,
            user_id=caller.user_id,
            target_id=employee.id,
        )
