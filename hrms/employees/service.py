"""Employee service layer: async CRUD, self-service profile, balance view.

Uses:
  - ``paginate()`` from hrms.common.pagination
  - ``apply_filters / apply_search`` from hrms.common.filters
  - ``audit_recorder`` from hrms.common.audit
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.attendance.models import AttendanceRecord
from hrms.auth import service as auth_service
from hrms.auth.guard import CallerIdentity, is_hr_or_admin, owns_employee
from hrms.auth.models import User
from hrms.common import store
from hrms.common.audit import AuditContext, audit_recorder
from hrms.common.constants import AuditAction, EmploymentStatus, UserRole
from hrms.common.exceptions import (
    DuplicateRecordError,
    ForbiddenException,
    InvalidStateError,
    NotFoundException,
)
from hrms.common.filters import apply_filters, apply_search
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.employees.models import Employee
from hrms.employees.schemas import (
    EmployeeBalanceOut,
    EmployeeCreate,
    EmployeeOut,
    EmployeeUpdate,
    LeaveBalanceOut,
    ProfileUpdate,
)
from hrms.leave.models import LeaveRequest
from hrms.shifts.models import Shift

logger = logging.getLogger(__name__)


def _jsonable(value: Any) -> Any:
    if hasattr(value, "value"):
        return value.value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


class EmployeeService:
    """Async CRUD operations for employees."""

    # ── Lookups ─────────────────────────────────────────────────────

    @staticmethod
    async def get_employee(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        employee = await store.find_one(db, Employee, Employee.id == employee_id)
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))
        return employee

    @staticmethod
    async def _ensure_unique(
        db: AsyncSession,
        *,
        email: Optional[str] = None,
        employee_code: Optional[str] = None,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        checks = []
        if email is not None:
            checks.append(("email", Employee.email == email))
        if employee_code is not None:
            checks.append(("employee code", Employee.employee_code == employee_code))
        for label, criterion in checks:
            criteria = [criterion]
            if exclude_id is not None:
                criteria.append(Employee.id != exclude_id)
            if await store.find_one(db, Employee, *criteria) is not None:
                raise DuplicateRecordError(
                    "Employee", detail=f"An employee with this {label} already exists.",
                )

    # ── List (paginated, searchable, filterable) ────────────────────

    @staticmethod
    async def list_employees(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        department: Optional[str] = None,
        status: Optional[EmploymentStatus] = None,
    ) -> PaginatedResponse:
        """Return a paginated, filtered, searchable employee list."""
        query = select(Employee).order_by(Employee.created_at.desc())

        filters: dict[str, Any] = {
            "department": department,
            "status": status,
        }
        query = apply_filters(query, Employee, filters)

        if search:
            query = apply_search(
                query,
                Employee,
                search,
                ["first_name", "last_name", "email", "employee_code", "department"],
            )

        return await paginate(db, query, pagination, model=Employee, schema=EmployeeOut)

    # ── Create ──────────────────────────────────────────────────────

    @staticmethod
    async def create_employee(
        db: AsyncSession,
        caller: CallerIdentity,
        data: EmployeeCreate,
        context: Optional[AuditContext] = None,
    ) -> Employee:
        """Create an employee record, and a login account when a password is given."""
        if data.password and data.role != UserRole.staff and caller.role != UserRole.admin:
            raise ForbiddenException(detail="Only an Admin may create HR or Admin accounts.")

        email = data.email.lower()
        await EmployeeService._ensure_unique(
            db, email=email, employee_code=data.employee_code,
        )

        values = data.model_dump(exclude={"password", "role"}, exclude_none=True)
        values["email"] = email
        employee = await store.create(db, Employee(**values))

        if data.password:
            await auth_service.create_user(
                db,
                email=email,
                password=data.password,
                role=data.role,
                employee_id=employee.id,
            )

        logger.info("Employee %s created by %s", employee.employee_code, caller.email)
        audit_recorder.record(
            AuditAction.employee_added,
            caller.email,
            employee.audit_label(),
            {
                "employee_code": employee.employee_code,
                "department": employee.department,
                "account_role": data.role.value if data.password else None,
            },
            context,
            user_id=caller.user_id,
            target_id=employee.id,
        )
        return employee

    # ── Update ──────────────────────────────────────────────────────

    @staticmethod
    async def update_employee(
        db: AsyncSession,
        caller: CallerIdentity,
        employee_id: uuid.UUID,
        data: EmployeeUpdate,
        context: Optional[AuditContext] = None,
    ) -> Employee:
        """Partial-update an existing employee."""
        employee = await EmployeeService.get_employee(db, employee_id)

        changes = data.model_dump(exclude_unset=True)
        if "email" in changes and changes["email"] is not None:
            changes["email"] = changes["email"].lower()
        if not changes:
            return employee

        await EmployeeService._ensure_unique(
            db,
            email=changes.get("email"),
            employee_code=changes.get("employee_code"),
            exclude_id=employee.id,
        )

        old_values: dict[str, Any] = {}
        for field, value in changes.items():
            old_values[field] = _jsonable(getattr(employee, field, None))
            setattr(employee, field, value)
        employee.updated_at = datetime.now()
        await db.flush()

        audit_recorder.record(
            AuditAction.employee_updated,
            caller.email,
            employee.audit_label(),
            {
                "old_values": old_values,
                "new_values": {k: _jsonable(v) for k, v in changes.items()},
            },
            context,
            user_id=caller.user_id,
            target_id=employee.id,
        )
        return employee

    @staticmethod
    async def update_profile(
        db: AsyncSession,
        caller: CallerIdentity,
        data: ProfileUpdate,
        context: Optional[AuditContext] = None,
    ) -> Employee:
        """Let a caller change the phone and location on their own record."""
        if caller.employee_id is None:
            raise ForbiddenException(detail="No employee profile is linked to this account.")
        employee = await EmployeeService.get_employee(db, caller.employee_id)

        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(employee, field, value)
        employee.last_profile_update = datetime.now()
        await db.flush()

        audit_recorder.record(
            AuditAction.profile_updated,
            caller.email,
            employee.audit_label(),
            {"updated_fields": sorted(changes)},
            context,
            user_id=caller.user_id,
            target_id=employee.id,
        )
        return employee

    # ── Delete ──────────────────────────────────────────────────────

    @staticmethod
    async def delete_employee(
        db: AsyncSession,
        caller: CallerIdentity,
        employee_id: uuid.UUID,
        context: Optional[AuditContext] = None,
    ) -> None:
        """Remove an employee with no leave or attendance history.

        Shifts are removed with the employee and any login account is
        unlinked rather than deleted.
        """
        employee = await EmployeeService.get_employee(db, employee_id)

        has_leave = await store.find_one(db, LeaveRequest, LeaveRequest.employee_id == employee.id)
        has_attendance = await store.find_one(
            db, AttendanceRecord, AttendanceRecord.employee_id == employee.id,
        )
        if has_leave is not None or has_attendance is not None:
            raise InvalidStateError(
                "Employee has leave or attendance history and cannot be deleted. "
                "Set the status to Terminated instead.",
            )

        label = employee.audit_label()
        code = employee.employee_code
        await db.execute(delete(Shift).where(Shift.employee_id == employee.id))
        await db.execute(
            update(User).where(User.employee_id == employee.id).values(employee_id=None),
        )
        await db.delete(employee)
        await db.flush()

        logger.info("Employee %s deleted by %s", code, caller.email)
        audit_recorder.record(
            AuditAction.employee_deleted,
            caller.email,
            label,
            {"employee_code": code},
            context,
            user_id=caller.user_id,
            target_id=employee_id,
        )

    # ── Leave balance ───────────────────────────────────────────────

    @staticmethod
    async def get_leave_balance(
        db: AsyncSession,
        caller: CallerIdentity,
        employee_id: uuid.UUID,
    ) -> EmployeeBalanceOut:
        if not (is_hr_or_admin(caller) or owns_employee(caller, employee_id)):
            raise ForbiddenException(detail="You may only view your own leave balance.")
        employee = await EmployeeService.get_employee(db, employee_id)
        return EmployeeBalanceOut(
            employee_id=employee.id,
            employee_code=employee.employee_code,
            leave_balance=LeaveBalanceOut(**employee.leave_balance),
        )
