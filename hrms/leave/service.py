"""Leave service layer: request lifecycle and balance accounting.

Business logic:
  - Requests start Pending; only Pending requests move, and every move is terminal
  - The balance is checked when a request is filed and debited only on approval
  - Approval writes (balance debit, status change) are conditional UPDATEs in one
    unit of work, so a concurrent decision or a drained balance aborts both
  - Reject and cancel never touch the balance
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.guard import HR_OR_ADMIN, CallerIdentity, is_hr_or_admin, owns_employee, require_any_of
from hrms.common import store
from hrms.common.audit import AuditContext, audit_recorder
from hrms.common.constants import AuditAction, LeaveCategory, LeaveOutcome, LeaveStatus
from hrms.common.exceptions import (
    ForbiddenException,
    InsufficientBalanceError,
    InvalidRangeError,
    InvalidStateError,
    NotFoundException,
)
from hrms.common.filters import apply_filters
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.employees.models import Employee
from hrms.leave.models import LeaveRequest
from hrms.leave.schemas import LeaveRequestCreate, LeaveRequestOut

logger = logging.getLogger(__name__)

_OUTCOME_ACTIONS: dict[LeaveOutcome, AuditAction] = {
    LeaveOutcome.approve: AuditAction.leave_approved,
    LeaveOutcome.reject: AuditAction.leave_rejected,
}


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Leave request lifecycle: request, decide, cancel, list."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    def calculate_days(start: date, end: date) -> int:
        """Inclusive calendar-day span; zero or negative when end precedes start."""
        return (end - start).days + 1

    @staticmethod
    async def _get_employee(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        employee = await store.find_one(db, Employee, Employee.id == employee_id)
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))
        return employee

    @staticmethod
    async def _get_request(db: AsyncSession, request_id: uuid.UUID) -> LeaveRequest:
        leave_req = await store.find_one(db, LeaveRequest, LeaveRequest.id == request_id)
        if leave_req is None:
            raise NotFoundException("LeaveRequest", str(request_id))
        return leave_req

    @staticmethod
    def _ensure_transition(leave_req: LeaveRequest, target: LeaveStatus) -> None:
        if not leave_req.status.can_transition_to(target):
            raise InvalidStateError(
                f"Leave request is already {leave_req.status.value}.",
            )

    @staticmethod
    async def _mark_status(
        db: AsyncSession,
        leave_req: LeaveRequest,
        target: LeaveStatus,
        decided_by: uuid.UUID,
    ) -> None:
        """Move a Pending request to *target*; a concurrent move aborts the unit of work."""
        now = datetime.now()
        written = await store.update_atomic(
            db,
            LeaveRequest,
            leave_req.id,
            {
                "status": target,
                "decided_by": decided_by,
                "decided_at": now,
                "updated_at": now,
            },
            LeaveRequest.status == LeaveStatus.pending,
        )
        if not written:
            await db.rollback()
            raise InvalidStateError("Leave request was decided by another reviewer.")
        await db.refresh(leave_req)

    # ─────────────────────────────────────────────────────────────────
    # Request Leave
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def request_leave(
        db: AsyncSession,
        caller: CallerIdentity,
        data: LeaveRequestCreate,
        context: Optional[AuditContext] = None,
    ) -> LeaveRequest:
        """File a Pending leave request after range and balance checks."""
        if is_hr_or_admin(caller) and data.employee_id is not None:
            employee_id = data.employee_id
        else:
            employee_id = caller.employee_id
        if employee_id is None:
            raise ForbiddenException(detail="No employee profile is linked to this account.")

        employee = await LeaveService._get_employee(db, employee_id)

        days = LeaveService.calculate_days(data.start_date, data.end_date)
        if days <= 0:
            raise InvalidRangeError("End date must not be before start date.")

        available = employee.balance_for(data.category)
        if available is not None and available < days:
            raise InsufficientBalanceError(data.category.value, available, days)

        leave_req = await store.create(
            db,
            LeaveRequest(
                employee_id=employee.id,
                category=data.category,
                start_date=data.start_date,
                end_date=data.end_date,
                days=days,
                reason=data.reason,
                status=LeaveStatus.pending,
            ),
        )

        audit_recorder.record(
            AuditAction.leave_requested,
            caller.email,
            employee.audit_label(),
            {
                "leave_request_id": str(leave_req.id),
                "category": data.category.value,
                "start_date": data.start_date.isoformat(),
                "end_date": data.end_date.isoformat(),
                "days": days,
            },
            context,
            user_id=caller.user_id,
            target_id=employee.id,
        )
        return leave_req

    # ─────────────────────────────────────────────────────────────────
    # Decide (approve / reject)
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def decide(
        db: AsyncSession,
        caller: CallerIdentity,
        request_id: uuid.UUID,
        outcome: LeaveOutcome,
        context: Optional[AuditContext] = None,
    ) -> LeaveRequest:
        """Approve or reject a Pending request.

        Approval of a balance-tracked category debits the employee with a
        floor-checked UPDATE before the status changes; either write
        failing leaves both undone.
        """
        require_any_of(caller, HR_OR_ADMIN)

        leave_req = await LeaveService._get_request(db, request_id)
        target = outcome.target_status
        LeaveService._ensure_transition(leave_req, target)

        employee = await LeaveService._get_employee(db, leave_req.employee_id)

        field = leave_req.category.balance_field
        if outcome is LeaveOutcome.approve and field is not None:
            column = getattr(Employee, field)
            debited = await store.update_atomic(
                db,
                Employee,
                employee.id,
                {field: column - leave_req.days},
                column >= leave_req.days,
            )
            if not debited:
                await db.refresh(employee)
                raise InsufficientBalanceError(
                    leave_req.category.value, getattr(employee, field), leave_req.days,
                )

        await LeaveService._mark_status(db, leave_req, target, caller.user_id)
        await db.refresh(employee)

        logger.info(
            "Leave request %s %s by %s", leave_req.id, target.value.lower(), caller.email,
        )
        details = {
            "leave_request_id": str(leave_req.id),
            "category": leave_req.category.value,
            "days": leave_req.days,
        }
        if field is not None:
            details["remaining_balance"] = getattr(employee, field)
        audit_recorder.record(
            _OUTCOME_ACTIONS[outcome],
            caller.email,
            employee.audit_label(),
            details,
            context,
            user_id=caller.user_id,
            target_id=employee.id,
        )
        return leave_req

    @staticmethod
    async def approve(
        db: AsyncSession,
        caller: CallerIdentity,
        request_id: uuid.UUID,
        context: Optional[AuditContext] = None,
    ) -> LeaveRequest:
        return await LeaveService.decide(db, caller, request_id, LeaveOutcome.approve, context)

    @staticmethod
    async def reject(
        db: AsyncSession,
        caller: CallerIdentity,
        request_id: uuid.UUID,
        context: Optional[AuditContext] = None,
    ) -> LeaveRequest:
        return await LeaveService.decide(db, caller, request_id, LeaveOutcome.reject, context)

    # ─────────────────────────────────────────────────────────────────
    # Cancel
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def cancel(
        db: AsyncSession,
        caller: CallerIdentity,
        request_id: uuid.UUID,
        context: Optional[AuditContext] = None,
    ) -> LeaveRequest:
        """Withdraw a Pending request. Owner or HR/Admin; balance untouched."""
        leave_req = await LeaveService._get_request(db, request_id)

        if not (owns_employee(caller, leave_req.employee_id) or is_hr_or_admin(caller)):
            raise ForbiddenException(detail="You can only cancel your own leave requests.")

        LeaveService._ensure_transition(leave_req, LeaveStatus.cancelled)
        await LeaveService._mark_status(db, leave_req, LeaveStatus.cancelled, caller.user_id)

        employee = await LeaveService._get_employee(db, leave_req.employee_id)
        audit_recorder.record(
            AuditAction.leave_cancelled,
            caller.email,
            employee.audit_label(),
            {
                "leave_request_id": str(leave_req.id),
                "category": leave_req.category.value,
                "days": leave_req.days,
            },
            context,
            user_id=caller.user_id,
            target_id=employee.id,
        )
        return leave_req

    # ─────────────────────────────────────────────────────────────────
    # Listing
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_my_requests(
        db: AsyncSession,
        caller: CallerIdentity,
    ) -> list[LeaveRequest]:
        """The caller's own requests, newest first."""
        if caller.employee_id is None:
            return []
        return await store.find(
            db,
            LeaveRequest,
            LeaveRequest.employee_id == caller.employee_id,
            order_by=(LeaveRequest.created_at.desc(),),
        )

    @staticmethod
    async def list_requests(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        status: Optional[LeaveStatus] = None,
        category: Optional[LeaveCategory] = None,
        employee_id: Optional[uuid.UUID] = None,
    ) -> PaginatedResponse:
        """HR/Admin listing across employees, newest first."""
        query = select(LeaveRequest).order_by(LeaveRequest.created_at.desc())
        query = apply_filters(
            query,
            LeaveRequest,
            {"status": status, "category": category, "employee_id": employee_id},
        )
        return await paginate(
            db, query, pagination, model=LeaveRequest, schema=LeaveRequestOut,
        )
