"""Leave router: request, approve/reject, cancel, listings.

All endpoints require authentication. Approve and reject are HR/Admin only;
cancel is open to the owning employee as well. Decision routes accept both
POST and PUT.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_audit_context, get_current_user, require_role
from hrms.auth.guard import CallerIdentity
from hrms.common.audit import AuditContext
from hrms.common.constants import LeaveCategory, LeaveStatus, UserRole
from hrms.common.pagination import PaginatedResponse, PaginationParams
from hrms.database import get_db
from hrms.leave.schemas import LeaveRequestCreate, LeaveRequestOut
from hrms.leave.service import LeaveService

router = APIRouter(prefix="", tags=["leave"])


# ── POST /request ───────────────────────────────────────────────────

@router.post("/request", response_model=LeaveRequestOut, status_code=201)
async def request_leave(
    body: LeaveRequestCreate,
    caller: CallerIdentity = Depends(get_current_user),
    context: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    """File a leave request. Validates the date range and the category balance."""
    return await LeaveService.request_leave(db, caller, body, context)


# ── GET /my ─────────────────────────────────────────────────────────

@router.get("/my", response_model=list[LeaveRequestOut])
async def my_leaves(
    caller: CallerIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.list_my_requests(db, caller)


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=PaginatedResponse[LeaveRequestOut])
async def list_leaves(
    pagination: PaginationParams = Depends(),
    status: Optional[LeaveStatus] = Query(None),
    category: Optional[LeaveCategory] = Query(None),
    employee_id: Optional[uuid.UUID] = Query(None),
    caller: CallerIdentity = Depends(require_role(UserRole.admin, UserRole.hr)),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.list_requests(
        db, pagination, status=status, category=category, employee_id=employee_id,
    )


# ── POST|PUT /{id}/approve ──────────────────────────────────────────

@router.api_route("/{request_id}/approve", methods=["POST", "PUT"], response_model=LeaveRequestOut)
async def approve_leave(
    request_id: uuid.UUID,
    caller: CallerIdentity = Depends(require_role(UserRole.admin, UserRole.hr)),
    context: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    """Approve a pending leave request. Debits the category balance."""
    return await LeaveService.approve(db, caller, request_id, context)


# ── POST|PUT /{id}/reject ───────────────────────────────────────────

@router.api_route("/{request_id}/reject", methods=["POST", "PUT"], response_model=LeaveRequestOut)
async def reject_leave(
    request_id: uuid.UUID,
    caller: CallerIdentity = Depends(require_role(UserRole.admin, UserRole.hr)),
    context: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.reject(db, caller, request_id, context)


# ── POST|PUT /{id}/cancel ───────────────────────────────────────────

@router.api_route("/{request_id}/cancel", methods=["POST", "PUT"], response_model=LeaveRequestOut)
async def cancel_leave(
    request_id: uuid.UUID,
    caller: CallerIdentity = Depends(get_current_user),
    context: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a pending request. Owner or HR/Admin."""
    return await LeaveService.cancel(db, caller, request_id, context)
