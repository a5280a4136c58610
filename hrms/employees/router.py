"""Employees router: CRUD, self-service profile, leave-balance view.

Route ordering matters: ``/profile`` is declared before ``/{employee_id}``.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_audit_context, get_current_user, require_role
from hrms.auth.guard import CallerIdentity
from hrms.common.audit import AuditContext
from hrms.common.constants import EmploymentStatus, UserRole
from hrms.common.pagination import PaginatedResponse, PaginationParams
from hrms.database import get_db
from hrms.employees.schemas import (
    EmployeeBalanceOut,
    EmployeeCreate,
    EmployeeOut,
    EmployeeUpdate,
    ProfileUpdate,
)
from hrms.employees.service import EmployeeService

router = APIRouter(prefix="", tags=["employees"])


# ── POST / ──────────────────────────────────────────────────────────

@router.post("", response_model=EmployeeOut, status_code=201)
async def create_employee(
    body: EmployeeCreate,
    caller: CallerIdentity = Depends(require_role(UserRole.admin, UserRole.hr)),
    context: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.create_employee(db, caller, body, context)


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=PaginatedResponse[EmployeeOut])
async def list_employees(
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Match name, email, code or department"),
    department: Optional[str] = Query(None),
    status: Optional[EmploymentStatus] = Query(None),
    caller: CallerIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.list_employees(
        db, pagination, search=search, department=department, status=status,
    )


# ── PUT /profile ────────────────────────────────────────────────────

@router.put("/profile", response_model=EmployeeOut)
async def update_profile(
    body: ProfileUpdate,
    caller: CallerIdentity = Depends(get_current_user),
    context: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    """Update the caller's own phone and location."""
    return await EmployeeService.update_profile(db, caller, body, context)


# ── GET /{id} ───────────────────────────────────────────────────────

@router.get("/{employee_id}", response_model=EmployeeOut)
async def get_employee(
    employee_id: uuid.UUID,
    caller: CallerIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.get_employee(db, employee_id)


# ── PUT /{id} ───────────────────────────────────────────────────────

@router.put("/{employee_id}", response_model=EmployeeOut)
async def update_employee(
    employee_id: uuid.UUID,
    body: EmployeeUpdate,
    caller: CallerIdentity = Depends(require_role(UserRole.admin, UserRole.hr)),
    context: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.update_employee(db, caller, employee_id, body, context)


# ── DELETE /{id} ────────────────────────────────────────────────────

@router.delete("/{employee_id}", status_code=204)
async def delete_employee(
    employee_id: uuid.UUID,
    caller: CallerIdentity = Depends(require_role(UserRole.admin)),
    context: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    await EmployeeService.delete_employee(db, caller, employee_id, context)


# ── GET /{id}/leave-balance ─────────────────────────────────────────

@router.get("/{employee_id}/leave-balance", response_model=EmployeeBalanceOut)
async def get_leave_balance(
    employee_id: uuid.UUID,
    caller: CallerIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.get_leave_balance(db, caller, employee_id)
