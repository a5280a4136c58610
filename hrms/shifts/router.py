"""Shifts router: HR/Admin maintain shifts; everyone can list (Staff see their own)."""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_audit_context, get_current_user, require_role
from hrms.auth.guard import CallerIdentity
from hrms.common.audit import AuditContext
from hrms.common.constants import UserRole
from hrms.database import get_db
from hrms.shifts.schemas import ShiftCreate, ShiftOut, ShiftUpdate
from hrms.shifts.service import ShiftService

router = APIRouter(prefix="", tags=["shifts"])


@router.post("", response_model=ShiftOut, status_code=201)
async def create_shift(
    body: ShiftCreate,
    caller: CallerIdentity = Depends(require_role(UserRole.admin, UserRole.hr)),
    context: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.create_shift(db, caller, body, context)


@router.get("", response_model=list[ShiftOut])
async def list_shifts(
    employee_id: Optional[uuid.UUID] = Query(None),
    active_on: Optional[date] = Query(None, description="Only shifts in effect on this day"),
    caller: CallerIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.list_shifts(
        db, caller, employee_id=employee_id, active_on=active_on,
    )


@router.put("/{shift_id}", response_model=ShiftOut)
async def update_shift(
    shift_id: uuid.UUID,
    body: ShiftUpdate,
    caller: CallerIdentity = Depends(require_role(UserRole.admin, UserRole.hr)),
    context: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.update_shift(db, caller, shift_id, body, context)


@router.delete("/{shift_id}", status_code=204)
async def delete_shift(
    shift_id: uuid.UUID,
    caller: CallerIdentity = Depends(require_role(UserRole.admin, UserRole.hr)),
    context: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    await ShiftService.delete_shift(db, caller, shift_id, context)
