"""Attendance router: clock-in/out, own history, HR listing."""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.attendance.schemas import AttendanceRecordOut, ClockRequest
from hrms.attendance.service import AttendanceService
from hrms.auth.dependencies import (
    get_audit_context,
    get_current_user,
    require_employee,
    require_role,
)
from hrms.auth.guard import CallerIdentity, is_hr_or_admin
from hrms.common.audit import AuditContext
from hrms.common.constants import AttendanceSource, UserRole
from hrms.common.pagination import PaginatedResponse, PaginationParams
from hrms.database import get_db

router = APIRouter(prefix="", tags=["attendance"])


# ── POST /clock-in ──────────────────────────────────────────────────

@router.post("/clock-in", response_model=AttendanceRecordOut, status_code=201)
async def clock_in(
    body: Optional[ClockRequest] = Body(None),
    employee_id: uuid.UUID = Depends(require_employee),
    caller: CallerIdentity = Depends(get_current_user),
    context: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    body = body or ClockRequest()
    # Only HR/Admin may label a clock-in with a source other than Web
    source = body.source if is_hr_or_admin(caller) else AttendanceSource.web
    return await AttendanceService.clock_in(
        db, employee_id, source=source, notes=body.notes, actor=caller, context=context,
    )


# ── POST /clock-out ─────────────────────────────────────────────────

@router.post("/clock-out", response_model=AttendanceRecordOut)
async def clock_out(
    body: Optional[ClockRequest] = Body(None),
    employee_id: uuid.UUID = Depends(require_employee),
    caller: CallerIdentity = Depends(get_current_user),
    context: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    notes = body.notes if body else None
    return await AttendanceService.clock_out(
        db, employee_id, notes=notes, actor=caller, context=context,
    )


# ── GET /my ─────────────────────────────────────────────────────────

@router.get("/my", response_model=list[AttendanceRecordOut])
async def my_attendance(
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    employee_id: uuid.UUID = Depends(require_employee),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.history(db, employee_id, from_date, to_date)


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=PaginatedResponse[AttendanceRecordOut])
async def list_attendance(
    pagination: PaginationParams = Depends(),
    employee_id: Optional[uuid.UUID] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    caller: CallerIdentity = Depends(require_role(UserRole.admin, UserRole.hr)),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.list_records(
        db, pagination, employee_id=employee_id, from_date=from_date, to_date=to_date,
    )
