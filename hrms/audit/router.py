"""Audit router: HR/Admin view of the activity log."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.audit.schemas import AuditLogOut
from hrms.audit.service import AuditLogService
from hrms.auth.dependencies import require_role
from hrms.auth.guard import CallerIdentity
from hrms.common.constants import AuditCategory, AuditSeverity, UserRole
from hrms.common.pagination import PaginatedResponse, PaginationParams
from hrms.database import get_db

router = APIRouter(prefix="", tags=["audit"])


@router.get("/logs", response_model=PaginatedResponse[AuditLogOut])
async def list_logs(
    pagination: PaginationParams = Depends(),
    action: Optional[str] = Query(None),
    category: Optional[AuditCategory] = Query(None),
    severity: Optional[AuditSeverity] = Query(None),
    user: Optional[str] = Query(None, description="Substring of the acting user"),
    since: Optional[datetime] = Query(None),
    until: Optional[datetime] = Query(None),
    search: Optional[str] = Query(None),
    caller: CallerIdentity = Depends(require_role(UserRole.admin, UserRole.hr)),
    db: AsyncSession = Depends(get_db),
):
    return await AuditLogService.list_logs(
        db,
        pagination,
        action=action,
        category=category,
        severity=severity,
        user=user,
        since=since,
        until=until,
        search=search,
    )
