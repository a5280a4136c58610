"""Read-only access to the activity log."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.audit.schemas import AuditLogOut
from hrms.common.audit import AuditLog
from hrms.common.constants import AuditCategory, AuditSeverity
from hrms.common.exceptions import InvalidRangeError
from hrms.common.filters import apply_filters, apply_search
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate


class AuditLogService:
    @staticmethod
    async def list_logs(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        action: Optional[str] = None,
        category: Optional[AuditCategory] = None,
        severity: Optional[AuditSeverity] = None,
        user: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        search: Optional[str] = None,
    ) -> PaginatedResponse:
        """Filtered activity log, newest first."""
        if since and until and since > until:
            raise InvalidRangeError("'since' must be before or equal to 'until'.")

        query = select(AuditLog).order_by(AuditLog.timestamp.desc())
        filters: dict[str, Any] = {
            "action": action,
            "category": category,
            "severity": severity,
            "user__ilike": user,
            "timestamp__from": since,
            "timestamp__to": until,
        }
        query = apply_filters(query, AuditLog, filters)
        if search:
            query = apply_search(query, AuditLog, search, ["action", "user", "target"])

        return await paginate(db, query, pagination, model=AuditLog, schema=AuditLogOut)
