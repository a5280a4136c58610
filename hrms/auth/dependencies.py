"""Auth dependencies: bearer validation, role enforcement, request audit context."""

from __future__ import annotations

import uuid
from typing import Callable

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth import service as auth_service
from hrms.auth.guard import CallerIdentity, require_any_of
from hrms.common.audit import AuditContext
from hrms.common.constants import UserRole
from hrms.common.exceptions import ForbiddenException, UnauthorizedException
from hrms.database import get_db


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise UnauthorizedException(detail="Missing or invalid Authorization header.")
    return auth_header[7:]


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> CallerIdentity:
    """Validate the JWT and return the caller's identity."""
    token = _extract_bearer(request)
    caller = await auth_service.resolve_credential(db, token)
    request.state.user_role = caller.role
    return caller


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed_roles: UserRole) -> Callable:
    """Return a FastAPI dependency that enforces role membership."""

    async def _check(
        caller: CallerIdentity = Depends(get_current_user),
    ) -> CallerIdentity:
        return require_any_of(caller, allowed_roles)

    return _check


async def require_employee(
    caller: CallerIdentity = Depends(get_current_user),
) -> uuid.UUID:
    """Return the caller's linked employee id; accounts without one are refused."""
    if caller.employee_id is None:
        raise ForbiddenException(detail="No employee profile is linked to this account.")
    return caller.employee_id


def get_audit_context(request: Request) -> AuditContext:
    return AuditContext.from_request(request)
