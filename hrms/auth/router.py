"""Auth router: sign-up, sign-in, token verification."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth import service as auth_service
from hrms.auth.dependencies import get_audit_context, get_current_user
from hrms.auth.guard import CallerIdentity
from hrms.auth.schemas import SigninRequest, SignupRequest, TokenResponse, VerifyResponse
from hrms.common.audit import AuditContext
from hrms.common.rate_limit import limiter
from hrms.config import settings
from hrms.database import get_db

router = APIRouter(prefix="", tags=["auth"])


# ── POST /signup ────────────────────────────────────────────────────

@router.post("/signup", response_model=TokenResponse, status_code=201)
async def signup(
    body: SignupRequest,
    context: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    """Register a new employee with a Staff login account."""
    return await auth_service.signup(db, body, context)


# ── POST /signin ────────────────────────────────────────────────────

@router.post("/signin", response_model=TokenResponse)
@limiter.limit(settings.SIGNIN_RATE_LIMIT)
async def signin(
    request: Request,
    body: SigninRequest,
    db: AsyncSession = Depends(get_db),
):
    return await auth_service.signin(db, body, AuditContext.from_request(request))


# ── GET /verify ─────────────────────────────────────────────────────

@router.get("/verify", response_model=VerifyResponse)
async def verify(caller: CallerIdentity = Depends(get_current_user)):
    """Return the identity behind the presented bearer token."""
    return VerifyResponse(
        user_id=caller.user_id,
        email=caller.email,
        role=caller.role,
        employee_id=caller.employee_id,
    )
