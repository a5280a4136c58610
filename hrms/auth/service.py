"""Auth service: password hashing, JWT issue/validation, sign-up and sign-in."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.guard import CallerIdentity
from hrms.auth.models import User
from hrms.auth.schemas import SigninRequest, SignupRequest, TokenResponse, UserOut
from hrms.common import store
from hrms.common.audit import AuditContext, audit_recorder
from hrms.common.constants import AuditAction, UserRole
from hrms.common.exceptions import DuplicateRecordError, UnauthorizedException
from hrms.config import settings
from hrms.employees.models import Employee

logger = logging.getLogger(__name__)

DEFAULT_DEPARTMENT = "Unassigned"
DEFAULT_JOB_ROLE = "Employee"


# ── Passwords ───────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


# ── JWT helpers ─────────────────────────────────────────────────────

def create_access_token(user: User) -> tuple[str, int]:
    """Return (encoded_jwt, expires_in_seconds)."""
    expires_in = settings.JWT_EXPIRY_HOURS * 3600
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role.value,
        "employee_id": str(user.employee_id) if user.employee_id else None,
        "type": "access",
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, expires_in


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise UnauthorizedException(detail="Token has expired.")
    except JWTError:
        raise UnauthorizedException(detail="Invalid token.")

    if payload.get("type") != "access":
        raise UnauthorizedException(detail="Invalid token type.")
    return payload


async def resolve_credential(db: AsyncSession, token: str) -> CallerIdentity:
    """Validate a bearer token and return the caller behind it.

    The role and employee link are read from the user row, not the token,
    so a demotion or unlink takes effect on the next request.
    """
    payload = decode_access_token(token)
    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise UnauthorizedException(detail="Invalid token subject.")

    user = await store.find_one(db, User, User.id == user_id)
    if user is None:
        raise UnauthorizedException(detail="User account not found.")

    return CallerIdentity(
        user_id=user.id,
        email=user.email,
        role=user.role,
        employee_id=user.employee_id,
    )


def _token_response(user: User) -> TokenResponse:
    access_token, expires_in = create_access_token(user)
    return TokenResponse(
        access_token=access_token,
        expires_in=expires_in,
        user=UserOut.model_validate(user),
    )


# ── Accounts ────────────────────────────────────────────────────────

async def create_user(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    role: UserRole = UserRole.staff,
    employee_id: Optional[uuid.UUID] = None,
) -> User:
    """Create a login account. Duplicate email -> DuplicateRecordError."""
    email = email.lower()
    existing = await store.find_one(db, User, User.email == email)
    if existing is not None:
        raise DuplicateRecordError("User", detail=f"A user with email '{email}' already exists.")

    user = User(
        email=email,
        password_hash=hash_password(password),
        role=role,
        employee_id=employee_id,
    )
    return await store.create(db, user)


async def signup(
    db: AsyncSession,
    data: SignupRequest,
    context: Optional[AuditContext] = None,
) -> TokenResponse:
    """Register an employee profile plus a Staff login account."""
    email = data.email.lower()
    if await store.find_one(db, User, User.email == email) is not None:
        raise DuplicateRecordError("User", detail=f"A user with email '{email}' already exists.")
    if await store.find_one(db, Employee, Employee.email == email) is not None:
        raise DuplicateRecordError("Employee", detail=f"An employee with email '{email}' already exists.")
    if data.employee_code and await store.find_one(
        db, Employee, Employee.employee_code == data.employee_code,
    ) is not None:
        raise DuplicateRecordError(
            "Employee", detail=f"Employee code '{data.employee_code}' is already in use.",
        )

    employee = Employee(
        first_name=data.first_name,
        last_name=data.last_name,
        email=email,
        department=data.department or DEFAULT_DEPARTMENT,
        job_role=data.job_role or DEFAULT_JOB_ROLE,
    )
    if data.employee_code:
        employee.employee_code = data.employee_code
    employee = await store.create(db, employee)

    user = await create_user(
        db,
        email=email,
        password=data.password,
        role=UserRole.staff,
        employee_id=employee.id,
    )
    logger.info("New account registered: %s (%s)", email, employee.employee_code)

    audit_recorder.record(
        AuditAction.employee_added,
        email,
        employee.audit_label(),
        {"employee_code": employee.employee_code, "self_registered": True},
        context,
        user_id=user.id,
        target_id=employee.id,
    )
    return _token_response(user)


async def signin(
    db: AsyncSession,
    data: SigninRequest,
    context: Optional[AuditContext] = None,
) -> TokenResponse:
    """Check credentials and issue an access token."""
    email = data.email.lower()
    user = await store.find_one(db, User, User.email == email)
    if user is None or not verify_password(data.password, user.password_hash):
        logger.info("Failed sign-in for %s", email)
        raise UnauthorizedException(detail="Invalid email or password.")

    audit_recorder.record(
        AuditAction.login,
        user.email,
        f"User: {user.email}",
        {"role": user.role.value},
        context,
        user_id=user.id,
        target_id=user.id,
    )
    return _token_response(user)
