"""Shared test fixtures: async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL. Each
test gets a fresh in-memory database and the audit recorder writes into a
MemoryAuditSink.
"""

from __future__ import annotations

import os

# Set test settings before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from hrms.auth import service as auth_service
from hrms.auth.guard import CallerIdentity
from hrms.auth.models import User
from hrms.common.audit import MemoryAuditSink, audit_recorder
from hrms.common.constants import LeaveCategory, LeaveStatus, UserRole
from hrms.common.rate_limit import limiter
from hrms.config import settings
from hrms.database import Base, get_db
from hrms.employees.models import Employee
from hrms.leave.models import LeaveRequest
from hrms.main import create_app

# Import ALL model modules so Base.metadata knows every table
import hrms.attendance.models  # noqa: F401
import hrms.shifts.models  # noqa: F401

TEST_DATABASE_URL = "sqlite+aiosqlite://"
DEFAULT_PASSWORD = "correct-horse-42"


# ── Test database (SQLite in-memory, one per test) ──────────────────

@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for direct DB operations in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
async def audit_sink() -> AsyncGenerator[MemoryAuditSink, None]:
    """Point the global audit recorder at an in-memory sink."""
    sink = MemoryAuditSink()
    original = audit_recorder.sink
    audit_recorder.sink = sink
    yield sink
    await audit_recorder.drain()
    audit_recorder.sink = original


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    limiter.reset()
    yield


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app(session_factory):
    """Create a fresh app instance with DB dependency overridden."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Model factories ─────────────────────────────────────────────────

async def make_employee(
    db: AsyncSession,
    *,
    first_name: str = "Test",
    last_name: str = "User",
    email: Optional[str] = None,
    department: str = "Engineering",
    job_role: str = "Engineer",
    **fields,
) -> Employee:
    """Insert and commit an employee. Extra keyword args set columns (e.g. balances)."""
    employee = Employee(
        first_name=first_name,
        last_name=last_name,
        email=email or f"{first_name.lower()}.{uuid.uuid4().hex[:6]}@acme.io",
        department=department,
        job_role=job_role,
        date_of_joining=date(2024, 1, 15),
        **fields,
    )
    db.add(employee)
    await db.commit()
    return employee


async def make_user(
    db: AsyncSession,
    *,
    role: UserRole = UserRole.staff,
    employee: Optional[Employee] = None,
    email: Optional[str] = None,
    password: str = DEFAULT_PASSWORD,
) -> User:
    user = User(
        email=email or (employee.email if employee else f"user.{uuid.uuid4().hex[:6]}@acme.io"),
        password_hash=auth_service.hash_password(password),
        role=role,
        employee_id=employee.id if employee else None,
    )
    db.add(user)
    await db.commit()
    return user


async def make_leave_request(
    db: AsyncSession,
    employee: Employee,
    *,
    category: LeaveCategory = LeaveCategory.annual,
    start: date = date(2026, 3, 2),
    days: int = 3,
    status: LeaveStatus = LeaveStatus.pending,
) -> LeaveRequest:
    """Insert a request directly, bypassing the balance check."""
    leave_req = LeaveRequest(
        employee_id=employee.id,
        category=category,
        start_date=start,
        end_date=start + timedelta(days=days - 1),
        days=days,
        reason="Family trip",
        status=status,
    )
    db.add(leave_req)
    await db.commit()
    return leave_req


def caller_for(user: User) -> CallerIdentity:
    return CallerIdentity(
        user_id=user.id,
        email=user.email,
        role=user.role,
        employee_id=user.employee_id,
    )


def auth_headers_for(user: User) -> dict[str, str]:
    token, _ = auth_service.create_access_token(user)
    return {"Authorization": f"Bearer {token}"}


def create_expired_token(user: User) -> str:
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role.value,
        "type": "access",
        "exp": datetime.now(timezone.utc) - timedelta(hours=1),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@dataclass
class Account:
    """A login account with its linked employee profile, ready for requests."""

    user: User
    employee: Optional[Employee]

    @property
    def caller(self) -> CallerIdentity:
        return caller_for(self.user)

    @property
    def headers(self) -> dict[str, str]:
        return auth_headers_for(self.user)


async def make_account(
    db: AsyncSession,
    role: UserRole = UserRole.staff,
    *,
    with_employee: bool = True,
    **employee_fields,
) -> Account:
    employee = await make_employee(db, **employee_fields) if with_employee else None
    user = await make_user(db, role=role, employee=employee)
    return Account(user=user, employee=employee)


@pytest.fixture
async def staff(db) -> Account:
    return await make_account(db, UserRole.staff, first_name="Sam", last_name="Staff")


@pytest.fixture
async def hr(db) -> Account:
    return await make_account(db, UserRole.hr, first_name="Hana", last_name="Resources")


@pytest.fixture
async def admin(db) -> Account:
    return await make_account(db, UserRole.admin, first_name="Ada", last_name="Admin")

