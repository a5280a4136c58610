"""Async SQLAlchemy engine, the declarative base, and the request session.

Every HTTP request gets one session. Its writes commit when the route
returns and roll back when it raises.
"""

from typing import Any, AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from hrms.config import settings


def engine_options(database_url: str) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine`` on *database_url*.

    SQLite picks its own pool class, which takes no sizing arguments.
    """
    options: dict[str, Any] = {
        "echo": settings.ENVIRONMENT == "development",
        "pool_pre_ping": True,
    }
    if make_url(database_url).get_backend_name() != "sqlite":
        options["pool_size"] = settings.DB_POOL_SIZE
        options["max_overflow"] = settings.DB_MAX_OVERFLOW
    return options


engine = create_async_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

# Shared by request sessions, the audit sink and scripts
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for the HRMS tables."""


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one unit of work per request."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
