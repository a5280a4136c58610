"""HRMS API: FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from hrms.attendance.router import router as attendance_router
from hrms.audit.router import router as audit_router
from hrms.auth.router import router as auth_router
from hrms.common.audit import audit_recorder
from hrms.common.exceptions import register_exception_handlers
from hrms.common.rate_limit import limiter
from hrms.config import settings
from hrms.database import engine
from hrms.employees.router import router as employees_router
from hrms.leave.router import router as leave_router
from hrms.logging_config import configure_logging
from hrms.shifts.router import router as shifts_router

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    configure_logging()
    logger.info("HRMS API starting (environment=%s)", settings.ENVIRONMENT)
    yield
    # Let in-flight audit writes land before the pool goes away
    await audit_recorder.drain()
    await engine.dispose()
    logger.info("HRMS API stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="HRMS API",
        description="Employees, leave balances, attendance, shifts and activity audit",
        version=API_VERSION,
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": API_VERSION,
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])
    app.include_router(employees_router, prefix="/api/v1/employees", tags=["employees"])
    app.include_router(leave_router, prefix="/api/v1/leaves", tags=["leave"])
    app.include_router(attendance_router, prefix="/api/v1/attendance", tags=["attendance"])
    app.include_router(shifts_router, prefix="/api/v1/shifts", tags=["shifts"])
    app.include_router(audit_router, prefix="/api/v1/audit", tags=["audit"])

    return app


app = create_app()
