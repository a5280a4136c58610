"""Custom exceptions and RFC 7807 Problem Detail error handlers."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

BASE_ERROR_URI = "https://hrms.local/errors"


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → RFC 7807 JSON."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        super().__init__(detail)


class UnauthorizedException(AppException):
    """401: missing or invalid credential."""

    def __init__(self, detail: str = "Authentication credentials were not provided or are invalid.") -> None:
        super().__init__(
            status_code=401,
            error_type="unauthorized",
            title="Unauthorized",
            detail=detail,
        )


class ForbiddenException(AppException):
    """403: insufficient role or not the resource owner."""

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(
            status_code=403,
            error_type="forbidden",
            title="Forbidden",
            detail=detail,
        )


class NotFoundException(AppException):
    """404: entity not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
        )


class InvalidRangeError(AppException):
    """400: non-positive or malformed date span."""

    def __init__(self, detail: str = "Invalid date range.") -> None:
        super().__init__(
            status_code=400,
            error_type="invalid-range",
            title="Invalid Date Range",
            detail=detail,
        )


class InsufficientBalanceError(AppException):
    """400: category balance below requested days."""

    def __init__(self, category: str, available: int, requested: int) -> None:
        super().__init__(
            status_code=400,
            error_type="insufficient-balance",
            title="Insufficient Balance",
            detail=(
                f"Insufficient {category} leave balance. "
                f"Available: {available}, Requested: {requested}."
            ),
            errors={"balance": [f"{category}: {available} < {requested}"]},
        )


class InvalidStateError(AppException):
    """400: operation attempted on an entity not in the required state."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=400,
            error_type="invalid-state",
            title="Invalid State",
            detail=detail,
        )


class AlreadyClockedInError(AppException):
    """400: a clock-in already exists for the day."""

    def __init__(self) -> None:
        super().__init__(
            status_code=400,
            error_type="already-clocked-in",
            title="Already Clocked In",
            detail="Already clocked in today.",
        )


class AlreadyClockedOutError(AppException):
    """400: the day's record already carries a clock-out."""

    def __init__(self) -> None:
        super().__init__(
            status_code=400,
            error_type="already-clocked-out",
            title="Already Clocked Out",
            detail="Already clocked out today.",
        )


class NotClockedInError(AppException):
    """400: clock-out attempted before clock-in."""

    def __init__(self) -> None:
        super().__init__(
            status_code=400,
            error_type="not-clocked-in",
            title="Not Clocked In",
            detail="Not clocked in yet today.",
        )


class DuplicateRecordError(AppException):
    """400: unique-constraint violation surfaced from the store."""

    def __init__(self, entity_type: str, detail: Optional[str] = None) -> None:
        super().__init__(
            status_code=400,
            error_type="duplicate-record",
            title="Duplicate Record",
            detail=detail or f"A conflicting {entity_type} already exists.",
        )


class StoreUnavailableError(AppException):
    """500: the persistent store could not be reached. Not retried here."""

    def __init__(self, detail: str = "The data store is temporarily unavailable.") -> None:
        super().__init__(
            status_code=500,
            error_type="store-unavailable",
            title="Store Unavailable",
            detail=detail,
        )


# ── RFC 7807 builder ────────────────────────────────────────────────

def _build_problem_detail(exc: AppException, request: Request) -> dict[str, Any]:
    body: dict[str, Any] = {
        "type": f"{BASE_ERROR_URI}/{exc.error_type}",
        "title": exc.title,
        "status": exc.status_code,
        "detail": exc.detail,
        "instance": str(request.url.path),
    }
    if exc.errors:
        body["errors"] = exc.errors
    return body


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_build_problem_detail(exc, request),
        media_type="application/problem+json",
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        name = (
            ".".join(str(p) for p in loc[1:])
            if len(loc) > 1
            else str(loc[0]) if loc else "unknown"
        )
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    return JSONResponse(
        status_code=422,
        content={
            "type": f"{BASE_ERROR_URI}/validation-error",
            "title": "Validation Error",
            "status": 422,
            "detail": "Request validation failed.",
            "instance": str(request.url.path),
            "errors": field_errors,
        },
        media_type="application/problem+json",
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "type": f"{BASE_ERROR_URI}/internal-error",
            "title": "Internal Server Error",
            "status": 500,
            "detail": "An unexpected error occurred.",
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected_error)
