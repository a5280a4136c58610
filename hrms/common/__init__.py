"""Common module: shared utilities for the HRMS API."""

from hrms.common.audit import (
    AuditContext,
    AuditLog,
    AuditRecorder,
    DatabaseAuditSink,
    MemoryAuditSink,
    audit_recorder,
    derive_category,
    derive_severity,
)
from hrms.common.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    AttendanceSource,
    AuditAction,
    AuditCategory,
    AuditSeverity,
    ContractType,
    EmploymentStatus,
    LeaveCategory,
    LeaveOutcome,
    LeaveStatus,
    UserRole,
)
from hrms.common.exceptions import (
    AlreadyClockedInError,
    AlreadyClockedOutError,
    AppException,
    DuplicateRecordError,
    ForbiddenException,
    InsufficientBalanceError,
    InvalidRangeError,
    InvalidStateError,
    NotClockedInError,
    NotFoundException,
    StoreUnavailableError,
    UnauthorizedException,
    register_exception_handlers,
)
from hrms.common.filters import apply_filters, apply_search
from hrms.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)

__all__ = [
    # Audit
    "AuditContext",
    "AuditLog",
    "AuditRecorder",
    "DatabaseAuditSink",
    "MemoryAuditSink",
    "audit_recorder",
    "derive_category",
    "derive_severity",
    # Constants / Enums
    "AttendanceSource",
    "AuditAction",
    "AuditCategory",
    "AuditSeverity",
    "ContractType",
    "EmploymentStatus",
    "LeaveCategory",
    "LeaveOutcome",
    "LeaveStatus",
    "UserRole",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "AlreadyClockedInError",
    "AlreadyClockedOutError",
    "DuplicateRecordError",
    "ForbiddenException",
    "InsufficientBalanceError",
    "InvalidRangeError",
    "InvalidStateError",
    "NotClockedInError",
    "NotFoundException",
    "StoreUnavailableError",
    "UnauthorizedException",
    "register_exception_handlers",
    # Filters
    "apply_filters",
    "apply_search",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
]
