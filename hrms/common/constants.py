"""Enums and constants for the HRMS API, stored as their display values."""

from __future__ import annotations

import enum
from typing import Optional


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """``values_callable`` for ``sa.Enum`` so columns store values, not member names."""
    return [member.value for member in enum_cls]


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    admin = "Admin"
    hr = "HR"
    staff = "Staff"


# ── Employee ────────────────────────────────────────────────────────

class EmploymentStatus(str, enum.Enum):
    active = "Active"
    inactive = "Inactive"
    on_leave = "On Leave"
    terminated = "Terminated"


class ContractType(str, enum.Enum):
    full_time = "Full-time"
    part_time = "Part-time"
    contract = "Contract"
    internship = "Internship"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveCategory(str, enum.Enum):
    annual = "Annual"
    sick = "Sick"
    personal = "Personal"
    maternity = "Maternity"
    paternity = "Paternity"
    unpaid = "Unpaid"

    @property
    def balance_field(self) -> Optional[str]:
        """Employee column holding this category's balance, or None if untracked."""
        return _BALANCE_FIELDS.get(self)

    @property
    def is_balance_tracked(self) -> bool:
        return self.balance_field is not None


_BALANCE_FIELDS: dict[LeaveCategory, str] = {
    LeaveCategory.annual: "annual_balance",
    LeaveCategory.sick: "sick_balance",
    LeaveCategory.personal: "personal_balance",
    LeaveCategory.maternity: "maternity_balance",
    LeaveCategory.paternity: "paternity_balance",
}

DEFAULT_LEAVE_BALANCES: dict[LeaveCategory, int] = {
    LeaveCategory.annual: 20,
    LeaveCategory.sick: 10,
    LeaveCategory.personal: 5,
    LeaveCategory.maternity: 90,
    LeaveCategory.paternity: 10,
}


class LeaveStatus(str, enum.Enum):
    pending = "Pending"
    approved = "Approved"
    rejected = "Rejected"
    cancelled = "Cancelled"

    def can_transition_to(self, target: LeaveStatus) -> bool:
        return target in _LEAVE_TRANSITIONS[self]

    @property
    def is_terminal(self) -> bool:
        return not _LEAVE_TRANSITIONS[self]


# Only Pending requests are mutable
_LEAVE_TRANSITIONS: dict[LeaveStatus, frozenset[LeaveStatus]] = {
    LeaveStatus.pending: frozenset(
        {LeaveStatus.approved, LeaveStatus.rejected, LeaveStatus.cancelled}
    ),
    LeaveStatus.approved: frozenset(),
    LeaveStatus.rejected: frozenset(),
    LeaveStatus.cancelled: frozenset(),
}


class LeaveOutcome(str, enum.Enum):
    approve = "approve"
    reject = "reject"

    @property
    def target_status(self) -> LeaveStatus:
        if self is LeaveOutcome.approve:
            return LeaveStatus.approved
        return LeaveStatus.rejected


# ── Attendance ──────────────────────────────────────────────────────

class AttendanceSource(str, enum.Enum):
    manual = "Manual"
    web = "Web"
    mobile = "Mobile"


# ── Audit ───────────────────────────────────────────────────────────

class AuditCategory(str, enum.Enum):
    employee = "Employee"
    leave = "Leave"
    approval = "Approval"
    system = "System"
    report = "Report"


class AuditSeverity(str, enum.Enum):
    low = "Low"
    medium = "Medium"
    high = "High"
    critical = "Critical"


class AuditAction(str, enum.Enum):
    employee_added = "Employee Added"
    employee_updated = "Employee Updated"
    employee_deleted = "Employee Deleted"
    profile_updated = "Profile Updated"
    leave_requested = "Leave Requested"
    leave_approved = "Leave Approved"
    leave_rejected = "Leave Rejected"
    leave_cancelled = "Leave Cancelled"
    login = "Login"
    clocked_in = "Clocked In"
    clocked_out = "Clocked Out"
    shift_added = "Shift Added"
    shift_updated = "Shift Updated"
    shift_deleted = "Shift Deleted"


# ── Misc constants ──────────────────────────────────────────────────

TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"   # "09:00"
DEFAULT_SHIFT_DAYS = [1, 2, 3, 4, 5]                  # 0=Sun … 6=Sat
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
