"""Role guard: caller identity, capability sets, pure role checks."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from hrms.common.constants import UserRole
from hrms.common.exceptions import ForbiddenException, UnauthorizedException


@dataclass(frozen=True)
class CallerIdentity:
    """Who is calling, resolved from a bearer credential."""

    user_id: uuid.UUID
    email: str
    role: UserRole
    employee_id: Optional[uuid.UUID] = None


# ── Capabilities ────────────────────────────────────────────────────

HR_OR_ADMIN: frozenset[UserRole] = frozenset({UserRole.admin, UserRole.hr})
ADMIN_ONLY: frozenset[UserRole] = frozenset({UserRole.admin})
ANY_ROLE: frozenset[UserRole] = frozenset(UserRole)


def require_any_of(
    caller: Optional[CallerIdentity],
    allowed: Iterable[UserRole],
) -> CallerIdentity:
    """Return *caller* if its role is in *allowed*.

    Raises UnauthorizedException without a caller and ForbiddenException
    when the role is not permitted. No I/O.
    """
    if caller is None:
        raise UnauthorizedException()
    allowed = frozenset(allowed)
    if caller.role not in allowed:
        required = sorted(r.value for r in allowed)
        raise ForbiddenException(
            detail=f"Role '{caller.role.value}' is not permitted. Required: {required}.",
        )
    return caller


def is_hr_or_admin(caller: CallerIdentity) -> bool:
    return caller.role in HR_OR_ADMIN


def owns_employee(caller: CallerIdentity, employee_id: uuid.UUID) -> bool:
    return caller.employee_id is not None and caller.employee_id == employee_id
