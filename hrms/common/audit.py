"""Activity audit log: immutable model, category/severity rules, fire-and-forget recorder.

Business operations never wait on, or fail because of, an audit write:
``AuditRecorder.record()`` builds the entry, hands the sink write to a
background task and returns immediately. Sink failures are logged only.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional, Protocol

import sqlalchemy as sa
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column

from hrms.common.constants import AuditCategory, AuditSeverity, enum_values
from hrms.database import Base, async_session_factory

logger = logging.getLogger(__name__)


# ── Immutable audit-log table ───────────────────────────────────────

class AuditLog(Base):
    """Append-only record of a state-changing action."""

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    action: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    user: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(sa.Uuid)
    target: Mapped[Optional[str]] = mapped_column(sa.Text)
    target_id: Mapped[Optional[uuid.UUID]] = mapped_column(sa.Uuid)
    details: Mapped[Optional[dict]] = mapped_column(sa.JSON)
    ip_address: Mapped[Optional[str]] = mapped_column(sa.String(64))
    user_agent: Mapped[Optional[str]] = mapped_column(sa.Text)
    category: Mapped[AuditCategory] = mapped_column(
        sa.Enum(AuditCategory, name="audit_category", values_callable=enum_values),
        nullable=False,
    )
    severity: Mapped[AuditSeverity] = mapped_column(
        sa.Enum(AuditSeverity, name="audit_severity", values_callable=enum_values),
        nullable=False,
        default=AuditSeverity.low,
    )
    timestamp: Mapped[datetime] = mapped_column(
        sa.DateTime, nullable=False, default=datetime.now,
    )

    __table_args__ = (
        sa.Index("ix_audit_logs_action_timestamp", "action", "timestamp"),
        sa.Index("ix_audit_logs_category_timestamp", "category", "timestamp"),
        sa.Index("ix_audit_logs_user_timestamp", "user", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.action!r} by {self.user!r} at {self.timestamp}>"


# ── Derivation rules ────────────────────────────────────────────────

def derive_category(action: str) -> AuditCategory:
    """First matching substring wins: Employee, Leave, Approval, Report."""
    if "Employee" in action:
        return AuditCategory.employee
    if "Leave" in action:
        return AuditCategory.leave
    if "Approval" in action:
        return AuditCategory.approval
    if "Report" in action:
        return AuditCategory.report
    return AuditCategory.system


def derive_severity(action: str) -> AuditSeverity:
    if "Deleted" in action or "Critical" in action:
        return AuditSeverity.critical
    if "Approved" in action or "Rejected" in action:
        return AuditSeverity.high
    if "Updated" in action or "Added" in action:
        return AuditSeverity.medium
    return AuditSeverity.low


# ── Entry + request context ─────────────────────────────────────────

@dataclass(frozen=True)
class AuditContext:
    """Client details captured from the inbound HTTP request."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @classmethod
    def from_request(cls, request: Request) -> AuditContext:
        return cls(
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )


@dataclass(frozen=True)
class AuditEntry:
    action: str
    user: str
    category: AuditCategory
    severity: AuditSeverity
    timestamp: datetime
    target: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)
    user_id: Optional[uuid.UUID] = None
    target_id: Optional[uuid.UUID] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


# ── Sinks ───────────────────────────────────────────────────────────

class AuditSink(Protocol):
    async def write(self, entry: AuditEntry) -> None: ...


class DatabaseAuditSink:
    """Persist each entry in its own session, outside the business transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def write(self, entry: AuditEntry) -> None:
        async with self.session_factory() as session:
            session.add(AuditLog(**asdict(entry)))
            await session.commit()


class MemoryAuditSink:
    """Keeps entries in a list; used by tests and local tooling."""

    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []

    async def write(self, entry: AuditEntry) -> None:
        self.entries.append(entry)

    def actions(self) -> list[str]:
        return [e.action for e in self.entries]


# ── Recorder ────────────────────────────────────────────────────────

class AuditRecorder:
    """Fire-and-forget dispatcher in front of an ``AuditSink``."""

    def __init__(self, sink: AuditSink) -> None:
        self.sink = sink
        self._pending: set[asyncio.Task] = set()

    def record(
        self,
        action: str,
        user: str,
        target: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        context: Optional[AuditContext] = None,
        *,
        user_id: Optional[uuid.UUID] = None,
        target_id: Optional[uuid.UUID] = None,
    ) -> AuditEntry:
        """Schedule an audit write and return the entry without waiting for it."""
        if isinstance(action, enum.Enum):
            action = action.value
        context = context or AuditContext()
        entry = AuditEntry(
            action=action,
            user=user,
            category=derive_category(action),
            severity=derive_severity(action),
            timestamp=datetime.now(),
            target=target,
            details=details or {},
            user_id=user_id,
            target_id=target_id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
        )

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; audit entry %r dropped", action)
            return entry

        task = loop.create_task(self._write(entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return entry

    async def _write(self, entry: AuditEntry) -> None:
        try:
            await self.sink.write(entry)
        except Exception:
            logger.exception("Failed to record audit entry %r", entry.action)

    async def drain(self) -> None:
        """Wait until every scheduled write has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))


audit_recorder = AuditRecorder(DatabaseAuditSink(async_session_factory))
