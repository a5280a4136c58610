"""Activity log tests: category/severity derivation, the fire-and-forget
recorder, the database sink, and the HR/Admin log listing."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.audit.service import AuditLogService
from hrms.common.audit import (
    AuditContext,
    AuditEntry,
    AuditLog,
    AuditRecorder,
    DatabaseAuditSink,
    MemoryAuditSink,
    audit_recorder,
    derive_category,
    derive_severity,
)
from hrms.common.constants import AuditAction, AuditCategory, AuditSeverity
from hrms.common.exceptions import InvalidRangeError
from hrms.common.pagination import PaginationParams
from hrms.leave.service import LeaveService
from tests.conftest import make_leave_request

PAGE = PaginationParams(page=1, page_size=50, sort=None)


class _FailingSink:
    async def write(self, entry: AuditEntry) -> None:
        raise RuntimeError("audit store is down")


class _SlowSink(MemoryAuditSink):
    async def write(self, entry: AuditEntry) -> None:
        await asyncio.sleep(0.05)
        await super().write(entry)


# ── Derivation rules ────────────────────────────────────────────────


@pytest.mark.parametrize(
    "action, category",
    [
        ("Employee Added", AuditCategory.employee),
        ("Leave Approved", AuditCategory.leave),
        ("Approval Escalated", AuditCategory.approval),
        ("Report Generated", AuditCategory.report),
        ("Login", AuditCategory.system),
        ("Clocked In", AuditCategory.system),
        # First match wins
        ("Employee Leave Adjusted", AuditCategory.employee),
    ],
)
def test_derive_category(action, category):
    assert derive_category(action) == category


@pytest.mark.parametrize(
    "action, severity",
    [
        ("Employee Deleted", AuditSeverity.critical),
        ("Critical Config Change", AuditSeverity.critical),
        ("Leave Approved", AuditSeverity.high),
        ("Leave Rejected", AuditSeverity.high),
        ("Employee Updated", AuditSeverity.medium),
        ("Shift Added", AuditSeverity.medium),
        ("Login", AuditSeverity.low),
        ("Leave Requested", AuditSeverity.low),
    ],
)
def test_derive_severity(action, severity):
    assert derive_severity(action) == severity


# ── Recorder ────────────────────────────────────────────────────────


class TestAuditRecorder:

    async def test_record_returns_before_write_lands(self):
        sink = _SlowSink()
        recorder = AuditRecorder(sink)

        entry = recorder.record(AuditAction.login, "a@acme.io", "User: a@acme.io")

        assert entry.action == "Login"
        assert sink.entries == []
        await recorder.drain()
        assert sink.actions() == ["Login"]

    async def test_context_is_copied_onto_entry(self):
        sink = MemoryAuditSink()
        recorder = AuditRecorder(sink)

        recorder.record(
            "Employee Added", "hr@acme.io", None, {"k": "v"},
            AuditContext(ip_address="10.0.0.7", user_agent="pytest"),
        )
        await recorder.drain()

        entry = sink.entries[0]
        assert entry.ip_address == "10.0.0.7"
        assert entry.user_agent == "pytest"
        assert entry.details == {"k": "v"}
        assert entry.category == AuditCategory.employee

    async def test_sink_failure_is_logged_not_raised(self, caplog):
        recorder = AuditRecorder(_FailingSink())

        with caplog.at_level(logging.ERROR, logger="hrms.common.audit"):
            recorder.record("Login", "a@acme.io")
            await recorder.drain()

        assert "Failed to record audit entry 'Login'" in caplog.text

    async def test_failing_sink_does_not_break_business_operation(
        self, db: AsyncSession, staff, hr, monkeypatch,
    ):
        monkeypatch.setattr(audit_recorder, "sink", _FailingSink())
        req = await make_leave_request(db, staff.employee, days=2)

        result = await LeaveService.approve(db, hr.caller, req.id)
        await audit_recorder.drain()

        assert result.status.value == "Approved"
        await db.refresh(staff.employee)
        assert staff.employee.annual_balance == 18

    def test_without_event_loop_entry_is_dropped(self):
        sink = MemoryAuditSink()
        recorder = AuditRecorder(sink)
        entry = recorder.record("Login", "a@acme.io")
        assert entry.action == "Login"
        assert sink.entries == []


# ── Database sink ───────────────────────────────────────────────────


class TestDatabaseSink:

    async def test_writes_in_its_own_session(self, db: AsyncSession, session_factory):
        recorder = AuditRecorder(DatabaseAuditSink(session_factory))
        recorder.record(
            AuditAction.leave_approved,
            "hr@acme.io",
            "Employee: Sam Staff (EMP-1)",
            {"days": 3},
        )
        await recorder.drain()

        row = (await db.execute(select(AuditLog))).scalar_one()
        assert row.action == "Leave Approved"
        assert row.category == AuditCategory.leave
        assert row.severity == AuditSeverity.high
        assert row.details == {"days": 3}


# ── Listing ─────────────────────────────────────────────────────────


async def _seed(session_factory) -> None:
    recorder = AuditRecorder(DatabaseAuditSink(session_factory))
    for action, user, target in [
        ("Login", "staff@acme.io", "User: staff@acme.io"),
        ("Leave Requested", "staff@acme.io", "Employee: Sam Staff (EMP-1)"),
        ("Leave Approved", "hr@acme.io", "Employee: Sam Staff (EMP-1)"),
        ("Employee Deleted", "admin@acme.io", "Employee: Old Hand (EMP-2)"),
    ]:
        recorder.record(action, user, target)
        # One write at a time on the shared test connection
        await recorder.drain()


class TestAuditLogListing:

    async def test_filters(self, db: AsyncSession, session_factory):
        await _seed(session_factory)

        page = await AuditLogService.list_logs(db, PAGE, category=AuditCategory.leave)
        assert {log.action for log in page.data} == {"Leave Requested", "Leave Approved"}

        page = await AuditLogService.list_logs(db, PAGE, severity=AuditSeverity.critical)
        assert [log.action for log in page.data] == ["Employee Deleted"]

        page = await AuditLogService.list_logs(db, PAGE, user="staff@")
        assert page.meta.total == 2

        page = await AuditLogService.list_logs(db, PAGE, search="Old Hand")
        assert [log.user for log in page.data] == ["admin@acme.io"]

    async def test_time_window(self, db: AsyncSession, session_factory):
        await _seed(session_factory)
        now = datetime.now()

        page = await AuditLogService.list_logs(db, PAGE, since=now - timedelta(minutes=5))
        assert page.meta.total == 4

        page = await AuditLogService.list_logs(db, PAGE, until=now - timedelta(minutes=5))
        assert page.meta.total == 0

    async def test_inverted_window(self, db: AsyncSession):
        now = datetime.now()
        with pytest.raises(InvalidRangeError):
            await AuditLogService.list_logs(db, PAGE, since=now, until=now - timedelta(days=1))

    async def test_endpoint_is_hr_only(self, client, session_factory, staff, hr):
        await _seed(session_factory)

        resp = await client.get("/api/v1/audit/logs", headers=staff.headers)
        assert resp.status_code == 403

        resp = await client.get(
            "/api/v1/audit/logs", params={"action": "Login"}, headers=hr.headers,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["meta"]["total"] == 1
        assert data["data"][0]["category"] == "System"
