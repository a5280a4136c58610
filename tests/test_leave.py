"""Leave module test suite: day counting, request validation, the approval
state machine, balance debit on approval, cancellation rules, and the HTTP
endpoints.

Tests run against SQLite via the shared conftest.py fixtures.
"""

from __future__ import annotations

import uuid
from datetime import date, timedelta

import pytest
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.audit import audit_recorder
from hrms.common.constants import (
    AuditCategory,
    AuditSeverity,
    LeaveCategory,
    LeaveOutcome,
    LeaveStatus,
    UserRole,
)
from hrms.common.exceptions import (
    ForbiddenException,
    InsufficientBalanceError,
    InvalidRangeError,
    InvalidStateError,
    NotFoundException,
)
from hrms.common.pagination import PaginationParams
from hrms.employees.models import Employee
from hrms.leave.models import LeaveRequest
from hrms.leave.schemas import LeaveRequestCreate
from hrms.leave.service import LeaveService
from tests.conftest import make_account, make_employee, make_leave_request


def _leave(
    category: LeaveCategory = LeaveCategory.annual,
    start: date = date(2026, 3, 2),
    days: int = 3,
    **extra,
) -> LeaveRequestCreate:
    return LeaveRequestCreate(
        category=category,
        start_date=start,
        end_date=start + timedelta(days=days - 1),
        reason="Family trip",
        **extra,
    )


# ═════════════════════════════════════════════════════════════════════
# Day counting
# ═════════════════════════════════════════════════════════════════════


class TestCalculateDays:

    def test_same_day_is_one(self):
        assert LeaveService.calculate_days(date(2026, 3, 2), date(2026, 3, 2)) == 1

    def test_five_day_span_includes_weekend(self):
        """Fri..Tue counts every calendar day, weekend included."""
        assert LeaveService.calculate_days(date(2026, 3, 6), date(2026, 3, 10)) == 5

    def test_end_before_start_is_non_positive(self):
        assert LeaveService.calculate_days(date(2026, 3, 10), date(2026, 3, 9)) == 0

    def test_schema_truncates_timestamps_to_calendar_day(self):
        body = LeaveRequestCreate(
            category=LeaveCategory.annual,
            start_date="2026-03-02T17:45:00",
            end_date="2026-03-03T08:00:00Z",
            reason="Conference",
        )
        assert body.start_date == date(2026, 3, 2)
        assert body.end_date == date(2026, 3, 3)


# ═════════════════════════════════════════════════════════════════════
# Request leave
# ═════════════════════════════════════════════════════════════════════


class TestRequestLeave:

    async def test_request_creates_pending_without_debit(self, db: AsyncSession, staff):
        """Filing a request leaves the balance untouched."""
        req = await LeaveService.request_leave(db, staff.caller, _leave(days=5))

        assert req.status == LeaveStatus.pending
        assert req.days == 5
        assert req.employee_id == staff.employee.id

        await db.refresh(staff.employee)
        assert staff.employee.annual_balance == 20

    async def test_reason_is_optional(self, db: AsyncSession, staff):
        body = LeaveRequestCreate(
            category=LeaveCategory.unpaid,
            start_date=date(2026, 3, 2),
            end_date=date(2026, 3, 2),
        )
        req = await LeaveService.request_leave(db, staff.caller, body)
        await db.commit()

        assert req.reason is None
        assert req.status == LeaveStatus.pending

    async def test_end_before_start_is_invalid_range(self, db: AsyncSession, staff):
        body = LeaveRequestCreate(
            category=LeaveCategory.annual,
            start_date=date(2026, 3, 5),
            end_date=date(2026, 3, 4),
            reason="Oops",
        )
        with pytest.raises(InvalidRangeError):
            await LeaveService.request_leave(db, staff.caller, body)

    async def test_sick_balance_below_days_fails(self, db: AsyncSession):
        """Sick balance 3, four-day span -> InsufficientBalance."""
        account = await make_account(db, UserRole.staff, sick_balance=3)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await LeaveService.request_leave(
                db, account.caller, _leave(LeaveCategory.sick, days=4),
            )
        assert exc_info.value.status_code == 400
        assert "Available: 3" in exc_info.value.detail

    async def test_unpaid_is_never_balance_checked(self, db: AsyncSession, staff):
        req = await LeaveService.request_leave(
            db, staff.caller, _leave(LeaveCategory.unpaid, days=400),
        )
        assert req.days == 400
        assert req.status == LeaveStatus.pending

    async def test_staff_cannot_file_for_someone_else(self, db: AsyncSession, staff):
        """A Staff caller's employee_id is ignored; the request is their own."""
        other = await make_employee(db, first_name="Other")

        req = await LeaveService.request_leave(
            db, staff.caller, _leave(employee_id=other.id),
        )
        assert req.employee_id == staff.employee.id

    async def test_hr_may_file_for_another_employee(self, db: AsyncSession, hr):
        other = await make_employee(db, first_name="Other")

        req = await LeaveService.request_leave(db, hr.caller, _leave(employee_id=other.id))
        assert req.employee_id == other.id

    async def test_hr_naming_missing_employee_is_not_found(self, db: AsyncSession, hr):
        with pytest.raises(NotFoundException):
            await LeaveService.request_leave(db, hr.caller, _leave(employee_id=uuid.uuid4()))

    async def test_account_without_employee_is_forbidden(self, db: AsyncSession):
        account = await make_account(db, UserRole.staff, with_employee=False)
        with pytest.raises(ForbiddenException):
            await LeaveService.request_leave(db, account.caller, _leave())

    async def test_request_is_audited(self, db: AsyncSession, staff, audit_sink):
        await LeaveService.request_leave(db, staff.caller, _leave())
        await audit_recorder.drain()

        assert audit_sink.actions() == ["Leave Requested"]
        entry = audit_sink.entries[0]
        assert entry.user == staff.user.email
        assert entry.category == AuditCategory.leave
        assert entry.severity == AuditSeverity.low
        assert entry.target == f"Employee: Sam Staff ({staff.employee.employee_code})"
        assert entry.details["days"] == 3


# ═════════════════════════════════════════════════════════════════════
# Decide (approve / reject)
# ═════════════════════════════════════════════════════════════════════


class TestDecide:

    async def test_approve_debits_balance_and_stamps(self, db: AsyncSession, staff, hr):
        req = await make_leave_request(db, staff.employee, days=5)

        result = await LeaveService.approve(db, hr.caller, req.id)

        assert result.status == LeaveStatus.approved
        assert result.decided_by == hr.user.id
        assert result.decided_at is not None
        await db.refresh(staff.employee)
        assert staff.employee.annual_balance == 15

    async def test_second_approve_fails_without_double_debit(self, db: AsyncSession, staff, hr):
        req = await make_leave_request(db, staff.employee, days=5)
        await LeaveService.approve(db, hr.caller, req.id)
        await db.commit()

        with pytest.raises(InvalidStateError):
            await LeaveService.approve(db, hr.caller, req.id)

        await db.refresh(staff.employee)
        assert staff.employee.annual_balance == 15

    async def test_reject_keeps_balance(self, db: AsyncSession, staff, hr):
        req = await make_leave_request(db, staff.employee, days=5)

        result = await LeaveService.reject(db, hr.caller, req.id)

        assert result.status == LeaveStatus.rejected
        assert result.decided_by == hr.user.id
        await db.refresh(staff.employee)
        assert staff.employee.annual_balance == 20

    async def test_decide_on_rejected_is_invalid_state(self, db: AsyncSession, staff, hr):
        req = await make_leave_request(db, staff.employee, status=LeaveStatus.rejected)
        for outcome in LeaveOutcome:
            with pytest.raises(InvalidStateError):
                await LeaveService.decide(db, hr.caller, req.id, outcome)

    async def test_staff_cannot_decide(self, db: AsyncSession, staff):
        req = await make_leave_request(db, staff.employee)
        with pytest.raises(ForbiddenException):
            await LeaveService.approve(db, staff.caller, req.id)

    async def test_missing_request_is_not_found(self, db: AsyncSession, hr):
        with pytest.raises(NotFoundException):
            await LeaveService.approve(db, hr.caller, uuid.uuid4())

    async def test_approve_rechecks_balance(self, db: AsyncSession, staff, hr):
        """Two 15-day requests filed against 20 days: the second approval fails."""
        first = await make_leave_request(db, staff.employee, days=15)
        second = await make_leave_request(
            db, staff.employee, days=15, start=date(2026, 6, 1),
        )

        await LeaveService.approve(db, hr.caller, first.id)
        await db.commit()

        with pytest.raises(InsufficientBalanceError):
            await LeaveService.approve(db, hr.caller, second.id)

        await db.refresh(staff.employee)
        await db.refresh(second)
        assert staff.employee.annual_balance == 5
        assert second.status == LeaveStatus.pending

    async def test_concurrent_decision_rolls_back_debit(
        self, db: AsyncSession, session_factory, staff, hr,
    ):
        """Another reviewer decides between our read and our write."""
        req = await make_leave_request(db, staff.employee, days=4)

        # The stale in-memory copy still says Pending
        async with session_factory() as other:
            await other.execute(
                update(LeaveRequest)
                .where(LeaveRequest.id == req.id)
                .values(status=LeaveStatus.rejected)
            )
            await other.commit()

        with pytest.raises(InvalidStateError):
            await LeaveService.approve(db, hr.caller, req.id)

        employee = (
            await db.execute(
                select(Employee)
                .where(Employee.id == staff.employee.id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one()
        assert employee.annual_balance == 20

    async def test_untracked_category_approves_without_debit(self, db: AsyncSession, staff, hr):
        req = await make_leave_request(db, staff.employee, category=LeaveCategory.unpaid, days=30)

        result = await LeaveService.approve(db, hr.caller, req.id)

        assert result.status == LeaveStatus.approved
        await db.refresh(staff.employee)
        assert staff.employee.leave_balance == {
            "annual": 20, "sick": 10, "personal": 5, "maternity": 90, "paternity": 10,
        }

    async def test_decisions_are_audited_high(self, db: AsyncSession, staff, hr, audit_sink):
        approved = await make_leave_request(db, staff.employee)
        rejected = await make_leave_request(db, staff.employee, start=date(2026, 7, 1))

        await LeaveService.approve(db, hr.caller, approved.id)
        await LeaveService.reject(db, hr.caller, rejected.id)
        await audit_recorder.drain()

        assert audit_sink.actions() == ["Leave Approved", "Leave Rejected"]
        assert {e.severity for e in audit_sink.entries} == {AuditSeverity.high}
        assert audit_sink.entries[0].details["remaining_balance"] == 17


# ═════════════════════════════════════════════════════════════════════
# Cancel
# ═════════════════════════════════════════════════════════════════════


class TestCancel:

    async def test_owner_cancels_pending(self, db: AsyncSession, staff):
        req = await make_leave_request(db, staff.employee)

        result = await LeaveService.cancel(db, staff.caller, req.id)

        assert result.status == LeaveStatus.cancelled
        assert result.decided_by == staff.user.id
        await db.refresh(staff.employee)
        assert staff.employee.annual_balance == 20

    async def test_cancel_approved_is_invalid_state(self, db: AsyncSession, staff):
        req = await make_leave_request(db, staff.employee, status=LeaveStatus.approved)
        with pytest.raises(InvalidStateError):
            await LeaveService.cancel(db, staff.caller, req.id)

    async def test_staff_cannot_cancel_someone_elses(self, db: AsyncSession, staff):
        other = await make_employee(db, first_name="Other")
        req = await make_leave_request(db, other)

        with pytest.raises(ForbiddenException):
            await LeaveService.cancel(db, staff.caller, req.id)

    async def test_hr_may_cancel_any_pending(self, db: AsyncSession, staff, hr):
        req = await make_leave_request(db, staff.employee)
        result = await LeaveService.cancel(db, hr.caller, req.id)
        assert result.status == LeaveStatus.cancelled

    async def test_cancel_missing_is_not_found(self, db: AsyncSession, staff):
        with pytest.raises(NotFoundException):
            await LeaveService.cancel(db, staff.caller, uuid.uuid4())


# ═════════════════════════════════════════════════════════════════════
# Listing
# ═════════════════════════════════════════════════════════════════════


class TestListing:

    async def test_my_requests_only_mine_newest_first(self, db: AsyncSession, staff):
        other = await make_employee(db, first_name="Other")
        await make_leave_request(db, other)
        first = await LeaveService.request_leave(db, staff.caller, _leave())
        second = await LeaveService.request_leave(
            db, staff.caller, _leave(start=date(2026, 5, 4)),
        )
        await db.commit()

        mine = await LeaveService.list_my_requests(db, staff.caller)
        assert [r.id for r in mine] == [second.id, first.id]

    async def test_list_requests_filters_by_status(self, db: AsyncSession, staff):
        await make_leave_request(db, staff.employee)
        await make_leave_request(db, staff.employee, status=LeaveStatus.approved)

        page = await LeaveService.list_requests(
            db,
            PaginationParams(page=1, page_size=50, sort=None),
            status=LeaveStatus.approved,
        )
        assert page.meta.total == 1
        assert page.data[0].status == LeaveStatus.approved


# ═════════════════════════════════════════════════════════════════════
# API endpoints
# ═════════════════════════════════════════════════════════════════════


class TestLeaveAPI:

    async def test_request_without_reason(self, client, staff):
        resp = await client.post(
            "/api/v1/leaves/request",
            json={"category": "Annual", "start_date": "2026-03-02", "end_date": "2026-03-03"},
            headers=staff.headers,
        )
        assert resp.status_code == 201
        assert resp.json()["reason"] is None
        assert resp.json()["days"] == 2

    async def test_request_approve_end_to_end(self, client, db: AsyncSession, staff, hr):
        """Balance 20 -> request 5 days (still 20) -> approve (15) -> further decisions fail."""
        resp = await client.post(
            "/api/v1/leaves/request",
            json={
                "category": "Annual",
                "start_date": "2026-03-02",
                "end_date": "2026-03-06",
                "reason": "Holiday",
            },
            headers=staff.headers,
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "Pending"
        assert body["days"] == 5
        request_id = body["id"]

        resp = await client.get(
            f"/api/v1/employees/{staff.employee.id}/leave-balance", headers=staff.headers,
        )
        assert resp.json()["leave_balance"]["annual"] == 20

        resp = await client.put(f"/api/v1/leaves/{request_id}/approve", headers=hr.headers)
        assert resp.status_code == 200
        assert resp.json()["status"] == "Approved"

        resp = await client.get(
            f"/api/v1/employees/{staff.employee.id}/leave-balance", headers=staff.headers,
        )
        assert resp.json()["leave_balance"]["annual"] == 15

        for action in ("approve", "reject", "cancel"):
            resp = await client.post(f"/api/v1/leaves/{request_id}/{action}", headers=hr.headers)
            assert resp.status_code == 400
            assert resp.json()["type"].endswith("/invalid-state")

    async def test_staff_approve_is_forbidden(self, client, staff):
        resp = await client.post(f"/api/v1/leaves/{uuid.uuid4()}/approve", headers=staff.headers)
        assert resp.status_code == 403

    async def test_approve_without_token_is_unauthorized(self, client):
        resp = await client.post(f"/api/v1/leaves/{uuid.uuid4()}/approve")
        assert resp.status_code == 401

    async def test_insufficient_balance_problem_detail(self, client, db: AsyncSession):
        account = await make_account(db, UserRole.staff, personal_balance=1)
        resp = await client.post(
            "/api/v1/leaves/request",
            json={
                "category": "Personal",
                "start_date": "2026-03-02",
                "end_date": "2026-03-03",
                "reason": "Errands",
            },
            headers=account.headers,
        )
        assert resp.status_code == 400
        assert resp.headers["content-type"].startswith("application/problem+json")
        assert resp.json()["title"] == "Insufficient Balance"

    async def test_unknown_category_is_422(self, client, staff):
        resp = await client.post(
            "/api/v1/leaves/request",
            json={
                "category": "Sabbatical",
                "start_date": "2026-03-02",
                "end_date": "2026-03-03",
                "reason": "Rest",
            },
            headers=staff.headers,
        )
        assert resp.status_code == 422

    async def test_my_and_hr_listings(self, client, db: AsyncSession, staff, hr):
        await make_leave_request(db, staff.employee)

        resp = await client.get("/api/v1/leaves/my", headers=staff.headers)
        assert resp.status_code == 200
        assert len(resp.json()) == 1

        resp = await client.get("/api/v1/leaves", headers=staff.headers)
        assert resp.status_code == 403

        resp = await client.get(
            "/api/v1/leaves", params={"status": "Pending"}, headers=hr.headers,
        )
        assert resp.status_code == 200
        assert resp.json()["meta"]["total"] == 1
