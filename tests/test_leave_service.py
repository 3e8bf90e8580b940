"""
FarmStaff - Leave Service Tests

Leave request lifecycle, overlap and balance rules.
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from farmstaff.models.leave import LeaveStatus, LeaveType
from farmstaff.models.notification import Notification, NotificationType
from farmstaff.schemas.leave import LeaveRequestFilters
from farmstaff.services.leave_balance_service import LeaveBalanceService
from farmstaff.services.leave_service import LeaveService, validate_leave_dates
from farmstaff.utils.error_handling import (
    AlreadyProcessedException,
    AuthenticationException,
    InsufficientBalanceException,
    InsufficientPermissionsException,
    InvalidDateRangeException,
    LeaveBalanceNotFoundException,
    LeaveRequestNotFoundException,
    OverlappingRequestException,
    PastDateRequestException,
)


async def _request(service, principal, staff, day, start, end, leave_type=LeaveType.ANNUAL):
    return await service.create_leave_request(
        principal,
        staff_id=staff.id,
        leave_type=leave_type,
        start_date=day(start),
        end_date=day(end),
    )


class TestLeaveLifecycle:
    """Create, approve and the follow-up rules on one balance."""

    @pytest.mark.asyncio
    async def test_create_request_leaves_balance_untouched(
        self, db_session, worker_staff, worker_principal, worker_balance, day
    ):
        """A new request is PENDING and does not book days."""
        service = LeaveService(db_session)

        leave = await _request(service, worker_principal, worker_staff, day, 10, 12)

        assert leave.status == LeaveStatus.PENDING
        assert leave.leave_days == 3
        assert leave.staff.id == worker_staff.id

        balance = await LeaveBalanceService(db_session).get_leave_balance(worker_principal, worker_staff.id)
        assert balance.used_leave_days == 0
        assert balance.remaining_leave_days == 5

    @pytest.mark.asyncio
    async def test_approve_books_days(
        self, db_session, worker_staff, worker_principal, admin_principal, worker_balance, day
    ):
        """Approval moves the request's days from remaining to used."""
        service = LeaveService(db_session)
        leave = await _request(service, worker_principal, worker_staff, day, 10, 12)

        approved = await service.approve_leave_request(admin_principal, leave.id)

        assert approved.status == LeaveStatus.APPROVED
        assert approved.approved_by == admin_principal.id
        assert approved.decided_at is not None

        balance = await LeaveBalanceService(db_session).get_leave_balance(worker_principal, worker_staff.id)
        assert balance.used_leave_days == 3
        assert balance.remaining_leave_days == 2

    @pytest.mark.asyncio
    async def test_request_overlapping_approved_leave_is_rejected(
        self, db_session, worker_staff, worker_principal, admin_principal, worker_balance, day
    ):
        """Days 11-15 collide with approved days 10-12."""
        service = LeaveService(db_session)
        leave = await _request(service, worker_principal, worker_staff, day, 10, 12)
        await service.approve_leave_request(admin_principal, leave.id)

        with pytest.raises(OverlappingRequestException):
            await _request(service, worker_principal, worker_staff, day, 11, 15)

    @pytest.mark.asyncio
    async def test_request_above_remaining_is_rejected(
        self, db_session, worker_staff, worker_principal, admin_principal, worker_balance, day
    ):
        """Three more days cannot be taken when two remain."""
        service = LeaveService(db_session)
        leave = await _request(service, worker_principal, worker_staff, day, 10, 12)
        await service.approve_leave_request(admin_principal, leave.id)

        with pytest.raises(InsufficientBalanceException) as exc_info:
            await _request(service, worker_principal, worker_staff, day, 20, 22)

        assert exc_info.value.details == {"available_days": 2, "requested_days": 3}
        assert "You have 2 days remaining, but requesting 3 days" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_pending_requests_reserve_days(
        self, db_session, worker_staff, worker_principal, worker_balance, day
    ):
        """Pending requests together cannot exceed the remaining balance."""
        service = LeaveService(db_session)
        await _request(service, worker_principal, worker_staff, day, 10, 12)

        with pytest.raises(InsufficientBalanceException):
            await _request(service, worker_principal, worker_staff, day, 20, 22)

        second = await _request(service, worker_principal, worker_staff, day, 20, 21)
        assert second.leave_days == 2

    @pytest.mark.asyncio
    async def test_reject_keeps_balance(
        self, db_session, worker_staff, worker_principal, admin_principal, worker_balance, day
    ):
        """Rejection stores the reason and books nothing."""
        service = LeaveService(db_session)
        leave = await _request(service, worker_principal, worker_staff, day, 10, 12)

        rejected = await service.reject_leave_request(admin_principal, leave.id, reason="Harvest week")

        assert rejected.status == LeaveStatus.REJECTED
        assert rejected.reason == "Harvest week"
        balance = await LeaveBalanceService(db_session).get_leave_balance(worker_principal, worker_staff.id)
        assert balance.remaining_leave_days == 5

    @pytest.mark.asyncio
    async def test_rejected_request_frees_its_days(
        self, db_session, worker_staff, worker_principal, admin_principal, worker_balance, day
    ):
        """A rejected request neither overlaps nor reserves."""
        service = LeaveService(db_session)
        leave = await _request(service, worker_principal, worker_staff, day, 10, 14)
        await service.reject_leave_request(admin_principal, leave.id)

        again = await _request(service, worker_principal, worker_staff, day, 10, 14)
        assert again.status == LeaveStatus.PENDING

    @pytest.mark.asyncio
    async def test_worker_cancels_own_request(
        self, db_session, worker_staff, worker_principal, worker_balance, day
    ):
        service = LeaveService(db_session)
        leave = await _request(service, worker_principal, worker_staff, day, 10, 12)

        cancelled = await service.cancel_leave_request(worker_principal, leave.id)

        assert cancelled.status == LeaveStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_approval_creates_leave_notification(
        self, db_session, worker_staff, worker_principal, admin_principal, worker_balance, day
    ):
        """The staff member is notified of the decision."""
        service = LeaveService(db_session)
        leave = await _request(service, worker_principal, worker_staff, day, 10, 12)

        await service.approve_leave_request(admin_principal, leave.id)

        result = await db_session.execute(
            select(Notification).where(Notification.staff_id == worker_staff.id)
        )
        notifications = list(result.scalars().all())
        assert len(notifications) == 1
        assert notifications[0].notification_type == NotificationType.LEAVE
        assert notifications[0].title == "Leave request approved"

    @pytest.mark.asyncio
    async def test_missing_balance(self, db_session, worker_staff, worker_principal, day):
        service = LeaveService(db_session)

        with pytest.raises(LeaveBalanceNotFoundException):
            await _request(service, worker_principal, worker_staff, day, 10, 12)


class TestTerminalStates:
    """Only PENDING requests can change."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "terminal_status", [LeaveStatus.APPROVED, LeaveStatus.REJECTED, LeaveStatus.CANCELLED]
    )
    @pytest.mark.parametrize("action", ["approve", "reject", "cancel", "update", "delete"])
    async def test_processed_request_is_frozen(
        self, db_session, worker_staff, worker_principal, admin_principal, worker_balance, day,
        terminal_status, action
    ):
        service = LeaveService(db_session)
        leave = await _request(service, worker_principal, worker_staff, day, 10, 11)
        decisions = {
            LeaveStatus.APPROVED: lambda: service.approve_leave_request(admin_principal, leave.id),
            LeaveStatus.REJECTED: lambda: service.reject_leave_request(admin_principal, leave.id),
            LeaveStatus.CANCELLED: lambda: service.cancel_leave_request(worker_principal, leave.id),
        }
        await decisions[terminal_status]()

        operations = {
            "approve": lambda: service.approve_leave_request(admin_principal, leave.id),
            "reject": lambda: service.reject_leave_request(admin_principal, leave.id),
            "cancel": lambda: service.cancel_leave_request(admin_principal, leave.id),
            "update": lambda: service.update_leave_request(admin_principal, leave.id, reason="x"),
            "delete": lambda: service.delete_leave_request(admin_principal, leave.id),
        }

        with pytest.raises(AlreadyProcessedException) as exc_info:
            await operations[action]()

        assert exc_info.value.details["status"] == terminal_status.value

    @pytest.mark.asyncio
    async def test_update_clears_reason(
        self, db_session, worker_staff, worker_principal, worker_balance, day
    ):
        service = LeaveService(db_session)
        leave = await service.create_leave_request(
            worker_principal,
            staff_id=worker_staff.id,
            leave_type=LeaveType.ANNUAL,
            start_date=day(10),
            end_date=day(11),
            reason="Family visit",
        )

        updated = await service.update_leave_request(worker_principal, leave.id, reason=None)

        assert updated.reason is None
        assert updated.start_date == day(10)

    @pytest.mark.asyncio
    async def test_delete_pending_request(
        self, db_session, worker_staff, worker_principal, worker_balance, day
    ):
        service = LeaveService(db_session)
        leave = await _request(service, worker_principal, worker_staff, day, 10, 11)

        await service.delete_leave_request(worker_principal, leave.id)

        with pytest.raises(LeaveRequestNotFoundException):
            await service.get_leave_request(worker_principal, leave.id)


class TestOverlap:
    """Overlap means sharing at least one calendar day."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "start,end",
        [
            (11, 13),  # contained
            (8, 10),   # touches the first day
            (14, 16),  # touches the last day
            (10, 14),  # identical
            (8, 16),   # surrounds
        ],
    )
    async def test_overlapping_ranges_rejected(
        self, db_session, worker_staff, worker_principal, large_worker_balance, day, start, end
    ):
        service = LeaveService(db_session)
        await _request(service, worker_principal, worker_staff, day, 10, 14)

        with pytest.raises(OverlappingRequestException):
            await _request(service, worker_principal, worker_staff, day, start, end)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("start,end", [(15, 17), (7, 9)])
    async def test_adjacent_ranges_allowed(
        self, db_session, worker_staff, worker_principal, large_worker_balance, day, start, end
    ):
        service = LeaveService(db_session)
        await _request(service, worker_principal, worker_staff, day, 10, 14)

        leave = await _request(service, worker_principal, worker_staff, day, start, end)

        assert leave.status == LeaveStatus.PENDING

    @pytest.mark.asyncio
    async def test_other_staff_do_not_overlap(
        self, db_session, worker_staff, other_worker, admin_principal, large_worker_balance, day,
        balance_factory
    ):
        await balance_factory(other_worker, total=10)
        service = LeaveService(db_session)
        await _request(service, admin_principal, worker_staff, day, 10, 14)

        leave = await _request(service, admin_principal, other_worker, day, 10, 14)

        assert leave.staff_id == other_worker.id

    @pytest.mark.asyncio
    async def test_update_ignores_the_request_itself(
        self, db_session, worker_staff, worker_principal, large_worker_balance, day
    ):
        """Shifting a pending request by a day does not collide with itself."""
        service = LeaveService(db_session)
        leave = await _request(service, worker_principal, worker_staff, day, 10, 12)

        updated = await service.update_leave_request(
            worker_principal, leave.id, start_date=day(11), end_date=day(13)
        )

        assert updated.start_date == day(11)
        assert updated.end_date == day(13)

    @pytest.mark.asyncio
    async def test_database_overlap_constraint_maps_to_conflict(
        self, db_session, worker_staff, worker_principal, worker_balance, day, monkeypatch
    ):
        """An exclusion-constraint violation at commit reads as an overlap."""
        violation = IntegrityError(
            "INSERT INTO leave_requests", {}, Exception("conflicting key value violates exclusion constraint")
        )
        monkeypatch.setattr(db_session, "commit", AsyncMock(side_effect=violation))
        service = LeaveService(db_session)

        with pytest.raises(OverlappingRequestException) as exc_info:
            await _request(service, worker_principal, worker_staff, day, 10, 12)

        assert exc_info.value.status_code == 409
        assert exc_info.value.details is None

    @pytest.mark.asyncio
    async def test_update_into_other_request_rejected(
        self, db_session, worker_staff, worker_principal, large_worker_balance, day
    ):
        service = LeaveService(db_session)
        await _request(service, worker_principal, worker_staff, day, 10, 12)
        second = await _request(service, worker_principal, worker_staff, day, 20, 22)

        with pytest.raises(OverlappingRequestException):
            await service.update_leave_request(worker_principal, second.id, start_date=day(12))


class TestDateValidation:
    """Leave date rules."""

    def test_start_must_precede_end(self, day):
        with pytest.raises(InvalidDateRangeException):
            validate_leave_dates(day(5), day(5))
        with pytest.raises(InvalidDateRangeException):
            validate_leave_dates(day(6), day(5))

    def test_start_in_past_rejected(self, day):
        with pytest.raises(PastDateRequestException):
            validate_leave_dates(day(-1), day(2))

    def test_start_today_allowed(self, day):
        validate_leave_dates(day(0), day(1))

    @pytest.mark.asyncio
    async def test_create_validates_dates(
        self, db_session, worker_staff, worker_principal, worker_balance, day
    ):
        service = LeaveService(db_session)

        with pytest.raises(InvalidDateRangeException):
            await _request(service, worker_principal, worker_staff, day, 12, 10)


class TestLeavePermissions:
    """Who may do what with leave requests."""

    @pytest.mark.asyncio
    async def test_worker_cannot_approve(
        self, db_session, worker_staff, worker_principal, worker_balance, day
    ):
        service = LeaveService(db_session)
        leave = await _request(service, worker_principal, worker_staff, day, 10, 11)

        with pytest.raises(InsufficientPermissionsException):
            await service.approve_leave_request(worker_principal, leave.id)

    @pytest.mark.asyncio
    async def test_vet_cannot_approve(
        self, db_session, worker_staff, worker_principal, vet_principal, worker_balance, day
    ):
        service = LeaveService(db_session)
        leave = await _request(service, worker_principal, worker_staff, day, 10, 11)

        with pytest.raises(InsufficientPermissionsException):
            await service.approve_leave_request(vet_principal, leave.id)

    @pytest.mark.asyncio
    async def test_worker_cannot_request_for_someone_else(
        self, db_session, worker_principal, other_worker, day
    ):
        service = LeaveService(db_session)

        with pytest.raises(InsufficientPermissionsException):
            await _request(service, worker_principal, other_worker, day, 10, 11)

    @pytest.mark.asyncio
    async def test_other_worker_cannot_cancel(
        self, db_session, worker_staff, worker_principal, other_principal, worker_balance, day
    ):
        service = LeaveService(db_session)
        leave = await _request(service, worker_principal, worker_staff, day, 10, 11)

        with pytest.raises(InsufficientPermissionsException):
            await service.cancel_leave_request(other_principal, leave.id)

    @pytest.mark.asyncio
    async def test_anonymous_caller_rejected(self, db_session, worker_staff, day):
        service = LeaveService(db_session)

        with pytest.raises(AuthenticationException):
            await _request(service, None, worker_staff, day, 10, 11)


class TestLeaveQueries:
    """Listing and calendar views."""

    @pytest.mark.asyncio
    async def test_worker_only_sees_own_requests(
        self, db_session, worker_staff, other_worker, worker_principal, admin_principal,
        large_worker_balance, day, balance_factory
    ):
        await balance_factory(other_worker, total=10)
        service = LeaveService(db_session)
        await _request(service, admin_principal, worker_staff, day, 10, 11)
        await _request(service, admin_principal, other_worker, day, 10, 11)

        items, total = await service.list_leave_requests(worker_principal)
        assert total == 1
        assert items[0].staff_id == worker_staff.id

        items, total = await service.list_leave_requests(admin_principal)
        assert total == 2

        with pytest.raises(InsufficientPermissionsException):
            await service.list_leave_requests(
                worker_principal, LeaveRequestFilters(staff_id=other_worker.id)
            )

    @pytest.mark.asyncio
    async def test_list_filters_and_paginates(
        self, db_session, worker_staff, worker_principal, admin_principal, large_worker_balance, day
    ):
        service = LeaveService(db_session)
        first = await _request(service, worker_principal, worker_staff, day, 10, 11)
        await _request(service, worker_principal, worker_staff, day, 20, 21, leave_type=LeaveType.SICK)
        await _request(service, worker_principal, worker_staff, day, 30, 31)
        await service.approve_leave_request(admin_principal, first.id)

        items, total = await service.list_leave_requests(
            admin_principal, LeaveRequestFilters(status=LeaveStatus.PENDING)
        )
        assert total == 2

        items, total = await service.list_leave_requests(
            admin_principal, LeaveRequestFilters(leave_type=LeaveType.SICK)
        )
        assert total == 1

        items, total = await service.list_leave_requests(
            admin_principal, LeaveRequestFilters(search="adeyemi"), page=2, limit=2
        )
        assert total == 3
        assert len(items) == 1

    @pytest.mark.asyncio
    async def test_calendar_shows_approved_leave_in_month(
        self, db_session, worker_staff, worker_principal, admin_principal, large_worker_balance, day
    ):
        service = LeaveService(db_session)
        approved = await _request(service, worker_principal, worker_staff, day, 10, 11)
        await service.approve_leave_request(admin_principal, approved.id)
        await _request(service, worker_principal, worker_staff, day, 12, 13)

        start = day(10)
        entries = await service.get_leave_calendar(worker_principal, start.year, start.month)

        assert [entry.id for entry in entries] == [approved.id]
