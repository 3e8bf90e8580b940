"""
FarmStaff - Attendance Service Tests
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from farmstaff.models.attendance import Attendance, AttendanceStatus
from farmstaff.schemas.attendance import AttendanceFilters
from farmstaff.services.attendance_service import AttendanceService, worked_hours
from farmstaff.utils.dates import today, utcnow
from farmstaff.utils.error_handling import (
    AlreadyCheckedInException,
    AttendanceNotFoundException,
    DuplicateEntryException,
    InsufficientPermissionsException,
    NoOpenCheckInException,
    StaffInactiveException,
)


class TestWorkedHours:

    def test_full_shift(self):
        start = datetime(2026, 3, 2, 8, 0)
        assert worked_hours(start, start + timedelta(hours=8, minutes=30)) == Decimal("8.50")

    def test_rounds_to_two_places(self):
        start = datetime(2026, 3, 2, 8, 0)
        assert worked_hours(start, start + timedelta(minutes=20)) == Decimal("0.33")
        assert worked_hours(start, start + timedelta(seconds=30)) == Decimal("0.01")


class TestCheckInOut:
    """Daily check-in/check-out flow."""

    @pytest.mark.asyncio
    async def test_check_in(self, db_session, worker_staff, worker_principal):
        service = AttendanceService(db_session)

        record = await service.check_in(worker_principal, worker_staff.id, location="North paddock")

        assert record.date == today()
        assert record.status == AttendanceStatus.PRESENT
        assert record.check_out is None
        assert record.location == "North paddock"

    @pytest.mark.asyncio
    async def test_second_check_in_same_day_rejected(self, db_session, worker_staff, worker_principal):
        service = AttendanceService(db_session)
        await service.check_in(worker_principal, worker_staff.id)

        with pytest.raises(AlreadyCheckedInException) as exc_info:
            await service.check_in(worker_principal, worker_staff.id)

        assert exc_info.value.message == "Already checked in today"

    @pytest.mark.asyncio
    async def test_check_out_records_hours(self, db_session, worker_staff, worker_principal):
        service = AttendanceService(db_session)
        record = await service.check_in(worker_principal, worker_staff.id)
        record.check_in = utcnow() - timedelta(hours=2)
        await db_session.commit()

        closed = await service.check_out(worker_principal, worker_staff.id)

        assert closed.status == AttendanceStatus.CHECKED_OUT
        assert closed.check_out is not None
        assert Decimal("1.99") <= closed.hours <= Decimal("2.01")

    @pytest.mark.asyncio
    async def test_check_out_records_location(self, db_session, worker_staff, worker_principal):
        service = AttendanceService(db_session)
        await service.check_in(worker_principal, worker_staff.id, location="Milking parlour")

        closed = await service.check_out(worker_principal, worker_staff.id, location="Feed store")

        assert closed.location == "Feed store"

    @pytest.mark.asyncio
    async def test_check_in_again_after_check_out(self, db_session, worker_staff, worker_principal):
        service = AttendanceService(db_session)
        await service.check_in(worker_principal, worker_staff.id)
        await service.check_out(worker_principal, worker_staff.id)

        second = await service.check_in(worker_principal, worker_staff.id)

        assert second.is_open

    @pytest.mark.asyncio
    async def test_check_out_without_check_in(self, db_session, worker_staff, worker_principal):
        service = AttendanceService(db_session)

        with pytest.raises(NoOpenCheckInException):
            await service.check_out(worker_principal, worker_staff.id)

    @pytest.mark.asyncio
    async def test_inactive_staff_cannot_check_in(self, db_session, worker_staff, admin_principal):
        worker_staff.is_active = False
        await db_session.commit()
        service = AttendanceService(db_session)

        with pytest.raises(StaffInactiveException):
            await service.check_in(admin_principal, worker_staff.id)

    @pytest.mark.asyncio
    async def test_worker_cannot_check_in_colleague(self, db_session, other_worker, worker_principal):
        service = AttendanceService(db_session)

        with pytest.raises(InsufficientPermissionsException):
            await service.check_in(worker_principal, other_worker.id)


class TestAttendanceAdministration:

    @pytest.mark.asyncio
    async def test_update_status(self, db_session, worker_staff, worker_principal, admin_principal):
        service = AttendanceService(db_session)
        record = await service.check_in(worker_principal, worker_staff.id)

        updated = await service.update_attendance(admin_principal, record.id, status=AttendanceStatus.ON_LEAVE)

        assert updated.status == AttendanceStatus.ON_LEAVE

    @pytest.mark.asyncio
    async def test_moving_open_record_onto_open_day_rejected(
        self, db_session, worker_staff, worker_principal, admin_principal
    ):
        service = AttendanceService(db_session)
        await service.check_in(worker_principal, worker_staff.id)
        yesterday = Attendance(
            staff_id=worker_staff.id,
            date=today() - timedelta(days=1),
            check_in=utcnow() - timedelta(days=1),
            status=AttendanceStatus.PRESENT,
        )
        db_session.add(yesterday)
        await db_session.commit()

        with pytest.raises(DuplicateEntryException):
            await service.update_attendance(admin_principal, yesterday.id, date=today())

    @pytest.mark.asyncio
    async def test_worker_cannot_update(self, db_session, worker_staff, worker_principal):
        service = AttendanceService(db_session)
        record = await service.check_in(worker_principal, worker_staff.id)

        with pytest.raises(InsufficientPermissionsException):
            await service.update_attendance(worker_principal, record.id, status=AttendanceStatus.ABSENT)

    @pytest.mark.asyncio
    async def test_admin_deletes_record(self, db_session, worker_staff, worker_principal, admin_principal):
        service = AttendanceService(db_session)
        record = await service.check_in(worker_principal, worker_staff.id)

        await service.delete_attendance(admin_principal, record.id)

        assert await service.get_staff_attendance(admin_principal, worker_staff.id) == []
        with pytest.raises(AttendanceNotFoundException):
            await service.delete_attendance(admin_principal, record.id)

    @pytest.mark.asyncio
    async def test_only_admin_deletes(self, db_session, worker_staff, worker_principal, vet_principal):
        service = AttendanceService(db_session)
        record = await service.check_in(worker_principal, worker_staff.id)

        for principal in (worker_principal, vet_principal):
            with pytest.raises(InsufficientPermissionsException):
                await service.delete_attendance(principal, record.id)

        assert len(await service.get_staff_attendance(worker_principal, worker_staff.id)) == 1


class TestAttendanceQueries:

    @pytest.mark.asyncio
    async def test_list_scoping(
        self, db_session, worker_staff, other_worker, worker_principal, other_principal, vet_principal
    ):
        service = AttendanceService(db_session)
        await service.check_in(worker_principal, worker_staff.id)
        await service.check_in(other_principal, other_worker.id)

        _, total = await service.list_attendance(vet_principal)
        assert total == 2

        items, total = await service.list_attendance(worker_principal)
        assert total == 1
        assert items[0].staff_id == worker_staff.id

        with pytest.raises(InsufficientPermissionsException):
            await service.list_attendance(worker_principal, AttendanceFilters(staff_id=other_worker.id))

    @pytest.mark.asyncio
    async def test_staff_history_by_date_range(self, db_session, worker_staff, worker_principal, vet_principal):
        service = AttendanceService(db_session)
        await service.check_in(worker_principal, worker_staff.id)
        db_session.add(Attendance(
            staff_id=worker_staff.id,
            date=today() - timedelta(days=10),
            check_in=utcnow() - timedelta(days=10),
            status=AttendanceStatus.ABSENT,
        ))
        await db_session.commit()

        everything = await service.get_staff_attendance(vet_principal, worker_staff.id)
        recent = await service.get_staff_attendance(
            vet_principal, worker_staff.id, start=today() - timedelta(days=3)
        )

        assert len(everything) == 2
        assert everything[0].date == today()
        assert len(recent) == 1
