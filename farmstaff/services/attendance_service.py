"""
FarmStaff - Attendance Service

Daily check-in/check-out. A staff member has at most one open record
(check_out IS NULL) per calendar day; a partial unique index backs the check.
"""

import uuid
import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple

from sqlalchemy import select, func, and_, true
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from farmstaff.models.attendance import Attendance, AttendanceStatus
from farmstaff.models.staff import Staff
from farmstaff.schemas.attendance import AttendanceFilters
from farmstaff.utils.dates import today, utcnow
from farmstaff.utils.error_handling import (
    AlreadyCheckedInException,
    AttendanceNotFoundException,
    DuplicateEntryException,
    NoOpenCheckInException,
    StaffInactiveException,
    StaffNotFoundException,
)
from farmstaff.utils.permissions import (
    Principal,
    StaffPermission,
    require_admin,
    require_self_or_admin,
    require_self_or_elevated,
    visible_staff_scope,
)

logger = logging.getLogger(__name__)

HOURS_QUANTUM = Decimal("0.01")


def worked_hours(check_in, check_out) -> Decimal:
    """Hours between check-in and check-out, rounded to 2 decimal places."""
    seconds = Decimal(str((check_out - check_in).total_seconds()))
    return (seconds / Decimal(3600)).quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)


class AttendanceService:
    """Service for attendance records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, attendance_id: uuid.UUID) -> Attendance:
        result = await self.db.execute(
            select(Attendance)
            .options(selectinload(Attendance.staff))
            .where(Attendance.id == attendance_id)
            .execution_options(populate_existing=True)
        )
        attendance = result.scalar_one_or_none()
        if not attendance:
            raise AttendanceNotFoundException(attendance_id)
        return attendance

    async def _open_record(self, staff_id: uuid.UUID, day: date, lock: bool = False) -> Optional[Attendance]:
        query = select(Attendance).where(
            Attendance.staff_id == staff_id,
            Attendance.date == day,
            Attendance.check_out.is_(None),
        )
        if lock:
            query = query.with_for_update()
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def check_in(
        self,
        principal: Optional[Principal],
        staff_id: uuid.UUID,
        location: Optional[str] = None,
    ) -> Attendance:
        """
        Open today's attendance record for a staff member.

        Raises:
            StaffNotFoundException: Unknown staff
            StaffInactiveException: Staff is deactivated
            AlreadyCheckedInException: An open record exists for today
        """
        require_self_or_admin(principal, staff_id)

        staff = await self.db.get(Staff, staff_id)
        if not staff:
            raise StaffNotFoundException(staff_id)
        if not staff.is_active:
            raise StaffInactiveException(staff_id)

        day = today()
        if await self._open_record(staff_id, day):
            raise AlreadyCheckedInException(staff_id)

        attendance = Attendance(
            staff_id=staff_id,
            date=day,
            check_in=utcnow(),
            status=AttendanceStatus.PRESENT,
            location=location,
        )
        self.db.add(attendance)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise AlreadyCheckedInException(staff_id, original_error=e)

        logger.info(f"Staff {staff_id} checked in at {attendance.check_in}")
        return await self._load(attendance.id)

    async def check_out(
        self,
        principal: Optional[Principal],
        staff_id: uuid.UUID,
        location: Optional[str] = None,
    ) -> Attendance:
        """Close today's open record and compute the hours worked."""
        require_self_or_admin(principal, staff_id)

        attendance = await self._open_record(staff_id, today(), lock=True)
        if not attendance:
            raise NoOpenCheckInException(staff_id)

        check_out = utcnow()
        attendance.check_out = check_out
        attendance.hours = worked_hours(attendance.check_in, check_out)
        attendance.status = AttendanceStatus.CHECKED_OUT
        if location:
            attendance.location = location
        await self.db.commit()

        logger.info(f"Staff {staff_id} checked out after {attendance.hours} hours")
        return await self._load(attendance.id)

    async def list_attendance(
        self,
        principal: Optional[Principal],
        filters: Optional[AttendanceFilters] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Attendance], int]:
        """
        List attendance records, most recent day first.

        Admins and veterinarians see everyone; other staff only themselves.
        """
        filters = filters or AttendanceFilters()
        staff_scope = visible_staff_scope(principal, filters.staff_id, StaffPermission.VIEW_ALL_ATTENDANCE)

        conditions = []
        if staff_scope is not None:
            conditions.append(Attendance.staff_id == staff_scope)
        if filters.status:
            conditions.append(Attendance.status == filters.status)
        if filters.start_date:
            conditions.append(Attendance.date >= filters.start_date)
        if filters.end_date:
            conditions.append(Attendance.date <= filters.end_date)
        if filters.search:
            conditions.append(Staff.name.ilike(f"%{filters.search}%"))

        where_clause = and_(*conditions) if conditions else true()

        count_result = await self.db.execute(
            select(func.count(Attendance.id))
            .join(Staff, Staff.id == Attendance.staff_id)
            .where(where_clause)
        )
        total = count_result.scalar() or 0

        result = await self.db.execute(
            select(Attendance)
            .join(Staff, Staff.id == Attendance.staff_id)
            .options(selectinload(Attendance.staff))
            .where(where_clause)
            .order_by(Attendance.date.desc(), Attendance.check_in.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return list(result.scalars().all()), total

    async def get_staff_attendance(
        self,
        principal: Optional[Principal],
        staff_id: uuid.UUID,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[Attendance]:
        require_self_or_elevated(principal, staff_id)

        query = (
            select(Attendance)
            .options(selectinload(Attendance.staff))
            .where(Attendance.staff_id == staff_id)
        )
        if start:
            query = query.where(Attendance.date >= start)
        if end:
            query = query.where(Attendance.date <= end)

        result = await self.db.execute(
            query.order_by(Attendance.date.desc(), Attendance.check_in.desc())
        )
        return list(result.scalars().all())

    async def update_attendance(
        self,
        principal: Optional[Principal],
        attendance_id: uuid.UUID,
        status: Optional[AttendanceStatus] = None,
        date: Optional[date] = None,
    ) -> Attendance:
        """Admin correction of a record's status or day."""
        require_admin(principal)
        attendance = await self._load(attendance_id)

        if status is not None:
            attendance.status = status
        if date is not None:
            attendance.date = date

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateEntryException(
                "Staff member already has an open attendance record for that day",
                field="date",
                value=str(date),
            )

        logger.info(f"Attendance {attendance_id} updated")
        return await self._load(attendance_id)

    async def delete_attendance(self, principal: Optional[Principal], attendance_id: uuid.UUID) -> None:
        principal = require_admin(principal)
        attendance = await self._load(attendance_id)

        await self.db.delete(attendance)
        await self.db.commit()
        logger.info(f"Attendance {attendance_id} deleted by {principal.id}")
