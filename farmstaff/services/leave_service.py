"""
FarmStaff - Leave Request Service

Leave request lifecycle:

    PENDING -> APPROVED | REJECTED | CANCELLED

Only PENDING requests can be updated, deleted, cancelled, approved or
rejected. Creating a request never touches the balance; approving one moves
its days from remaining to used in the same transaction as the status change.

Concurrency:
- Creation and date changes lock the staff member's balance row before the
  overlap and availability checks, so two requests for the same staff are
  validated one after the other.
- Approval locks the request row and the balance row.
- On PostgreSQL an exclusion constraint rejects overlapping active requests
  even if the checks above are bypassed.
"""

import uuid
import logging
from datetime import date
from typing import Any, List, Optional, Tuple

from sqlalchemy import select, func, and_, true
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from farmstaff.models.leave import (
    ACTIVE_LEAVE_STATUSES,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
)
from farmstaff.models.staff import Staff
from farmstaff.schemas.leave import LeaveRequestFilters
from farmstaff.services.leave_balance_service import LeaveBalanceService
from farmstaff.services.notification_service import NotificationService
from farmstaff.utils.dates import inclusive_day_count, month_bounds, today, utcnow
from farmstaff.utils.error_handling import (
    AlreadyProcessedException,
    InsufficientBalanceException,
    InvalidDateRangeException,
    LeaveRequestNotFoundException,
    OverlappingRequestException,
    PastDateRequestException,
    StaffNotFoundException,
    ValidationException,
)
from farmstaff.utils.permissions import (
    Principal,
    StaffPermission,
    require_admin,
    require_principal,
    require_self_or_admin,
    visible_staff_scope,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"leave_type", "start_date", "end_date", "reason"}


def validate_leave_dates(start_date: date, end_date: date) -> None:
    """
    Check a requested leave range.

    The start must come strictly before the end and must not be in the past.
    """
    if start_date >= end_date:
        raise InvalidDateRangeException(start_date, end_date)
    if start_date < today():
        raise PastDateRequestException(start_date)


class LeaveService:
    """Service for leave requests."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.balances = LeaveBalanceService(db)
        self.notifications = NotificationService(db)

    # ===========================================
    # INTERNAL HELPERS
    # ===========================================

    def _base_query(self):
        return select(LeaveRequest).options(
            selectinload(LeaveRequest.staff),
            selectinload(LeaveRequest.approver),
        )

    async def _load(self, leave_id: uuid.UUID, lock: bool = False) -> LeaveRequest:
        query = (
            self._base_query()
            .where(LeaveRequest.id == leave_id)
            .execution_options(populate_existing=True)
        )
        if lock:
            query = query.with_for_update()
        result = await self.db.execute(query)
        leave_request = result.scalar_one_or_none()
        if not leave_request:
            raise LeaveRequestNotFoundException(leave_id)
        return leave_request

    async def _load_pending(
        self,
        principal: Optional[Principal],
        leave_id: uuid.UUID,
        admin_only: bool = False,
    ) -> Tuple[Principal, LeaveRequest]:
        if admin_only:
            principal = require_admin(principal)
        else:
            principal = require_principal(principal)

        leave_request = await self._load(leave_id, lock=True)
        if not admin_only:
            require_self_or_admin(principal, leave_request.staff_id)
        if leave_request.status != LeaveStatus.PENDING:
            raise AlreadyProcessedException(leave_id, leave_request.status.value)
        return principal, leave_request

    async def find_overlapping_request(
        self,
        staff_id: uuid.UUID,
        start_date: date,
        end_date: date,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> Optional[LeaveRequest]:
        """
        First PENDING or APPROVED request of the staff member sharing at
        least one day with [start_date, end_date].
        """
        query = select(LeaveRequest).where(
            LeaveRequest.staff_id == staff_id,
            LeaveRequest.status.in_(ACTIVE_LEAVE_STATUSES),
            LeaveRequest.start_date <= end_date,
            LeaveRequest.end_date >= start_date,
        )
        if exclude_id is not None:
            query = query.where(LeaveRequest.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def _check_availability(
        self,
        staff_id: uuid.UUID,
        start_date: date,
        end_date: date,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> int:
        """Lock the balance, reject overlaps and over-booking. Returns the day count."""
        balance = await self.balances.lock_balance(staff_id)

        overlapping = await self.find_overlapping_request(staff_id, start_date, end_date, exclude_id)
        if overlapping:
            raise OverlappingRequestException(overlapping.id)

        leave_days = inclusive_day_count(start_date, end_date)
        reserved = await self.balances.pending_reserved_days(staff_id, exclude_id=exclude_id)
        available = balance.remaining_leave_days - reserved
        if available < leave_days:
            raise InsufficientBalanceException(available, leave_days)
        return leave_days

    async def _commit_dates(self, staff_id: uuid.UUID) -> None:
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Overlap constraint rejected leave dates for staff {staff_id}")
            raise OverlappingRequestException(original_error=e)

    async def _notify_decision(self, leave_request: LeaveRequest) -> None:
        # Decision is already committed
        try:
            await self.notifications.notify_leave_decision(leave_request)
        except Exception:
            await self.db.rollback()
            logger.exception(f"Failed to send leave decision notification for {leave_request.id}")

    # ===========================================
    # LIFECYCLE OPERATIONS
    # ===========================================

    async def create_leave_request(
        self,
        principal: Optional[Principal],
        staff_id: uuid.UUID,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: Optional[str] = None,
    ) -> LeaveRequest:
        """
        Create a PENDING leave request.

        Raises:
            InvalidDateRangeException: start_date is not before end_date
            PastDateRequestException: start_date is in the past
            LeaveBalanceNotFoundException: staff has no balance
            OverlappingRequestException: range intersects an active request
            InsufficientBalanceException: not enough unreserved days
        """
        require_self_or_admin(principal, staff_id)
        validate_leave_dates(start_date, end_date)

        staff = await self.db.get(Staff, staff_id)
        if not staff:
            raise StaffNotFoundException(staff_id)

        leave_days = await self._check_availability(staff_id, start_date, end_date)

        leave_request = LeaveRequest(
            staff_id=staff_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            status=LeaveStatus.PENDING,
        )
        self.db.add(leave_request)
        await self._commit_dates(staff_id)

        logger.info(
            f"Leave request {leave_request.id} created for staff {staff_id}: "
            f"{start_date}..{end_date} ({leave_days} days)"
        )
        return await self._load(leave_request.id)

    async def approve_leave_request(self, principal: Optional[Principal], leave_id: uuid.UUID) -> LeaveRequest:
        """Approve a PENDING request and book its days against the balance."""
        principal, leave_request = await self._load_pending(principal, leave_id, admin_only=True)

        leave_days = leave_request.leave_days
        balance = await self.balances.lock_balance(leave_request.staff_id)
        if balance.remaining_leave_days < leave_days:
            raise InsufficientBalanceException(balance.remaining_leave_days, leave_days)

        leave_request.status = LeaveStatus.APPROVED
        leave_request.approved_by = principal.id
        leave_request.decided_at = utcnow()
        await self.balances.adjust_leave_balance(leave_request.staff_id, leave_days)
        await self.db.commit()

        logger.info(f"Leave request {leave_id} approved by {principal.id} ({leave_days} days)")

        await self._notify_decision(await self._load(leave_id))
        return await self._load(leave_id)

    async def reject_leave_request(
        self,
        principal: Optional[Principal],
        leave_id: uuid.UUID,
        reason: Optional[str] = None,
    ) -> LeaveRequest:
        """Reject a PENDING request. The balance is not touched."""
        principal, leave_request = await self._load_pending(principal, leave_id, admin_only=True)

        leave_request.status = LeaveStatus.REJECTED
        leave_request.approved_by = principal.id
        leave_request.decided_at = utcnow()
        if reason:
            leave_request.reason = reason
        await self.db.commit()

        logger.info(f"Leave request {leave_id} rejected by {principal.id}")

        await self._notify_decision(await self._load(leave_id))
        return await self._load(leave_id)

    async def cancel_leave_request(self, principal: Optional[Principal], leave_id: uuid.UUID) -> LeaveRequest:
        principal, leave_request = await self._load_pending(principal, leave_id)

        leave_request.status = LeaveStatus.CANCELLED
        leave_request.decided_at = utcnow()
        await self.db.commit()

        logger.info(f"Leave request {leave_id} cancelled by {principal.id}")
        return await self._load(leave_id)

    async def update_leave_request(
        self,
        principal: Optional[Principal],
        leave_id: uuid.UUID,
        **changes: Any,
    ) -> LeaveRequest:
        """
        Edit a PENDING request.

        Changed dates go through the same validation, overlap and
        availability checks as a new request, ignoring the request itself.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationException(f"Cannot update fields: {', '.join(sorted(unknown))}")

        principal, leave_request = await self._load_pending(principal, leave_id)
        # reason may be cleared; the other fields are required on the row
        changes = {
            key: value for key, value in changes.items() if value is not None or key == "reason"
        }

        start_date = changes.get("start_date", leave_request.start_date)
        end_date = changes.get("end_date", leave_request.end_date)
        if start_date != leave_request.start_date or end_date != leave_request.end_date:
            validate_leave_dates(start_date, end_date)
            await self._check_availability(
                leave_request.staff_id, start_date, end_date, exclude_id=leave_request.id
            )

        for field, value in changes.items():
            setattr(leave_request, field, value)
        await self._commit_dates(leave_request.staff_id)

        logger.info(f"Leave request {leave_id} updated by {principal.id}")
        return await self._load(leave_id)

    async def delete_leave_request(self, principal: Optional[Principal], leave_id: uuid.UUID) -> None:
        principal, leave_request = await self._load_pending(principal, leave_id)

        await self.db.delete(leave_request)
        await self.db.commit()
        logger.info(f"Leave request {leave_id} deleted by {principal.id}")

    # ===========================================
    # QUERIES
    # ===========================================

    async def get_leave_request(self, principal: Optional[Principal], leave_id: uuid.UUID) -> LeaveRequest:
        principal = require_principal(principal)
        leave_request = await self._load(leave_id)
        require_self_or_admin(principal, leave_request.staff_id)
        return leave_request

    async def list_leave_requests(
        self,
        principal: Optional[Principal],
        filters: Optional[LeaveRequestFilters] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[LeaveRequest], int]:
        """
        List leave requests, newest first.

        Non-admins only ever see their own requests.

        Returns:
            Tuple of (requests, total_count)
        """
        filters = filters or LeaveRequestFilters()
        staff_scope = visible_staff_scope(principal, filters.staff_id, StaffPermission.VIEW_ALL_LEAVE)

        conditions = []
        if staff_scope is not None:
            conditions.append(LeaveRequest.staff_id == staff_scope)
        if filters.leave_type:
            conditions.append(LeaveRequest.leave_type == filters.leave_type)
        if filters.status:
            conditions.append(LeaveRequest.status == filters.status)
        if filters.approver_id:
            conditions.append(LeaveRequest.approved_by == filters.approver_id)
        if filters.search:
            conditions.append(Staff.name.ilike(f"%{filters.search}%"))

        where_clause = and_(*conditions) if conditions else true()

        count_result = await self.db.execute(
            select(func.count(LeaveRequest.id))
            .join(Staff, Staff.id == LeaveRequest.staff_id)
            .where(where_clause)
        )
        total = count_result.scalar() or 0

        result = await self.db.execute(
            self._base_query()
            .join(Staff, Staff.id == LeaveRequest.staff_id)
            .where(where_clause)
            .order_by(LeaveRequest.created_at.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return list(result.scalars().all()), total

    async def get_staff_leave_requests(
        self,
        principal: Optional[Principal],
        staff_id: uuid.UUID,
    ) -> List[LeaveRequest]:
        require_self_or_admin(principal, staff_id)
        result = await self.db.execute(
            self._base_query()
            .where(LeaveRequest.staff_id == staff_id)
            .order_by(LeaveRequest.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_leave_calendar(
        self,
        principal: Optional[Principal],
        year: int,
        month: int,
    ) -> List[LeaveRequest]:
        """APPROVED requests that intersect the given month."""
        require_principal(principal)
        if not 1 <= month <= 12:
            raise ValidationException("Month must be between 1 and 12", field="month")

        first_day, last_day = month_bounds(year, month)
        result = await self.db.execute(
            self._base_query()
            .where(
                LeaveRequest.status == LeaveStatus.APPROVED,
                LeaveRequest.start_date <= last_day,
                LeaveRequest.end_date >= first_day,
            )
            .order_by(LeaveRequest.start_date.asc())
        )
        return list(result.scalars().all())

