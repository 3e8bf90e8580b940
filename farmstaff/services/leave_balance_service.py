"""
FarmStaff - Leave Balance Service

Per-staff leave ledger. Admins set totals; approvals move days from
remaining to used through a single atomic UPDATE so manual edits and
approvals never overwrite each other.
"""

import uuid
import logging
from typing import List, Optional

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from farmstaff.config import settings
from farmstaff.models.leave import LeaveBalance, LeaveRequest, LeaveStatus
from farmstaff.models.staff import Staff, StaffRole
from farmstaff.utils.error_handling import (
    DuplicateBalanceException,
    LeaveBalanceNotFoundException,
    StaffNotFoundException,
    ValidationException,
)
from farmstaff.utils.permissions import Principal, require_admin, require_self_or_admin

logger = logging.getLogger(__name__)


def default_leave_days(role: StaffRole) -> int:
    """Yearly leave allowance for a newly registered staff member."""
    return {
        StaffRole.ADMIN: settings.default_leave_days_admin,
        StaffRole.VETERINARIAN: settings.default_leave_days_veterinarian,
        StaffRole.WORKER: settings.default_leave_days_worker,
    }.get(role, settings.default_leave_days_worker)


def _validate_totals(total: int, used: int) -> None:
    if total < 0:
        raise ValidationException("Total leave days cannot be negative", field="total_leave_days")
    if used < 0:
        raise ValidationException("Used leave days cannot be negative", field="used_leave_days")
    if used > total:
        raise ValidationException(
            "Used leave days cannot exceed total leave days",
            field="used_leave_days",
            details={"total_leave_days": total, "used_leave_days": used},
        )


class LeaveBalanceService:
    """Service for the leave balance ledger."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ===========================================
    # INTERNAL HELPERS
    # ===========================================

    async def _fetch(self, staff_id: uuid.UUID) -> Optional[LeaveBalance]:
        result = await self.db.execute(
            select(LeaveBalance)
            .options(selectinload(LeaveBalance.staff))
            .where(LeaveBalance.staff_id == staff_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def lock_balance(self, staff_id: uuid.UUID) -> LeaveBalance:
        """
        Load a staff member's balance with a row lock held until commit.

        Raises:
            LeaveBalanceNotFoundException: No balance on record
        """
        result = await self.db.execute(
            select(LeaveBalance)
            .where(LeaveBalance.staff_id == staff_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        balance = result.scalar_one_or_none()
        if not balance:
            raise LeaveBalanceNotFoundException(staff_id)
        return balance

    async def adjust_leave_balance(self, staff_id: uuid.UUID, delta: int) -> LeaveBalance:
        """
        Move ``delta`` days from remaining to used (negative delta gives days back).

        Issues one UPDATE evaluated by the database. Does not commit; the
        caller owns the transaction.
        """
        result = await self.db.execute(
            update(LeaveBalance)
            .where(LeaveBalance.staff_id == staff_id)
            .values(
                used_leave_days=LeaveBalance.used_leave_days + delta,
                remaining_leave_days=LeaveBalance.remaining_leave_days - delta,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise LeaveBalanceNotFoundException(staff_id)

        balance = await self._fetch(staff_id)
        logger.info(
            f"Leave balance for staff {staff_id} adjusted by {delta} days "
            f"(used={balance.used_leave_days}, remaining={balance.remaining_leave_days})"
        )
        return balance

    async def pending_reserved_days(
        self,
        staff_id: uuid.UUID,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> int:
        """Days requested by the staff member's PENDING requests."""
        query = select(LeaveRequest.start_date, LeaveRequest.end_date).where(
            LeaveRequest.staff_id == staff_id,
            LeaveRequest.status == LeaveStatus.PENDING,
        )
        if exclude_id is not None:
            query = query.where(LeaveRequest.id != exclude_id)
        result = await self.db.execute(query)
        return sum((end - start).days + 1 for start, end in result.all())

    # ===========================================
    # PUBLIC OPERATIONS
    # ===========================================

    async def get_leave_balance(self, principal: Optional[Principal], staff_id: uuid.UUID) -> LeaveBalance:
        require_self_or_admin(principal, staff_id)
        balance = await self._fetch(staff_id)
        if not balance:
            raise LeaveBalanceNotFoundException(staff_id)
        return balance

    async def list_leave_balances(
        self,
        principal: Optional[Principal],
        year: Optional[int] = None,
    ) -> List[LeaveBalance]:
        """All balances with their staff, ordered by staff name."""
        require_admin(principal)
        query = (
            select(LeaveBalance)
            .join(Staff, Staff.id == LeaveBalance.staff_id)
            .options(selectinload(LeaveBalance.staff))
            .order_by(Staff.name.asc())
        )
        if year is not None:
            query = query.where(LeaveBalance.year == year)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create_leave_balance(
        self,
        principal: Optional[Principal],
        staff_id: uuid.UUID,
        year: int,
        total: int,
        used: int = 0,
    ) -> LeaveBalance:
        require_admin(principal)
        _validate_totals(total, used)

        staff = await self.db.get(Staff, staff_id)
        if not staff:
            raise StaffNotFoundException(staff_id)

        existing = await self.db.execute(
            select(func.count(LeaveBalance.id)).where(LeaveBalance.staff_id == staff_id)
        )
        if existing.scalar():
            raise DuplicateBalanceException(staff_id)

        self.db.add(LeaveBalance(
            staff_id=staff_id,
            year=year,
            total_leave_days=total,
            used_leave_days=used,
            remaining_leave_days=total - used,
        ))
        await self.db.commit()

        logger.info(f"Leave balance created for staff {staff_id}: {total} days for {year}")
        return await self._fetch(staff_id)

    async def set_leave_balance_totals(
        self,
        principal: Optional[Principal],
        staff_id: uuid.UUID,
        year: int,
        total: int,
        used: Optional[int] = None,
    ) -> LeaveBalance:
        """
        Replace a staff member's totals, creating the balance if missing.

        When ``used`` is omitted the stored used days are kept. The remaining
        days are always recomputed as total - used.
        """
        require_admin(principal)

        staff = await self.db.get(Staff, staff_id)
        if not staff:
            raise StaffNotFoundException(staff_id)

        result = await self.db.execute(
            select(LeaveBalance)
            .where(LeaveBalance.staff_id == staff_id)
            .with_for_update()
        )
        balance = result.scalar_one_or_none()

        if used is None:
            used = balance.used_leave_days if balance else 0
        _validate_totals(total, used)

        if balance is None:
            balance = LeaveBalance(staff_id=staff_id)
            self.db.add(balance)

        balance.year = year
        balance.total_leave_days = total
        balance.used_leave_days = used
        balance.remaining_leave_days = total - used
        await self.db.commit()

        logger.info(f"Leave balance for staff {staff_id} set to {used}/{total} days for {year}")
        return await self._fetch(staff_id)

    async def delete_leave_balance(self, principal: Optional[Principal], balance_id: uuid.UUID) -> None:
        require_admin(principal)

        balance = await self.db.get(LeaveBalance, balance_id)
        if not balance:
            raise LeaveBalanceNotFoundException(message="Leave balance not found")

        pending = await self.db.execute(
            select(func.count(LeaveRequest.id)).where(
                LeaveRequest.staff_id == balance.staff_id,
                LeaveRequest.status == LeaveStatus.PENDING,
            )
        )
        pending_count = pending.scalar() or 0
        if pending_count:
            logger.warning(
                f"Deleting leave balance for staff {balance.staff_id} "
                f"with {pending_count} pending leave requests"
            )

        await self.db.delete(balance)
        await self.db.commit()
        logger.info(f"Leave balance {balance_id} deleted")
