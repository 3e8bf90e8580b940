"""
FarmStaff - Payroll Service

One payroll record per staff member per calendar month. The month is stored
as ``pay_period`` (YYYY-MM) and a unique constraint on
(staff_id, pay_period) backs the duplicate check.

Net salary is salary + bonus - deductions and is never stored.
"""

import uuid
import logging
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from sqlalchemy import select, func, and_, true
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from farmstaff.models.payroll import Payroll
from farmstaff.models.staff import Staff
from farmstaff.schemas.payroll import PayrollFilters
from farmstaff.utils.dates import month_bounds, pay_period_for
from farmstaff.utils.error_handling import (
    DuplicatePeriodException,
    PayrollNotFoundException,
    StaffNotFoundException,
    ValidationException,
)
from farmstaff.utils.permissions import (
    Principal,
    StaffPermission,
    require_admin,
    require_self_or_elevated,
    visible_staff_scope,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"salary", "paid_on", "bonus", "deductions"}


def _to_money(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"))


class PayrollService:
    """Service for payroll records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, payroll_id: uuid.UUID) -> Payroll:
        result = await self.db.execute(
            select(Payroll)
            .options(selectinload(Payroll.staff))
            .where(Payroll.id == payroll_id)
            .execution_options(populate_existing=True)
        )
        payroll = result.scalar_one_or_none()
        if not payroll:
            raise PayrollNotFoundException(payroll_id)
        return payroll

    async def _period_taken(
        self,
        staff_id: uuid.UUID,
        pay_period: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> bool:
        query = select(func.count(Payroll.id)).where(
            Payroll.staff_id == staff_id,
            Payroll.pay_period == pay_period,
        )
        if exclude_id is not None:
            query = query.where(Payroll.id != exclude_id)
        result = await self.db.execute(query)
        return (result.scalar() or 0) > 0

    async def _commit_period(self, staff_id: uuid.UUID, pay_period: str) -> None:
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicatePeriodException(staff_id, pay_period, original_error=e)

    async def create_payroll(
        self,
        principal: Optional[Principal],
        staff_id: uuid.UUID,
        salary: Decimal,
        paid_on: date,
        bonus: Decimal = Decimal("0"),
        deductions: Decimal = Decimal("0"),
    ) -> Payroll:
        """
        Record a payment for a staff member.

        Raises:
            StaffNotFoundException: Unknown staff
            DuplicatePeriodException: A record already exists for that month
        """
        principal = require_admin(principal)

        staff = await self.db.get(Staff, staff_id)
        if not staff:
            raise StaffNotFoundException(staff_id)

        pay_period = pay_period_for(paid_on)
        if await self._period_taken(staff_id, pay_period):
            raise DuplicatePeriodException(staff_id, pay_period)

        payroll = Payroll(
            staff_id=staff_id,
            salary=_to_money(salary),
            bonus=_to_money(bonus),
            deductions=_to_money(deductions),
            paid_on=paid_on,
            pay_period=pay_period,
        )
        self.db.add(payroll)
        await self._commit_period(staff_id, pay_period)

        logger.info(f"Payroll {payroll.id} created for staff {staff_id} ({pay_period}) by {principal.id}")
        return await self._load(payroll.id)

    async def update_payroll(
        self,
        principal: Optional[Principal],
        payroll_id: uuid.UUID,
        **changes: Any,
    ) -> Payroll:
        """Edit a payroll record; moving it into an occupied month is refused."""
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationException(f"Cannot update fields: {', '.join(sorted(unknown))}")

        require_admin(principal)
        payroll = await self._load(payroll_id)
        changes = {key: value for key, value in changes.items() if value is not None}

        if "paid_on" in changes:
            pay_period = pay_period_for(changes["paid_on"])
            if pay_period != payroll.pay_period and await self._period_taken(
                payroll.staff_id, pay_period, exclude_id=payroll.id
            ):
                raise DuplicatePeriodException(payroll.staff_id, pay_period)
            payroll.paid_on = changes["paid_on"]
            payroll.pay_period = pay_period

        for field in ("salary", "bonus", "deductions"):
            if field in changes:
                setattr(payroll, field, _to_money(changes[field]))

        await self._commit_period(payroll.staff_id, payroll.pay_period)

        logger.info(f"Payroll {payroll_id} updated")
        return await self._load(payroll_id)

    async def delete_payroll(self, principal: Optional[Principal], payroll_id: uuid.UUID) -> None:
        require_admin(principal)
        payroll = await self._load(payroll_id)
        await self.db.delete(payroll)
        await self.db.commit()
        logger.info(f"Payroll {payroll_id} deleted")

    async def list_payroll(
        self,
        principal: Optional[Principal],
        filters: Optional[PayrollFilters] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Payroll], int]:
        """
        List payroll records, latest payment first.

        ``start_month``/``end_month`` are inclusive and match whole months.
        """
        filters = filters or PayrollFilters()
        staff_scope = visible_staff_scope(principal, filters.staff_id, StaffPermission.VIEW_ALL_PAYROLL)

        conditions = []
        if staff_scope is not None:
            conditions.append(Payroll.staff_id == staff_scope)
        if filters.start_month:
            first_day, _ = month_bounds(filters.start_month.year, filters.start_month.month)
            conditions.append(Payroll.paid_on >= first_day)
        if filters.end_month:
            _, last_day = month_bounds(filters.end_month.year, filters.end_month.month)
            conditions.append(Payroll.paid_on <= last_day)
        if filters.search:
            conditions.append(Staff.name.ilike(f"%{filters.search}%"))

        where_clause = and_(*conditions) if conditions else true()

        count_result = await self.db.execute(
            select(func.count(Payroll.id))
            .join(Staff, Staff.id == Payroll.staff_id)
            .where(where_clause)
        )
        total = count_result.scalar() or 0

        result = await self.db.execute(
            select(Payroll)
            .join(Staff, Staff.id == Payroll.staff_id)
            .options(selectinload(Payroll.staff))
            .where(where_clause)
            .order_by(Payroll.paid_on.desc(), Payroll.created_at.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return list(result.scalars().all()), total

    async def get_staff_payroll(
        self,
        principal: Optional[Principal],
        staff_id: uuid.UUID,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[Payroll]:
        require_self_or_elevated(principal, staff_id)

        query = (
            select(Payroll)
            .options(selectinload(Payroll.staff))
            .where(Payroll.staff_id == staff_id)
        )
        if start:
            query = query.where(Payroll.paid_on >= start)
        if end:
            query = query.where(Payroll.paid_on <= end)

        result = await self.db.execute(query.order_by(Payroll.paid_on.desc()))
        return list(result.scalars().all())
