"""
FarmStaff - Payroll Service Tests
"""

from datetime import date
from decimal import Decimal

import pytest

from farmstaff.schemas.payroll import PayrollFilters
from farmstaff.services.payroll_service import PayrollService
from farmstaff.utils.error_handling import (
    DuplicatePeriodException,
    InsufficientPermissionsException,
    PayrollNotFoundException,
)


async def _pay(service, principal, staff, paid_on, salary="150000.00", **extra):
    return await service.create_payroll(
        principal,
        staff_id=staff.id,
        salary=Decimal(salary),
        paid_on=paid_on,
        **extra,
    )


class TestPayrollCreation:
    """One payroll record per staff member per month."""

    @pytest.mark.asyncio
    async def test_create_payroll(self, db_session, worker_staff, admin_principal):
        service = PayrollService(db_session)

        payroll = await _pay(
            service, admin_principal, worker_staff, date(2026, 1, 28),
            bonus=Decimal("20000"), deductions=Decimal("5000.50"),
        )

        assert payroll.pay_period == "2026-01"
        assert payroll.net_salary == Decimal("164999.50")
        assert payroll.staff.name == "Wale Adeyemi"

    @pytest.mark.asyncio
    async def test_second_payroll_same_month_rejected(self, db_session, worker_staff, admin_principal):
        service = PayrollService(db_session)
        await _pay(service, admin_principal, worker_staff, date(2026, 1, 5))

        with pytest.raises(DuplicatePeriodException) as exc_info:
            await _pay(service, admin_principal, worker_staff, date(2026, 1, 30))

        assert exc_info.value.message == "Payroll record already exists for this period"

    @pytest.mark.asyncio
    async def test_different_months_allowed(self, db_session, worker_staff, admin_principal):
        service = PayrollService(db_session)
        await _pay(service, admin_principal, worker_staff, date(2026, 1, 31))

        february = await _pay(service, admin_principal, worker_staff, date(2026, 2, 1))

        assert february.pay_period == "2026-02"

    @pytest.mark.asyncio
    async def test_same_month_for_different_staff(self, db_session, worker_staff, other_worker, admin_principal):
        service = PayrollService(db_session)
        await _pay(service, admin_principal, worker_staff, date(2026, 1, 31))

        other = await _pay(service, admin_principal, other_worker, date(2026, 1, 31))

        assert other.staff_id == other_worker.id

    @pytest.mark.asyncio
    async def test_only_admin_creates_payroll(self, db_session, worker_staff, vet_principal):
        service = PayrollService(db_session)

        with pytest.raises(InsufficientPermissionsException):
            await _pay(service, vet_principal, worker_staff, date(2026, 1, 31))


class TestPayrollUpdates:

    @pytest.mark.asyncio
    async def test_update_amounts(self, db_session, worker_staff, admin_principal):
        service = PayrollService(db_session)
        payroll = await _pay(service, admin_principal, worker_staff, date(2026, 3, 28))

        updated = await service.update_payroll(admin_principal, payroll.id, bonus=Decimal("1000"))

        assert updated.bonus == Decimal("1000.00")
        assert updated.net_salary == Decimal("151000.00")

    @pytest.mark.asyncio
    async def test_move_into_occupied_month_rejected(self, db_session, worker_staff, admin_principal):
        service = PayrollService(db_session)
        await _pay(service, admin_principal, worker_staff, date(2026, 3, 28))
        april = await _pay(service, admin_principal, worker_staff, date(2026, 4, 28))

        with pytest.raises(DuplicatePeriodException):
            await service.update_payroll(admin_principal, april.id, paid_on=date(2026, 3, 1))

    @pytest.mark.asyncio
    async def test_move_within_month(self, db_session, worker_staff, admin_principal):
        service = PayrollService(db_session)
        payroll = await _pay(service, admin_principal, worker_staff, date(2026, 3, 28))

        updated = await service.update_payroll(admin_principal, payroll.id, paid_on=date(2026, 3, 2))

        assert updated.paid_on == date(2026, 3, 2)
        assert updated.pay_period == "2026-03"

    @pytest.mark.asyncio
    async def test_delete_payroll(self, db_session, worker_staff, admin_principal):
        service = PayrollService(db_session)
        payroll = await _pay(service, admin_principal, worker_staff, date(2026, 3, 28))

        await service.delete_payroll(admin_principal, payroll.id)

        with pytest.raises(PayrollNotFoundException):
            await service.update_payroll(admin_principal, payroll.id, bonus=Decimal("1"))


class TestPayrollQueries:

    @pytest.mark.asyncio
    async def test_list_by_month_range(self, db_session, worker_staff, admin_principal):
        service = PayrollService(db_session)
        for month in (1, 2, 3, 4):
            await _pay(service, admin_principal, worker_staff, date(2026, month, 15))

        items, total = await service.list_payroll(
            admin_principal,
            PayrollFilters(start_month=date(2026, 2, 20), end_month=date(2026, 3, 1)),
        )

        assert total == 2
        assert [item.pay_period for item in items] == ["2026-03", "2026-02"]

    @pytest.mark.asyncio
    async def test_worker_sees_only_own_payroll(
        self, db_session, worker_staff, other_worker, admin_principal, worker_principal, vet_principal
    ):
        service = PayrollService(db_session)
        await _pay(service, admin_principal, worker_staff, date(2026, 1, 31))
        await _pay(service, admin_principal, other_worker, date(2026, 1, 31))

        _, total = await service.list_payroll(vet_principal)
        assert total == 2

        items, total = await service.list_payroll(worker_principal)
        assert total == 1
        assert items[0].staff_id == worker_staff.id

        with pytest.raises(InsufficientPermissionsException):
            await service.get_staff_payroll(worker_principal, other_worker.id)

    @pytest.mark.asyncio
    async def test_search_by_staff_name(self, db_session, worker_staff, other_worker, admin_principal):
        service = PayrollService(db_session)
        await _pay(service, admin_principal, worker_staff, date(2026, 1, 31))
        await _pay(service, admin_principal, other_worker, date(2026, 1, 31))

        items, total = await service.list_payroll(admin_principal, PayrollFilters(search="grace"))

        assert total == 1
        assert items[0].staff_id == other_worker.id
