"""
FarmStaff - Notification Service Tests
"""

import pytest

from farmstaff.models.notification import NotificationType
from farmstaff.services.notification_service import NotificationService
from farmstaff.utils.error_handling import InsufficientPermissionsException


class TestNotificationService:

    @pytest.mark.asyncio
    async def test_unread_count_and_mark_all(self, db_session, worker_staff, worker_principal):
        service = NotificationService(db_session)
        for title in ("Rota changed", "Vaccination day"):
            await service.create_notification(worker_staff.id, title, "See the noticeboard")

        assert await service.get_unread_count(worker_principal, worker_staff.id) == 2

        updated = await service.mark_all_as_read(worker_principal, worker_staff.id)

        assert updated == 2
        assert await service.get_unread_count(worker_principal, worker_staff.id) == 0

    @pytest.mark.asyncio
    async def test_email_copy_flag(self, db_session, worker_staff):
        service = NotificationService(db_session)

        notification = await service.create_notification(
            worker_staff.id,
            "Payslip ready",
            "Your January payslip is ready",
            notification_type=NotificationType.PAYROLL,
            send_email=True,
            email_address=worker_staff.email,
        )

        assert notification.email_sent is True

    @pytest.mark.asyncio
    async def test_list_unread_only(self, db_session, worker_staff, worker_principal):
        service = NotificationService(db_session)
        first = await service.create_notification(worker_staff.id, "One", "first")
        await service.create_notification(worker_staff.id, "Two", "second")
        await service.mark_as_read(worker_principal, first.id)

        items, total = await service.list_notifications(worker_principal, worker_staff.id, unread_only=True)

        assert total == 1
        assert items[0].title == "Two"

    @pytest.mark.asyncio
    async def test_colleague_cannot_read(self, db_session, worker_staff, other_principal):
        service = NotificationService(db_session)
        notification = await service.create_notification(worker_staff.id, "Private", "private")

        with pytest.raises(InsufficientPermissionsException):
            await service.list_notifications(other_principal, worker_staff.id)
        with pytest.raises(InsufficientPermissionsException):
            await service.delete_notification(other_principal, notification.id)
