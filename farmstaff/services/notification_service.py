"""
FarmStaff - Notification Service

Handles in-app notifications and their optional email copies.
"""

import uuid
import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, update, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from farmstaff.models.leave import LeaveRequest, LeaveStatus
from farmstaff.models.notification import Notification, NotificationType
from farmstaff.services.email_service import EmailService, EmailMessage
from farmstaff.utils.dates import utcnow
from farmstaff.utils.error_handling import NotificationNotFoundException
from farmstaff.utils.permissions import Principal, require_principal, require_self_or_admin

logger = logging.getLogger(__name__)


class NotificationService:
    """Service for managing staff notifications."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.email_service = EmailService()

    async def create_notification(
        self,
        staff_id: uuid.UUID,
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.GENERAL,
        send_email: bool = False,
        email_address: Optional[str] = None,
    ) -> Notification:
        """
        Create a new notification for a staff member.

        Email delivery failures are logged and never fail the notification.
        """
        notification = Notification(
            staff_id=staff_id,
            title=title,
            message=message,
            notification_type=notification_type,
            is_read=False,
            email_sent=False,
        )

        self.db.add(notification)
        await self.db.flush()

        logger.info(f"Notification created for staff {staff_id}: {title}")

        if send_email and email_address:
            email_sent = await self.email_service.send_email(EmailMessage(
                to=[email_address],
                subject=title,
                body_text=message,
            ))
            if email_sent:
                notification.mark_email_sent()
            else:
                logger.error(f"Failed to send email notification to {email_address}")

        await self.db.commit()
        return notification

    async def _get_owned(self, principal: Optional[Principal], notification_id: uuid.UUID) -> Notification:
        principal = require_principal(principal)
        result = await self.db.execute(
            select(Notification).where(Notification.id == notification_id)
        )
        notification = result.scalar_one_or_none()
        if not notification:
            raise NotificationNotFoundException(notification_id)
        require_self_or_admin(principal, notification.staff_id)
        return notification

    async def list_notifications(
        self,
        principal: Optional[Principal],
        staff_id: uuid.UUID,
        unread_only: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Notification], int]:
        """
        Get notifications for a staff member, newest first.

        Returns:
            Tuple of (notifications, total_count)
        """
        require_self_or_admin(principal, staff_id)

        filters = [Notification.staff_id == staff_id]
        if unread_only:
            filters.append(Notification.is_read == False)  # noqa: E712

        count_result = await self.db.execute(
            select(func.count(Notification.id)).where(*filters)
        )
        total = count_result.scalar() or 0

        result = await self.db.execute(
            select(Notification)
            .where(*filters)
            .order_by(Notification.created_at.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return list(result.scalars().all()), total

    async def get_unread_count(self, principal: Optional[Principal], staff_id: uuid.UUID) -> int:
        """Get count of unread notifications for a staff member."""
        require_self_or_admin(principal, staff_id)
        result = await self.db.execute(
            select(func.count(Notification.id))
            .where(Notification.staff_id == staff_id)
            .where(Notification.is_read == False)  # noqa: E712
        )
        return result.scalar() or 0

    async def mark_as_read(self, principal: Optional[Principal], notification_id: uuid.UUID) -> Notification:
        """Mark a notification as read."""
        notification = await self._get_owned(principal, notification_id)
        notification.mark_as_read()
        await self.db.commit()

        logger.info(f"Notification {notification_id} marked as read")
        return notification

    async def mark_all_as_read(self, principal: Optional[Principal], staff_id: uuid.UUID) -> int:
        """Mark all notifications as read for a staff member."""
        require_self_or_admin(principal, staff_id)

        result = await self.db.execute(
            update(Notification)
            .where(Notification.staff_id == staff_id)
            .where(Notification.is_read == False)  # noqa: E712
            .values(is_read=True, read_at=utcnow())
        )
        await self.db.commit()

        count = result.rowcount
        logger.info(f"Marked {count} notifications as read for staff {staff_id}")
        return count

    async def delete_notification(self, principal: Optional[Principal], notification_id: uuid.UUID) -> None:
        """Delete a notification."""
        await self._get_owned(principal, notification_id)
        await self.db.execute(
            delete(Notification).where(Notification.id == notification_id)
        )
        await self.db.commit()

    # ===========================================
    # CONVENIENCE METHODS FOR SPECIFIC NOTIFICATIONS
    # ===========================================

    async def notify_leave_decision(self, leave_request: LeaveRequest) -> Notification:
        """
        Notify a staff member that their leave request was decided.

        ``leave_request.staff`` must already be loaded.
        """
        staff = leave_request.staff
        decision = "approved" if leave_request.status == LeaveStatus.APPROVED else "rejected"
        title = f"Leave request {decision}"
        message = (
            f"Your {leave_request.leave_type.value.lower()} leave from "
            f"{leave_request.start_date.isoformat()} to {leave_request.end_date.isoformat()} "
            f"({leave_request.leave_days} days) has been {decision}."
        )

        notification = await self.create_notification(
            staff_id=leave_request.staff_id,
            title=title,
            message=message,
            notification_type=NotificationType.LEAVE,
        )

        if staff is not None and staff.email:
            email_sent = await self.email_service.send_leave_decision_email(
                to_email=staff.email,
                staff_name=staff.name,
                leave_type=leave_request.leave_type.value,
                start_date=leave_request.start_date,
                end_date=leave_request.end_date,
                decision=decision,
                reason=leave_request.reason if leave_request.status == LeaveStatus.REJECTED else None,
            )
            if email_sent:
                notification.mark_email_sent()
                await self.db.commit()

        return notification
