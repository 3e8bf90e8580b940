"""
FarmStaff - Notification Model

Model for storing staff notifications.

Notification Types:
- Leave decisions (approved / rejected)
- Payroll updates
- Attendance notices
- Invitations and system announcements
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from farmstaff.models.base import BaseModel
from farmstaff.utils.dates import utcnow


class NotificationType(str, Enum):
    """Types of notifications."""
    GENERAL = "GENERAL"
    LEAVE = "LEAVE"
    PAYROLL = "PAYROLL"
    ATTENDANCE = "ATTENDANCE"
    INVITE = "INVITE"
    SYSTEM = "SYSTEM"


class Notification(BaseModel):
    """In-app notification for a staff member, optionally mirrored by email."""
    
    __tablename__ = "notifications"
    
    staff_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("staff.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    notification_type: Mapped[NotificationType] = mapped_column(
        SQLEnum(NotificationType, name="notification_type"),
        default=NotificationType.GENERAL,
        nullable=False,
        index=True,
    )
    
    # Status tracking
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    
    # Email delivery status
    email_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    email_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    
    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, type={self.notification_type}, staff={self.staff_id})>"
    
    def mark_as_read(self) -> None:
        """Mark notification as read."""
        if not self.is_read:
            self.is_read = True
            self.read_at = utcnow()
    
    def mark_email_sent(self) -> None:
        """Mark email as sent."""
        if not self.email_sent:
            self.email_sent = True
            self.email_sent_at = utcnow()
