"""
FarmStaff - Notification Schemas
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from farmstaff.models.notification import NotificationType


class NotificationResponse(BaseModel):
    id: UUID
    staff_id: UUID
    title: str
    message: str
    notification_type: NotificationType
    is_read: bool
    read_at: Optional[datetime] = None
    email_sent: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UnreadCount(BaseModel):
    unread_count: int
