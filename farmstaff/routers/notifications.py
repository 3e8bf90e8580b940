"""
FarmStaff - Notifications Router

In-app notifications of the calling staff member.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from farmstaff.database import get_async_session
from farmstaff.dependencies import get_current_principal
from farmstaff.schemas.notification import NotificationResponse, UnreadCount
from farmstaff.services.notification_service import NotificationService
from farmstaff.utils.permissions import Principal
from farmstaff.utils.responses import respond


router = APIRouter()


def _owner(staff_id: Optional[uuid.UUID], principal: Optional[Principal]) -> Optional[uuid.UUID]:
    return staff_id or (principal.id if principal else None)


@router.get("", summary="List notifications")
async def list_notifications(
    staff_id: Optional[uuid.UUID] = Query(None, description="Defaults to the caller"),
    unread_only: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        NotificationService(db).list_notifications(
            principal, _owner(staff_id, principal), unread_only=unread_only, page=page, limit=limit
        ),
        failure_message="Failed to fetch notifications",
        serializer=NotificationResponse,
        page=page,
        limit=limit,
    )


@router.get("/unread-count", summary="Number of unread notifications")
async def get_unread_count(
    staff_id: Optional[uuid.UUID] = Query(None),
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        NotificationService(db).get_unread_count(principal, _owner(staff_id, principal)),
        failure_message="Failed to count notifications",
        serializer=lambda count: UnreadCount(unread_count=count),
    )


@router.post("/read-all", summary="Mark all notifications as read")
async def mark_all_as_read(
    staff_id: Optional[uuid.UUID] = Query(None),
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        NotificationService(db).mark_all_as_read(principal, _owner(staff_id, principal)),
        failure_message="Failed to mark notifications as read",
        success_message="All notifications marked as read",
        serializer=lambda count: {"updated": count},
    )


@router.post("/{notification_id}/read", summary="Mark a notification as read")
async def mark_as_read(
    notification_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        NotificationService(db).mark_as_read(principal, notification_id),
        failure_message="Failed to mark notification as read",
        serializer=NotificationResponse,
    )


@router.delete("/{notification_id}", summary="Delete a notification")
async def delete_notification(
    notification_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        NotificationService(db).delete_notification(principal, notification_id),
        failure_message="Failed to delete notification",
        success_message="Notification deleted successfully",
    )
