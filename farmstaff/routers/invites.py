"""
FarmStaff - Invitations Router

Admin endpoints to manage invitations plus the two public endpoints used by
the registration page (verify and accept).
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from farmstaff.database import get_async_session
from farmstaff.dependencies import get_current_principal
from farmstaff.schemas.invite import (
    InviteAccept,
    InviteCreate,
    InviteResponse,
    InviteVerification,
)
from farmstaff.schemas.staff import StaffResponse
from farmstaff.services.invite_service import InviteService
from farmstaff.utils.permissions import Principal
from farmstaff.utils.responses import respond


router = APIRouter()


@router.post("", summary="Invite a new staff member")
async def create_invite(
    data: InviteCreate,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        InviteService(db).create_invite(principal, data.email, data.role),
        failure_message="Failed to send invitation",
        success_message="Invitation sent successfully",
        serializer=InviteResponse,
        success_status=status.HTTP_201_CREATED,
    )


@router.get("", summary="List invitations")
async def list_invites(
    created_by_id: Optional[uuid.UUID] = Query(None),
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        InviteService(db).list_invites(principal, created_by_id=created_by_id),
        failure_message="Failed to fetch invitations",
        serializer=InviteResponse,
    )


@router.get("/verify/{token}", summary="Check an invitation token")
async def verify_invite_token(
    token: str,
    db: AsyncSession = Depends(get_async_session),
):
    return await respond(
        db,
        InviteService(db).verify_invite_token(token),
        failure_message="Failed to verify invitation",
        serializer=InviteVerification,
    )


@router.post("/accept", summary="Register through an invitation")
async def accept_invite(
    data: InviteAccept,
    db: AsyncSession = Depends(get_async_session),
):
    return await respond(
        db,
        InviteService(db).accept_invite(
            data.token,
            first_name=data.first_name,
            last_name=data.last_name,
            password=data.password,
            phone_number=data.phone_number,
        ),
        failure_message="Failed to accept invitation",
        success_message="Registration completed successfully",
        serializer=StaffResponse,
        success_status=status.HTTP_201_CREATED,
    )


@router.post("/{invite_id}/resend", summary="Resend an invitation")
async def resend_invite(
    invite_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        InviteService(db).resend_invite(principal, invite_id),
        failure_message="Failed to resend invitation",
        success_message="Invitation resent successfully",
        serializer=InviteResponse,
    )


@router.delete("/{invite_id}", summary="Cancel an invitation")
async def cancel_invite(
    invite_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        InviteService(db).cancel_invite(principal, invite_id),
        failure_message="Failed to cancel invitation",
        success_message="Invitation cancelled successfully",
    )
