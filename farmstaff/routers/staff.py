"""
FarmStaff - Staff Router

Staff directory management.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from farmstaff.database import get_async_session
from farmstaff.dependencies import get_current_principal
from farmstaff.models.staff import StaffRole
from farmstaff.schemas.staff import (
    RoleChange,
    SortDirection,
    StaffCreate,
    StaffResponse,
    StaffSortField,
    StaffUpdate,
)
from farmstaff.services.staff_service import StaffService
from farmstaff.utils.permissions import Principal
from farmstaff.utils.responses import respond


router = APIRouter()


@router.get("", summary="List staff members")
async def list_staff(
    role: Optional[StaffRole] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Search by name, email or phone"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_field: StaffSortField = Query("created_at"),
    sort_direction: SortDirection = Query("desc"),
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        StaffService(db).list_staff(
            principal,
            role=role,
            is_active=is_active,
            search=search,
            page=page,
            limit=limit,
            sort_field=sort_field,
            sort_direction=sort_direction,
        ),
        failure_message="Failed to fetch staff",
        serializer=StaffResponse,
        page=page,
        limit=limit,
    )


@router.post("", summary="Create a staff member")
async def create_staff(
    data: StaffCreate,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        StaffService(db).create_staff(principal, data),
        failure_message="Failed to create staff member",
        success_message="Staff member created successfully",
        serializer=StaffResponse,
        success_status=status.HTTP_201_CREATED,
    )


@router.get("/{staff_id}", summary="Get a staff member")
async def get_staff(
    staff_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        StaffService(db).get_staff(principal, staff_id),
        failure_message="Failed to fetch staff member",
        serializer=StaffResponse,
    )


@router.patch("/{staff_id}", summary="Update a staff member")
async def update_staff(
    staff_id: uuid.UUID,
    data: StaffUpdate,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        StaffService(db).update_staff(principal, staff_id, data),
        failure_message="Failed to update staff member",
        success_message="Staff member updated successfully",
        serializer=StaffResponse,
    )


@router.put("/{staff_id}/role", summary="Change a staff member's role")
async def change_role(
    staff_id: uuid.UUID,
    data: RoleChange,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        StaffService(db).change_role(principal, staff_id, data.role),
        failure_message="Failed to change role",
        success_message="Role updated successfully",
        serializer=StaffResponse,
    )


@router.post("/{staff_id}/deactivate", summary="Deactivate a staff member")
async def deactivate_staff(
    staff_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        StaffService(db).deactivate_staff(principal, staff_id),
        failure_message="Failed to deactivate staff member",
        success_message="Staff member deactivated successfully",
        serializer=StaffResponse,
    )


@router.delete("/{staff_id}", summary="Delete a staff member without history")
async def delete_staff(
    staff_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        StaffService(db).delete_staff(principal, staff_id),
        failure_message="Failed to delete staff member",
        success_message="Staff member deleted successfully",
    )
