"""
FarmStaff - Attendance Router
"""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from farmstaff.database import get_async_session
from farmstaff.dependencies import get_current_principal
from farmstaff.models.attendance import AttendanceStatus
from farmstaff.schemas.attendance import (
    AttendanceFilters,
    AttendanceResponse,
    AttendanceUpdate,
    CheckInRequest,
    CheckOutRequest,
)
from farmstaff.services.attendance_service import AttendanceService
from farmstaff.utils.permissions import Principal
from farmstaff.utils.responses import respond


router = APIRouter()


def _target(staff_id: Optional[uuid.UUID], principal: Optional[Principal]) -> Optional[uuid.UUID]:
    return staff_id or (principal.id if principal else None)


@router.post("/check-in", summary="Check in for today")
async def check_in(
    data: CheckInRequest,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        AttendanceService(db).check_in(principal, _target(data.staff_id, principal), location=data.location),
        failure_message="Failed to check in",
        success_message="Checked in successfully",
        serializer=AttendanceResponse,
        success_status=status.HTTP_201_CREATED,
    )


@router.post("/check-out", summary="Check out for today")
async def check_out(
    data: CheckOutRequest,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        AttendanceService(db).check_out(principal, _target(data.staff_id, principal), location=data.location),
        failure_message="Failed to check out",
        success_message="Checked out successfully",
        serializer=AttendanceResponse,
    )


@router.get("", summary="List attendance records")
async def list_attendance(
    staff_id: Optional[uuid.UUID] = Query(None),
    status_filter: Optional[AttendanceStatus] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None, description="Search by staff name"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    filters = AttendanceFilters(
        staff_id=staff_id,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    return await respond(
        db,
        AttendanceService(db).list_attendance(principal, filters, page=page, limit=limit),
        failure_message="Failed to fetch attendance records",
        serializer=AttendanceResponse,
        page=page,
        limit=limit,
    )


@router.get("/staff/{staff_id}", summary="Attendance of one staff member")
async def get_staff_attendance(
    staff_id: uuid.UUID,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        AttendanceService(db).get_staff_attendance(principal, staff_id, start=start_date, end=end_date),
        failure_message="Failed to fetch attendance records",
        serializer=AttendanceResponse,
    )


@router.patch("/{attendance_id}", summary="Correct an attendance record")
async def update_attendance(
    attendance_id: uuid.UUID,
    data: AttendanceUpdate,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        AttendanceService(db).update_attendance(
            principal, attendance_id, status=data.status, date=data.date
        ),
        failure_message="Failed to update attendance record",
        success_message="Attendance record updated successfully",
        serializer=AttendanceResponse,
    )


@router.delete("/{attendance_id}", summary="Delete an attendance record")
async def delete_attendance(
    attendance_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        AttendanceService(db).delete_attendance(principal, attendance_id),
        failure_message="Failed to delete attendance record",
        success_message="Attendance record deleted successfully",
    )
