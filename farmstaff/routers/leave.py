"""
FarmStaff - Leave Router

Leave requests, leave balances and the leave calendar.
Every endpoint answers with the ApiResponse envelope.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from farmstaff.database import get_async_session
from farmstaff.dependencies import get_current_principal
from farmstaff.models.leave import LeaveStatus, LeaveType
from farmstaff.schemas.leave import (
    LeaveBalanceCreate,
    LeaveBalanceResponse,
    LeaveBalanceSet,
    LeaveRejection,
    LeaveRequestCreate,
    LeaveRequestFilters,
    LeaveRequestResponse,
    LeaveRequestUpdate,
)
from farmstaff.services.leave_balance_service import LeaveBalanceService
from farmstaff.services.leave_service import LeaveService
from farmstaff.utils.permissions import Principal
from farmstaff.utils.responses import respond


router = APIRouter()


# ===========================================
# LEAVE REQUEST ENDPOINTS
# ===========================================

@router.post("/requests", summary="Create a leave request")
async def create_leave_request(
    data: LeaveRequestCreate,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    staff_id = data.staff_id or (principal.id if principal else None)
    return await respond(
        db,
        LeaveService(db).create_leave_request(
            principal,
            staff_id=staff_id,
            leave_type=data.leave_type,
            start_date=data.start_date,
            end_date=data.end_date,
            reason=data.reason,
        ),
        failure_message="Failed to create leave request",
        success_message="Leave request created successfully",
        serializer=LeaveRequestResponse,
        success_status=status.HTTP_201_CREATED,
    )


@router.get("/requests", summary="List leave requests")
async def list_leave_requests(
    staff_id: Optional[uuid.UUID] = Query(None),
    leave_type: Optional[LeaveType] = Query(None),
    status_filter: Optional[LeaveStatus] = Query(None, alias="status"),
    approver_id: Optional[uuid.UUID] = Query(None),
    search: Optional[str] = Query(None, description="Search by staff name"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    filters = LeaveRequestFilters(
        staff_id=staff_id,
        leave_type=leave_type,
        status=status_filter,
        approver_id=approver_id,
        search=search,
    )
    return await respond(
        db,
        LeaveService(db).list_leave_requests(principal, filters, page=page, limit=limit),
        failure_message="Failed to fetch leave requests",
        serializer=LeaveRequestResponse,
        page=page,
        limit=limit,
    )


@router.get("/calendar", summary="Approved leave for a month")
async def get_leave_calendar(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        LeaveService(db).get_leave_calendar(principal, year, month),
        failure_message="Failed to fetch leave calendar",
        serializer=LeaveRequestResponse,
    )


@router.get("/staff/{staff_id}/requests", summary="Leave requests of one staff member")
async def get_staff_leave_requests(
    staff_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        LeaveService(db).get_staff_leave_requests(principal, staff_id),
        failure_message="Failed to fetch leave requests",
        serializer=LeaveRequestResponse,
    )


@router.get("/requests/{leave_id}", summary="Get a leave request")
async def get_leave_request(
    leave_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        LeaveService(db).get_leave_request(principal, leave_id),
        failure_message="Failed to fetch leave request",
        serializer=LeaveRequestResponse,
    )


@router.patch("/requests/{leave_id}", summary="Update a pending leave request")
async def update_leave_request(
    leave_id: uuid.UUID,
    data: LeaveRequestUpdate,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        LeaveService(db).update_leave_request(
            principal, leave_id, **data.model_dump(exclude_unset=True)
        ),
        failure_message="Failed to update leave request",
        success_message="Leave request updated successfully",
        serializer=LeaveRequestResponse,
    )


@router.delete("/requests/{leave_id}", summary="Delete a pending leave request")
async def delete_leave_request(
    leave_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        LeaveService(db).delete_leave_request(principal, leave_id),
        failure_message="Failed to delete leave request",
        success_message="Leave request deleted successfully",
    )


@router.post("/requests/{leave_id}/approve", summary="Approve a leave request")
async def approve_leave_request(
    leave_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        LeaveService(db).approve_leave_request(principal, leave_id),
        failure_message="Failed to approve leave request",
        success_message="Leave request approved successfully",
        serializer=LeaveRequestResponse,
    )


@router.post("/requests/{leave_id}/reject", summary="Reject a leave request")
async def reject_leave_request(
    leave_id: uuid.UUID,
    data: Optional[LeaveRejection] = None,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        LeaveService(db).reject_leave_request(principal, leave_id, reason=data.reason if data else None),
        failure_message="Failed to reject leave request",
        success_message="Leave request rejected successfully",
        serializer=LeaveRequestResponse,
    )


@router.post("/requests/{leave_id}/cancel", summary="Cancel a pending leave request")
async def cancel_leave_request(
    leave_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        LeaveService(db).cancel_leave_request(principal, leave_id),
        failure_message="Failed to cancel leave request",
        success_message="Leave request cancelled successfully",
        serializer=LeaveRequestResponse,
    )


# ===========================================
# LEAVE BALANCE ENDPOINTS
# ===========================================

@router.get("/balances", summary="List leave balances")
async def list_leave_balances(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        LeaveBalanceService(db).list_leave_balances(principal, year=year),
        failure_message="Failed to fetch leave balances",
        serializer=LeaveBalanceResponse,
    )


@router.post("/balances", summary="Create a leave balance")
async def create_leave_balance(
    data: LeaveBalanceCreate,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        LeaveBalanceService(db).create_leave_balance(
            principal,
            staff_id=data.staff_id,
            year=data.year,
            total=data.total_leave_days,
            used=data.used_leave_days,
        ),
        failure_message="Failed to create leave balance",
        success_message="Leave balance created successfully",
        serializer=LeaveBalanceResponse,
        success_status=status.HTTP_201_CREATED,
    )


@router.get("/balances/staff/{staff_id}", summary="Get a staff member's leave balance")
async def get_leave_balance(
    staff_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        LeaveBalanceService(db).get_leave_balance(principal, staff_id),
        failure_message="Failed to fetch leave balance",
        serializer=LeaveBalanceResponse,
    )


@router.put("/balances/staff/{staff_id}", summary="Set a staff member's leave totals")
async def set_leave_balance_totals(
    staff_id: uuid.UUID,
    data: LeaveBalanceSet,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        LeaveBalanceService(db).set_leave_balance_totals(
            principal,
            staff_id=staff_id,
            year=data.year,
            total=data.total_leave_days,
            used=data.used_leave_days,
        ),
        failure_message="Failed to update leave balance",
        success_message="Leave balance updated successfully",
        serializer=LeaveBalanceResponse,
    )


@router.delete("/balances/{balance_id}", summary="Delete a leave balance")
async def delete_leave_balance(
    balance_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        LeaveBalanceService(db).delete_leave_balance(principal, balance_id),
        failure_message="Failed to delete leave balance",
        success_message="Leave balance deleted successfully",
    )
