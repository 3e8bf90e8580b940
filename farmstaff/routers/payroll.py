"""
FarmStaff - Payroll Router

API endpoints for monthly payroll records.
"""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from farmstaff.database import get_async_session
from farmstaff.dependencies import get_current_principal
from farmstaff.schemas.payroll import (
    PayrollCreate,
    PayrollFilters,
    PayrollResponse,
    PayrollUpdate,
)
from farmstaff.services.payroll_service import PayrollService
from farmstaff.utils.permissions import Principal
from farmstaff.utils.responses import respond


router = APIRouter()


@router.post("", summary="Record a payroll payment")
async def create_payroll(
    data: PayrollCreate,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        PayrollService(db).create_payroll(
            principal,
            staff_id=data.staff_id,
            salary=data.salary,
            paid_on=data.paid_on,
            bonus=data.bonus,
            deductions=data.deductions,
        ),
        failure_message="Failed to create payroll record",
        success_message="Payroll record created successfully",
        serializer=PayrollResponse,
        success_status=status.HTTP_201_CREATED,
    )


@router.get("", summary="List payroll records")
async def list_payroll(
    staff_id: Optional[uuid.UUID] = Query(None),
    start_month: Optional[date] = Query(None, description="Any day in the first month"),
    end_month: Optional[date] = Query(None, description="Any day in the last month"),
    search: Optional[str] = Query(None, description="Search by staff name"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    filters = PayrollFilters(
        staff_id=staff_id,
        start_month=start_month,
        end_month=end_month,
        search=search,
    )
    return await respond(
        db,
        PayrollService(db).list_payroll(principal, filters, page=page, limit=limit),
        failure_message="Failed to fetch payroll records",
        serializer=PayrollResponse,
        page=page,
        limit=limit,
    )


@router.get("/staff/{staff_id}", summary="Payroll history of one staff member")
async def get_staff_payroll(
    staff_id: uuid.UUID,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        PayrollService(db).get_staff_payroll(principal, staff_id, start=start_date, end=end_date),
        failure_message="Failed to fetch payroll records",
        serializer=PayrollResponse,
    )


@router.patch("/{payroll_id}", summary="Update a payroll record")
async def update_payroll(
    payroll_id: uuid.UUID,
    data: PayrollUpdate,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        PayrollService(db).update_payroll(principal, payroll_id, **data.model_dump(exclude_unset=True)),
        failure_message="Failed to update payroll record",
        success_message="Payroll record updated successfully",
        serializer=PayrollResponse,
    )


@router.delete("/{payroll_id}", summary="Delete a payroll record")
async def delete_payroll(
    payroll_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return await respond(
        db,
        PayrollService(db).delete_payroll(principal, payroll_id),
        failure_message="Failed to delete payroll record",
        success_message="Payroll record deleted successfully",
    )
