"""
FarmStaff - Leave Schemas

Pydantic schemas for leave requests, balances and the leave calendar.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from farmstaff.models.leave import LeaveStatus, LeaveType
from farmstaff.schemas.common import StaffSummary


# ===========================================
# LEAVE REQUEST SCHEMAS
# ===========================================

class LeaveRequestCreate(BaseModel):
    """
    Create leave request.

    ``staff_id`` defaults to the caller; admins may file on behalf of others.
    """
    staff_id: Optional[UUID] = None
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: Optional[str] = Field(None, max_length=2000)


class LeaveRequestUpdate(BaseModel):
    leave_type: Optional[LeaveType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: Optional[str] = Field(None, max_length=2000)


class LeaveRejection(BaseModel):
    reason: Optional[str] = Field(None, max_length=2000)


class LeaveRequestFilters(BaseModel):
    """Filters for listing leave requests."""
    staff_id: Optional[UUID] = None
    leave_type: Optional[LeaveType] = None
    status: Optional[LeaveStatus] = None
    approver_id: Optional[UUID] = None
    search: Optional[str] = None


class LeaveRequestResponse(BaseModel):
    """Leave request response."""
    id: UUID
    staff_id: UUID
    leave_type: LeaveType
    start_date: date
    end_date: date
    leave_days: int
    reason: Optional[str] = None
    status: LeaveStatus
    approved_by: Optional[UUID] = None
    decided_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    staff: Optional[StaffSummary] = None
    approver: Optional[StaffSummary] = None

    class Config:
        from_attributes = True


# ===========================================
# LEAVE BALANCE SCHEMAS
# ===========================================

class LeaveBalanceCreate(BaseModel):
    staff_id: UUID
    year: int = Field(..., ge=2000, le=2100)
    total_leave_days: int = Field(..., ge=0)
    used_leave_days: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_used(self) -> "LeaveBalanceCreate":
        if self.used_leave_days > self.total_leave_days:
            raise ValueError("Used leave days cannot exceed total leave days")
        return self


class LeaveBalanceSet(BaseModel):
    """Full replacement of a staff member's balance totals."""
    year: int = Field(..., ge=2000, le=2100)
    total_leave_days: int = Field(..., ge=0)
    used_leave_days: Optional[int] = Field(None, ge=0)


class LeaveBalanceResponse(BaseModel):
    id: UUID
    staff_id: UUID
    year: int
    total_leave_days: int
    used_leave_days: int
    remaining_leave_days: int
    updated_at: datetime
    staff: Optional[StaffSummary] = None

    class Config:
        from_attributes = True
