"""
FarmStaff - Attendance Schemas
"""

import datetime as dt
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from farmstaff.models.attendance import AttendanceStatus
from farmstaff.schemas.common import StaffSummary


class CheckInRequest(BaseModel):
    staff_id: Optional[UUID] = None
    location: Optional[str] = Field(None, max_length=255)


class CheckOutRequest(BaseModel):
    staff_id: Optional[UUID] = None
    location: Optional[str] = Field(None, max_length=255)


class AttendanceUpdate(BaseModel):
    status: Optional[AttendanceStatus] = None
    date: Optional[dt.date] = None


class AttendanceFilters(BaseModel):
    staff_id: Optional[UUID] = None
    status: Optional[AttendanceStatus] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    search: Optional[str] = None


class AttendanceResponse(BaseModel):
    id: UUID
    staff_id: UUID
    date: dt.date
    check_in: Optional[dt.datetime] = None
    check_out: Optional[dt.datetime] = None
    hours: Optional[Decimal] = None
    status: AttendanceStatus
    location: Optional[str] = None
    created_at: dt.datetime
    staff: Optional[StaffSummary] = None

    class Config:
        from_attributes = True
