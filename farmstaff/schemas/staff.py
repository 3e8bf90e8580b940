"""
FarmStaff - Staff Schemas

Pydantic schemas for the staff directory.
"""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from farmstaff.models.staff import StaffRole


StaffSortField = Literal["name", "first_name", "last_name", "email", "role", "created_at"]
SortDirection = Literal["asc", "desc"]


class StaffCreate(BaseModel):
    """Create staff request. Email is optional for workers without system access."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, max_length=30)
    role: StaffRole = StaffRole.WORKER
    is_active: bool = True


class StaffUpdate(BaseModel):
    """Update staff request. Only admins may change role or is_active."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, max_length=30)
    role: Optional[StaffRole] = None
    is_active: Optional[bool] = None


class RoleChange(BaseModel):
    role: StaffRole


class StaffResponse(BaseModel):
    """Staff member response."""
    id: UUID
    first_name: str
    last_name: str
    name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    role: StaffRole
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
