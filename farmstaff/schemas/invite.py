"""
FarmStaff - Invitation Schemas
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from farmstaff.models.invite import InviteStatus
from farmstaff.models.staff import StaffRole


class InviteCreate(BaseModel):
    email: EmailStr
    role: StaffRole = StaffRole.WORKER


class InviteAccept(BaseModel):
    """Registration form submitted with an invitation token."""
    token: str = Field(..., min_length=1)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=8, max_length=128)
    phone_number: Optional[str] = Field(None, max_length=30)


class InviteResponse(BaseModel):
    """Invitation as shown to admins. The token is never exposed."""
    id: UUID
    email: str
    role: StaffRole
    status: InviteStatus
    expires_at: datetime
    is_used: bool
    created_by_id: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InviteVerification(BaseModel):
    """Public view of a valid invitation."""
    email: str
    role: StaffRole
    expires_at: datetime

    class Config:
        from_attributes = True
