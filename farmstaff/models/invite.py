"""
FarmStaff - Invite Model

Staff invitations. Status is computed from is_used and expires_at.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from farmstaff.models.base import BaseModel
from farmstaff.models.staff import StaffRole
from farmstaff.utils.dates import utcnow

if TYPE_CHECKING:
    from farmstaff.models.staff import Staff


class InviteStatus(str, Enum):
    """Computed invitation status."""
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    EXPIRED = "EXPIRED"


def compute_invite_status(
    is_used: bool,
    expires_at: datetime,
    now: Optional[datetime] = None,
) -> InviteStatus:
    """
    Status of an invitation at a given moment.
    
    An invite expiring exactly at `now` is still pending.
    """
    if is_used:
        return InviteStatus.ACCEPTED
    if expires_at < (now or utcnow()):
        return InviteStatus.EXPIRED
    return InviteStatus.PENDING


class Invite(BaseModel):
    """Invitation for a new system user."""
    
    __tablename__ = "invites"
    
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    role: Mapped[StaffRole] = mapped_column(
        SQLEnum(StaffRole, name="staff_role"),
        default=StaffRole.WORKER,
        nullable=False,
    )
    token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    is_used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    
    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("staff.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_by: Mapped[Optional["Staff"]] = relationship("Staff")
    
    @property
    def status(self) -> InviteStatus:
        return compute_invite_status(self.is_used, self.expires_at)
    
    def __repr__(self) -> str:
        return f"<Invite(email={self.email}, role={self.role}, used={self.is_used})>"
