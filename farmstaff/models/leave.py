"""
FarmStaff - Leave Models

Leave requests and per-staff leave balances.

Lifecycle of a leave request:
    PENDING -> APPROVED | REJECTED | CANCELLED

All three outcomes are terminal. The balance is only touched when a request
is approved.
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    Uuid,
    Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from farmstaff.models.base import BaseModel
from farmstaff.utils.dates import inclusive_day_count

if TYPE_CHECKING:
    from farmstaff.models.staff import Staff


class LeaveType(str, Enum):
    """Kinds of leave a staff member can request."""
    SICK = "SICK"
    ANNUAL = "ANNUAL"
    MATERNITY = "MATERNITY"
    PATERNITY = "PATERNITY"
    CASUAL = "CASUAL"
    UNPAID = "UNPAID"


class LeaveStatus(str, Enum):
    """Leave request lifecycle states."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


# Requests in these states block overlapping requests
ACTIVE_LEAVE_STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED)


class LeaveRequest(BaseModel):
    """Leave request covering an inclusive range of calendar days."""
    
    __tablename__ = "leave_requests"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="date_order"),
    )
    
    staff_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("staff.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    leave_type: Mapped[LeaveType] = mapped_column(
        SQLEnum(LeaveType, name="leave_type"),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    status: Mapped[LeaveStatus] = mapped_column(
        SQLEnum(LeaveStatus, name="leave_status"),
        default=LeaveStatus.PENDING,
        nullable=False,
        index=True,
    )
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("staff.id", ondelete="SET NULL"),
        nullable=True,
    )
    decided_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    
    staff: Mapped["Staff"] = relationship("Staff", foreign_keys=[staff_id])
    approver: Mapped[Optional["Staff"]] = relationship("Staff", foreign_keys=[approved_by])
    
    @property
    def leave_days(self) -> int:
        """Inclusive number of days covered by the request."""
        return inclusive_day_count(self.start_date, self.end_date)
    
    def __repr__(self) -> str:
        return (
            f"<LeaveRequest(id={self.id}, staff={self.staff_id}, "
            f"{self.start_date}..{self.end_date}, status={self.status})>"
        )


class LeaveBalance(BaseModel):
    """
    Leave balance for a staff member.
    
    One row per staff member. remaining_leave_days always equals
    total_leave_days - used_leave_days; the database enforces it.
    """
    
    __tablename__ = "leave_balances"
    __table_args__ = (
        CheckConstraint(
            "remaining_leave_days = total_leave_days - used_leave_days",
            name="remaining_matches",
        ),
        CheckConstraint("total_leave_days >= 0", name="total_non_negative"),
    )
    
    staff_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("staff.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    total_leave_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    used_leave_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    remaining_leave_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    
    staff: Mapped["Staff"] = relationship("Staff")
    
    def __repr__(self) -> str:
        return (
            f"<LeaveBalance(staff={self.staff_id}, year={self.year}, "
            f"used={self.used_leave_days}/{self.total_leave_days})>"
        )
