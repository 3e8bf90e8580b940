"""
FarmStaff - Attendance Model

Daily check-in / check-out records.
"""

import datetime as dt
import uuid
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Uuid,
    Enum as SQLEnum,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from farmstaff.models.base import BaseModel

if TYPE_CHECKING:
    from farmstaff.models.staff import Staff


class AttendanceStatus(str, Enum):
    """Attendance states. PRESENT while checked in, CHECKED_OUT afterwards."""
    PRESENT = "PRESENT"
    CHECKED_OUT = "CHECKED_OUT"
    ABSENT = "ABSENT"
    ON_LEAVE = "ON_LEAVE"


class Attendance(BaseModel):
    """
    Attendance record for one staff member on one day.
    
    At most one open record (check_out IS NULL) may exist per staff member
    per day; a partial unique index backs the check made on check-in.
    """
    
    __tablename__ = "attendance"
    __table_args__ = (
        Index(
            "uq_attendance_open_per_day",
            "staff_id",
            "date",
            unique=True,
            postgresql_where=text("check_out IS NULL"),
            sqlite_where=text("check_out IS NULL"),
        ),
    )
    
    staff_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("staff.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    check_in: Mapped[Optional[dt.datetime]] = mapped_column(DateTime, nullable=True)
    check_out: Mapped[Optional[dt.datetime]] = mapped_column(DateTime, nullable=True)
    hours: Mapped[Optional[Decimal]] = mapped_column(Numeric(6, 2), nullable=True)
    status: Mapped[AttendanceStatus] = mapped_column(
        SQLEnum(AttendanceStatus, name="attendance_status"),
        default=AttendanceStatus.PRESENT,
        nullable=False,
    )
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    
    staff: Mapped["Staff"] = relationship("Staff")
    
    @property
    def is_open(self) -> bool:
        return self.check_out is None
    
    def __repr__(self) -> str:
        return f"<Attendance(staff={self.staff_id}, date={self.date}, status={self.status})>"
