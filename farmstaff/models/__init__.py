"""
FarmStaff - Database Models

All SQLAlchemy ORM models for the application.
"""

from farmstaff.models.base import BaseModel, TimestampMixin
from farmstaff.models.staff import Staff, StaffRole
from farmstaff.models.leave import (
    ACTIVE_LEAVE_STATUSES,
    LeaveBalance,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
)
from farmstaff.models.attendance import Attendance, AttendanceStatus
from farmstaff.models.payroll import Payroll
from farmstaff.models.invite import Invite, InviteStatus, compute_invite_status
from farmstaff.models.notification import Notification, NotificationType

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "Staff",
    "StaffRole",
    "LeaveRequest",
    "LeaveBalance",
    "LeaveStatus",
    "LeaveType",
    "ACTIVE_LEAVE_STATUSES",
    "Attendance",
    "AttendanceStatus",
    "Payroll",
    "Invite",
    "InviteStatus",
    "compute_invite_status",
    "Notification",
    "NotificationType",
]
