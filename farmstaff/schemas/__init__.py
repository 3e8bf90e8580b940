"""
FarmStaff - Schemas Package

Pydantic schemas for request/response validation.
"""

from farmstaff.schemas.common import ApiResponse, Pagination, StaffSummary
from farmstaff.schemas.staff import RoleChange, StaffCreate, StaffResponse, StaffUpdate
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
from farmstaff.schemas.attendance import (
    AttendanceFilters,
    AttendanceResponse,
    AttendanceUpdate,
    CheckInRequest,
    CheckOutRequest,
)
from farmstaff.schemas.payroll import (
    PayrollCreate,
    PayrollFilters,
    PayrollResponse,
    PayrollUpdate,
)
from farmstaff.schemas.invite import (
    InviteAccept,
    InviteCreate,
    InviteResponse,
    InviteVerification,
)
from farmstaff.schemas.notification import NotificationResponse, UnreadCount

__all__ = [
    "ApiResponse",
    "Pagination",
    "StaffSummary",
    "RoleChange",
    "StaffCreate",
    "StaffResponse",
    "StaffUpdate",
    "LeaveBalanceCreate",
    "LeaveBalanceResponse",
    "LeaveBalanceSet",
    "LeaveRejection",
    "LeaveRequestCreate",
    "LeaveRequestFilters",
    "LeaveRequestResponse",
    "LeaveRequestUpdate",
    "AttendanceFilters",
    "AttendanceResponse",
    "AttendanceUpdate",
    "CheckInRequest",
    "CheckOutRequest",
    "PayrollCreate",
    "PayrollFilters",
    "PayrollResponse",
    "PayrollUpdate",
    "InviteAccept",
    "InviteCreate",
    "InviteResponse",
    "InviteVerification",
    "NotificationResponse",
    "UnreadCount",
]
