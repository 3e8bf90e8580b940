"""
FarmStaff - Routers Package

FastAPI route handlers.

Routers:
- staff: Staff directory
- invites: Staff invitations and registration
- leave: Leave requests, balances and calendar
- attendance: Daily check-in/check-out
- payroll: Monthly payroll records
- notifications: In-app notifications
"""

from farmstaff.routers import (
    staff,
    invites,
    leave,
    attendance,
    payroll,
    notifications,
)

__all__ = [
    "staff",
    "invites",
    "leave",
    "attendance",
    "payroll",
    "notifications",
]
