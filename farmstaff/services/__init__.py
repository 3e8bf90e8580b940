"""
FarmStaff - Services Package

Business logic services.
"""

from farmstaff.services.email_service import EmailService
from farmstaff.services.notification_service import NotificationService
from farmstaff.services.staff_service import StaffService
from farmstaff.services.invite_service import InviteService
from farmstaff.services.leave_balance_service import LeaveBalanceService
from farmstaff.services.leave_service import LeaveService
from farmstaff.services.attendance_service import AttendanceService
from farmstaff.services.payroll_service import PayrollService

__all__ = [
    "EmailService",
    "NotificationService",
    "StaffService",
    "InviteService",
    "LeaveBalanceService",
    "LeaveService",
    "AttendanceService",
    "PayrollService",
]
