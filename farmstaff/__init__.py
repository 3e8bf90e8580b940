"""
FarmStaff - Farm Staff Management

Staff directory, invitations, attendance, leave and payroll for farm teams.
"""

__version__ = "0.1.0"
