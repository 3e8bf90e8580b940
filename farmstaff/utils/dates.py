"""
FarmStaff - Date Helpers

Calendar arithmetic shared by leave, attendance and payroll.
All datetimes are naive UTC.
"""

import calendar
from datetime import date, datetime, timezone
from typing import Tuple


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    """Current UTC calendar day."""
    return utcnow().date()


def inclusive_day_count(start_date: date, end_date: date) -> int:
    """
    Number of calendar days covered by [start_date, end_date].
    
    A range that starts and ends on the same day counts as one day.
    """
    return (end_date - start_date).days + 1


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last day of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def pay_period_for(value: date) -> str:
    """Pay period key (YYYY-MM) for a payment date."""
    return f"{value.year:04d}-{value.month:02d}"
