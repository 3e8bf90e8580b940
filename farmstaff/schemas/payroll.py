"""
FarmStaff - Payroll Schemas

Pydantic schemas for payroll requests and responses.
Net salary is always derived, never accepted as input.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from farmstaff.schemas.common import StaffSummary


class PayrollCreate(BaseModel):
    """Create payroll request."""
    staff_id: UUID
    salary: Decimal = Field(..., ge=0, decimal_places=2)
    paid_on: date
    bonus: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    deductions: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)


class PayrollUpdate(BaseModel):
    """Update payroll request."""
    salary: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    paid_on: Optional[date] = None
    bonus: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    deductions: Optional[Decimal] = Field(None, ge=0, decimal_places=2)


class PayrollFilters(BaseModel):
    staff_id: Optional[UUID] = None
    start_month: Optional[date] = None
    end_month: Optional[date] = None
    search: Optional[str] = None


class PayrollResponse(BaseModel):
    """Payroll record response."""
    id: UUID
    staff_id: UUID
    salary: Decimal
    bonus: Decimal
    deductions: Decimal
    net_salary: Decimal
    paid_on: date
    pay_period: str
    created_at: datetime
    updated_at: datetime
    staff: Optional[StaffSummary] = None

    class Config:
        from_attributes = True
