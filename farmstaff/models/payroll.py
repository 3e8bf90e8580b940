"""
FarmStaff - Payroll Model

Monthly payroll records. Net salary is derived, never stored.
"""

import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from farmstaff.models.base import BaseModel

if TYPE_CHECKING:
    from farmstaff.models.staff import Staff


class Payroll(BaseModel):
    """
    Payroll record for one staff member and one calendar month.
    
    pay_period (YYYY-MM) mirrors paid_on and carries the one-record-per-month
    unique constraint.
    """
    
    __tablename__ = "payroll"
    __table_args__ = (
        UniqueConstraint("staff_id", "pay_period", name="uq_payroll_staff_period"),
    )
    
    staff_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("staff.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    bonus: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    deductions: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    paid_on: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    pay_period: Mapped[str] = mapped_column(String(7), nullable=False)
    
    staff: Mapped["Staff"] = relationship("Staff")
    
    @property
    def net_salary(self) -> Decimal:
        """Salary plus bonus minus deductions."""
        return (self.salary or Decimal("0")) + (self.bonus or Decimal("0")) - (self.deductions or Decimal("0"))
    
    def __repr__(self) -> str:
        return f"<Payroll(staff={self.staff_id}, period={self.pay_period})>"
