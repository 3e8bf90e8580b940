"""
FarmStaff - Staff Model

Farm staff directory with role-based access control.

Roles:
- Admin: Manages staff, approves leave, runs payroll
- Veterinarian: Elevated read access to staff, attendance and payroll
- Worker: Self-service only (own leave, attendance, payroll)
"""

from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, String, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from farmstaff.models.base import BaseModel


class StaffRole(str, Enum):
    """Staff roles used by the authorization guard."""
    ADMIN = "ADMIN"
    VETERINARIAN = "VETERINARIAN"
    WORKER = "WORKER"


class Staff(BaseModel):
    """
    Staff member.
    
    Staff are never hard-deleted while historical records (leave, attendance,
    payroll) point at them; they are deactivated instead.
    """
    
    __tablename__ = "staff"
    
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(201), nullable=False)
    
    # Workers without system access may have no email
    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
        index=True,
    )
    phone_number: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    
    role: Mapped[StaffRole] = mapped_column(
        SQLEnum(StaffRole, name="staff_role"),
        default=StaffRole.WORKER,
        nullable=False,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    
    # Only set for staff who registered through an invitation
    hashed_password: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
    
    @property
    def is_admin(self) -> bool:
        return self.role == StaffRole.ADMIN
    
    def __repr__(self) -> str:
        return f"<Staff(id={self.id}, name={self.name}, role={self.role})>"
