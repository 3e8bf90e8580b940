"""
FarmStaff - Common Schemas

The response envelope shared by every endpoint.
"""

import math
from typing import Generic, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field

from farmstaff.models.staff import StaffRole


T = TypeVar("T")


class Pagination(BaseModel):
    """Pagination block attached to list responses."""
    page: int
    limit: int
    total: int
    total_pages: int = Field(..., serialization_alias="totalPages")

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = math.ceil(total / limit) if limit > 0 else 0
        return cls(page=page, limit=limit, total=total, total_pages=total_pages)


class ApiResponse(BaseModel, Generic[T]):
    """
    Envelope returned by every operation.

    ``code`` is only set on failures and carries the error code.
    """
    success: bool
    data: Optional[T] = None
    message: Optional[str] = None
    code: Optional[str] = None
    pagination: Optional[Pagination] = None


class StaffSummary(BaseModel):
    """Embedded staff reference on leave, attendance and payroll records."""
    id: UUID
    name: str
    email: Optional[str] = None
    role: StaffRole

    class Config:
        from_attributes = True
