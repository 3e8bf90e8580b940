"""
FarmStaff - Staff Directory Service

Staff CRUD with soft delete. A staff member with any history (leave,
balance, attendance, payroll, approvals, invitations sent) can only be
deactivated; hard delete is reserved for records created by mistake.
"""

import uuid
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, func, and_, or_, true, delete
from sqlalchemy.ext.asyncio import AsyncSession

from farmstaff.models.attendance import Attendance
from farmstaff.models.invite import Invite
from farmstaff.models.leave import LeaveBalance, LeaveRequest
from farmstaff.models.notification import Notification
from farmstaff.models.payroll import Payroll
from farmstaff.models.staff import Staff, StaffRole
from farmstaff.schemas.staff import StaffCreate, StaffUpdate
from farmstaff.utils.error_handling import (
    CannotDeleteException,
    DuplicateEntryException,
    InsufficientPermissionsException,
    StaffNotFoundException,
    ValidationException,
)
from farmstaff.utils.permissions import (
    Principal,
    require_admin,
    require_elevated_reader,
    require_self_or_admin,
    require_self_or_elevated,
)

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "name": Staff.name,
    "first_name": Staff.first_name,
    "last_name": Staff.last_name,
    "email": Staff.email,
    "role": Staff.role,
    "created_at": Staff.created_at,
}


def display_name(first_name: str, last_name: str) -> str:
    return f"{first_name.strip()} {last_name.strip()}".strip()


class StaffService:
    """Service for the staff directory."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get(self, staff_id: uuid.UUID) -> Staff:
        staff = await self.db.get(Staff, staff_id, populate_existing=True)
        if not staff:
            raise StaffNotFoundException(staff_id)
        return staff

    async def _ensure_email_free(self, email: Optional[str], exclude_id: Optional[uuid.UUID] = None) -> None:
        if not email:
            return
        query = select(Staff.id).where(func.lower(Staff.email) == email.lower())
        if exclude_id is not None:
            query = query.where(Staff.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        if result.scalar_one_or_none():
            raise DuplicateEntryException("Email already registered", field="email", value=email)

    # ===========================================
    # QUERIES
    # ===========================================

    async def list_staff(
        self,
        principal: Optional[Principal],
        role: Optional[StaffRole] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
        sort_field: str = "created_at",
        sort_direction: str = "desc",
    ) -> Tuple[List[Staff], int]:
        """
        List staff members visible to admins and veterinarians.

        ``search`` matches name, email or phone number, case-insensitively.
        """
        require_elevated_reader(principal)

        column = SORT_FIELDS.get(sort_field)
        if column is None:
            raise ValidationException(f"Cannot sort by {sort_field}", field="sort_field")
        order = column.asc() if sort_direction == "asc" else column.desc()

        conditions = []
        if role is not None:
            conditions.append(Staff.role == role)
        if is_active is not None:
            conditions.append(Staff.is_active == is_active)
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(
                Staff.name.ilike(pattern),
                Staff.email.ilike(pattern),
                Staff.phone_number.ilike(pattern),
            ))
        where_clause = and_(*conditions) if conditions else true()

        count_result = await self.db.execute(select(func.count(Staff.id)).where(where_clause))
        total = count_result.scalar() or 0

        result = await self.db.execute(
            select(Staff)
            .where(where_clause)
            .order_by(order, Staff.id)
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return list(result.scalars().all()), total

    async def get_staff(self, principal: Optional[Principal], staff_id: uuid.UUID) -> Staff:
        require_self_or_elevated(principal, staff_id)
        return await self._get(staff_id)

    async def history_counts(self, staff_id: uuid.UUID) -> Dict[str, int]:
        """Number of records referencing a staff member, per kind."""
        queries = {
            "leave_requests": select(func.count(LeaveRequest.id)).where(LeaveRequest.staff_id == staff_id),
            "leave_approvals": select(func.count(LeaveRequest.id)).where(LeaveRequest.approved_by == staff_id),
            "leave_balances": select(func.count(LeaveBalance.id)).where(LeaveBalance.staff_id == staff_id),
            "attendance": select(func.count(Attendance.id)).where(Attendance.staff_id == staff_id),
            "payroll": select(func.count(Payroll.id)).where(Payroll.staff_id == staff_id),
            "invites": select(func.count(Invite.id)).where(Invite.created_by_id == staff_id),
        }
        counts = {}
        for name, query in queries.items():
            result = await self.db.execute(query)
            counts[name] = result.scalar() or 0
        return counts

    # ===========================================
    # MUTATIONS
    # ===========================================

    async def create_staff(self, principal: Optional[Principal], data: StaffCreate) -> Staff:
        principal = require_admin(principal)

        email = data.email.lower() if data.email else None
        await self._ensure_email_free(email)

        staff = Staff(
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            name=display_name(data.first_name, data.last_name),
            email=email,
            phone_number=data.phone_number,
            role=data.role,
            is_active=data.is_active,
        )
        self.db.add(staff)
        await self.db.commit()

        logger.info(f"Staff {staff.id} ({staff.role.value}) created by {principal.id}")
        return await self._get(staff.id)

    async def update_staff(
        self,
        principal: Optional[Principal],
        staff_id: uuid.UUID,
        data: StaffUpdate,
    ) -> Staff:
        """Update a staff member. Only admins may change role or active flag."""
        principal = require_self_or_admin(principal, staff_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if not principal.is_admin and ({"role", "is_active"} & set(changes)):
            raise InsufficientPermissionsException(
                message="Only administrators can change role or active status",
                required_role=StaffRole.ADMIN.value,
            )
        if principal.id == staff_id and changes.get("is_active") is False:
            raise ValidationException("You cannot deactivate your own account", field="is_active")

        staff = await self._get(staff_id)

        if "email" in changes:
            changes["email"] = changes["email"].lower()
            await self._ensure_email_free(changes["email"], exclude_id=staff_id)

        for field, value in changes.items():
            setattr(staff, field, value.strip() if field in ("first_name", "last_name") else value)
        if "first_name" in changes or "last_name" in changes:
            staff.name = display_name(staff.first_name, staff.last_name)

        await self.db.commit()
        logger.info(f"Staff {staff_id} updated by {principal.id}")
        return await self._get(staff_id)

    async def change_role(
        self,
        principal: Optional[Principal],
        staff_id: uuid.UUID,
        role: StaffRole,
    ) -> Staff:
        principal = require_admin(principal)
        staff = await self._get(staff_id)

        previous = staff.role
        staff.role = role
        await self.db.commit()

        logger.info(f"Staff {staff_id} role changed from {previous.value} to {role.value} by {principal.id}")
        return await self._get(staff_id)

    async def deactivate_staff(self, principal: Optional[Principal], staff_id: uuid.UUID) -> Staff:
        """Soft delete: the staff member and all their records are kept."""
        principal = require_admin(principal)
        if principal.id == staff_id:
            raise ValidationException("You cannot deactivate your own account")

        staff = await self._get(staff_id)
        staff.is_active = False
        await self.db.commit()

        logger.info(f"Staff {staff_id} deactivated by {principal.id}")
        return await self._get(staff_id)

    async def delete_staff(self, principal: Optional[Principal], staff_id: uuid.UUID) -> None:
        """
        Permanently remove a staff member without any history.

        Raises:
            CannotDeleteException: The staff member has historical records
        """
        principal = require_admin(principal)
        if principal.id == staff_id:
            raise ValidationException("You cannot delete your own account")

        staff = await self._get(staff_id)
        counts = await self.history_counts(staff_id)
        history = {name: count for name, count in counts.items() if count}
        if history:
            raise CannotDeleteException(
                "Staff member has historical records and cannot be deleted. Deactivate them instead.",
                details=history,
            )

        await self.db.execute(delete(Notification).where(Notification.staff_id == staff_id))
        await self.db.delete(staff)
        await self.db.commit()
        logger.info(f"Staff {staff_id} deleted by {principal.id}")
