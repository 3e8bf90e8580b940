"""
FarmStaff - Permissions System

Role-based access for staff operations. Every service operation receives an
explicit ``Principal`` and calls one of the guards below before it reads or
writes anything.

Permission Matrix:
==================

| Permission                | Admin | Veterinarian | Worker |
|---------------------------|-------|--------------|--------|
| manage_staff              | X     |              |        |
| manage_invites            | X     |              |        |
| view_all_staff            | X     | X            |        |
| decide_leave              | X     |              |        |
| view_all_leave            | X     |              |        |
| manage_leave_balances     | X     |              |        |
| manage_attendance         | X     |              |        |
| view_all_attendance       | X     | X            |        |
| manage_payroll            | X     |              |        |
| view_all_payroll          | X     | X            |        |

Workers (and every role) may always act on their own records.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Set
from uuid import UUID

from farmstaff.models.staff import StaffRole
from farmstaff.utils.error_handling import (
    AccountDisabledException,
    AuthenticationException,
    InsufficientPermissionsException,
)


# ===========================================
# PRINCIPAL
# ===========================================

@dataclass(frozen=True)
class Principal:
    """The authenticated caller of a service operation."""

    id: UUID
    role: StaffRole
    is_active: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == StaffRole.ADMIN

    @classmethod
    def from_staff(cls, staff) -> "Principal":
        return cls(id=staff.id, role=staff.role, is_active=staff.is_active)


# ===========================================
# PERMISSION ENUMS
# ===========================================

class StaffPermission(str, Enum):
    """Permissions for farm staff roles."""

    MANAGE_STAFF = "manage_staff"
    MANAGE_INVITES = "manage_invites"
    VIEW_ALL_STAFF = "view_all_staff"
    DECIDE_LEAVE = "decide_leave"
    VIEW_ALL_LEAVE = "view_all_leave"
    MANAGE_LEAVE_BALANCES = "manage_leave_balances"
    MANAGE_ATTENDANCE = "manage_attendance"
    VIEW_ALL_ATTENDANCE = "view_all_attendance"
    MANAGE_PAYROLL = "manage_payroll"
    VIEW_ALL_PAYROLL = "view_all_payroll"


ROLE_PERMISSIONS = {
    StaffRole.ADMIN: set(StaffPermission),
    StaffRole.VETERINARIAN: {
        StaffPermission.VIEW_ALL_STAFF,
        StaffPermission.VIEW_ALL_ATTENDANCE,
        StaffPermission.VIEW_ALL_PAYROLL,
    },
    StaffRole.WORKER: set(),
}

# Roles that may read other staff members' records
ELEVATED_READER_ROLES = {StaffRole.ADMIN, StaffRole.VETERINARIAN}


def get_role_permissions(role: StaffRole) -> Set[StaffPermission]:
    """Get all permissions for a staff role."""
    return ROLE_PERMISSIONS.get(role, set())


def has_permission(role: StaffRole, permission: StaffPermission) -> bool:
    """Check if a staff role has a specific permission."""
    return permission in get_role_permissions(role)


# ===========================================
# GUARDS
# ===========================================

def require_principal(principal: Optional[Principal]) -> Principal:
    """Ensure there is an active caller."""
    if principal is None:
        raise AuthenticationException()
    if not principal.is_active:
        raise AccountDisabledException()
    return principal


def require_admin(principal: Optional[Principal]) -> Principal:
    """Ensure the caller is an active admin."""
    principal = require_principal(principal)
    if principal.role != StaffRole.ADMIN:
        raise InsufficientPermissionsException(
            message="Only administrators can perform this action",
            required_role=StaffRole.ADMIN.value,
        )
    return principal


def require_self_or_admin(principal: Optional[Principal], staff_id: UUID) -> Principal:
    """Ensure the caller acts on their own data or is an admin."""
    principal = require_principal(principal)
    if principal.id != staff_id and principal.role != StaffRole.ADMIN:
        raise InsufficientPermissionsException(
            message="You can only access your own records",
        )
    return principal


def require_elevated_reader(principal: Optional[Principal]) -> Principal:
    """Ensure the caller may read every staff member's records."""
    principal = require_principal(principal)
    if principal.role not in ELEVATED_READER_ROLES:
        raise InsufficientPermissionsException(
            message="Only administrators and veterinarians can view all records",
        )
    return principal


def require_self_or_elevated(principal: Optional[Principal], staff_id: UUID) -> Principal:
    """Ensure the caller reads their own data or is an elevated reader."""
    principal = require_principal(principal)
    if principal.id != staff_id and principal.role not in ELEVATED_READER_ROLES:
        raise InsufficientPermissionsException(
            message="You can only access your own records",
        )
    return principal


def visible_staff_scope(
    principal: Optional[Principal],
    staff_id: Optional[UUID] = None,
    permission: StaffPermission = StaffPermission.VIEW_ALL_LEAVE,
) -> Optional[UUID]:
    """
    Resolve the staff filter a list query is limited to.

    Callers holding ``permission`` keep the requested filter (``None`` means
    everyone). Everyone else is pinned to their own id, and asking for
    another staff member's records is refused.
    """
    principal = require_principal(principal)
    if has_permission(principal.role, permission):
        return staff_id
    if staff_id is not None and staff_id != principal.id:
        raise InsufficientPermissionsException(
            message="You can only access your own records",
        )
    return principal.id
