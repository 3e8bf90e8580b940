"""
FarmStaff - Invitation Service

Admins invite new system users by email. Accepting an invitation registers
the staff member, marks the invitation used and opens a leave balance for
the current year with the role's default allowance.
"""

import uuid
import logging
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from farmstaff.config import settings
from farmstaff.models.invite import Invite, InviteStatus, compute_invite_status
from farmstaff.models.leave import LeaveBalance
from farmstaff.models.staff import Staff, StaffRole
from farmstaff.services.email_service import EmailService
from farmstaff.services.leave_balance_service import default_leave_days
from farmstaff.services.staff_service import display_name
from farmstaff.utils.dates import today, utcnow
from farmstaff.utils.error_handling import (
    DuplicateEntryException,
    EmailDeliveryException,
    InvalidInviteException,
    InviteNotFoundException,
)
from farmstaff.utils.permissions import Principal, require_admin
from farmstaff.utils.security import generate_invite_token, get_password_hash

logger = logging.getLogger(__name__)

__all__ = ["InviteService", "compute_invite_status"]


class InviteService:
    """Service for staff invitations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.email_service = EmailService()

    def _new_expiry(self):
        return utcnow() + timedelta(days=settings.invite_expire_days)

    async def _get(self, invite_id: uuid.UUID) -> Invite:
        invite = await self.db.get(Invite, invite_id)
        if not invite:
            raise InviteNotFoundException(invite_id)
        return invite

    async def _usable_invite(self, token: str, lock: bool = False) -> Invite:
        query = select(Invite).where(Invite.token == token)
        if lock:
            query = query.with_for_update()
        result = await self.db.execute(query)
        invite = result.scalar_one_or_none()

        if not invite:
            raise InvalidInviteException("Invalid invitation token")
        status = compute_invite_status(invite.is_used, invite.expires_at)
        if status == InviteStatus.ACCEPTED:
            raise InvalidInviteException("This invitation has already been used")
        if status == InviteStatus.EXPIRED:
            raise InvalidInviteException("This invitation has expired")
        return invite

    async def _staff_email_exists(self, email: str) -> bool:
        result = await self.db.execute(
            select(func.count(Staff.id)).where(func.lower(Staff.email) == email.lower())
        )
        return (result.scalar() or 0) > 0

    # ===========================================
    # ADMIN OPERATIONS
    # ===========================================

    async def create_invite(
        self,
        principal: Optional[Principal],
        email: str,
        role: StaffRole = StaffRole.WORKER,
    ) -> Invite:
        """
        Create an invitation and email it.

        If the email cannot be sent the invitation is removed again.

        Raises:
            DuplicateEntryException: Email belongs to staff or has a pending invite
            EmailDeliveryException: The invitation email was not sent
        """
        principal = require_admin(principal)
        email = email.lower()

        if await self._staff_email_exists(email):
            raise DuplicateEntryException(
                "A staff member with this email already exists", field="email", value=email
            )

        pending = await self.db.execute(
            select(func.count(Invite.id)).where(
                Invite.email == email,
                Invite.is_used == False,  # noqa: E712
                Invite.expires_at >= utcnow(),
            )
        )
        if pending.scalar():
            raise DuplicateEntryException(
                "An invitation has already been sent to this email", field="email", value=email
            )

        invite = Invite(
            email=email,
            role=role,
            token=generate_invite_token(),
            expires_at=self._new_expiry(),
            is_used=False,
            created_by_id=principal.id,
        )
        self.db.add(invite)
        await self.db.commit()

        sent = await self.email_service.send_invite_email(
            to_email=email,
            token=invite.token,
            role=role.value,
            expires_at=invite.expires_at,
        )
        if not sent:
            await self.db.delete(invite)
            await self.db.commit()
            logger.error(f"Invitation to {email} removed after email delivery failed")
            raise EmailDeliveryException(email)

        logger.info(f"Invitation {invite.id} sent to {email} as {role.value} by {principal.id}")
        return invite

    async def list_invites(
        self,
        principal: Optional[Principal],
        created_by_id: Optional[uuid.UUID] = None,
    ) -> List[Invite]:
        require_admin(principal)
        query = select(Invite).order_by(Invite.created_at.desc())
        if created_by_id is not None:
            query = query.where(Invite.created_by_id == created_by_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def cancel_invite(self, principal: Optional[Principal], invite_id: uuid.UUID) -> None:
        principal = require_admin(principal)
        invite = await self._get(invite_id)
        if invite.is_used:
            raise InvalidInviteException("Cannot cancel an invitation that has already been used")

        await self.db.delete(invite)
        await self.db.commit()
        logger.info(f"Invitation {invite_id} cancelled by {principal.id}")

    async def resend_invite(self, principal: Optional[Principal], invite_id: uuid.UUID) -> Invite:
        """Issue a fresh token and expiry and email the invitation again."""
        principal = require_admin(principal)
        invite = await self._get(invite_id)
        if invite.is_used:
            raise InvalidInviteException("Cannot resend an invitation that has already been used")

        invite.token = generate_invite_token()
        invite.expires_at = self._new_expiry()
        await self.db.flush()

        sent = await self.email_service.send_invite_email(
            to_email=invite.email,
            token=invite.token,
            role=invite.role.value,
            expires_at=invite.expires_at,
        )
        if not sent:
            email = invite.email
            await self.db.rollback()
            logger.error(f"Invitation {invite_id} kept its previous token after email delivery failed")
            raise EmailDeliveryException(email)

        await self.db.commit()
        logger.info(f"Invitation {invite_id} resent by {principal.id}")
        return invite

    # ===========================================
    # PUBLIC OPERATIONS
    # ===========================================

    async def verify_invite_token(self, token: str) -> Invite:
        """Return the invitation for a token that can still be accepted."""
        return await self._usable_invite(token)

    async def accept_invite(
        self,
        token: str,
        first_name: str,
        last_name: str,
        password: str,
        phone_number: Optional[str] = None,
    ) -> Staff:
        """
        Register the invited staff member.

        Creates the staff record, marks the invitation used and opens the
        current year's leave balance in one transaction.
        """
        invite = await self._usable_invite(token, lock=True)

        if await self._staff_email_exists(invite.email):
            raise DuplicateEntryException(
                "A staff member with this email already exists", field="email", value=invite.email
            )

        staff = Staff(
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            name=display_name(first_name, last_name),
            email=invite.email,
            phone_number=phone_number,
            role=invite.role,
            is_active=True,
            hashed_password=get_password_hash(password),
        )
        self.db.add(staff)
        await self.db.flush()

        allowance = default_leave_days(invite.role)
        self.db.add(LeaveBalance(
            staff_id=staff.id,
            year=today().year,
            total_leave_days=allowance,
            used_leave_days=0,
            remaining_leave_days=allowance,
        ))
        invite.is_used = True
        await self.db.commit()

        logger.info(f"Invitation {invite.id} accepted; staff {staff.id} registered as {invite.role.value}")
        return staff
