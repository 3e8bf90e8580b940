"""
FarmStaff - FastAPI Dependencies

Shared dependencies for database sessions and principal resolution.

A missing or invalid token resolves to no principal rather than an HTTP
error; the service guards turn that into an Unauthenticated envelope.
"""

import uuid
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from farmstaff.database import get_async_session
from farmstaff.models.staff import Staff
from farmstaff.utils.permissions import Principal
from farmstaff.utils.security import verify_access_token


# HTTP Bearer token security
security = HTTPBearer(auto_error=False)


def _extract_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    if credentials:
        return credentials.credentials

    # Fallback to cookie
    token = request.cookies.get("access_token")
    if token and token.startswith("Bearer "):
        token = token[7:]
    return token


async def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_async_session),
) -> Optional[Principal]:
    """
    Resolve the calling staff member from a JWT.

    Token can be provided via:
    1. Authorization: Bearer <token> header
    2. access_token cookie

    Returns:
        The principal, or None when there is no usable token or staff record
    """
    token = _extract_token(request, credentials)
    if not token:
        return None

    payload = verify_access_token(token)
    if not payload or not payload.get("sub"):
        return None

    try:
        staff_id = uuid.UUID(str(payload["sub"]))
    except ValueError:
        return None

    staff = await db.get(Staff, staff_id)
    if not staff:
        return None
    return Principal.from_staff(staff)
