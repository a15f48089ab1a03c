"""Request identity for fan and artist routes.

The web tier authenticates the user and forwards the user id in the
``X-Session-User`` header; these dependencies only resolve it.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.db.session import get_session
from belako_api.models.user import User


def _parse_user_id(raw: str | None) -> UUID:
    if not raw:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing session user context")
    try:
        return UUID(raw)
    except ValueError as error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid session user identifier") from error


async def require_member_session(
    session_user: str | None = Header(None, alias="X-Session-User"),
    db: AsyncSession = Depends(get_session),
) -> User:
    user = await db.get(User, _parse_user_id(session_user))
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session user not found")
    return user


async def require_artist_session(user: User = Depends(require_member_session)) -> User:
    """Dashboard routes are reserved for the band's artist accounts."""

    if not user.is_artist:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Artist role required")
    return user
