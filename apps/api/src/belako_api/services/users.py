"""User registry: login sync and lazy creation from provider sales."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.core.clock import utcnow
from belako_api.core.errors import InvalidEventError
from belako_api.models.user import AuthProviderEnum, User, UserRoleEnum


def normalize_email(value: str) -> str:
    return value.strip().lower()


def require_email(value: str | None) -> str:
    """Normalize an email, rejecting values without an ``@``."""

    normalized = normalize_email(value or "")
    if "@" not in normalized:
        raise InvalidEventError("A valid email address is required")
    return normalized


@dataclass
class RegisteredUser:
    email: str
    role: UserRoleEnum
    auth_provider: AuthProviderEnum
    onboarding_completed: bool
    created_at: datetime
    updated_at: datetime


class UserRegistryService:
    """Users are keyed by normalized email and never deleted here."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == normalize_email(email))
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    async def ensure_user(self, email: str, *, display_name: str | None = None) -> User:
        """Return the user for ``email``, creating a fan account if absent."""

        normalized = require_email(email)
        user = await self.get_by_email(normalized)
        if user is not None:
            if display_name and not user.display_name:
                user.display_name = display_name
            return user

        user = User(email=normalized, display_name=display_name, role=UserRoleEnum.FAN.value)
        try:
            async with self._db.begin_nested():
                self._db.add(user)
                await self._db.flush()
        except IntegrityError:
            logger.warning("Detected race when creating user", email=normalized)
            existing = await self.get_by_email(normalized)
            if existing is None:
                raise
            return existing

        logger.info("Registered user", user_id=str(user.id), email=normalized)
        return user

    async def sync_login(
        self,
        email: str,
        *,
        auth_provider: AuthProviderEnum,
        role: UserRoleEnum | None = None,
        display_name: str | None = None,
        picture_url: str | None = None,
        onboarding_completed: bool | None = None,
    ) -> User:
        """Upsert the user on every successful login."""

        user = await self.ensure_user(email, display_name=display_name)
        user.auth_provider = auth_provider.value
        if role is not None:
            user.role = role.value
        if display_name:
            user.display_name = display_name
        if picture_url:
            user.picture_url = picture_url
        if onboarding_completed is not None:
            user.onboarding_completed = onboarding_completed
        user.last_login_at = utcnow()
        await self._db.flush()
        logger.info("Synced login", user_id=str(user.id), provider=auth_provider.value, role=user.role)
        return user

    async def list_registered_users(self) -> list[RegisteredUser]:
        stmt = select(User).order_by(User.created_at.desc())
        result = await self._db.execute(stmt)
        return [
            RegisteredUser(
                email=user.email,
                role=UserRoleEnum(user.role),
                auth_provider=AuthProviderEnum(user.auth_provider),
                onboarding_completed=bool(user.onboarding_completed),
                created_at=user.created_at,
                updated_at=user.updated_at,
            )
            for user in result.scalars().all()
        ]


__all__ = ["RegisteredUser", "UserRegistryService", "normalize_email", "require_email"]
