"""Login sync called by the web tier after a successful sign-in."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.api.dependencies.security import require_internal_api_key
from belako_api.api.errors import http_error
from belako_api.core.errors import BelakoError
from belako_api.db.session import get_session
from belako_api.models.user import AuthProviderEnum, UserRoleEnum
from belako_api.services.loyalty import TierProgressService
from belako_api.services.users import UserRegistryService


router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(require_internal_api_key)])


class LoginSyncRequest(BaseModel):
    email: str = Field(..., min_length=3)
    role: Optional[UserRoleEnum] = None
    authProvider: AuthProviderEnum = AuthProviderEnum.EMAIL
    displayName: Optional[str] = None
    pictureUrl: Optional[str] = None
    onboardingCompleted: Optional[bool] = None


class SyncedUserResponse(BaseModel):
    id: UUID
    email: str
    role: str
    authProvider: str
    displayName: Optional[str]
    pictureUrl: Optional[str]
    onboardingCompleted: bool
    lastLoginAt: Optional[datetime]


class LoginSyncResponse(BaseModel):
    user: SyncedUserResponse
    isNewUser: bool


@router.post("/login-sync", response_model=LoginSyncResponse)
async def login_sync(payload: LoginSyncRequest, db: AsyncSession = Depends(get_session)) -> LoginSyncResponse:
    registry = UserRegistryService(db)
    try:
        is_new = await registry.get_by_email(payload.email) is None
        user = await registry.sync_login(
            payload.email,
            auth_provider=payload.authProvider,
            role=payload.role,
            display_name=payload.displayName,
            picture_url=payload.pictureUrl,
            onboarding_completed=payload.onboardingCompleted,
        )
    except BelakoError as error:
        raise http_error(error) from error

    await TierProgressService(db).ensure_progress(user.id)
    await db.commit()

    return LoginSyncResponse(
        user=SyncedUserResponse(
            id=user.id,
            email=user.email,
            role=user.role,
            authProvider=user.auth_provider,
            displayName=user.display_name,
            pictureUrl=user.picture_url,
            onboardingCompleted=user.onboarding_completed,
            lastLoginAt=user.last_login_at,
        ),
        isNewUser=is_new,
    )
