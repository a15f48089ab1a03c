"""Artist dashboard: sales overview, users, catalog content and rewards configuration."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Type

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.api.dependencies.session import require_artist_session
from belako_api.api.errors import http_error
from belako_api.core.clock import isoformat
from belako_api.core.errors import BelakoError
from belako_api.db.session import get_session
from belako_api.models.catalog import Concert, Live, StoreItem
from belako_api.models.loyalty import JourneyTierId, RewardTriggerType, XpActionCode
from belako_api.services.catalog import (
    CatalogService,
    serialize_concert,
    serialize_live,
    serialize_rewards_config,
    serialize_store_item,
)
from belako_api.services.loyalty import RewardsConfigService, TierConfigItem, XpActionItem
from belako_api.services.sales import SalesOverviewService
from belako_api.services.users import UserRegistryService


router = APIRouter(prefix="/dashboard", tags=["dashboard"], dependencies=[Depends(require_artist_session)])


class StoreItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    fiatPrice: float = Field(..., ge=0)
    imageUrl: str = Field(..., min_length=1)
    limited: bool = False
    isActive: bool = True


class StoreItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    fiatPrice: Optional[float] = Field(None, ge=0)
    imageUrl: Optional[str] = None
    limited: Optional[bool] = None
    isActive: Optional[bool] = None


class ConcertCreate(BaseModel):
    title: str = Field(..., min_length=1)
    venue: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    startsAt: datetime
    priceEur: float = Field(..., ge=0)
    ticketUrl: Optional[str] = None
    isActive: bool = True


class ConcertUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    venue: Optional[str] = None
    city: Optional[str] = None
    startsAt: Optional[datetime] = None
    priceEur: Optional[float] = Field(None, ge=0)
    ticketUrl: Optional[str] = None
    isActive: Optional[bool] = None


class LiveCreate(BaseModel):
    artist: str = "Belako"
    title: str = Field(..., min_length=1)
    startsAt: datetime
    viewers: int = Field(0, ge=0)
    rewardHint: str = Field(..., min_length=1)
    genre: str = "Alternative"
    colorClass: str = "stream-a"
    youtubeUrl: Optional[str] = None
    isActive: bool = True


class LiveUpdate(BaseModel):
    artist: Optional[str] = None
    title: Optional[str] = Field(None, min_length=1)
    startsAt: Optional[datetime] = None
    viewers: Optional[int] = Field(None, ge=0)
    rewardHint: Optional[str] = None
    genre: Optional[str] = None
    colorClass: Optional[str] = None
    youtubeUrl: Optional[str] = None
    isActive: Optional[bool] = None


class TierConfigPayload(BaseModel):
    id: JourneyTierId
    title: str = Field(..., min_length=1)
    requiredXp: int = Field(..., ge=0)
    perkLabel: str
    sortOrder: int
    active: bool = True


class TiersReplaceRequest(BaseModel):
    tiers: List[TierConfigPayload] = Field(..., min_length=1)


class XpActionPayload(BaseModel):
    code: XpActionCode
    label: str = Field(..., min_length=1)
    xpValue: int = Field(..., ge=0)
    enabled: bool = True


class XpActionsReplaceRequest(BaseModel):
    xpActions: List[XpActionPayload] = Field(..., min_length=1)


class RewardCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    triggerType: RewardTriggerType
    xpBonus: int = Field(0, ge=0)
    active: bool = True


class RewardUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    triggerType: Optional[RewardTriggerType] = None
    xpBonus: Optional[int] = Field(None, ge=0)
    active: Optional[bool] = None


_FIELD_NAMES: Dict[str, str] = {
    "fiatPrice": "fiat_price",
    "imageUrl": "image_url",
    "isActive": "is_active",
    "startsAt": "starts_at",
    "priceEur": "price_eur",
    "ticketUrl": "ticket_url",
    "rewardHint": "reward_hint",
    "colorClass": "color_class",
    "youtubeUrl": "youtube_url",
    "triggerType": "trigger_type",
    "xpBonus": "xp_bonus",
}


def _model_fields(payload: BaseModel, *, partial: bool = False) -> Dict[str, Any]:
    data = payload.model_dump(exclude_unset=partial)
    return {_FIELD_NAMES.get(key, key): value for key, value in data.items()}


@router.get("/sales-overview")
async def sales_overview(db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return await SalesOverviewService(db).build_overview()


@router.get("/users")
async def list_users(db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    users = await UserRegistryService(db).list_registered_users()
    return {
        "users": [
            {
                "email": user.email,
                "role": user.role.value,
                "authProvider": user.auth_provider.value,
                "onboardingCompleted": user.onboarding_completed,
                "createdAt": isoformat(user.created_at),
                "updatedAt": isoformat(user.updated_at),
            }
            for user in users
        ]
    }


async def _create(db: AsyncSession, model: Type[Any], payload: BaseModel) -> Any:
    item = await CatalogService(db).create(model, _model_fields(payload))
    await db.commit()
    return item


async def _update(db: AsyncSession, model: Type[Any], item_id: str, payload: BaseModel) -> Any:
    try:
        item = await CatalogService(db).update(model, item_id, _model_fields(payload, partial=True))
    except BelakoError as error:
        raise http_error(error) from error
    await db.commit()
    return item


async def _delete(db: AsyncSession, model: Type[Any], item_id: str) -> Response:
    try:
        await CatalogService(db).delete(model, item_id)
    except BelakoError as error:
        raise http_error(error) from error
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/store-items")
async def list_store_items(db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    content = await CatalogService(db).dashboard_content()
    return {"storeItems": content["storeItems"]}


@router.post("/store-items", status_code=status.HTTP_201_CREATED)
async def create_store_item(payload: StoreItemCreate, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return serialize_store_item(await _create(db, StoreItem, payload))


@router.patch("/store-items/{item_id}")
async def update_store_item(
    item_id: str, payload: StoreItemUpdate, db: AsyncSession = Depends(get_session)
) -> dict[str, Any]:
    return serialize_store_item(await _update(db, StoreItem, item_id, payload))


@router.delete("/store-items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_store_item(item_id: str, db: AsyncSession = Depends(get_session)) -> Response:
    return await _delete(db, StoreItem, item_id)


@router.get("/concerts")
async def list_concerts(db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    content = await CatalogService(db).dashboard_content()
    return {"concerts": content["concerts"]}


@router.post("/concerts", status_code=status.HTTP_201_CREATED)
async def create_concert(payload: ConcertCreate, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return serialize_concert(await _create(db, Concert, payload))


@router.patch("/concerts/{item_id}")
async def update_concert(item_id: str, payload: ConcertUpdate, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return serialize_concert(await _update(db, Concert, item_id, payload))


@router.delete("/concerts/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_concert(item_id: str, db: AsyncSession = Depends(get_session)) -> Response:
    return await _delete(db, Concert, item_id)


@router.get("/lives")
async def list_lives(db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    content = await CatalogService(db).dashboard_content()
    return {"lives": content["lives"]}


@router.post("/lives", status_code=status.HTTP_201_CREATED)
async def create_live(payload: LiveCreate, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return serialize_live(await _create(db, Live, payload))


@router.patch("/lives/{item_id}")
async def update_live(item_id: str, payload: LiveUpdate, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return serialize_live(await _update(db, Live, item_id, payload))


@router.delete("/lives/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_live(item_id: str, db: AsyncSession = Depends(get_session)) -> Response:
    return await _delete(db, Live, item_id)


@router.get("/rewards-config")
async def get_rewards_config(db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return serialize_rewards_config(await RewardsConfigService(db).load())


@router.put("/rewards-config/tiers")
async def replace_tiers(payload: TiersReplaceRequest, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    service = RewardsConfigService(db)
    await service.replace_tiers(
        TierConfigItem(
            id=tier.id,
            title=tier.title,
            required_xp=tier.requiredXp,
            perk_label=tier.perkLabel,
            sort_order=tier.sortOrder,
            active=tier.active,
        )
        for tier in payload.tiers
    )
    await db.commit()
    return serialize_rewards_config(await service.load())


@router.put("/rewards-config/xp-actions")
async def replace_xp_actions(
    payload: XpActionsReplaceRequest, db: AsyncSession = Depends(get_session)
) -> dict[str, Any]:
    service = RewardsConfigService(db)
    await service.replace_xp_actions(
        XpActionItem(code=action.code, label=action.label, xp_value=action.xpValue, enabled=action.enabled)
        for action in payload.xpActions
    )
    await db.commit()
    return serialize_rewards_config(await service.load())


@router.post("/rewards", status_code=status.HTTP_201_CREATED)
async def create_reward(payload: RewardCreate, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    reward = await RewardsConfigService(db).create_reward(
        title=payload.title,
        description=payload.description,
        trigger_type=payload.triggerType,
        xp_bonus=payload.xpBonus,
        active=payload.active,
    )
    await db.commit()
    return {
        "id": reward.id,
        "title": reward.title,
        "description": reward.description,
        "triggerType": reward.trigger_type.value,
        "xpBonus": reward.xp_bonus,
        "active": reward.active,
    }


@router.patch("/rewards/{reward_id}")
async def update_reward(
    reward_id: str, payload: RewardUpdate, db: AsyncSession = Depends(get_session)
) -> dict[str, Any]:
    try:
        reward = await RewardsConfigService(db).update_reward(reward_id, _model_fields(payload, partial=True))
    except BelakoError as error:
        raise http_error(error) from error
    await db.commit()
    return {
        "id": reward.id,
        "title": reward.title,
        "description": reward.description,
        "triggerType": reward.trigger_type.value,
        "xpBonus": reward.xp_bonus,
        "active": reward.active,
    }


@router.delete("/rewards/{reward_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reward(reward_id: str, db: AsyncSession = Depends(get_session)) -> Response:
    try:
        await RewardsConfigService(db).delete_reward(reward_id)
    except BelakoError as error:
        raise http_error(error) from error
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
