"""Band-managed catalog content and the public catalog read model."""

from __future__ import annotations

from typing import Any, Mapping, Type, TypeVar

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.core.clock import isoformat
from belako_api.core.errors import NotFoundError
from belako_api.db.base import Base
from belako_api.models.catalog import Concert, Live, StoreItem
from belako_api.services.loyalty.rewards_config import RewardsConfig, RewardsConfigService

ContentModel = TypeVar("ContentModel", StoreItem, Concert, Live)

_ORDERING = {
    StoreItem: StoreItem.created_at.desc(),
    Concert: Concert.starts_at.asc(),
    Live: Live.starts_at.asc(),
}


def serialize_store_item(item: StoreItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "fiatPrice": float(item.fiat_price),
        "imageUrl": item.image_url,
        "limited": bool(item.limited),
        "isActive": bool(item.is_active),
    }


def serialize_concert(concert: Concert) -> dict[str, Any]:
    return {
        "id": concert.id,
        "title": concert.title,
        "venue": concert.venue,
        "city": concert.city,
        "startsAt": isoformat(concert.starts_at),
        "priceEur": float(concert.price_eur),
        "ticketUrl": concert.ticket_url,
        "isActive": bool(concert.is_active),
    }


def serialize_live(live: Live) -> dict[str, Any]:
    return {
        "id": live.id,
        "artist": live.artist,
        "title": live.title,
        "startsAt": isoformat(live.starts_at),
        "viewers": live.viewers,
        "rewardHint": live.reward_hint,
        "genre": live.genre,
        "colorClass": live.color_class,
        "youtubeUrl": live.youtube_url,
        "isActive": bool(live.is_active),
    }


def serialize_rewards_config(config: RewardsConfig, *, only_enabled: bool = False) -> dict[str, Any]:
    tiers = [tier for tier in config.tiers if tier.active or not only_enabled]
    actions = [action for action in config.xp_actions if action.enabled or not only_enabled]
    rewards = [reward for reward in config.rewards if reward.active or not only_enabled]
    return {
        "tiers": [
            {
                "id": tier.id.value,
                "title": tier.title,
                "requiredXp": tier.required_xp,
                "perkLabel": tier.perk_label,
                "sortOrder": tier.sort_order,
                "active": tier.active,
            }
            for tier in tiers
        ],
        "xpActions": [
            {"code": action.code.value, "label": action.label, "xpValue": action.xp_value, "enabled": action.enabled}
            for action in actions
        ],
        "rewards": [
            {
                "id": reward.id,
                "title": reward.title,
                "description": reward.description,
                "triggerType": reward.trigger_type.value,
                "xpBonus": reward.xp_bonus,
                "active": reward.active,
            }
            for reward in rewards
        ],
    }


class CatalogService:
    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session
        self._rewards = RewardsConfigService(db_session)

    async def _list(self, model: Type[ContentModel], *, active_only: bool) -> list[ContentModel]:
        stmt = select(model).order_by(_ORDERING[model])
        if active_only:
            stmt = stmt.where(model.is_active.is_(True))
        return list((await self._db.execute(stmt)).scalars().all())

    async def public_catalog(self) -> dict[str, Any]:
        """Active content plus the enabled slice of the rewards configuration."""

        config = await self._rewards.load()
        return {
            "storeItems": [serialize_store_item(item) for item in await self._list(StoreItem, active_only=True)],
            "concerts": [serialize_concert(item) for item in await self._list(Concert, active_only=True)],
            "lives": [serialize_live(item) for item in await self._list(Live, active_only=True)],
            "rewardsConfig": serialize_rewards_config(config, only_enabled=True),
        }

    async def dashboard_content(self) -> dict[str, Any]:
        config = await self._rewards.load()
        return {
            "storeItems": [serialize_store_item(item) for item in await self._list(StoreItem, active_only=False)],
            "concerts": [serialize_concert(item) for item in await self._list(Concert, active_only=False)],
            "lives": [serialize_live(item) for item in await self._list(Live, active_only=False)],
            "rewardsConfig": serialize_rewards_config(config),
        }

    async def create(self, model: Type[ContentModel], fields: Mapping[str, Any]) -> ContentModel:
        item = model(**dict(fields))
        self._db.add(item)
        await self._db.flush()
        logger.info("Created catalog item", kind=model.__tablename__, item_id=item.id)
        return item

    async def update(self, model: Type[ContentModel], item_id: str, changes: Mapping[str, Any]) -> ContentModel:
        item = await self._db.get(model, item_id)
        if item is None:
            raise NotFoundError(f"{model.__name__} {item_id} not found")
        for key, value in changes.items():
            if value is not None and hasattr(model, key):
                setattr(item, key, value)
        await self._db.flush()
        logger.info("Updated catalog item", kind=model.__tablename__, item_id=item_id)
        return item

    async def delete(self, model: Type[Base], item_id: str) -> None:
        item = await self._db.get(model, item_id)
        if item is None:
            raise NotFoundError(f"{model.__name__} {item_id} not found")
        await self._db.delete(item)
        await self._db.flush()
        logger.info("Deleted catalog item", kind=model.__tablename__, item_id=item_id)


__all__ = [
    "CatalogService",
    "serialize_concert",
    "serialize_live",
    "serialize_rewards_config",
    "serialize_store_item",
]
