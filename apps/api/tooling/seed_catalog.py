"""Seed NFT assets, the meet & greet event, catalog samples and rewards defaults."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import TypedDict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from belako_api.core.settings import settings
from belako_api.models.catalog import Concert, Live, StoreItem
from belako_api.models.meet_greet import MeetGreetEvent
from belako_api.models.wallet import NftAsset, NftRarity
from belako_api.services.loyalty import DEFAULT_REWARDS_CONFIG, RewardsConfigService


class SeedAsset(TypedDict):
    id: str
    code: str
    name: str
    description: str
    image_url: str
    rarity: NftRarity


NFT_ASSETS: list[SeedAsset] = [
    {
        "id": "nft-fan-badge",
        "code": "BELAKO_FAN_BADGE",
        "name": "Belako Fan Badge",
        "description": "Insignia de bienvenida para la comunidad Belako.",
        "image_url": "/images/nft/fan-badge.png",
        "rarity": NftRarity.FAN,
    },
    {
        "id": "nft-full-live",
        "code": "BELAKO_FULL_LIVE",
        "name": "Directo completo",
        "description": "Coleccionable por ver un directo entero.",
        "image_url": "/images/nft/full-live.png",
        "rarity": NftRarity.PREMIUM,
    },
    {
        "id": "nft-superfan-mg-pass",
        "code": settings.meet_greet_pass_asset_code,
        "name": "Superfan Meet & Greet Pass",
        "description": "Pase de acceso al meet & greet con la banda.",
        "image_url": "/images/nft/mg-pass.png",
        "rarity": NftRarity.LEGENDARY,
    },
]

MEET_GREET_EVENT = {
    "id": "evt-bilbao-2026-11-21",
    "title": "Belako Superfan Meet & Greet - Bilbao",
    "starts_at": datetime(2026, 11, 21, 19, 30, tzinfo=timezone.utc),
    "location": "Bilbao Arena",
}


async def seed_assets(session: AsyncSession) -> None:
    for asset in NFT_ASSETS:
        record = await session.get(NftAsset, asset["id"])
        if record is None:
            session.add(NftAsset(**asset, is_active=True))
        else:
            for key, value in asset.items():
                setattr(record, key, value)


async def seed_meet_greet_event(session: AsyncSession) -> None:
    record = await session.get(MeetGreetEvent, MEET_GREET_EVENT["id"])
    if record is None:
        session.add(MeetGreetEvent(**MEET_GREET_EVENT, active=True))


async def seed_catalog(session: AsyncSession) -> None:
    # Only seed an empty catalog; band edits win after the first run.
    existing = await session.scalar(select(func.count()).select_from(StoreItem))
    if existing:
        return

    session.add_all(
        [
            StoreItem(
                id="merch-tote",
                name="Tote bag Belako",
                fiat_price=Decimal("18.00"),
                image_url="/images/merch/tote.png",
            ),
            StoreItem(
                id="merch-vinyl",
                name="Vinilo edición limitada",
                fiat_price=Decimal("32.00"),
                image_url="/images/merch/vinyl.png",
                limited=True,
            ),
            Concert(
                id="bilbao-2026",
                title="Belako en Bilbao",
                venue="Bilbao Arena",
                city="Bilbao",
                starts_at=datetime(2026, 11, 21, 21, 0, tzinfo=timezone.utc),
                price_eur=Decimal("25.00"),
            ),
            Live(
                id="live-studio-session",
                title="Studio session",
                starts_at=datetime(2026, 10, 30, 19, 0, tzinfo=timezone.utc),
                reward_hint="Mira el directo entero para ganar XP extra",
            ),
        ]
    )


async def seed_rewards_config(session: AsyncSession) -> None:
    service = RewardsConfigService(session)
    if (await service.load()) is not DEFAULT_REWARDS_CONFIG:
        return
    await service.replace_tiers(DEFAULT_REWARDS_CONFIG.tiers)
    await service.replace_xp_actions(DEFAULT_REWARDS_CONFIG.xp_actions)
    for reward in DEFAULT_REWARDS_CONFIG.rewards:
        await service.create_reward(
            title=reward.title,
            description=reward.description,
            trigger_type=reward.trigger_type,
            xp_bonus=reward.xp_bonus,
            active=reward.active,
        )


async def main() -> None:
    engine = create_async_engine(settings.database_url, future=True)
    session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    try:
        async with session_factory() as session:
            await seed_assets(session)
            await seed_meet_greet_event(session)
            await seed_catalog(session)
            await seed_rewards_config(session)
            await session.commit()
        print("Belako catalog, NFT assets and meet & greet event ready")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
