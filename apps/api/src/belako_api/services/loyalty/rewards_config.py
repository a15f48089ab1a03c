"""Band-managed XP journey configuration: tiers, XP actions and rewards."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.core.errors import NotFoundError
from belako_api.models.loyalty import (
    BandReward,
    JourneyTierConfig,
    JourneyTierId,
    RewardTriggerType,
    XpActionCode,
    XpActionConfig,
)


@dataclass
class TierConfigItem:
    id: JourneyTierId
    title: str
    required_xp: int
    perk_label: str
    sort_order: int
    active: bool = True


@dataclass
class XpActionItem:
    code: XpActionCode
    label: str
    xp_value: int
    enabled: bool = True


@dataclass
class RewardItem:
    id: str
    title: str
    description: str
    trigger_type: RewardTriggerType
    xp_bonus: int = 0
    active: bool = True


@dataclass
class RewardsConfig:
    tiers: list[TierConfigItem] = field(default_factory=list)
    xp_actions: list[XpActionItem] = field(default_factory=list)
    rewards: list[RewardItem] = field(default_factory=list)


DEFAULT_REWARDS_CONFIG = RewardsConfig(
    tiers=[
        TierConfigItem(JourneyTierId.FAN, "Fan Belako", 0, "Acceso base a recompensas fan", 1),
        TierConfigItem(JourneyTierId.SUPER, "Super Fan Belako", 180, "Insignia Super Fan + prioridad en drops", 2),
        TierConfigItem(JourneyTierId.ULTRA, "Ultra Fan Belako", 420, "Acceso anticipado a experiencias exclusivas", 3),
        TierConfigItem(JourneyTierId.GOD, "God Fan Belako", 760, "Estado máximo de la comunidad Belako", 4),
    ],
    xp_actions=[
        XpActionItem(XpActionCode.JOIN_LIVE, "Unirte a directos en vivo", 20),
        XpActionItem(XpActionCode.WATCH_FULL_LIVE, "Ver directo entero", 50),
        XpActionItem(XpActionCode.BUY_MERCH, "Comprar merchandising", 80),
        XpActionItem(XpActionCode.BUY_TICKET, "Comprar billetes para conciertos", 120),
    ],
    rewards=[
        RewardItem(
            id="rw-full-live",
            title="Recompensa directo completo",
            description="Completa un directo entero para reclamar bonus de fan.",
            trigger_type=RewardTriggerType.WATCH_FULL_LIVE,
            xp_bonus=50,
        )
    ],
)

_REWARD_MUTABLE_FIELDS = ("title", "description", "trigger_type", "xp_bonus", "active")


class RewardsConfigService:
    """Reads and replaces the journey configuration."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def load(self) -> RewardsConfig:
        """Return stored configuration, or the defaults when nothing is stored."""

        tiers = (
            await self._db.execute(select(JourneyTierConfig).order_by(JourneyTierConfig.sort_order.asc()))
        ).scalars().all()
        actions = (
            await self._db.execute(select(XpActionConfig).order_by(XpActionConfig.code.asc()))
        ).scalars().all()
        rewards = (
            await self._db.execute(select(BandReward).order_by(BandReward.created_at.desc()))
        ).scalars().all()

        if not tiers and not actions and not rewards:
            return DEFAULT_REWARDS_CONFIG

        return RewardsConfig(
            tiers=[
                TierConfigItem(
                    id=tier.id,
                    title=tier.title,
                    required_xp=tier.required_xp,
                    perk_label=tier.perk_label,
                    sort_order=tier.sort_order,
                    active=tier.active,
                )
                for tier in tiers
            ],
            xp_actions=[
                XpActionItem(code=action.code, label=action.label, xp_value=action.xp_value, enabled=action.enabled)
                for action in actions
            ],
            rewards=[_reward_item(reward) for reward in rewards],
        )

    async def replace_tiers(self, tiers: Iterable[TierConfigItem]) -> list[TierConfigItem]:
        items = list(tiers)
        await self._db.execute(delete(JourneyTierConfig))
        self._db.add_all(
            JourneyTierConfig(
                id=item.id,
                title=item.title,
                required_xp=item.required_xp,
                perk_label=item.perk_label,
                sort_order=item.sort_order,
                active=item.active,
            )
            for item in items
        )
        await self._db.flush()
        logger.info("Replaced journey tier configuration", count=len(items))
        return sorted(items, key=lambda item: item.sort_order)

    async def replace_xp_actions(self, actions: Iterable[XpActionItem]) -> list[XpActionItem]:
        items = list(actions)
        await self._db.execute(delete(XpActionConfig))
        self._db.add_all(
            XpActionConfig(code=item.code, label=item.label, xp_value=item.xp_value, enabled=item.enabled)
            for item in items
        )
        await self._db.flush()
        logger.info("Replaced XP action configuration", count=len(items))
        return items

    async def create_reward(
        self,
        *,
        title: str,
        description: str,
        trigger_type: RewardTriggerType,
        xp_bonus: int = 0,
        active: bool = True,
    ) -> RewardItem:
        reward = BandReward(
            title=title,
            description=description,
            trigger_type=trigger_type,
            xp_bonus=xp_bonus,
            active=active,
        )
        self._db.add(reward)
        await self._db.flush()
        logger.info("Created band reward", reward_id=reward.id, trigger_type=trigger_type.value)
        return _reward_item(reward)

    async def update_reward(self, reward_id: str, changes: dict[str, Any]) -> RewardItem:
        reward = await self._db.get(BandReward, reward_id)
        if reward is None:
            raise NotFoundError(f"Reward {reward_id} not found")

        for key, value in changes.items():
            if key in _REWARD_MUTABLE_FIELDS and value is not None:
                setattr(reward, key, value)
        await self._db.flush()
        return _reward_item(reward)

    async def delete_reward(self, reward_id: str) -> None:
        reward = await self._db.get(BandReward, reward_id)
        if reward is None:
            raise NotFoundError(f"Reward {reward_id} not found")
        await self._db.delete(reward)
        await self._db.flush()


def _reward_item(reward: BandReward) -> RewardItem:
    return RewardItem(
        id=reward.id,
        title=reward.title,
        description=reward.description,
        trigger_type=reward.trigger_type,
        xp_bonus=reward.xp_bonus,
        active=reward.active,
    )


__all__ = [
    "DEFAULT_REWARDS_CONFIG",
    "RewardItem",
    "RewardsConfig",
    "RewardsConfigService",
    "TierConfigItem",
    "XpActionItem",
]
