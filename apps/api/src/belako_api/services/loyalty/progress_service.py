"""Persisted tier progress: attendance, spend and the monotonic tier index."""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.core.clock import utcnow
from belako_api.models.loyalty import TierProgress
from belako_api.services.loyalty.tiers import (
    DEFAULT_TIER_THRESHOLDS,
    TierResult,
    TierThreshold,
    evaluate_tiers,
    highest_unlocked_tier,
)


class TierProgressService:
    """Mutates tier progress from watch and purchase events.

    The stored ``tier`` only ever advances through :meth:`recompute`; lowering
    it requires :meth:`override_tier`.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        *,
        thresholds: Sequence[TierThreshold] = DEFAULT_TIER_THRESHOLDS,
    ) -> None:
        self._db = db_session
        self._thresholds = thresholds

    async def get_progress(self, user_id: UUID) -> TierProgress | None:
        stmt = select(TierProgress).where(TierProgress.user_id == user_id)
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    async def ensure_progress(self, user_id: UUID) -> TierProgress:
        """Fetch or lazily create a zeroed progress row."""

        progress = await self.get_progress(user_id)
        if progress is not None:
            return progress

        progress = TierProgress(user_id=user_id, attendance=0, spend_usd=Decimal("0"), tier=0)
        try:
            async with self._db.begin_nested():
                self._db.add(progress)
                await self._db.flush()
        except IntegrityError:
            logger.warning("Detected race when creating tier progress", user_id=str(user_id))
            existing = await self.get_progress(user_id)
            if existing is None:
                raise
            return existing

        logger.info("Created tier progress", user_id=str(user_id))
        return progress

    def evaluate(self, progress: TierProgress) -> list[TierResult]:
        return evaluate_tiers(
            int(progress.attendance or 0),
            Decimal(progress.spend_usd or 0),
            self._thresholds,
        )

    async def recompute(self, progress: TierProgress) -> TierProgress:
        """Advance the stored tier to the evaluated one; never lowers it."""

        evaluated = highest_unlocked_tier(self.evaluate(progress))
        previous = int(progress.tier or 0)
        if evaluated > previous:
            progress.tier = evaluated
            progress.last_tier_upgrade_at = utcnow()
            logger.info(
                "Tier advanced",
                user_id=str(progress.user_id),
                previous_tier=previous,
                tier=evaluated,
            )
        elif evaluated < previous:
            logger.debug(
                "Evaluated tier below recorded maximum; keeping recorded tier",
                user_id=str(progress.user_id),
                recorded_tier=previous,
                evaluated_tier=evaluated,
            )
        await self._db.flush()
        return progress

    async def record_attendance(self, user_id: UUID, *, count: int = 1) -> TierProgress:
        if count <= 0:
            raise ValueError("Attendance increments must be positive")

        progress = await self.ensure_progress(user_id)
        progress.attendance = int(progress.attendance or 0) + count
        return await self.recompute(progress)

    async def record_spend(self, user_id: UUID, amount: Decimal) -> TierProgress:
        amount = Decimal(amount)
        if amount < 0:
            raise ValueError("Spend increments cannot be negative")

        progress = await self.ensure_progress(user_id)
        progress.spend_usd = Decimal(progress.spend_usd or 0) + amount
        return await self.recompute(progress)

    async def override_tier(self, user_id: UUID, tier: int) -> TierProgress:
        """Administrative correction; the only path allowed to lower a tier."""

        if tier < 0:
            raise ValueError("Tier cannot be negative")

        progress = await self.ensure_progress(user_id)
        previous = int(progress.tier or 0)
        progress.tier = tier
        await self._db.flush()
        logger.warning(
            "Tier overridden",
            user_id=str(user_id),
            previous_tier=previous,
            tier=tier,
        )
        return progress


__all__ = ["TierProgressService"]
