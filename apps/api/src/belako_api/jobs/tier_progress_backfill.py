"""Create zeroed tier progress rows for users that predate progress tracking."""

from __future__ import annotations

from decimal import Decimal
from typing import Awaitable, Callable, Dict

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.models.loyalty import TierProgress
from belako_api.models.user import User, UserRoleEnum


# meta: job: tier-progress-backfill

SessionFactory = Callable[[], AsyncSession] | Callable[[], Awaitable[AsyncSession]]


async def run_tier_progress_backfill(*, session_factory: SessionFactory, dry_run: bool = False) -> Dict[str, int]:
    maybe_session = session_factory()
    session = maybe_session if isinstance(maybe_session, AsyncSession) else await maybe_session

    async with session as managed_session:
        users = (await managed_session.execute(select(User.id, User.role))).all()
        present = set((await managed_session.execute(select(TierProgress.user_id))).scalars().all())

        missing = [user_id for user_id, _role in users if user_id not in present]
        managed_session.add_all(
            TierProgress(user_id=user_id, attendance=0, spend_usd=Decimal("0"), tier=0) for user_id in missing
        )

        if dry_run:
            await managed_session.rollback()
        else:
            await managed_session.commit()

    fan_users = sum(1 for _user_id, role in users if role == UserRoleEnum.FAN.value)
    summary = {
        "users": len(users),
        "fanUsers": fan_users,
        "artistUsers": len(users) - fan_users,
        "alreadyPresent": len(present),
        "backfilled": 0 if dry_run else len(missing),
    }
    logger.bind(summary=summary).info("Tier progress backfill completed", dry_run=dry_run)
    return summary


__all__ = ["run_tier_progress_backfill"]
