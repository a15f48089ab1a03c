from decimal import Decimal

import pytest

from belako_api.models.user import User
from belako_api.services.loyalty import TierProgressService


async def _user(session, email: str = "fan@belako.test") -> User:
    user = User(email=email)
    session.add(user)
    await session.flush()
    return user


@pytest.mark.asyncio
async def test_ensure_progress_creates_zeroed_row_once(session_factory) -> None:
    async with session_factory() as session:
        user = await _user(session)
        service = TierProgressService(session)

        first = await service.ensure_progress(user.id)
        second = await service.ensure_progress(user.id)

        assert first.id == second.id
        assert first.attendance == 0
        assert Decimal(first.spend_usd) == Decimal("0")
        assert first.tier == 0


@pytest.mark.asyncio
async def test_attendance_and_spend_advance_tier(session_factory) -> None:
    async with session_factory() as session:
        user = await _user(session)
        service = TierProgressService(session)

        progress = await service.record_attendance(user.id, count=3)
        assert progress.tier == 1
        assert progress.last_tier_upgrade_at is not None

        await service.record_attendance(user.id, count=7)
        progress = await service.record_spend(user.id, Decimal("50"))
        assert progress.attendance == 10
        assert progress.tier == 2


@pytest.mark.asyncio
async def test_recorded_tier_never_drops_without_override(session_factory) -> None:
    async with session_factory() as session:
        user = await _user(session)
        service = TierProgressService(session)

        progress = await service.record_attendance(user.id, count=20)
        progress = await service.record_spend(user.id, Decimal("150"))
        assert progress.tier == 3

        # Counters corrected downward by an operator still keep the reached tier.
        progress.attendance = 0
        progress = await service.recompute(progress)
        assert progress.tier == 3

        progress = await service.override_tier(user.id, 1)
        assert progress.tier == 1


@pytest.mark.asyncio
async def test_invalid_increments_are_rejected(session_factory) -> None:
    async with session_factory() as session:
        user = await _user(session)
        service = TierProgressService(session)

        with pytest.raises(ValueError):
            await service.record_attendance(user.id, count=0)
        with pytest.raises(ValueError):
            await service.record_spend(user.id, Decimal("-1"))
        with pytest.raises(ValueError):
            await service.override_tier(user.id, -1)
