"""API endpoints for tier evaluation and persisted tier progress."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.api.dependencies.session import require_member_session
from belako_api.db.session import get_session
from belako_api.models.user import User
from belako_api.services.loyalty import TierProgressService, evaluate_tiers, highest_unlocked_tier


router = APIRouter(prefix="/loyalty", tags=["loyalty"])


class TierEvaluationRequest(BaseModel):
    attendance: int = Field(..., ge=0, description="Qualifying live views and check-ins")
    spendUsd: float = Field(..., ge=0, description="Cumulative qualifying spend")


class TierResultResponse(BaseModel):
    tier: int
    unlocked: bool
    reason: str


class TierEvaluationResponse(BaseModel):
    tiers: List[TierResultResponse]
    highestTier: int


class TierProgressResponse(BaseModel):
    userId: str
    attendance: int
    spendUsd: float
    tier: int
    lastTierUpgradeAt: Optional[datetime]
    tiers: List[TierResultResponse]


@router.post("/evaluate", response_model=TierEvaluationResponse)
async def evaluate(
    payload: TierEvaluationRequest,
    _: User = Depends(require_member_session),
) -> TierEvaluationResponse:
    results = evaluate_tiers(payload.attendance, payload.spendUsd)
    return TierEvaluationResponse(
        tiers=[TierResultResponse(tier=r.tier, unlocked=r.unlocked, reason=r.reason) for r in results],
        highestTier=highest_unlocked_tier(results),
    )


@router.get("/progress", response_model=TierProgressResponse)
async def get_progress(
    user: User = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
) -> TierProgressResponse:
    """Current member progress; creates a zeroed row on first access."""

    service = TierProgressService(db)
    progress = await service.ensure_progress(user.id)
    results = service.evaluate(progress)
    await db.commit()

    return TierProgressResponse(
        userId=str(user.id),
        attendance=progress.attendance,
        spendUsd=float(progress.spend_usd),
        tier=progress.tier,
        lastTierUpgradeAt=progress.last_tier_upgrade_at,
        tiers=[TierResultResponse(tier=r.tier, unlocked=r.unlocked, reason=r.reason) for r in results],
    )
