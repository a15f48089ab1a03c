"""Observability endpoints for reward pipeline counters."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from belako_api.api.dependencies.security import require_internal_api_key
from belako_api.observability.rewards import get_rewards_store


router = APIRouter(prefix="/observability", tags=["Observability"])


@router.get(
    "/rewards",
    dependencies=[Depends(require_internal_api_key)],
    summary="Sales, grant and meet & greet counters",
)
async def get_rewards_snapshot() -> dict[str, object]:
    return get_rewards_store().snapshot().as_dict()
