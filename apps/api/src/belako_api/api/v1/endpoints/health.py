from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.db.session import get_session


router = APIRouter()


@router.get("/healthz", summary="Service health check")
async def service_health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz", summary="Service readiness")
async def service_readiness(session: AsyncSession = Depends(get_session)) -> dict[str, str]:
    """Ready once the ledger store answers a trivial query."""

    await session.execute(text("SELECT 1"))
    return {"status": "ready", "database": "ok"}
