from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.db.session import get_session
from belako_api.services.catalog import CatalogService


router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("", summary="Public band catalog")
async def get_public_catalog(db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    """Active store items, concerts and lives with the enabled rewards configuration."""

    return await CatalogService(db).public_catalog()
