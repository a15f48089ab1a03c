from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.api.dependencies.session import require_member_session
from belako_api.api.errors import http_error
from belako_api.core.errors import BelakoError
from belako_api.db.session import get_session
from belako_api.models.user import User
from belako_api.services.analytics import AnalyticsEventService, serialize_event


router = APIRouter(prefix="/analytics", tags=["analytics"])


class TrackEventRequest(BaseModel):
    code: str = Field(..., min_length=2)
    payload: Optional[Dict[str, Any]] = None


@router.post("/track", status_code=status.HTTP_201_CREATED)
async def track_event(
    body: TrackEventRequest,
    user: User = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    try:
        event = await AnalyticsEventService(db).track(body.code, user_id=user.id, payload=body.payload)
    except BelakoError as error:
        raise http_error(error) from error
    await db.commit()
    return serialize_event(event)


@router.get("/events")
async def list_events(
    limit: Optional[int] = Query(None, ge=1, le=500),
    _: User = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    events = await AnalyticsEventService(db).list_recent(limit)
    return {"items": [serialize_event(event) for event in events]}
