"""Durable client analytics events."""

from __future__ import annotations

from typing import Any, Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.core.clock import isoformat, utcnow
from belako_api.core.errors import InvalidEventError
from belako_api.core.settings import settings
from belako_api.models.analytics import AnalyticsEvent


def serialize_event(event: AnalyticsEvent) -> dict[str, Any]:
    return {
        "code": event.code,
        "userId": str(event.user_id) if event.user_id else None,
        "payload": event.payload,
        "at": isoformat(event.occurred_at),
    }


class AnalyticsEventService:
    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def track(
        self,
        code: str,
        *,
        user_id: UUID | None = None,
        payload: dict[str, Any] | None = None,
    ) -> AnalyticsEvent:
        code = (code or "").strip()
        if len(code) < 2:
            raise InvalidEventError("Analytics event codes need at least two characters")

        event = AnalyticsEvent(code=code, user_id=user_id, payload=payload, occurred_at=utcnow())
        self._db.add(event)
        await self._db.flush()
        logger.debug("Tracked analytics event", code=code, user_id=str(user_id) if user_id else None)
        return event

    async def list_recent(self, limit: int | None = None) -> Sequence[AnalyticsEvent]:
        limit = limit or settings.analytics_event_list_limit
        stmt = select(AnalyticsEvent).order_by(AnalyticsEvent.occurred_at.desc()).limit(limit)
        return (await self._db.execute(stmt)).scalars().all()


__all__ = ["AnalyticsEventService", "serialize_event"]
