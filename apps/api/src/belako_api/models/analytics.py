from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID

from belako_api.db.base import Base


class AnalyticsEvent(Base):
    """Client-reported engagement event."""

    __tablename__ = "analytics_events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    code = Column(String(64), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    payload = Column(JSON, nullable=True)
    occurred_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
