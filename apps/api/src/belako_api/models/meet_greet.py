"""Meet & greet events and per-user access records."""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    String,
    func,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from belako_api.db.base import Base


class MeetGreetEvent(Base):
    __tablename__ = "meet_greet_events"

    id = Column(String(64), primary_key=True)
    title = Column(String, nullable=False)
    starts_at = Column(DateTime(timezone=True), nullable=False)
    location = Column(String, nullable=False)
    active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class MeetGreetAccessStatus(str, Enum):
    VALID = "VALID"
    USED = "USED"
    EXPIRED = "EXPIRED"


class MeetGreetAccess(Base):
    """Access record bound to the event that was active when it was issued."""

    __tablename__ = "meet_greet_access"
    __table_args__ = (UniqueConstraint("user_id", name="uq_meet_greet_access_user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    event_id = Column(String(64), ForeignKey("meet_greet_events.id"), nullable=False)
    pass_asset_id = Column(String(64), nullable=False)
    status = Column(
        SqlEnum(MeetGreetAccessStatus, name="meet_greet_access_status"),
        nullable=False,
        default=MeetGreetAccessStatus.VALID,
    )
    issued_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)

    event = relationship("MeetGreetEvent")
