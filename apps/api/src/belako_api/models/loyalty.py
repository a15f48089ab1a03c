"""Tier progress and rewards configuration models."""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from belako_api.db.base import Base


class TierProgress(Base):
    """Per-user engagement counters and the highest tier index reached."""

    __tablename__ = "tier_progress"
    __table_args__ = (
        UniqueConstraint("user_id", name="uq_tier_progress_user_id"),
        CheckConstraint("attendance >= 0", name="attendance_non_negative"),
        CheckConstraint("spend_usd >= 0", name="spend_non_negative"),
        CheckConstraint("tier >= 0", name="tier_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    attendance = Column(Integer, nullable=False, default=0, server_default="0")
    spend_usd = Column(Numeric(12, 2), nullable=False, default=0, server_default="0")
    tier = Column(Integer, nullable=False, default=0, server_default="0")
    last_tier_upgrade_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", back_populates="tier_progress")


class JourneyTierId(str, Enum):
    FAN = "fan"
    SUPER = "super"
    ULTRA = "ultra"
    GOD = "god"


class JourneyTierConfig(Base):
    """Band-configured XP journey tiers shown in the fan app."""

    __tablename__ = "journey_tier_configs"

    id = Column(SqlEnum(JourneyTierId, name="journey_tier_id"), primary_key=True)
    title = Column(String, nullable=False)
    required_xp = Column(Integer, nullable=False, default=0)
    perk_label = Column(String, nullable=False)
    sort_order = Column(Integer, nullable=False)
    active = Column(Boolean, nullable=False, default=True, server_default="true")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class XpActionCode(str, Enum):
    JOIN_LIVE = "join_live"
    WATCH_FULL_LIVE = "watch_full_live"
    BUY_MERCH = "buy_merch"
    BUY_TICKET = "buy_ticket"


class XpActionConfig(Base):
    """XP awarded per fan action."""

    __tablename__ = "xp_action_configs"

    code = Column(SqlEnum(XpActionCode, name="xp_action_code"), primary_key=True)
    label = Column(String, nullable=False)
    xp_value = Column(Integer, nullable=False, default=0)
    enabled = Column(Boolean, nullable=False, default=True, server_default="true")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class RewardTriggerType(str, Enum):
    WATCH_FULL_LIVE = "watch_full_live"
    XP_THRESHOLD = "xp_threshold"
    PURCHASE = "purchase"


class BandReward(Base):
    """Band-managed reward definitions."""

    __tablename__ = "band_rewards"

    id = Column(String, primary_key=True, default=lambda: f"rw-{uuid4().hex[:12]}")
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    trigger_type = Column(SqlEnum(RewardTriggerType, name="reward_trigger_type"), nullable=False)
    xp_bonus = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
