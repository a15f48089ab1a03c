"""Band-managed catalog content: merch, concerts and live streams."""

from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, func

from belako_api.db.base import Base


def _catalog_id() -> str:
    return uuid4().hex


class StoreItem(Base):
    __tablename__ = "band_store_items"

    id = Column(String(64), primary_key=True, default=_catalog_id)
    name = Column(String, nullable=False)
    fiat_price = Column(Numeric(10, 2), nullable=False)
    image_url = Column(String, nullable=False)
    limited = Column(Boolean, nullable=False, default=False, server_default="false")
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class Concert(Base):
    """Concert listing; ticket product ids take the form ``ticket-<id>``."""

    __tablename__ = "band_concerts"

    id = Column(String(64), primary_key=True, default=_catalog_id)
    title = Column(String, nullable=False)
    venue = Column(String, nullable=False)
    city = Column(String, nullable=False)
    starts_at = Column(DateTime(timezone=True), nullable=False)
    price_eur = Column(Numeric(10, 2), nullable=False)
    ticket_url = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class Live(Base):
    __tablename__ = "band_lives"

    id = Column(String(64), primary_key=True, default=_catalog_id)
    artist = Column(String, nullable=False, default="Belako")
    title = Column(String, nullable=False)
    starts_at = Column(DateTime(timezone=True), nullable=False)
    viewers = Column(Integer, nullable=False, default=0, server_default="0")
    reward_hint = Column(String, nullable=False)
    genre = Column(String, nullable=False, default="Alternative")
    color_class = Column(String, nullable=False, default="stream-a")
    youtube_url = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
