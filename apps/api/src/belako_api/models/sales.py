"""Sales ledger and concert registrations derived from paid ticket sales."""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    Column,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Numeric,
    String,
    func,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from belako_api.db.base import Base


class SaleStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class SaleItemType(str, Enum):
    TICKET = "ticket"
    MERCH = "merch"


class Sale(Base):
    """Purchase record keyed by the payment provider's intent or session id."""

    __tablename__ = "band_sales"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_email = Column(String, nullable=False, index=True)
    customer_email = Column(String, nullable=False)
    customer_name = Column(String, nullable=True)
    product_id = Column(String, nullable=False)
    product_name = Column(String, nullable=False)
    item_type = Column(SqlEnum(SaleItemType, name="sale_item_type"), nullable=False)
    amount_eur = Column(Numeric(10, 2), nullable=False)
    status = Column(
        SqlEnum(SaleStatus, name="sale_status"),
        nullable=False,
        default=SaleStatus.PENDING,
        server_default=SaleStatus.PENDING.value,
    )
    stripe_session_id = Column(String, nullable=True, unique=True)
    payment_intent_id = Column(String, nullable=True, unique=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    registrations = relationship("ConcertRegistration", back_populates="sale")


class RegistrationStatus(str, Enum):
    PURCHASED = "PURCHASED"
    CHECKED_IN = "CHECKED_IN"
    CANCELLED = "CANCELLED"


class RegistrationSource(str, Enum):
    PURCHASE = "PURCHASE"
    MANUAL = "MANUAL"


class ConcertRegistration(Base):
    """One registration per (concert, user email)."""

    __tablename__ = "band_concert_registrations"
    __table_args__ = (
        UniqueConstraint("concert_id", "user_email", name="uq_band_concert_registrations_concert_user"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    concert_id = Column(String(64), ForeignKey("band_concerts.id", ondelete="CASCADE"), nullable=False)
    user_email = Column(String, nullable=False)
    user_name = Column(String, nullable=True)
    status = Column(SqlEnum(RegistrationStatus, name="registration_status"), nullable=False)
    source = Column(SqlEnum(RegistrationSource, name="registration_source"), nullable=False)
    sale_id = Column(UUID(as_uuid=True), ForeignKey("band_sales.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    concert = relationship("Concert")
    sale = relationship("Sale", back_populates="registrations")
