"""NFT asset catalog, grants, custodial wallets and minted collectibles."""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from belako_api.db.base import Base


class NftRarity(str, Enum):
    FAN = "fan"
    PREMIUM = "premium"
    LEGENDARY = "legendary"


class NftAsset(Base):
    """Mintable asset template."""

    __tablename__ = "nft_assets"

    id = Column(String(64), primary_key=True)
    code = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=False)
    rarity = Column(SqlEnum(NftRarity, name="nft_rarity"), nullable=False, default=NftRarity.FAN)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class NftGrantOrigin(str, Enum):
    TIER = "TIER"
    FULL_LIVE = "FULL_LIVE"
    CAMPAIGN = "CAMPAIGN"


class NftGrantStatus(str, Enum):
    PENDING = "PENDING"
    MINTED = "MINTED"
    FAILED = "FAILED"


class NftGrant(Base):
    """Entitlement to mint an asset, deduplicated per triggering origin."""

    __tablename__ = "nft_grants"
    __table_args__ = (
        Index(
            "uq_nft_grants_open_origin",
            "user_id",
            "asset_id",
            "origin_type",
            "origin_ref",
            unique=True,
            postgresql_where=text("status <> 'FAILED'"),
            sqlite_where=text("status <> 'FAILED'"),
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    asset_id = Column(String(64), nullable=False)
    origin_type = Column(SqlEnum(NftGrantOrigin, name="nft_grant_origin"), nullable=False)
    origin_ref = Column(String, nullable=False)
    status = Column(
        SqlEnum(NftGrantStatus, name="nft_grant_status"),
        nullable=False,
        default=NftGrantStatus.PENDING,
        server_default=NftGrantStatus.PENDING.value,
    )
    error_reason = Column(Text, nullable=True)
    minted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class CustodialWallet(Base):
    """Platform-held wallet, one per user, created on first claim."""

    __tablename__ = "custodial_wallets"
    __table_args__ = (UniqueConstraint("user_id", name="uq_custodial_wallets_user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    address = Column(String(42), nullable=False, unique=True)
    chain_id = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class NftMintStatus(str, Enum):
    MINTED = "MINTED"
    FAILED = "FAILED"


class NftCollectible(Base):
    """Realised mint result of a claimed grant."""

    __tablename__ = "nft_collectibles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    grant_id = Column(UUID(as_uuid=True), ForeignKey("nft_grants.id", ondelete="SET NULL"), nullable=True)
    wallet_address = Column(String(42), nullable=False)
    asset_id = Column(String(64), nullable=False)
    token_id = Column(BigInteger, nullable=False, unique=True)
    tx_hash = Column(String(66), nullable=False)
    chain_id = Column(Integer, nullable=False)
    mint_status = Column(SqlEnum(NftMintStatus, name="nft_mint_status"), nullable=False)
    minted_at = Column(DateTime(timezone=True), nullable=False)

    grant = relationship("NftGrant")


class NftTokenCounter(Base):
    """Single-row durable counter backing token id allocation."""

    __tablename__ = "nft_token_counters"

    name = Column(String(32), primary_key=True)
    last_value = Column(BigInteger, nullable=False, default=0)
