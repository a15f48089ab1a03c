"""Fan loyalty core: users, tiers, sales ledger, NFT grants and meet & greet access.

Revision ID: 20261016_01
Revises: 
Create Date: 2026-10-16
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision: str = "20261016_01"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=True),
        sa.Column("picture_url", sa.String(), nullable=True),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="fan"),
        sa.Column("auth_provider", sa.String(length=16), nullable=False, server_default="email"),
        sa.Column("onboarding_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "tier_progress",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("attendance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("spend_usd", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("tier", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_tier_upgrade_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", name="uq_tier_progress_user_id"),
        sa.CheckConstraint("attendance >= 0", name="ck_tier_progress_attendance_non_negative"),
        sa.CheckConstraint("spend_usd >= 0", name="ck_tier_progress_spend_non_negative"),
        sa.CheckConstraint("tier >= 0", name="ck_tier_progress_tier_non_negative"),
    )

    op.create_table(
        "journey_tier_configs",
        sa.Column(
            "id",
            sa.Enum("FAN", "SUPER", "ULTRA", "GOD", name="journey_tier_id"),
            primary_key=True,
        ),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("required_xp", sa.Integer(), nullable=False),
        sa.Column("perk_label", sa.String(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

    op.create_table(
        "xp_action_configs",
        sa.Column(
            "code",
            sa.Enum("JOIN_LIVE", "WATCH_FULL_LIVE", "BUY_MERCH", "BUY_TICKET", name="xp_action_code"),
            primary_key=True,
        ),
        sa.Column("label", sa.String(), nullable=False),
        sa.Column("xp_value", sa.Integer(), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

    op.create_table(
        "band_rewards",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "trigger_type",
            sa.Enum("WATCH_FULL_LIVE", "XP_THRESHOLD", "PURCHASE", name="reward_trigger_type"),
            nullable=False,
        ),
        sa.Column("xp_bonus", sa.Integer(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )

    op.create_table(
        "band_store_items",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("fiat_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("image_url", sa.String(), nullable=False),
        sa.Column("limited", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )

    op.create_table(
        "band_concerts",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("venue", sa.String(), nullable=False),
        sa.Column("city", sa.String(), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("price_eur", sa.Numeric(10, 2), nullable=False),
        sa.Column("ticket_url", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )

    op.create_table(
        "band_lives",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("artist", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("viewers", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reward_hint", sa.String(), nullable=False),
        sa.Column("genre", sa.String(), nullable=False),
        sa.Column("color_class", sa.String(), nullable=False),
        sa.Column("youtube_url", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )

    op.create_table(
        "band_sales",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_email", sa.String(), nullable=False),
        sa.Column("customer_email", sa.String(), nullable=False),
        sa.Column("customer_name", sa.String(), nullable=True),
        sa.Column("product_id", sa.String(), nullable=False),
        sa.Column("product_name", sa.String(), nullable=False),
        sa.Column("item_type", sa.Enum("TICKET", "MERCH", name="sale_item_type"), nullable=False),
        sa.Column("amount_eur", sa.Numeric(10, 2), nullable=False),
        sa.Column(
            "status",
            sa.Enum("PENDING", "PAID", "FAILED", "REFUNDED", name="sale_status"),
            nullable=False,
            server_default="PENDING",
        ),
        sa.Column("stripe_session_id", sa.String(), nullable=True),
        sa.Column("payment_intent_id", sa.String(), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("stripe_session_id", name="uq_band_sales_stripe_session_id"),
        sa.UniqueConstraint("payment_intent_id", name="uq_band_sales_payment_intent_id"),
    )
    op.create_index("ix_band_sales_user_email", "band_sales", ["user_email"])

    op.create_table(
        "band_concert_registrations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "concert_id",
            sa.String(length=64),
            sa.ForeignKey("band_concerts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_email", sa.String(), nullable=False),
        sa.Column("user_name", sa.String(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("PURCHASED", "CHECKED_IN", "CANCELLED", name="registration_status"),
            nullable=False,
        ),
        sa.Column("source", sa.Enum("PURCHASE", "MANUAL", name="registration_source"), nullable=False),
        sa.Column(
            "sale_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("band_sales.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
        sa.UniqueConstraint("concert_id", "user_email", name="uq_band_concert_registrations_concert_user"),
    )

    op.create_table(
        "nft_assets",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(), nullable=False),
        sa.Column("rarity", sa.Enum("FAN", "PREMIUM", "LEGENDARY", name="nft_rarity"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_nft_assets_code", "nft_assets", ["code"], unique=True)

    op.create_table(
        "nft_grants",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("asset_id", sa.String(length=64), nullable=False),
        sa.Column(
            "origin_type",
            sa.Enum("TIER", "FULL_LIVE", "CAMPAIGN", name="nft_grant_origin"),
            nullable=False,
        ),
        sa.Column("origin_ref", sa.String(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("PENDING", "MINTED", "FAILED", name="nft_grant_status"),
            nullable=False,
            server_default="PENDING",
        ),
        sa.Column("error_reason", sa.Text(), nullable=True),
        sa.Column("minted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_nft_grants_user_id", "nft_grants", ["user_id"])
    op.create_index(
        "uq_nft_grants_open_origin",
        "nft_grants",
        ["user_id", "asset_id", "origin_type", "origin_ref"],
        unique=True,
        postgresql_where=sa.text("status <> 'FAILED'"),
    )

    op.create_table(
        "custodial_wallets",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("address", sa.String(length=42), nullable=False),
        sa.Column("chain_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("user_id", name="uq_custodial_wallets_user_id"),
        sa.UniqueConstraint("address", name="uq_custodial_wallets_address"),
    )

    op.create_table(
        "nft_collectibles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "grant_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("nft_grants.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("wallet_address", sa.String(length=42), nullable=False),
        sa.Column("asset_id", sa.String(length=64), nullable=False),
        sa.Column("token_id", sa.BigInteger(), nullable=False),
        sa.Column("tx_hash", sa.String(length=66), nullable=False),
        sa.Column("chain_id", sa.Integer(), nullable=False),
        sa.Column("mint_status", sa.Enum("MINTED", "FAILED", name="nft_mint_status"), nullable=False),
        sa.Column("minted_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("token_id", name="uq_nft_collectibles_token_id"),
    )
    op.create_index("ix_nft_collectibles_user_id", "nft_collectibles", ["user_id"])

    op.create_table(
        "nft_token_counters",
        sa.Column("name", sa.String(length=32), primary_key=True),
        sa.Column("last_value", sa.BigInteger(), nullable=False),
    )

    op.create_table(
        "meet_greet_events",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.String(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

    op.create_table(
        "meet_greet_access",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("event_id", sa.String(length=64), sa.ForeignKey("meet_greet_events.id"), nullable=False),
        sa.Column("pass_asset_id", sa.String(length=64), nullable=False),
        sa.Column(
            "status",
            sa.Enum("VALID", "USED", "EXPIRED", name="meet_greet_access_status"),
            nullable=False,
        ),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("user_id", name="uq_meet_greet_access_user_id"),
    )

    op.create_table(
        "analytics_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_analytics_events_code", "analytics_events", ["code"])
    op.create_index("ix_analytics_events_user_id", "analytics_events", ["user_id"])
    op.create_index("ix_analytics_events_occurred_at", "analytics_events", ["occurred_at"])


def downgrade() -> None:
    op.drop_index("ix_analytics_events_occurred_at", table_name="analytics_events")
    op.drop_index("ix_analytics_events_user_id", table_name="analytics_events")
    op.drop_index("ix_analytics_events_code", table_name="analytics_events")
    op.drop_table("analytics_events")
    op.drop_table("meet_greet_access")
    op.drop_table("meet_greet_events")
    op.drop_table("nft_token_counters")
    op.drop_index("ix_nft_collectibles_user_id", table_name="nft_collectibles")
    op.drop_table("nft_collectibles")
    op.drop_table("custodial_wallets")
    op.drop_index("uq_nft_grants_open_origin", table_name="nft_grants")
    op.drop_index("ix_nft_grants_user_id", table_name="nft_grants")
    op.drop_table("nft_grants")
    op.drop_index("ix_nft_assets_code", table_name="nft_assets")
    op.drop_table("nft_assets")
    op.drop_table("band_concert_registrations")
    op.drop_index("ix_band_sales_user_email", table_name="band_sales")
    op.drop_table("band_sales")
    op.drop_table("band_lives")
    op.drop_table("band_concerts")
    op.drop_table("band_store_items")
    op.drop_table("band_rewards")
    op.drop_table("xp_action_configs")
    op.drop_table("journey_tier_configs")
    op.drop_table("tier_progress")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_name in (
        "meet_greet_access_status",
        "nft_mint_status",
        "nft_grant_status",
        "nft_grant_origin",
        "nft_rarity",
        "registration_source",
        "registration_status",
        "sale_status",
        "sale_item_type",
        "reward_trigger_type",
        "xp_action_code",
        "journey_tier_id",
    ):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
