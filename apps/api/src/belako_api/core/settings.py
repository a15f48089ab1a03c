from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "sqlite+aiosqlite:///./belako.db"
    client_url: str = "http://localhost:5173"
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # Signing key for short-lived capability tokens (meet & greet QR)
    jwt_secret: str = "dev-secret"

    # Internal API security
    internal_api_key: str = ""

    # Stripe configuration
    stripe_public_key: str = ""
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_backfill_days: int = 365

    # Custodial NFT minting
    nft_chain_id: int = 137
    nft_contract_address: str = "0xBelakoDemoContract000000000000000000000000"
    nft_base_uri: str = "https://belako.bizkardolab.eu/metadata"

    # Meet & greet access
    meet_greet_pass_asset_code: str = "BELAKO_SUPERFAN_MG_PASS"
    meet_greet_qr_ttl_seconds: int = 60

    # Tracing
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    otel_console_exporter: bool = False

    # Analytics
    analytics_event_list_limit: int = 50


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
