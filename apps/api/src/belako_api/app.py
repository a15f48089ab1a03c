from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from belako_api.core.settings import settings
from belako_api.db.session import engine
from .api.routes import api_router
from .core.logging import configure_logging
from .observability.tracing import configure_tracing


APP_VERSION = "0.1.0"
SERVICE_NAME = "belako-api"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Belako API starting",
        environment=settings.environment,
        stripe_configured=bool(settings.stripe_secret_key),
        webhook_configured=bool(settings.stripe_webhook_secret),
        nft_chain_id=settings.nft_chain_id,
    )
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Belako API stopped")


def create_app() -> FastAPI:
    """Application factory for the Belako fan loyalty API."""
    configure_logging(
        service_name=SERVICE_NAME,
        environment=settings.environment,
        version=APP_VERSION,
    )

    app = FastAPI(
        title="Belako Fan Loyalty API",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    configure_tracing(
        app,
        service_name=SERVICE_NAME,
        service_version=APP_VERSION,
        environment=settings.environment,
    )

    app.include_router(api_router)

    @app.get("/healthz", tags=["Health"])
    async def health_check() -> dict[str, str]:
        return {
            "status": "ok",
            "environment": settings.environment,
            "version": APP_VERSION,
        }

    return app
