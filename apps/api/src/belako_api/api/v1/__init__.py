from fastapi import APIRouter

from .endpoints import (
    analytics,
    catalog,
    commerce,
    dashboard,
    health,
    loyalty,
    observability,
    users,
    wallet,
)

router = APIRouter()
router.include_router(health.router, tags=["Health"])
router.include_router(users.router)
router.include_router(loyalty.router)
router.include_router(wallet.router)
router.include_router(commerce.router)
router.include_router(catalog.router)
router.include_router(analytics.router)
router.include_router(dashboard.router)
router.include_router(observability.router)
