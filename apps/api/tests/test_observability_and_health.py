import pytest
from httpx import ASGITransport, AsyncClient

from belako_api.core.settings import settings
from belako_api.observability.rewards import get_rewards_store


@pytest.mark.asyncio
async def test_health_endpoints(app_with_db) -> None:
    app, _ = app_with_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        root = await client.get("/healthz")
        versioned = await client.get("/api/v1/healthz")
        ready = await client.get("/api/v1/readyz")

    assert root.status_code == 200
    assert root.json()["status"] == "ok"
    assert versioned.json() == {"status": "ok"}
    assert ready.json() == {"status": "ready", "database": "ok"}


@pytest.mark.asyncio
async def test_rewards_snapshot_requires_key(app_with_db, monkeypatch) -> None:
    app, _ = app_with_db
    monkeypatch.setattr(settings, "internal_api_key", "snapshot-key")
    store = get_rewards_store()
    store.record_sale_event("created")
    store.record_grant_event("claim_minted")
    store.record_meet_greet_event("redeemed")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        denied = await client.get("/api/v1/observability/rewards")
        allowed = await client.get("/api/v1/observability/rewards", headers={"X-API-Key": "snapshot-key"})

    assert denied.status_code == 401
    assert allowed.json() == {
        "sales": {"created": 1},
        "grants": {"claim_minted": 1},
        "meetGreet": {"redeemed": 1},
    }


def test_store_reset_clears_counters() -> None:
    store = get_rewards_store()
    store.record_grant_event("created")
    store.reset()
    assert store.snapshot().as_dict() == {"sales": {}, "grants": {}, "meetGreet": {}}
