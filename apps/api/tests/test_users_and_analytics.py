import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from belako_api.core.settings import settings
from belako_api.models.loyalty import TierProgress
from belako_api.models.user import User

from conftest import create_user, session_headers


@pytest.mark.asyncio
async def test_login_sync_registers_then_updates_user(app_with_db, monkeypatch) -> None:
    app, session_factory = app_with_db
    monkeypatch.setattr(settings, "internal_api_key", "internal-key")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        rejected = await client.post("/api/v1/users/login-sync", json={"email": "new@example.com"})
        first = await client.post(
            "/api/v1/users/login-sync",
            json={"email": " New@Example.com ", "authProvider": "google", "displayName": "Nerea"},
            headers={"X-API-Key": "internal-key"},
        )
        second = await client.post(
            "/api/v1/users/login-sync",
            json={"email": "new@example.com", "onboardingCompleted": True},
            headers={"X-API-Key": "internal-key"},
        )
        invalid = await client.post(
            "/api/v1/users/login-sync",
            json={"email": "not-an-email"},
            headers={"X-API-Key": "internal-key"},
        )

    assert rejected.status_code == 401
    assert first.status_code == 200
    assert first.json()["isNewUser"] is True
    assert first.json()["user"]["email"] == "new@example.com"
    assert first.json()["user"]["authProvider"] == "google"
    assert first.json()["user"]["role"] == "fan"

    assert second.json()["isNewUser"] is False
    assert second.json()["user"]["onboardingCompleted"] is True
    assert second.json()["user"]["displayName"] == "Nerea"
    assert invalid.status_code == 400

    async with session_factory() as session:
        user = (await session.execute(select(User).where(User.email == "new@example.com"))).scalar_one()
        progress = (
            await session.execute(select(TierProgress).where(TierProgress.user_id == user.id))
        ).scalar_one_or_none()
        assert progress is not None


@pytest.mark.asyncio
async def test_analytics_events_are_tracked_and_listed(app_with_db) -> None:
    app, session_factory = app_with_db
    headers = session_headers(await create_user(session_factory, "fan@example.com"))

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        tracked = await client.post(
            "/api/v1/analytics/track",
            json={"code": "live_joined", "payload": {"liveId": "live-1"}},
            headers=headers,
        )
        too_short = await client.post("/api/v1/analytics/track", json={"code": "x"}, headers=headers)
        await client.post("/api/v1/analytics/track", json={"code": "store_opened"}, headers=headers)
        listed = await client.get("/api/v1/analytics/events", params={"limit": 10}, headers=headers)

    assert tracked.status_code == 201
    assert tracked.json()["code"] == "live_joined"
    assert tracked.json()["payload"] == {"liveId": "live-1"}
    assert too_short.status_code == 422
    codes = {item["code"] for item in listed.json()["items"]}
    assert codes == {"live_joined", "store_opened"}
