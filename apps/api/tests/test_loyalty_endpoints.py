import pytest
from httpx import ASGITransport, AsyncClient

from conftest import create_user, session_headers


@pytest.mark.asyncio
async def test_evaluate_returns_tier_results(app_with_db) -> None:
    app, session_factory = app_with_db
    user_id = await create_user(session_factory, "fan@example.com")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/v1/loyalty/evaluate",
            json={"attendance": 10, "spendUsd": 75},
            headers=session_headers(user_id),
        )

    assert response.status_code == 200
    payload = response.json()
    assert payload["highestTier"] == 2
    assert [tier["unlocked"] for tier in payload["tiers"]] == [True, True, False]
    assert payload["tiers"][2]["reason"] == "Attendance 10/20, Spend $75/$150"


@pytest.mark.asyncio
async def test_evaluate_rejects_negative_input(app_with_db) -> None:
    app, session_factory = app_with_db
    user_id = await create_user(session_factory, "fan@example.com")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/v1/loyalty/evaluate",
            json={"attendance": -1, "spendUsd": 0},
            headers=session_headers(user_id),
        )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_session_header_is_required(app_with_db) -> None:
    app, _ = app_with_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        missing = await client.get("/api/v1/loyalty/progress")
        malformed = await client.get("/api/v1/loyalty/progress", headers={"X-Session-User": "nope"})
        unknown = await client.get(
            "/api/v1/loyalty/progress",
            headers={"X-Session-User": "00000000-0000-0000-0000-000000000000"},
        )

    assert missing.status_code == 401
    assert malformed.status_code == 400
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_progress_tracks_verified_attendance(app_with_db) -> None:
    app, session_factory = app_with_db
    user_id = await create_user(session_factory, "fan@example.com")
    headers = session_headers(user_id)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        initial = await client.get("/api/v1/loyalty/progress", headers=headers)
        for _ in range(3):
            verified = await client.post(
                "/api/v1/wallet/attendance/verify",
                json={"streamId": "live-1"},
                headers=headers,
            )
            assert verified.status_code == 200
        after = await client.get("/api/v1/loyalty/progress", headers=headers)

    assert initial.json()["attendance"] == 0
    assert initial.json()["tier"] == 0
    body = after.json()
    assert body["attendance"] == 3
    assert body["tier"] == 1
    assert body["lastTierUpgradeAt"] is not None
