from __future__ import annotations

import pytest
import stripe
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from belako_api.core.settings import settings
from belako_api.models.sales import Sale, SaleStatus
from belako_api.observability.rewards import get_rewards_store


def _intent_event(status: str = "succeeded") -> dict:
    return {
        "id": "evt_1",
        "type": f"payment_intent.{status}",
        "data": {
            "object": {
                "id": "pi_webhook",
                "amount": 1800,
                "status": status,
                "receipt_email": "webhook@example.com",
                "metadata": {"productId": "merch-tote", "productName": "Tote bag"},
            }
        },
    }


@pytest.fixture
def webhook_secret(monkeypatch):
    monkeypatch.setattr(settings, "stripe_webhook_secret", "whsec_test")
    return "whsec_test"


@pytest.mark.asyncio
async def test_webhook_requires_configured_secret(app_with_db, monkeypatch) -> None:
    app, _ = app_with_db
    monkeypatch.setattr(settings, "stripe_webhook_secret", "")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/api/v1/commerce/webhooks/stripe", content=b"{}")

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_webhook_rejects_missing_or_bad_signature(app_with_db, webhook_secret, monkeypatch) -> None:
    app, _ = app_with_db

    def _raise(**_kwargs):
        raise stripe.SignatureVerificationError("bad signature", "t=1,v1=bad")

    monkeypatch.setattr(stripe.Webhook, "construct_event", _raise)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        missing = await client.post("/api/v1/commerce/webhooks/stripe", content=b"{}")
        invalid = await client.post(
            "/api/v1/commerce/webhooks/stripe",
            content=b"{}",
            headers={"Stripe-Signature": "t=1,v1=bad"},
        )

    assert missing.status_code == 400
    assert invalid.status_code == 400


@pytest.mark.asyncio
async def test_webhook_reconciles_payment_intent_idempotently(app_with_db, webhook_secret, monkeypatch) -> None:
    app, session_factory = app_with_db
    monkeypatch.setattr(stripe.Webhook, "construct_event", lambda **_kwargs: _intent_event())

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        first = await client.post(
            "/api/v1/commerce/webhooks/stripe",
            content=b"{}",
            headers={"Stripe-Signature": "t=1,v1=ok"},
        )
        second = await client.post(
            "/api/v1/commerce/webhooks/stripe",
            content=b"{}",
            headers={"Stripe-Signature": "t=1,v1=ok"},
        )

    assert first.status_code == 202
    body = first.json()
    assert body["status"] == "reconciled"
    assert body["saleStatus"] == "PAID"
    assert second.json()["saleId"] == body["saleId"]

    async with session_factory() as session:
        sales = (await session.execute(select(Sale))).scalars().all()
        assert len(sales) == 1
        assert sales[0].status is SaleStatus.PAID
        assert sales[0].payment_intent_id == "pi_webhook"


@pytest.mark.asyncio
async def test_webhook_ignores_unrelated_and_skips_anonymous_events(app_with_db, webhook_secret, monkeypatch) -> None:
    app, _ = app_with_db
    events = iter(
        [
            {"id": "evt_2", "type": "customer.created", "data": {"object": {"id": "cus_1"}}},
            {
                "id": "evt_3",
                "type": "checkout.session.completed",
                "data": {"object": {"id": "cs_anon", "amount_total": 100, "payment_status": "paid"}},
            },
        ]
    )
    monkeypatch.setattr(stripe.Webhook, "construct_event", lambda **_kwargs: next(events))

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        ignored = await client.post(
            "/api/v1/commerce/webhooks/stripe", content=b"{}", headers={"Stripe-Signature": "sig"}
        )
        skipped = await client.post(
            "/api/v1/commerce/webhooks/stripe", content=b"{}", headers={"Stripe-Signature": "sig"}
        )

    assert ignored.json() == {"status": "ignored"}
    assert skipped.json() == {"status": "skipped"}
    assert get_rewards_store().snapshot().sales["skipped"] == 1
