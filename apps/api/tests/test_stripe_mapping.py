from decimal import Decimal
from types import SimpleNamespace

import pytest

from belako_api.core.errors import InvalidEventError
from belako_api.models.sales import SaleStatus
from belako_api.services.sales import sale_event_from_checkout_session, sale_event_from_payment_intent


def test_payment_intent_uses_receipt_email_and_metadata() -> None:
    intent = {
        "id": "pi_abc",
        "amount": 2550,
        "status": "succeeded",
        "receipt_email": "Fan@Example.com",
        "metadata": {"productId": "ticket-bilbao-2026", "productName": "Entrada Bilbao"},
        "latest_charge": {"billing_details": {"email": "other@example.com", "name": "Miren"}},
    }

    event = sale_event_from_payment_intent(intent)

    assert event.user_email == "fan@example.com"
    assert event.customer_name == "Miren"
    assert event.product_id == "ticket-bilbao-2026"
    assert event.product_name == "Entrada Bilbao"
    assert event.amount_eur == Decimal("25.50")
    assert event.status is SaleStatus.PAID
    assert event.payment_intent_id == "pi_abc"
    assert event.stripe_session_id is None


def test_payment_intent_falls_back_to_charge_billing_email() -> None:
    intent = SimpleNamespace(
        id="pi_legacy",
        amount=1800,
        status="requires_payment_method",
        receipt_email=None,
        metadata=None,
        latest_charge="ch_1",
        charges={"data": [{"billing_details": {"email": "legacy@example.com", "name": None}}]},
    )

    event = sale_event_from_payment_intent(intent)

    assert event.user_email == "legacy@example.com"
    assert event.customer_name is None
    assert event.product_id == "stripe-pi-pi_legacy"
    assert event.product_name == "Stripe purchase"
    assert event.status is SaleStatus.FAILED


def test_payment_intent_without_email_is_rejected() -> None:
    with pytest.raises(InvalidEventError):
        sale_event_from_payment_intent({"id": "pi_anon", "amount": 100, "status": "succeeded"})


def test_checkout_session_mapping() -> None:
    session = {
        "id": "cs_123",
        "amount_total": 3200,
        "payment_status": "paid",
        "customer_details": {"email": "buyer@example.com", "name": "Jon"},
        "payment_intent": {"id": "pi_from_session"},
        "metadata": {"productId": "merch-vinyl"},
    }

    event = sale_event_from_checkout_session(session)

    assert event.stripe_session_id == "cs_123"
    assert event.payment_intent_id == "pi_from_session"
    assert event.product_id == "merch-vinyl"
    assert event.product_name == "Stripe checkout"
    assert event.amount_eur == Decimal("32.00")
    assert event.status is SaleStatus.PAID


def test_checkout_session_uses_customer_email_and_fallback_product() -> None:
    session = {
        "id": "cs_456",
        "amount_total": None,
        "payment_status": "unpaid",
        "customer_email": "late@example.com",
        "payment_intent": None,
    }

    event = sale_event_from_checkout_session(session)

    assert event.user_email == "late@example.com"
    assert event.product_id == "stripe-session-cs_456"
    assert event.payment_intent_id is None
    assert event.amount_eur == Decimal("0.00")
    assert event.status is SaleStatus.FAILED
