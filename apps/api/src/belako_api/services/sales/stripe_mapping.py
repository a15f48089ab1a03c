"""Translate Stripe payment intents and checkout sessions into sale events."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping

from belako_api.core.errors import InvalidEventError
from belako_api.services.sales.reconciler import SaleEvent, map_provider_status
from belako_api.services.users import normalize_email

_CENTS = Decimal("0.01")


def _field(obj: Any, key: str, default: Any = None) -> Any:
    """Read ``key`` from a Stripe object or a plain mapping."""

    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(key, default)
    return getattr(obj, key, default)


def _minor_units_to_amount(value: Any) -> Decimal:
    return (Decimal(int(value or 0)) / 100).quantize(_CENTS, rounding=ROUND_HALF_UP)


def _first_charge(intent: Any) -> Any:
    latest = _field(intent, "latest_charge")
    if latest is not None and not isinstance(latest, str):
        return latest
    charges = _field(_field(intent, "charges"), "data") or []
    return charges[0] if charges else None


def _require_email(raw: str | None, *, source: str, object_id: str) -> str:
    email = normalize_email(raw or "")
    if "@" not in email:
        raise InvalidEventError(f"{source} {object_id} has no customer email")
    return email


def sale_event_from_payment_intent(intent: Any) -> SaleEvent:
    intent_id = str(_field(intent, "id"))
    billing = _field(_first_charge(intent), "billing_details")
    email = _require_email(
        _field(intent, "receipt_email") or _field(billing, "email"),
        source="PaymentIntent",
        object_id=intent_id,
    )
    metadata = _field(intent, "metadata") or {}

    return SaleEvent(
        user_email=email,
        customer_email=email,
        customer_name=_field(billing, "name") or None,
        product_id=_field(metadata, "productId") or f"stripe-pi-{intent_id}",
        product_name=_field(metadata, "productName") or "Stripe purchase",
        amount_eur=_minor_units_to_amount(_field(intent, "amount")),
        payment_intent_id=intent_id,
        status=map_provider_status(_field(intent, "status")),
    )


def sale_event_from_checkout_session(session: Any) -> SaleEvent:
    session_id = str(_field(session, "id"))
    details = _field(session, "customer_details")
    email = _require_email(
        _field(details, "email") or _field(session, "customer_email"),
        source="Checkout session",
        object_id=session_id,
    )
    metadata = _field(session, "metadata") or {}

    payment_intent = _field(session, "payment_intent")
    if payment_intent is not None and not isinstance(payment_intent, str):
        payment_intent = _field(payment_intent, "id")

    return SaleEvent(
        user_email=email,
        customer_email=email,
        customer_name=_field(details, "name") or None,
        product_id=_field(metadata, "productId") or f"stripe-session-{session_id}",
        product_name=_field(metadata, "productName") or "Stripe checkout",
        amount_eur=_minor_units_to_amount(_field(session, "amount_total")),
        stripe_session_id=session_id,
        payment_intent_id=payment_intent or None,
        status=map_provider_status(_field(session, "payment_status")),
    )


__all__ = ["sale_event_from_checkout_session", "sale_event_from_payment_intent"]
