"""Stripe webhook intake feeding the sale reconciler."""

from __future__ import annotations

from typing import Any

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.core.errors import InvalidEventError
from belako_api.core.settings import settings
from belako_api.db.session import get_session
from belako_api.observability.rewards import get_rewards_store
from belako_api.services.sales import (
    SaleReconciler,
    sale_event_from_checkout_session,
    sale_event_from_payment_intent,
)

router = APIRouter(prefix="/commerce", tags=["commerce"])

_MAPPERS = {
    "payment_intent": sale_event_from_payment_intent,
    "checkout.session": sale_event_from_checkout_session,
}


def _mapper_for(event_type: str):
    prefix, _, _action = event_type.rpartition(".")
    return _MAPPERS.get(prefix)


@router.post("/webhooks/stripe", status_code=status.HTTP_202_ACCEPTED)
async def stripe_webhook(request: Request, db: AsyncSession = Depends(get_session)) -> dict[str, str]:
    """Verify a Stripe delivery and reconcile the referenced sale."""

    secret = settings.stripe_webhook_secret
    if not secret:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Stripe webhook secret not configured")

    signature = request.headers.get("Stripe-Signature")
    if not signature:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing Stripe signature header")

    payload_text = (await request.body()).decode("utf-8")
    try:
        event = stripe.Webhook.construct_event(payload=payload_text, sig_header=signature, secret=secret)
    except stripe.SignatureVerificationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid Stripe signature") from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload body") from exc

    event_type = str(event["type"])
    mapper = _mapper_for(event_type)
    if mapper is None:
        logger.debug("Ignoring Stripe event", event_type=event_type, event_id=event["id"])
        return {"status": "ignored"}

    data_object: Any = event["data"]["object"]
    try:
        sale_event = mapper(data_object)
    except InvalidEventError as exc:
        get_rewards_store().record_sale_event("skipped")
        logger.warning("Skipping Stripe event", event_type=event_type, event_id=event["id"], reason=str(exc))
        return {"status": "skipped"}

    result = await SaleReconciler(db).reconcile(sale_event)
    await db.commit()
    return {"status": "reconciled", "saleId": str(result.sale.id), "saleStatus": result.sale.status.value}
