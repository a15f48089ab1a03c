"""Import recent Stripe payment intents and checkout sessions into the sales ledger."""

from __future__ import annotations

import datetime as dt
from typing import Any, Awaitable, Callable, Dict, Iterable

import stripe
from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.core.errors import InvalidEventError
from belako_api.core.settings import settings
from belako_api.models.sales import Sale
from belako_api.observability.rewards import get_rewards_store
from belako_api.services.sales import (
    SaleEvent,
    SaleReconciler,
    sale_event_from_checkout_session,
    sale_event_from_payment_intent,
)


# meta: job: stripe-sales-backfill

SessionFactory = Callable[[], AsyncSession] | Callable[[], Awaitable[AsyncSession]]
Fetcher = Callable[[int], Iterable[Any]]

PAGE_SIZE = 100


def list_payment_intents(since_unix: int) -> Iterable[Any]:
    pager = stripe.PaymentIntent.list(
        limit=PAGE_SIZE,
        created={"gte": since_unix},
        api_key=settings.stripe_secret_key,
    )
    return pager.auto_paging_iter()


def list_checkout_sessions(since_unix: int) -> Iterable[Any]:
    pager = stripe.checkout.Session.list(
        limit=PAGE_SIZE,
        created={"gte": since_unix},
        api_key=settings.stripe_secret_key,
    )
    return pager.auto_paging_iter()


async def _open_session(session_factory: SessionFactory) -> AsyncSession:
    maybe_session = session_factory()
    return maybe_session if isinstance(maybe_session, AsyncSession) else await maybe_session


async def _reconcile_one(session_factory: SessionFactory, event: SaleEvent) -> None:
    session = await _open_session(session_factory)
    async with session as managed_session:
        try:
            await SaleReconciler(managed_session).reconcile(event)
            await managed_session.commit()
        except Exception:
            await managed_session.rollback()
            raise


async def run_stripe_sales_backfill(
    *,
    session_factory: SessionFactory,
    days: int | None = None,
    fetch_payment_intents: Fetcher | None = None,
    fetch_checkout_sessions: Fetcher | None = None,
) -> Dict[str, int]:
    """Reconcile every provider record of the window, one transaction per record.

    Records without a usable email are skipped; records whose reconciliation
    raises are rolled back and counted as failed without stopping the run.
    """

    if fetch_payment_intents is None or fetch_checkout_sessions is None:
        if not settings.stripe_secret_key:
            raise RuntimeError("STRIPE_SECRET_KEY is not configured")
    fetch_payment_intents = fetch_payment_intents or list_payment_intents
    fetch_checkout_sessions = fetch_checkout_sessions or list_checkout_sessions

    window_days = days if days is not None else settings.stripe_backfill_days
    since = dt.datetime.now(dt.timezone.utc) - dt.timedelta(days=window_days)
    since_unix = int(since.timestamp())

    observability = get_rewards_store()
    summary = {"importedPaymentIntents": 0, "importedSessions": 0, "skipped": 0, "failed": 0}

    sources = (
        ("importedPaymentIntents", fetch_payment_intents, sale_event_from_payment_intent),
        ("importedSessions", fetch_checkout_sessions, sale_event_from_checkout_session),
    )
    for counter, fetch, to_event in sources:
        for record in fetch(since_unix):
            record_id = record.get("id") if isinstance(record, dict) else getattr(record, "id", None)
            try:
                event = to_event(record)
            except InvalidEventError as exc:
                summary["skipped"] += 1
                observability.record_sale_event("skipped")
                logger.warning("Skipping Stripe record", record_id=record_id, reason=str(exc))
                continue

            try:
                await _reconcile_one(session_factory, event)
            except Exception as exc:
                summary["failed"] += 1
                observability.record_sale_event("failed")
                logger.opt(exception=exc).warning("Failed to reconcile Stripe record", record_id=record_id)
                continue

            summary[counter] += 1

    session = await _open_session(session_factory)
    async with session as managed_session:
        total = await managed_session.scalar(select(func.count()).select_from(Sale))

    result = {**summary, "totalSales": int(total or 0)}
    logger.bind(summary=result).info("Stripe sales backfill completed", days=window_days)
    return result


__all__ = ["list_checkout_sessions", "list_payment_intents", "run_stripe_sales_backfill"]
