"""Idempotent upsert of payment-provider sale events into the ledger."""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.core.clock import utcnow
from belako_api.core.errors import InvalidEventError
from belako_api.models.catalog import Concert
from belako_api.models.sales import (
    ConcertRegistration,
    RegistrationSource,
    RegistrationStatus,
    Sale,
    SaleItemType,
    SaleStatus,
)
from belako_api.observability.rewards import get_rewards_store
from belako_api.observability.tracing import get_tracer
from belako_api.services.loyalty.progress_service import TierProgressService
from belako_api.services.users import UserRegistryService, normalize_email

TICKET_PRODUCT_PREFIX = "ticket-"

_PAID_PROVIDER_STATUSES = frozenset({"succeeded", "paid"})
_FAILED_PROVIDER_STATUSES = frozenset({"canceled", "requires_payment_method", "unpaid"})


def map_provider_status(value: str | None) -> SaleStatus:
    """Map provider status text onto the ledger's sale status."""

    if not value:
        return SaleStatus.PENDING
    normalized = value.strip().lower()
    if normalized in _PAID_PROVIDER_STATUSES:
        return SaleStatus.PAID
    if normalized in _FAILED_PROVIDER_STATUSES:
        return SaleStatus.FAILED
    return SaleStatus.PENDING


def item_type_from_product_id(product_id: str) -> SaleItemType:
    return SaleItemType.TICKET if product_id.startswith(TICKET_PRODUCT_PREFIX) else SaleItemType.MERCH


def concert_id_from_product_id(product_id: str) -> str | None:
    if not product_id.startswith(TICKET_PRODUCT_PREFIX):
        return None
    concert_id = product_id[len(TICKET_PRODUCT_PREFIX):].strip()
    return concert_id or None


@dataclass(frozen=True)
class SaleEvent:
    """Provider event already mapped into ledger vocabulary."""

    user_email: str
    customer_email: str
    product_id: str
    product_name: str
    amount_eur: Decimal
    status: SaleStatus
    customer_name: str | None = None
    payment_intent_id: str | None = None
    stripe_session_id: str | None = None


@dataclass
class ReconcileResult:
    sale: Sale
    created: bool
    newly_paid: bool
    registration: ConcertRegistration | None = None


class SaleReconciler:
    """Upserts sales by external id and derives concert registrations.

    Each call runs inside the caller's transaction; the unique constraints on
    ``payment_intent_id`` and ``stripe_session_id`` are the authority for
    de-duplication when two deliveries race.
    """

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session
        self._users = UserRegistryService(db_session)
        self._progress = TierProgressService(db_session)
        self._observability = get_rewards_store()

    async def reconcile(self, event: SaleEvent) -> ReconcileResult:
        if not event.payment_intent_id and not event.stripe_session_id:
            raise InvalidEventError("Sale events require a payment intent id or checkout session id")
        if "@" not in (event.user_email or ""):
            raise InvalidEventError("Sale events require a buyer email")

        with get_tracer().start_as_current_span("sales.reconcile") as span:
            span.set_attribute("sale.product_id", event.product_id)
            span.set_attribute("sale.status", event.status.value)
            result = await self._upsert(event)
            result.registration = await self._ensure_registration(result.sale)
            if result.newly_paid:
                await self._credit_spend(result.sale)

        self._observability.record_sale_event("created" if result.created else "updated")
        logger.info(
            "Reconciled sale",
            sale_id=str(result.sale.id),
            created=result.created,
            status=result.sale.status.value,
            payment_intent_id=result.sale.payment_intent_id,
            stripe_session_id=result.sale.stripe_session_id,
        )
        return result

    async def mark_paid(
        self,
        *,
        session_id: str | None = None,
        payment_intent_id: str | None = None,
    ) -> Sale | None:
        """Flip an existing sale to PAID; returns None when nothing matches."""

        if not session_id and not payment_intent_id:
            return None

        sale = await self._find_existing(payment_intent_id, session_id)
        if sale is None:
            return None

        newly_paid = sale.paid_at is None
        sale.status = SaleStatus.PAID
        if sale.paid_at is None:
            sale.paid_at = utcnow()
        await self._db.flush()
        await self._ensure_registration(sale)
        if newly_paid:
            await self._credit_spend(sale)
        logger.info("Marked sale paid", sale_id=str(sale.id))
        return sale

    async def _find_existing(self, payment_intent_id: str | None, session_id: str | None) -> Sale | None:
        if payment_intent_id:
            result = await self._db.execute(select(Sale).where(Sale.payment_intent_id == payment_intent_id))
            sale = result.scalar_one_or_none()
            if sale is not None:
                return sale
        if session_id:
            result = await self._db.execute(select(Sale).where(Sale.stripe_session_id == session_id))
            return result.scalar_one_or_none()
        return None

    async def _upsert(self, event: SaleEvent) -> ReconcileResult:
        existing = await self._find_existing(event.payment_intent_id, event.stripe_session_id)
        if existing is not None:
            return await self._update(existing, event)

        sale = Sale()
        newly_paid = self._apply(sale, event)
        try:
            async with self._db.begin_nested():
                self._db.add(sale)
                await self._db.flush()
        except IntegrityError:
            logger.warning(
                "Detected race when inserting sale; updating winner",
                payment_intent_id=event.payment_intent_id,
                stripe_session_id=event.stripe_session_id,
            )
            winner = await self._find_existing(event.payment_intent_id, event.stripe_session_id)
            if winner is None:
                raise
            return await self._update(winner, event)

        return ReconcileResult(sale=sale, created=True, newly_paid=newly_paid)

    async def _update(self, sale: Sale, event: SaleEvent) -> ReconcileResult:
        if event.stripe_session_id and event.stripe_session_id != sale.stripe_session_id:
            stmt = select(Sale.id).where(Sale.stripe_session_id == event.stripe_session_id, Sale.id != sale.id)
            owner = (await self._db.execute(stmt)).scalar_one_or_none()
            if owner is not None:
                logger.warning(
                    "Checkout session already belongs to another sale; keeping it there",
                    sale_id=str(sale.id),
                    owner_sale_id=str(owner),
                    stripe_session_id=event.stripe_session_id,
                )
                event = replace(event, stripe_session_id=None)

        newly_paid = self._apply(sale, event)
        await self._db.flush()
        return ReconcileResult(sale=sale, created=False, newly_paid=newly_paid)

    @staticmethod
    def _apply(sale: Sale, event: SaleEvent) -> bool:
        """Copy mutable fields onto ``sale``; returns True when paid_at is stamped now."""

        sale.user_email = normalize_email(event.user_email)
        sale.customer_email = normalize_email(event.customer_email or event.user_email)
        if event.customer_name:
            sale.customer_name = event.customer_name
        sale.product_id = event.product_id
        sale.product_name = event.product_name
        sale.item_type = item_type_from_product_id(event.product_id)
        sale.amount_eur = Decimal(event.amount_eur)
        sale.status = event.status
        sale.stripe_session_id = event.stripe_session_id or sale.stripe_session_id
        sale.payment_intent_id = event.payment_intent_id or sale.payment_intent_id

        if event.status is SaleStatus.PAID and sale.paid_at is None:
            sale.paid_at = utcnow()
            return True
        return False

    async def _find_registration(self, concert_id: str, user_email: str) -> ConcertRegistration | None:
        stmt = select(ConcertRegistration).where(
            ConcertRegistration.concert_id == concert_id,
            ConcertRegistration.user_email == user_email,
        )
        return (await self._db.execute(stmt)).scalar_one_or_none()

    async def _ensure_registration(self, sale: Sale) -> ConcertRegistration | None:
        if sale.status is not SaleStatus.PAID:
            return None
        concert_id = concert_id_from_product_id(sale.product_id)
        if concert_id is None:
            return None
        concert = await self._db.get(Concert, concert_id)
        if concert is None:
            logger.debug("Ticket sale references unknown concert", sale_id=str(sale.id), concert_id=concert_id)
            return None

        user_email = normalize_email(sale.user_email)
        registration = await self._find_registration(concert_id, user_email)
        if registration is None:
            candidate = ConcertRegistration(
                concert_id=concert_id,
                user_email=user_email,
                status=RegistrationStatus.PURCHASED,
                source=RegistrationSource.PURCHASE,
            )
            try:
                async with self._db.begin_nested():
                    self._db.add(candidate)
                    await self._db.flush()
                registration = candidate
            except IntegrityError:
                logger.warning(
                    "Detected race when registering ticket; updating winner",
                    concert_id=concert_id,
                    sale_id=str(sale.id),
                )
                registration = await self._find_registration(concert_id, user_email)
                if registration is None:
                    raise

        if sale.customer_name:
            registration.user_name = sale.customer_name
        registration.status = RegistrationStatus.PURCHASED
        registration.source = RegistrationSource.PURCHASE
        registration.sale_id = sale.id
        await self._db.flush()

        self._observability.record_sale_event("registration_upserted")
        logger.info(
            "Upserted concert registration",
            registration_id=str(registration.id),
            concert_id=concert_id,
            sale_id=str(sale.id),
        )
        return registration

    async def _credit_spend(self, sale: Sale) -> None:
        user = await self._users.ensure_user(sale.user_email, display_name=sale.customer_name)
        await self._progress.record_spend(user.id, Decimal(sale.amount_eur))


__all__ = [
    "ReconcileResult",
    "SaleEvent",
    "SaleReconciler",
    "concert_id_from_product_id",
    "item_type_from_product_id",
    "map_provider_status",
]
