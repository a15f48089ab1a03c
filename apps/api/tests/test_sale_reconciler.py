from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from belako_api.core.errors import InvalidEventError
from belako_api.models.catalog import Concert
from belako_api.models.loyalty import TierProgress
from belako_api.models.sales import (
    ConcertRegistration,
    RegistrationSource,
    RegistrationStatus,
    Sale,
    SaleItemType,
    SaleStatus,
)
from belako_api.models.user import User
from belako_api.observability.rewards import get_rewards_store
from belako_api.services.sales import (
    SaleEvent,
    SaleReconciler,
    concert_id_from_product_id,
    item_type_from_product_id,
    map_provider_status,
)
from belako_api.services.users import UserRegistryService

from conftest import create_user


def _event(**overrides) -> SaleEvent:
    fields = {
        "user_email": "Buyer@Example.com ",
        "customer_email": "buyer@example.com",
        "customer_name": "Ane Buyer",
        "product_id": "merch-tote",
        "product_name": "Tote bag",
        "amount_eur": Decimal("18.00"),
        "status": SaleStatus.PENDING,
        "payment_intent_id": "pi_123",
    }
    fields.update(overrides)
    return SaleEvent(**fields)


async def _add_concert(session, concert_id: str = "bilbao-2026") -> Concert:
    concert = Concert(
        id=concert_id,
        title="Belako en Bilbao",
        venue="Bilbao Arena",
        city="Bilbao",
        starts_at=datetime(2026, 11, 21, 21, 0, tzinfo=timezone.utc),
        price_eur=Decimal("25.00"),
    )
    session.add(concert)
    await session.flush()
    return concert


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("succeeded", SaleStatus.PAID),
        ("PAID", SaleStatus.PAID),
        ("canceled", SaleStatus.FAILED),
        ("requires_payment_method", SaleStatus.FAILED),
        ("Unpaid", SaleStatus.FAILED),
        ("processing", SaleStatus.PENDING),
        (None, SaleStatus.PENDING),
        ("", SaleStatus.PENDING),
    ],
)
def test_provider_status_mapping(raw, expected) -> None:
    assert map_provider_status(raw) is expected


def test_product_id_classification() -> None:
    assert item_type_from_product_id("ticket-bilbao-2026") is SaleItemType.TICKET
    assert item_type_from_product_id("merch-tote") is SaleItemType.MERCH
    assert concert_id_from_product_id("ticket-bilbao-2026") == "bilbao-2026"
    assert concert_id_from_product_id("ticket-") is None
    assert concert_id_from_product_id("merch-tote") is None


@pytest.mark.asyncio
async def test_reconcile_requires_external_id_and_email(session_factory) -> None:
    async with session_factory() as session:
        reconciler = SaleReconciler(session)
        with pytest.raises(InvalidEventError):
            await reconciler.reconcile(_event(payment_intent_id=None, stripe_session_id=None))
        with pytest.raises(InvalidEventError):
            await reconciler.reconcile(_event(user_email="not-an-email"))


@pytest.mark.asyncio
async def test_repeated_events_upsert_a_single_sale(session_factory) -> None:
    async with session_factory() as session:
        reconciler = SaleReconciler(session)

        first = await reconciler.reconcile(_event())
        assert first.created is True
        assert first.sale.user_email == "buyer@example.com"
        assert first.sale.item_type is SaleItemType.MERCH
        assert first.sale.paid_at is None

        second = await reconciler.reconcile(_event(status=SaleStatus.PAID, stripe_session_id="cs_123"))
        assert second.created is False
        assert second.sale.id == first.sale.id
        assert second.sale.status is SaleStatus.PAID
        assert second.sale.stripe_session_id == "cs_123"
        assert second.newly_paid is True
        await session.commit()

    async with session_factory() as session:
        # Matched through the session id alone once the intent id is known.
        third = await SaleReconciler(session).reconcile(
            _event(status=SaleStatus.PAID, payment_intent_id=None, stripe_session_id="cs_123")
        )
        assert third.sale.payment_intent_id == "pi_123"
        assert third.newly_paid is False
        count = await session.scalar(select(func.count()).select_from(Sale))
        assert count == 1

    snapshot = get_rewards_store().snapshot()
    assert snapshot.sales["created"] == 1
    assert snapshot.sales["updated"] == 2


@pytest.mark.asyncio
async def test_paid_at_is_stamped_once(session_factory) -> None:
    async with session_factory() as session:
        reconciler = SaleReconciler(session)
        first = await reconciler.reconcile(_event(status=SaleStatus.PAID))
        paid_at = first.sale.paid_at
        assert paid_at is not None

        again = await reconciler.reconcile(_event(status=SaleStatus.PAID))
        assert again.sale.paid_at == paid_at
        assert again.newly_paid is False


@pytest.mark.asyncio
async def test_paid_sale_credits_spend_once_and_creates_user(session_factory) -> None:
    async with session_factory() as session:
        reconciler = SaleReconciler(session)
        await reconciler.reconcile(_event(status=SaleStatus.PAID, amount_eur=Decimal("60.00")))
        await reconciler.reconcile(_event(status=SaleStatus.PAID, amount_eur=Decimal("60.00")))
        await session.commit()

    async with session_factory() as session:
        user = (await session.execute(select(User).where(User.email == "buyer@example.com"))).scalar_one()
        assert user.display_name == "Ane Buyer"
        progress = (
            await session.execute(select(TierProgress).where(TierProgress.user_id == user.id))
        ).scalar_one()
        assert Decimal(progress.spend_usd) == Decimal("60.00")


@pytest.mark.asyncio
async def test_paid_ticket_upserts_one_registration(session_factory) -> None:
    async with session_factory() as session:
        await _add_concert(session)
        reconciler = SaleReconciler(session)

        pending = await reconciler.reconcile(_event(product_id="ticket-bilbao-2026"))
        assert pending.registration is None

        paid = await reconciler.reconcile(_event(product_id="ticket-bilbao-2026", status=SaleStatus.PAID))
        assert paid.registration is not None
        assert paid.registration.status is RegistrationStatus.PURCHASED
        assert paid.registration.source is RegistrationSource.PURCHASE
        assert paid.registration.sale_id == paid.sale.id
        assert paid.registration.user_name == "Ane Buyer"

        # A second ticket purchase by the same buyer reuses the registration.
        other = await reconciler.reconcile(
            _event(product_id="ticket-bilbao-2026", status=SaleStatus.PAID, payment_intent_id="pi_456")
        )
        assert other.registration.id == paid.registration.id
        assert other.registration.sale_id == other.sale.id

        count = await session.scalar(select(func.count()).select_from(ConcertRegistration))
        assert count == 1


@pytest.mark.asyncio
async def test_ticket_for_unknown_concert_has_no_registration(session_factory) -> None:
    async with session_factory() as session:
        result = await SaleReconciler(session).reconcile(
            _event(product_id="ticket-missing", status=SaleStatus.PAID)
        )
        assert result.sale.item_type is SaleItemType.TICKET
        assert result.registration is None


@pytest.mark.asyncio
async def test_mark_paid_flips_existing_sale(session_factory) -> None:
    async with session_factory() as session:
        await _add_concert(session)
        reconciler = SaleReconciler(session)
        await reconciler.reconcile(
            _event(product_id="ticket-bilbao-2026", payment_intent_id=None, stripe_session_id="cs_900")
        )

        assert await reconciler.mark_paid() is None
        assert await reconciler.mark_paid(session_id="cs_unknown") is None

        sale = await reconciler.mark_paid(session_id="cs_900")
        assert sale is not None
        assert sale.status is SaleStatus.PAID
        assert sale.paid_at is not None

        registrations = (await session.execute(select(ConcertRegistration))).scalars().all()
        assert len(registrations) == 1
        assert registrations[0].sale_id == sale.id


@pytest.mark.asyncio
async def test_lost_user_insert_race_keeps_the_sale(session_factory, monkeypatch) -> None:
    await create_user(session_factory, "buyer@example.com")

    original_lookup = UserRegistryService.get_by_email
    lookups: list[str] = []

    async def stale_lookup(self, email):
        lookups.append(email)
        if len(lookups) == 1:
            return None
        return await original_lookup(self, email)

    monkeypatch.setattr(UserRegistryService, "get_by_email", stale_lookup)

    async with session_factory() as session:
        await SaleReconciler(session).reconcile(_event(status=SaleStatus.PAID, payment_intent_id="pi_race"))
        await session.commit()

    async with session_factory() as session:
        sale = (await session.execute(select(Sale))).scalar_one()
        assert sale.payment_intent_id == "pi_race"
        assert sale.paid_at is not None
        assert await session.scalar(select(func.count()).select_from(User)) == 1
        progress = (await session.execute(select(TierProgress))).scalar_one()
        assert Decimal(progress.spend_usd) == Decimal("18.00")


@pytest.mark.asyncio
async def test_lost_registration_race_updates_the_winner(session_factory, monkeypatch) -> None:
    async with session_factory() as session:
        await _add_concert(session)
        session.add(
            ConcertRegistration(
                concert_id="bilbao-2026",
                user_email="buyer@example.com",
                status=RegistrationStatus.PURCHASED,
                source=RegistrationSource.PURCHASE,
            )
        )
        await session.commit()

    original_find = SaleReconciler._find_registration
    lookups: list[str] = []

    async def stale_find(self, concert_id, user_email):
        lookups.append(concert_id)
        if len(lookups) == 1:
            return None
        return await original_find(self, concert_id, user_email)

    monkeypatch.setattr(SaleReconciler, "_find_registration", stale_find)

    async with session_factory() as session:
        result = await SaleReconciler(session).reconcile(
            _event(product_id="ticket-bilbao-2026", status=SaleStatus.PAID, stripe_session_id="cs_race")
        )
        await session.commit()
        sale_id = result.sale.id

    async with session_factory() as session:
        registration = (await session.execute(select(ConcertRegistration))).scalar_one()
        assert registration.sale_id == sale_id
        assert registration.user_name == "Ane Buyer"
        assert await session.scalar(select(func.count()).select_from(Sale)) == 1


@pytest.mark.asyncio
async def test_session_id_owned_by_another_sale_is_not_moved(session_factory) -> None:
    async with session_factory() as session:
        reconciler = SaleReconciler(session)
        first = await reconciler.reconcile(_event(payment_intent_id="pi_a", stripe_session_id="cs_shared"))
        second = await reconciler.reconcile(_event(payment_intent_id="pi_b"))

        again = await reconciler.reconcile(
            _event(payment_intent_id="pi_b", stripe_session_id="cs_shared", status=SaleStatus.PAID)
        )
        await session.commit()

        assert again.sale.id == second.sale.id
        assert again.sale.status is SaleStatus.PAID
        assert again.sale.stripe_session_id is None
        assert first.sale.stripe_session_id == "cs_shared"
