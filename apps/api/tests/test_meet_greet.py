from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from jose import jwt
from sqlalchemy import select

from belako_api.core.errors import InvalidStateError, TokenInvalidError
from belako_api.core.settings import settings
from belako_api.models.meet_greet import MeetGreetAccess, MeetGreetAccessStatus, MeetGreetEvent
from belako_api.models.user import User
from belako_api.models.wallet import NftAsset, NftGrantOrigin, NftRarity
from belako_api.services.meet_greet import (
    MeetGreetService,
    PassStatus,
    RedemptionReason,
    decode_qr_token,
    encode_qr_token,
)
from belako_api.services.meet_greet.tokens import ALGORITHM
from belako_api.services.wallet import WalletService

SECRET = "test-meet-greet-secret"
NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)
EVENT_DATE = datetime(2026, 11, 21, 19, 30, tzinfo=timezone.utc)


async def _seed(session, *, owns_pass: bool = True, with_event: bool = True) -> User:
    user = User(email="superfan@example.com")
    asset = NftAsset(
        id="nft-superfan-mg-pass",
        code=settings.meet_greet_pass_asset_code,
        name="Superfan Meet & Greet Pass",
        image_url="/images/nft/mg-pass.png",
        rarity=NftRarity.LEGENDARY,
    )
    session.add_all([user, asset])
    if with_event:
        session.add(
            MeetGreetEvent(
                id="evt-bilbao-2026-11-21",
                title="Belako Superfan Meet & Greet - Bilbao",
                starts_at=EVENT_DATE,
                location="Bilbao Arena",
            )
        )
    await session.flush()

    if owns_pass:
        wallet = WalletService(session)
        grant = await wallet.create_grant(user.id, asset.id, NftGrantOrigin.CAMPAIGN, "superfan-2026")
        await wallet.claim_grant(user.id, grant.id)
    return user


def test_qr_token_round_trip_and_expiry() -> None:
    user_id, access_id = uuid4(), uuid4()
    token = encode_qr_token(
        user_id=user_id,
        event_id="evt-1",
        access_id=access_id,
        expires_at=NOW + timedelta(seconds=60),
        secret=SECRET,
    )

    claims = decode_qr_token(token, secret=SECRET, now=NOW + timedelta(seconds=59))
    assert claims.user_id == user_id
    assert claims.access_id == access_id
    assert claims.event_id == "evt-1"
    assert claims.nonce

    with pytest.raises(TokenInvalidError):
        decode_qr_token(token, secret=SECRET, now=NOW + timedelta(seconds=60))
    with pytest.raises(TokenInvalidError):
        decode_qr_token(token, secret="another-secret", now=NOW)
    with pytest.raises(TokenInvalidError):
        decode_qr_token("not-a-token", secret=SECRET, now=NOW)


def test_qr_token_expiry_follows_the_given_clock() -> None:
    long_ago = datetime(2001, 5, 4, 9, 0, tzinfo=timezone.utc)
    token = encode_qr_token(
        user_id=uuid4(),
        event_id="evt-1",
        access_id=uuid4(),
        expires_at=long_ago + timedelta(seconds=60),
        secret=SECRET,
    )

    claims = decode_qr_token(token, secret=SECRET, now=long_ago)
    assert claims.event_id == "evt-1"
    with pytest.raises(TokenInvalidError):
        decode_qr_token(token, secret=SECRET)


def test_qr_token_without_expiry_is_rejected() -> None:
    token = jwt.encode(
        {"sub": str(uuid4()), "eventId": "evt-1", "accessId": str(uuid4()), "nonce": "abc"},
        SECRET,
        algorithm=ALGORITHM,
    )
    with pytest.raises(TokenInvalidError):
        decode_qr_token(token, secret=SECRET, now=NOW)


def test_tokens_for_same_access_differ_by_nonce() -> None:
    kwargs = dict(user_id=uuid4(), event_id="evt-1", access_id=uuid4(), expires_at=NOW, secret=SECRET)
    assert encode_qr_token(**kwargs) != encode_qr_token(**kwargs)


@pytest.mark.asyncio
async def test_pass_is_locked_without_collectible_or_event(session_factory) -> None:
    async with session_factory() as session:
        user = await _seed(session, owns_pass=False)
        service = MeetGreetService(session, secret=SECRET)

        view = await service.get_pass(user.id, now=NOW)
        assert view.status is PassStatus.LOCKED
        assert view.can_generate_qr is False
        assert view.event is not None

        with pytest.raises(InvalidStateError):
            await service.create_qr_token(user.id, now=NOW)

        access = (await session.execute(select(MeetGreetAccess))).scalars().all()
        assert access == []

    async with session_factory() as session:
        user = await _seed(session, with_event=False)
        view = await MeetGreetService(session, secret=SECRET).get_pass(user.id, now=NOW)
        assert view.status is PassStatus.LOCKED
        assert view.event is None


@pytest.mark.asyncio
async def test_pass_owner_gets_valid_access(session_factory) -> None:
    async with session_factory() as session:
        user = await _seed(session)
        service = MeetGreetService(session, secret=SECRET)

        view = await service.get_pass(user.id, now=NOW)
        assert view.status is PassStatus.VALID
        assert view.can_generate_qr is True
        assert view.access.event_id == "evt-bilbao-2026-11-21"

        again = await service.get_pass(user.id, now=NOW)
        assert again.access.id == view.access.id


@pytest.mark.asyncio
async def test_qr_redemption_flow(session_factory) -> None:
    async with session_factory() as session:
        user = await _seed(session)
        service = MeetGreetService(session, secret=SECRET)

        issued = await service.create_qr_token(user.id, now=NOW)
        assert issued.expires_at == NOW + timedelta(seconds=settings.meet_greet_qr_ttl_seconds)

        scan_time = NOW + timedelta(seconds=30)
        first = await service.redeem_qr_token(issued.qr_token, now=scan_time)
        assert first.valid is True
        assert first.reason is None
        assert first.used_at == scan_time

        rescan = await service.redeem_qr_token(issued.qr_token, now=NOW + timedelta(seconds=45))
        assert rescan.valid is True
        assert rescan.reason is RedemptionReason.ALREADY_USED
        assert rescan.used_at == scan_time

        view = await service.get_pass(user.id, now=NOW + timedelta(days=60))
        assert view.status is PassStatus.USED
        assert view.can_generate_qr is False

        with pytest.raises(InvalidStateError):
            await service.create_qr_token(user.id, now=NOW)


@pytest.mark.asyncio
async def test_expired_qr_token_is_rejected(session_factory) -> None:
    async with session_factory() as session:
        user = await _seed(session)
        service = MeetGreetService(session, secret=SECRET)

        issued = await service.create_qr_token(user.id, now=NOW)
        late = await service.redeem_qr_token(issued.qr_token, now=NOW + timedelta(seconds=61))

        assert late.valid is False
        assert late.reason is RedemptionReason.TOKEN_INVALID_OR_EXPIRED
        view = await service.get_pass(user.id, now=NOW)
        assert view.status is PassStatus.VALID


@pytest.mark.asyncio
async def test_token_for_replaced_access_is_rejected(session_factory) -> None:
    async with session_factory() as session:
        user = await _seed(session)
        service = MeetGreetService(session, secret=SECRET)
        await service.get_pass(user.id, now=NOW)

        forged = encode_qr_token(
            user_id=user.id,
            event_id="evt-bilbao-2026-11-21",
            access_id=uuid4(),
            expires_at=NOW + timedelta(seconds=60),
            secret=SECRET,
        )
        result = await service.redeem_qr_token(forged, now=NOW)

        assert result.valid is False
        assert result.reason is RedemptionReason.ACCESS_NOT_FOUND


@pytest.mark.asyncio
async def test_token_for_user_without_pass_is_locked(session_factory) -> None:
    async with session_factory() as session:
        user = await _seed(session, owns_pass=False)
        service = MeetGreetService(session, secret=SECRET)

        token = encode_qr_token(
            user_id=user.id,
            event_id="evt-bilbao-2026-11-21",
            access_id=uuid4(),
            expires_at=NOW + timedelta(seconds=60),
            secret=SECRET,
        )
        result = await service.redeem_qr_token(token, now=NOW)

        assert result.valid is False
        assert result.reason is RedemptionReason.PASS_LOCKED


@pytest.mark.asyncio
async def test_access_expires_after_event_date(session_factory) -> None:
    async with session_factory() as session:
        user = await _seed(session)
        service = MeetGreetService(session, secret=SECRET)
        issued = await service.create_qr_token(user.id, now=NOW)

        after_event = EVENT_DATE + timedelta(hours=1)
        view = await service.get_pass(user.id, now=after_event)
        assert view.status is PassStatus.EXPIRED
        assert view.access.status is MeetGreetAccessStatus.EXPIRED

        with pytest.raises(InvalidStateError):
            await service.create_qr_token(user.id, now=after_event)

        # The token itself is long expired by then; verification fails first.
        result = await service.redeem_qr_token(issued.qr_token, now=after_event)
        assert result.reason is RedemptionReason.TOKEN_INVALID_OR_EXPIRED

        still_signed = encode_qr_token(
            user_id=user.id,
            event_id=view.access.event_id,
            access_id=view.access.id,
            expires_at=after_event + timedelta(seconds=60),
            secret=SECRET,
        )
        result = await service.redeem_qr_token(still_signed, now=after_event)
        assert result.valid is False
        assert result.reason is RedemptionReason.PASS_EXPIRED
