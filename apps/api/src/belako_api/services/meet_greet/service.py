"""Meet & greet access gate for holders of the superfan pass collectible."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.core.clock import ensure_aware, utcnow
from belako_api.core.errors import InvalidStateError, TokenInvalidError
from belako_api.core.settings import settings
from belako_api.models.meet_greet import MeetGreetAccess, MeetGreetAccessStatus, MeetGreetEvent
from belako_api.models.wallet import NftAsset
from belako_api.observability.rewards import get_rewards_store
from belako_api.services.meet_greet.tokens import decode_qr_token, encode_qr_token
from belako_api.services.wallet.grants import WalletService


class PassStatus(str, Enum):
    LOCKED = "LOCKED"
    VALID = "VALID"
    USED = "USED"
    EXPIRED = "EXPIRED"


class RedemptionReason(str, Enum):
    PASS_LOCKED = "PASS_LOCKED"
    PASS_EXPIRED = "PASS_EXPIRED"
    ACCESS_NOT_FOUND = "ACCESS_NOT_FOUND"
    ALREADY_USED = "ALREADY_USED"
    TOKEN_INVALID_OR_EXPIRED = "TOKEN_INVALID_OR_EXPIRED"


@dataclass
class PassView:
    status: PassStatus
    event: MeetGreetEvent | None
    pass_asset: NftAsset | None
    access: MeetGreetAccess | None = None
    used_at: datetime | None = None

    @property
    def can_generate_qr(self) -> bool:
        return self.status is PassStatus.VALID


@dataclass(frozen=True)
class QrTokenResult:
    qr_token: str
    expires_at: datetime


@dataclass(frozen=True)
class RedemptionResult:
    valid: bool
    reason: RedemptionReason | None = None
    used_at: datetime | None = None


class MeetGreetService:
    """``LOCKED -> VALID -> USED`` with ``VALID -> EXPIRED`` once the event date passes.

    ``LOCKED`` is derived on every query from collectible ownership and never
    stored. ``USED`` is sticky.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        *,
        wallet: WalletService | None = None,
        pass_asset_code: str | None = None,
        qr_ttl_seconds: int | None = None,
        secret: str | None = None,
    ) -> None:
        self._db = db_session
        self._wallet = wallet or WalletService(db_session)
        self._pass_asset_code = pass_asset_code or settings.meet_greet_pass_asset_code
        self._qr_ttl = timedelta(seconds=qr_ttl_seconds or settings.meet_greet_qr_ttl_seconds)
        self._secret = secret or settings.jwt_secret
        self._observability = get_rewards_store()

    async def active_event(self) -> MeetGreetEvent | None:
        stmt = (
            select(MeetGreetEvent)
            .where(MeetGreetEvent.active.is_(True))
            .order_by(MeetGreetEvent.starts_at.asc())
        )
        return (await self._db.execute(stmt)).scalars().first()

    async def _get_access(self, user_id: UUID) -> MeetGreetAccess | None:
        stmt = select(MeetGreetAccess).where(MeetGreetAccess.user_id == user_id)
        return (await self._db.execute(stmt)).scalar_one_or_none()

    async def _get_or_create_access(
        self,
        user_id: UUID,
        event: MeetGreetEvent,
        pass_asset: NftAsset,
        now: datetime,
    ) -> MeetGreetAccess:
        access = await self._get_access(user_id)
        if access is not None:
            return access

        access = MeetGreetAccess(
            user_id=user_id,
            event_id=event.id,
            pass_asset_id=pass_asset.id,
            status=MeetGreetAccessStatus.VALID,
            issued_at=now,
        )
        try:
            async with self._db.begin_nested():
                self._db.add(access)
                await self._db.flush()
        except IntegrityError:
            logger.warning("Detected race when issuing meet & greet access", user_id=str(user_id))
            existing = await self._get_access(user_id)
            if existing is None:
                raise
            return existing

        self._observability.record_meet_greet_event("access_issued")
        logger.info("Issued meet & greet access", user_id=str(user_id), event_id=event.id, access_id=str(access.id))
        return access

    async def _compute_status(self, access: MeetGreetAccess, now: datetime) -> PassStatus:
        if access.status is MeetGreetAccessStatus.USED:
            return PassStatus.USED

        event = await self._db.get(MeetGreetEvent, access.event_id)
        if event is None or ensure_aware(event.starts_at) < now:
            if access.status is not MeetGreetAccessStatus.EXPIRED:
                access.status = MeetGreetAccessStatus.EXPIRED
                await self._db.flush()
                logger.info("Meet & greet access expired", access_id=str(access.id), event_id=access.event_id)
            return PassStatus.EXPIRED

        return PassStatus.VALID

    async def get_pass(self, user_id: UUID, *, now: datetime | None = None) -> PassView:
        now = now or utcnow()
        event = await self.active_event()
        pass_asset = await self._wallet.find_asset_by_code(self._pass_asset_code)
        owns_pass = await self._wallet.has_collectible_by_asset_code(user_id, self._pass_asset_code)

        if not owns_pass or event is None or pass_asset is None:
            return PassView(status=PassStatus.LOCKED, event=event, pass_asset=pass_asset)

        access = await self._get_or_create_access(user_id, event, pass_asset, now)
        status = await self._compute_status(access, now)
        return PassView(
            status=status,
            event=event,
            pass_asset=pass_asset,
            access=access,
            used_at=access.used_at,
        )

    async def create_qr_token(self, user_id: UUID, *, now: datetime | None = None) -> QrTokenResult:
        now = now or utcnow()
        view = await self.get_pass(user_id, now=now)
        if view.status is not PassStatus.VALID or view.access is None:
            raise InvalidStateError(f"Meet & greet pass is {view.status.value}; QR generation requires VALID")

        expires_at = now + self._qr_ttl
        token = encode_qr_token(
            user_id=user_id,
            event_id=view.access.event_id,
            access_id=view.access.id,
            expires_at=expires_at,
            secret=self._secret,
        )
        self._observability.record_meet_greet_event("qr_issued")
        logger.info("Issued meet & greet QR token", user_id=str(user_id), access_id=str(view.access.id))
        return QrTokenResult(qr_token=token, expires_at=expires_at)

    async def redeem_qr_token(self, token: str, *, now: datetime | None = None) -> RedemptionResult:
        now = now or utcnow()
        try:
            claims = decode_qr_token(token, secret=self._secret, now=now)
        except TokenInvalidError:
            return self._reject(RedemptionReason.TOKEN_INVALID_OR_EXPIRED)

        view = await self.get_pass(claims.user_id, now=now)
        if view.status is PassStatus.LOCKED:
            return self._reject(RedemptionReason.PASS_LOCKED)
        if view.status is PassStatus.EXPIRED:
            return self._reject(RedemptionReason.PASS_EXPIRED)

        access = view.access
        if access is None or access.id != claims.access_id or access.event_id != claims.event_id:
            return self._reject(RedemptionReason.ACCESS_NOT_FOUND)

        if access.status is MeetGreetAccessStatus.USED:
            self._observability.record_meet_greet_event("redeem_replayed")
            return RedemptionResult(valid=True, reason=RedemptionReason.ALREADY_USED, used_at=access.used_at)

        access.status = MeetGreetAccessStatus.USED
        access.used_at = now
        await self._db.flush()

        self._observability.record_meet_greet_event("redeemed")
        logger.info("Redeemed meet & greet access", user_id=str(claims.user_id), access_id=str(access.id))
        return RedemptionResult(valid=True, used_at=now)

    def _reject(self, reason: RedemptionReason) -> RedemptionResult:
        self._observability.record_meet_greet_event("redeem_rejected")
        logger.info("Rejected meet & greet QR token", reason=reason.value)
        return RedemptionResult(valid=False, reason=reason)


__all__ = [
    "MeetGreetService",
    "PassStatus",
    "PassView",
    "QrTokenResult",
    "RedemptionReason",
    "RedemptionResult",
]
