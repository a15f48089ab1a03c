"""NFT grant engine: idempotent grant creation, claims and wallet read model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.core.errors import InvalidAssetError, MintFailureError, NotFoundError
from belako_api.models.wallet import (
    CustodialWallet,
    NftAsset,
    NftCollectible,
    NftGrant,
    NftGrantOrigin,
    NftGrantStatus,
)
from belako_api.observability.rewards import get_rewards_store
from belako_api.observability.tracing import get_tracer
from belako_api.services.wallet.minting import CustodialMinter, generate_wallet_address


@dataclass
class ClaimResult:
    grant: NftGrant
    collectible: NftCollectible | None = None
    wallet: CustodialWallet | None = None


def validate_attendance_proof(stream_id: str | None, user_id: str | UUID | None) -> bool:
    return bool(stream_id and str(stream_id).strip()) and bool(user_id and str(user_id).strip())


class WalletService:
    """Grant lifecycle ``PENDING -> MINTED | FAILED`` plus custodial wallets.

    At most one non-FAILED grant exists per (user, asset, origin type, origin
    ref); the partial unique index ``uq_nft_grants_open_origin`` enforces it.
    """

    def __init__(self, db_session: AsyncSession, *, minter: CustodialMinter | None = None) -> None:
        self._db = db_session
        self._minter = minter or CustodialMinter(db_session)
        self._observability = get_rewards_store()

    async def list_assets(self) -> Sequence[NftAsset]:
        stmt = select(NftAsset).where(NftAsset.is_active.is_(True)).order_by(NftAsset.created_at.asc())
        return (await self._db.execute(stmt)).scalars().all()

    async def find_asset(self, asset_id: str) -> NftAsset | None:
        """Active asset by id; retired assets resolve to ``None``."""

        asset = await self._db.get(NftAsset, asset_id)
        if asset is None or not asset.is_active:
            return None
        return asset

    async def find_asset_by_code(self, code: str) -> NftAsset | None:
        stmt = select(NftAsset).where(NftAsset.code == code, NftAsset.is_active.is_(True))
        return (await self._db.execute(stmt)).scalar_one_or_none()

    async def list_grants(self, user_id: UUID) -> Sequence[NftGrant]:
        stmt = select(NftGrant).where(NftGrant.user_id == user_id).order_by(NftGrant.created_at.desc())
        return (await self._db.execute(stmt)).scalars().all()

    async def _find_open_grant(
        self,
        user_id: UUID,
        asset_id: str,
        origin_type: NftGrantOrigin,
        origin_ref: str,
    ) -> NftGrant | None:
        stmt = select(NftGrant).where(
            NftGrant.user_id == user_id,
            NftGrant.asset_id == asset_id,
            NftGrant.origin_type == origin_type,
            NftGrant.origin_ref == origin_ref,
            NftGrant.status != NftGrantStatus.FAILED,
        )
        return (await self._db.execute(stmt)).scalars().first()

    async def create_grant(
        self,
        user_id: UUID,
        asset_id: str,
        origin_type: NftGrantOrigin,
        origin_ref: str,
    ) -> NftGrant:
        """Return the open grant for this origin, creating a PENDING one if none exists."""

        existing = await self._find_open_grant(user_id, asset_id, origin_type, origin_ref)
        if existing is not None:
            self._observability.record_grant_event("reused")
            return existing

        grant = NftGrant(
            user_id=user_id,
            asset_id=asset_id,
            origin_type=origin_type,
            origin_ref=origin_ref,
            status=NftGrantStatus.PENDING,
        )
        try:
            async with self._db.begin_nested():
                self._db.add(grant)
                await self._db.flush()
        except IntegrityError:
            logger.warning(
                "Detected race when creating NFT grant",
                user_id=str(user_id),
                asset_id=asset_id,
                origin_type=origin_type.value,
                origin_ref=origin_ref,
            )
            winner = await self._find_open_grant(user_id, asset_id, origin_type, origin_ref)
            if winner is None:
                raise
            self._observability.record_grant_event("reused")
            return winner

        self._observability.record_grant_event("created")
        logger.info(
            "Created NFT grant",
            grant_id=str(grant.id),
            user_id=str(user_id),
            asset_id=asset_id,
            origin_type=origin_type.value,
            origin_ref=origin_ref,
        )
        return grant

    async def _get_owned_grant(self, user_id: UUID, grant_id: UUID) -> NftGrant:
        stmt = select(NftGrant).where(NftGrant.id == grant_id, NftGrant.user_id == user_id)
        grant = (await self._db.execute(stmt)).scalar_one_or_none()
        if grant is None:
            raise NotFoundError(f"Grant {grant_id} not found")
        return grant

    async def _collectible_for_grant(self, grant: NftGrant) -> NftCollectible | None:
        stmt = select(NftCollectible).where(NftCollectible.grant_id == grant.id)
        collectible = (await self._db.execute(stmt)).scalars().first()
        if collectible is not None:
            return collectible

        # Collectibles whose grant link was cleared fall back to the asset match.
        stmt = (
            select(NftCollectible)
            .where(NftCollectible.user_id == grant.user_id, NftCollectible.asset_id == grant.asset_id)
            .order_by(NftCollectible.minted_at.asc())
        )
        return (await self._db.execute(stmt)).scalars().first()

    async def claim_grant(self, user_id: UUID, grant_id: UUID) -> ClaimResult:
        """Mint the grant for its owner.

        Raises :class:`NotFoundError` for unknown or foreign grants and
        :class:`InvalidAssetError` (after marking the grant FAILED) for retired
        assets. Mint failures are recorded on the grant and returned without a
        collectible.
        """

        with get_tracer().start_as_current_span("wallet.claim_grant") as span:
            span.set_attribute("grant.id", str(grant_id))
            grant = await self._get_owned_grant(user_id, grant_id)

            if grant.status is NftGrantStatus.MINTED:
                collectible = await self._collectible_for_grant(grant)
                self._observability.record_grant_event("claim_replayed")
                return ClaimResult(grant=grant, collectible=collectible)

            asset = await self.find_asset(grant.asset_id)
            if asset is None:
                grant.status = NftGrantStatus.FAILED
                grant.error_reason = f"NFT asset {grant.asset_id} is not active"
                await self._db.flush()
                self._observability.record_grant_event("claim_invalid_asset")
                logger.warning("Grant references inactive asset", grant_id=str(grant_id), asset_id=grant.asset_id)
                raise InvalidAssetError(grant.asset_id)

            wallet = await self.get_or_create_wallet(user_id)
            try:
                collectible = await self._minter.mint(user_id=user_id, grant=grant, wallet=wallet, asset=asset)
            except MintFailureError as exc:
                span.set_attribute("grant.mint_failed", True)
                return await self._record_mint_failure(user_id, grant_id, str(exc))

            grant.status = NftGrantStatus.MINTED
            grant.minted_at = collectible.minted_at
            grant.error_reason = None
            await self._db.flush()

        self._observability.record_grant_event("claim_minted")
        logger.info("Claimed NFT grant", grant_id=str(grant_id), user_id=str(user_id), token_id=collectible.token_id)
        return ClaimResult(grant=grant, collectible=collectible, wallet=wallet)

    async def _record_mint_failure(self, user_id: UUID, grant_id: UUID, reason: str) -> ClaimResult:
        grant = await self._get_owned_grant(user_id, grant_id)
        grant.status = NftGrantStatus.FAILED
        grant.error_reason = reason
        await self._db.flush()

        self._observability.record_grant_event("claim_failed")
        logger.warning("NFT mint failed", grant_id=str(grant_id), user_id=str(user_id), error=reason)
        return ClaimResult(grant=grant)

    async def get_wallet(self, user_id: UUID) -> CustodialWallet | None:
        stmt = select(CustodialWallet).where(CustodialWallet.user_id == user_id)
        return (await self._db.execute(stmt)).scalar_one_or_none()

    async def get_or_create_wallet(self, user_id: UUID) -> CustodialWallet:
        wallet = await self.get_wallet(user_id)
        if wallet is not None:
            return wallet

        wallet = CustodialWallet(
            user_id=user_id,
            address=generate_wallet_address(),
            chain_id=self._minter.chain_id,
        )
        try:
            async with self._db.begin_nested():
                self._db.add(wallet)
                await self._db.flush()
        except IntegrityError:
            logger.warning("Detected race when creating custodial wallet", user_id=str(user_id))
            existing = await self.get_wallet(user_id)
            if existing is None:
                raise
            return existing

        logger.info("Created custodial wallet", user_id=str(user_id), address=wallet.address)
        return wallet

    async def list_collection(self, user_id: UUID) -> Sequence[NftCollectible]:
        stmt = (
            select(NftCollectible)
            .where(NftCollectible.user_id == user_id)
            .order_by(NftCollectible.minted_at.desc())
        )
        return (await self._db.execute(stmt)).scalars().all()

    async def has_collectible_by_asset_code(self, user_id: UUID, code: str) -> bool:
        """False, not an error, for unknown or inactive codes."""

        asset = await self.find_asset_by_code(code)
        if asset is None:
            return False
        stmt = select(NftCollectible.id).where(
            NftCollectible.user_id == user_id,
            NftCollectible.asset_id == asset.id,
        )
        return (await self._db.execute(stmt.limit(1))).first() is not None


__all__ = ["ClaimResult", "WalletService", "validate_attendance_proof"]
