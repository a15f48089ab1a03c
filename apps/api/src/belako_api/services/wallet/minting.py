"""Custodial minting: token id allocation and simulated on-chain receipts."""

from __future__ import annotations

import secrets
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.core.clock import utcnow
from belako_api.core.errors import MintFailureError
from belako_api.core.settings import settings
from belako_api.models.wallet import (
    CustodialWallet,
    NftAsset,
    NftCollectible,
    NftGrant,
    NftMintStatus,
    NftTokenCounter,
)

TOKEN_COUNTER_NAME = "nft_token_id"


def generate_wallet_address() -> str:
    return "0x" + secrets.token_hex(20)


def generate_tx_hash() -> str:
    return "0x" + secrets.token_hex(32)


class CustodialMinter:
    """Appends collectibles for claimed grants.

    Token ids come from a single counter row updated inside the caller's
    transaction, so allocation survives restarts and is serialised by the
    row lock on PostgreSQL.
    """

    def __init__(self, db_session: AsyncSession, *, chain_id: int | None = None) -> None:
        self._db = db_session
        self._chain_id = chain_id if chain_id is not None else settings.nft_chain_id

    @property
    def chain_id(self) -> int:
        return self._chain_id

    async def next_token_id(self) -> int:
        stmt = (
            select(NftTokenCounter)
            .where(NftTokenCounter.name == TOKEN_COUNTER_NAME)
            .with_for_update()
        )
        counter = (await self._db.execute(stmt)).scalar_one_or_none()
        if counter is None:
            counter = NftTokenCounter(name=TOKEN_COUNTER_NAME, last_value=0)
            self._db.add(counter)

        counter.last_value = int(counter.last_value or 0) + 1
        await self._db.flush()
        return int(counter.last_value)

    async def mint(
        self,
        *,
        user_id: UUID,
        grant: NftGrant,
        wallet: CustodialWallet,
        asset: NftAsset,
    ) -> NftCollectible:
        try:
            async with self._db.begin_nested():
                token_id = await self.next_token_id()
                collectible = NftCollectible(
                    user_id=user_id,
                    grant_id=grant.id,
                    wallet_address=wallet.address,
                    asset_id=asset.id,
                    token_id=token_id,
                    tx_hash=generate_tx_hash(),
                    chain_id=self._chain_id,
                    mint_status=NftMintStatus.MINTED,
                    minted_at=utcnow(),
                )
                self._db.add(collectible)
                await self._db.flush()
        except MintFailureError:
            raise
        except Exception as exc:
            raise MintFailureError(f"Mint failed: {exc.__class__.__name__}") from exc

        logger.info(
            "Minted collectible",
            user_id=str(user_id),
            grant_id=str(grant.id),
            asset_id=asset.id,
            token_id=token_id,
            chain_id=self._chain_id,
        )
        return collectible


__all__ = ["CustodialMinter", "TOKEN_COUNTER_NAME", "generate_tx_hash", "generate_wallet_address"]
