"""Wallet endpoints: NFT assets, grants, claims, attendance and meet & greet access."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from belako_api.api.dependencies.session import require_member_session
from belako_api.api.errors import http_error
from belako_api.core.errors import BelakoError, InvalidAssetError
from belako_api.db.session import get_session
from belako_api.models.meet_greet import MeetGreetEvent
from belako_api.models.user import User
from belako_api.models.wallet import CustodialWallet, NftAsset, NftCollectible, NftGrant, NftGrantOrigin
from belako_api.services.loyalty import TierProgressService
from belako_api.services.meet_greet import MeetGreetService
from belako_api.services.wallet import WalletService, validate_attendance_proof


router = APIRouter(prefix="/wallet", tags=["wallet"])


class NftAssetResponse(BaseModel):
    id: str
    code: str
    name: str
    description: Optional[str]
    imageUrl: str
    rarity: str
    isActive: bool


class NftGrantResponse(BaseModel):
    id: UUID
    userId: UUID
    assetId: str
    originType: str
    originRef: str
    status: str
    createdAt: datetime
    mintedAt: Optional[datetime]
    errorReason: Optional[str]


class NftCollectibleResponse(BaseModel):
    id: UUID
    userId: UUID
    walletAddress: str
    assetId: str
    tokenId: int
    txHash: str
    chainId: int
    mintStatus: str
    mintedAt: datetime


class CustodialWalletResponse(BaseModel):
    userId: UUID
    address: str
    chainId: int


class GrantCreateRequest(BaseModel):
    assetId: str = Field(..., min_length=1)
    originType: NftGrantOrigin
    originRef: str = Field(..., min_length=1, description="Opaque reference to the triggering event")


class GrantEnvelope(BaseModel):
    grant: NftGrantResponse


class GrantListResponse(BaseModel):
    grants: List[NftGrantResponse]


class ClaimResponse(BaseModel):
    grant: NftGrantResponse
    collectible: Optional[NftCollectibleResponse]


class CollectionResponse(BaseModel):
    wallet: CustodialWalletResponse
    collection: List[NftCollectibleResponse]


class AttendanceVerifyRequest(BaseModel):
    streamId: str = Field(..., min_length=1)
    rewardAssetId: Optional[str] = Field(None, min_length=1)


class AttendanceVerifyResponse(BaseModel):
    valid: bool
    attendance: int
    tier: int
    grant: Optional[NftGrantResponse]


class MeetGreetEventResponse(BaseModel):
    id: str
    title: str
    date: datetime
    location: str
    active: bool


class MeetGreetPassResponse(BaseModel):
    status: str
    event: Optional[MeetGreetEventResponse]
    passAsset: Optional[NftAssetResponse]
    canGenerateQr: bool
    usedAt: Optional[datetime]


class QrTokenResponse(BaseModel):
    qrToken: str
    expiresAt: datetime


class QrValidateRequest(BaseModel):
    qrToken: str = Field(..., min_length=1)


class QrValidateResponse(BaseModel):
    valid: bool
    reason: Optional[str]
    usedAt: Optional[datetime]


def _asset(asset: NftAsset) -> NftAssetResponse:
    return NftAssetResponse(
        id=asset.id,
        code=asset.code,
        name=asset.name,
        description=asset.description,
        imageUrl=asset.image_url,
        rarity=asset.rarity.value,
        isActive=asset.is_active,
    )


def _grant(grant: NftGrant) -> NftGrantResponse:
    return NftGrantResponse(
        id=grant.id,
        userId=grant.user_id,
        assetId=grant.asset_id,
        originType=grant.origin_type.value,
        originRef=grant.origin_ref,
        status=grant.status.value,
        createdAt=grant.created_at,
        mintedAt=grant.minted_at,
        errorReason=grant.error_reason,
    )


def _collectible(collectible: NftCollectible) -> NftCollectibleResponse:
    return NftCollectibleResponse(
        id=collectible.id,
        userId=collectible.user_id,
        walletAddress=collectible.wallet_address,
        assetId=collectible.asset_id,
        tokenId=collectible.token_id,
        txHash=collectible.tx_hash,
        chainId=collectible.chain_id,
        mintStatus=collectible.mint_status.value,
        mintedAt=collectible.minted_at,
    )


def _wallet(wallet: CustodialWallet) -> CustodialWalletResponse:
    return CustodialWalletResponse(userId=wallet.user_id, address=wallet.address, chainId=wallet.chain_id)


def _event(event: MeetGreetEvent) -> MeetGreetEventResponse:
    return MeetGreetEventResponse(
        id=event.id,
        title=event.title,
        date=event.starts_at,
        location=event.location,
        active=event.active,
    )


@router.get("/nft-assets")
async def list_nft_assets(
    _: User = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
) -> dict[str, List[NftAssetResponse]]:
    assets = await WalletService(db).list_assets()
    return {"assets": [_asset(asset) for asset in assets]}


@router.get("/grants", response_model=GrantListResponse)
async def list_grants(
    user: User = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
) -> GrantListResponse:
    grants = await WalletService(db).list_grants(user.id)
    return GrantListResponse(grants=[_grant(grant) for grant in grants])


@router.post("/grants", response_model=GrantEnvelope, status_code=status.HTTP_201_CREATED)
async def create_grant(
    payload: GrantCreateRequest,
    user: User = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
) -> GrantEnvelope:
    service = WalletService(db)
    asset = await service.find_asset(payload.assetId)
    if asset is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="NFT asset not found")

    grant = await service.create_grant(user.id, asset.id, payload.originType, payload.originRef)
    await db.commit()
    return GrantEnvelope(grant=_grant(grant))


@router.post("/grants/{grant_id}/claim", response_model=ClaimResponse)
async def claim_grant(
    grant_id: UUID,
    user: User = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
) -> ClaimResponse:
    try:
        result = await WalletService(db).claim_grant(user.id, grant_id)
    except InvalidAssetError as error:
        # The grant was marked FAILED before raising; keep that transition.
        await db.commit()
        raise http_error(error) from error
    except BelakoError as error:
        raise http_error(error) from error

    await db.commit()
    return ClaimResponse(
        grant=_grant(result.grant),
        collectible=_collectible(result.collectible) if result.collectible is not None else None,
    )


@router.get("/collection", response_model=CollectionResponse)
async def get_collection(
    user: User = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
) -> CollectionResponse:
    service = WalletService(db)
    wallet = await service.get_or_create_wallet(user.id)
    collection = await service.list_collection(user.id)
    await db.commit()
    return CollectionResponse(wallet=_wallet(wallet), collection=[_collectible(item) for item in collection])


@router.post("/attendance/verify", response_model=AttendanceVerifyResponse)
async def verify_attendance(
    payload: AttendanceVerifyRequest,
    user: User = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
) -> AttendanceVerifyResponse:
    if not validate_attendance_proof(payload.streamId, user.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid attendance proof")

    progress = await TierProgressService(db).record_attendance(user.id)

    grant: NftGrant | None = None
    if payload.rewardAssetId:
        wallet = WalletService(db)
        asset = await wallet.find_asset(payload.rewardAssetId)
        if asset is not None:
            grant = await wallet.create_grant(user.id, asset.id, NftGrantOrigin.FULL_LIVE, payload.streamId)

    await db.commit()
    return AttendanceVerifyResponse(
        valid=True,
        attendance=progress.attendance,
        tier=progress.tier,
        grant=_grant(grant) if grant is not None else None,
    )


@router.get("/meet-greet/pass", response_model=MeetGreetPassResponse)
async def get_meet_greet_pass(
    user: User = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
) -> MeetGreetPassResponse:
    view = await MeetGreetService(db).get_pass(user.id)
    await db.commit()
    return MeetGreetPassResponse(
        status=view.status.value,
        event=_event(view.event) if view.event is not None else None,
        passAsset=_asset(view.pass_asset) if view.pass_asset is not None else None,
        canGenerateQr=view.can_generate_qr,
        usedAt=view.used_at,
    )


@router.post("/meet-greet/qr-token", response_model=QrTokenResponse)
async def create_meet_greet_qr_token(
    user: User = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
) -> QrTokenResponse:
    try:
        result = await MeetGreetService(db).create_qr_token(user.id)
    except BelakoError as error:
        await db.commit()
        raise http_error(error) from error

    await db.commit()
    return QrTokenResponse(qrToken=result.qr_token, expiresAt=result.expires_at)


@router.post("/meet-greet/validate", response_model=QrValidateResponse)
async def validate_meet_greet_qr_token(
    payload: QrValidateRequest,
    _: User = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
) -> QrValidateResponse:
    result = await MeetGreetService(db).redeem_qr_token(payload.qrToken)
    await db.commit()
    return QrValidateResponse(
        valid=result.valid,
        reason=result.reason.value if result.reason is not None else None,
        usedAt=result.used_at,
    )
