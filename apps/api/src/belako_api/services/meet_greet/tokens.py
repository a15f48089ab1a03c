"""Signed, short-lived QR tokens for meet & greet door scans."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from jose import JWTError, jwt

from belako_api.core.clock import utcnow
from belako_api.core.errors import TokenInvalidError

ALGORITHM = "HS256"


@dataclass(frozen=True)
class QrClaims:
    user_id: UUID
    event_id: str
    access_id: UUID
    nonce: str
    expires_at: datetime


def encode_qr_token(
    *,
    user_id: UUID,
    event_id: str,
    access_id: UUID,
    expires_at: datetime,
    secret: str,
) -> str:
    payload = {
        "sub": str(user_id),
        "eventId": event_id,
        "accessId": str(access_id),
        "nonce": secrets.token_urlsafe(9),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_qr_token(token: str, *, secret: str, now: datetime | None = None) -> QrClaims:
    """Verify signature and expiry; every failure raises :class:`TokenInvalidError`."""

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"verify_exp": False},
        )
    except JWTError as exc:
        raise TokenInvalidError("QR token rejected") from exc

    current = now or utcnow()
    try:
        expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        claims = QrClaims(
            user_id=UUID(str(payload["sub"])),
            event_id=str(payload["eventId"]),
            access_id=UUID(str(payload["accessId"])),
            nonce=str(payload["nonce"]),
            expires_at=expires_at,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise TokenInvalidError("QR token rejected") from exc

    if current.timestamp() >= expires_at.timestamp():
        raise TokenInvalidError("QR token rejected")
    return claims


__all__ = ["ALGORITHM", "QrClaims", "decode_qr_token", "encode_qr_token"]
