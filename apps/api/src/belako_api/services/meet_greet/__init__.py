"""Meet & greet access controller."""

from .service import (
    MeetGreetService,
    PassStatus,
    PassView,
    QrTokenResult,
    RedemptionReason,
    RedemptionResult,
)
from .tokens import QrClaims, decode_qr_token, encode_qr_token

__all__ = [
    "MeetGreetService",
    "PassStatus",
    "PassView",
    "QrClaims",
    "QrTokenResult",
    "RedemptionReason",
    "RedemptionResult",
    "decode_qr_token",
    "encode_qr_token",
]
