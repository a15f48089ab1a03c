"""Domain error taxonomy shared by the loyalty, sales, wallet and access services."""

from __future__ import annotations


class BelakoError(RuntimeError):
    """Base exception for fan loyalty domain failures."""


class InvalidEventError(BelakoError):
    """Raised when an inbound provider event or request payload is malformed."""


class NotFoundError(BelakoError):
    """Raised when a referenced grant, sale, concert or registration is absent."""


class InvalidAssetError(BelakoError):
    """Raised when a grant references a retired or unknown NFT asset."""

    def __init__(self, asset_id: str) -> None:
        super().__init__(f"NFT asset {asset_id} is not active")
        self.asset_id = asset_id


class InvalidStateError(BelakoError):
    """Raised when an operation is attempted outside its required state."""


class TokenInvalidError(BelakoError):
    """Raised when a signed token fails signature, expiry or claim checks."""


class MintFailureError(BelakoError):
    """Raised by the minter; captured into the grant error reason by callers."""


__all__ = [
    "BelakoError",
    "InvalidAssetError",
    "InvalidEventError",
    "InvalidStateError",
    "MintFailureError",
    "NotFoundError",
    "TokenInvalidError",
]
