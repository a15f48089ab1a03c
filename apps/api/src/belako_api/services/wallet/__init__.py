"""Custodial wallet, NFT grant and minting services."""

from .grants import ClaimResult, WalletService, validate_attendance_proof
from .minting import CustodialMinter, generate_tx_hash, generate_wallet_address

__all__ = [
    "ClaimResult",
    "CustodialMinter",
    "WalletService",
    "generate_tx_hash",
    "generate_wallet_address",
    "validate_attendance_proof",
]
