"""
ShieldNote Transfer Protocol
"""

from shieldnote.protocol.keys import KeyProvider, SeedKeyProvider
from shieldnote.protocol.transfer import (
    ShieldedInput,
    ShieldedOutput,
    SignedTransfer,
    TransferSignature,
    TransferState,
    compute_transfer_digest,
)
from shieldnote.protocol.signer import TransactionSigner, derivation_path_of

__all__ = [
    # Keys
    "KeyProvider",
    "SeedKeyProvider",
    # Transfers
    "ShieldedInput",
    "ShieldedOutput",
    "SignedTransfer",
    "TransferSignature",
    "TransferState",
    "compute_transfer_digest",
    # Signer
    "TransactionSigner",
    "derivation_path_of",
]
