"""
ShieldNote Cryptographic Primitives
"""

from shieldnote.crypto.hash import blake2b_256, sha256_raw, node_hash, HashBuilder
from shieldnote.crypto.merkle import (
    CommitmentTree,
    empty_root,
    merkle_root,
    verify_path,
)
from shieldnote.crypto.ed25519 import SigningKey, ed25519_verify

__all__ = [
    # Hash functions
    "blake2b_256",
    "sha256_raw",
    "node_hash",
    "HashBuilder",
    # Commitment tree
    "CommitmentTree",
    "empty_root",
    "merkle_root",
    "verify_path",
    # Ed25519 signatures
    "SigningKey",
    "ed25519_verify",
]
