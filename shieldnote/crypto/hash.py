"""
ShieldNote Hash Functions

BLAKE2b-256 for commitments, nullifiers, tree nodes and transfer digests;
SHA-256 for note identifiers.
"""

from __future__ import annotations
import hashlib
from typing import Union

from shieldnote.constants import HASH_SIZE
from shieldnote.core.types import Hash

BytesLike = Union[bytes, bytearray, memoryview]


def blake2b_256(*parts: BytesLike) -> Hash:
    """
    BLAKE2b with 32-byte output, unkeyed, no personalization.

    Args:
        *parts: Inputs hashed in order (concatenation)

    Returns:
        Hash: 32-byte hash output wrapped in Hash type
    """
    hasher = hashlib.blake2b(digest_size=HASH_SIZE)
    for part in parts:
        hasher.update(part)
    return Hash(hasher.digest())


def sha256_raw(*parts: BytesLike) -> bytes:
    """SHA-256 over the concatenation of parts, returning raw bytes."""
    hasher = hashlib.sha256()
    for part in parts:
        hasher.update(part)
    return hasher.digest()


def node_hash(left: Hash, right: Hash) -> Hash:
    """Parent digest of two commitment tree nodes."""
    return blake2b_256(left.data, right.data)


class HashBuilder:
    """
    Builder for BLAKE2b-256 digests over many inputs.

    Example:
        digest = HashBuilder().update(b"hello").update(b"world").finalize()
    """

    def __init__(self):
        self._hasher = hashlib.blake2b(digest_size=HASH_SIZE)

    def update(self, data: BytesLike) -> "HashBuilder":
        """Add data to the hash computation."""
        self._hasher.update(data)
        return self

    def finalize(self) -> Hash:
        """Return the digest."""
        return Hash(self._hasher.digest())
