"""
ShieldNote Key Providers

Signing keys are resolved by derivation path through a KeyProvider.
Seed storage and real HD derivation live outside this package; the
SeedKeyProvider below derives one Ed25519 key per path from a seed
with HMAC-SHA512, which is deterministic and enough for a local wallet.
"""

from __future__ import annotations
import hashlib
import hmac
import logging
from typing import Dict, Optional, Protocol, runtime_checkable

from shieldnote.constants import ED25519_SEED_SIZE
from shieldnote.crypto.ed25519 import SigningKey
from shieldnote.errors import KeyUnavailableError

logger = logging.getLogger(__name__)

KEY_DERIVATION_DOMAIN = b"ShieldNote path key v1"


@runtime_checkable
class KeyProvider(Protocol):
    """Resolves a signing key for a derivation path."""

    def key_for(self, derivation_path: str) -> SigningKey:
        """
        Same path always yields the same key.

        Raises:
            KeyUnavailableError: If the seed is locked or missing
        """
        ...


class SeedKeyProvider:
    """
    Derives per-path Ed25519 keys from a wallet seed.

    key = Ed25519(HMAC-SHA512(seed, domain || path)[:32])
    """

    def __init__(self, seed: Optional[bytes] = None):
        self._seed: Optional[bytes] = None
        self._cache: Dict[str, SigningKey] = {}
        if seed is not None:
            self.unlock(seed)

    @property
    def is_locked(self) -> bool:
        return self._seed is None

    def unlock(self, seed: bytes) -> None:
        if len(seed) < 16:
            raise ValueError("seed must be at least 16 bytes")
        self._seed = bytes(seed)
        self._cache.clear()

    def lock(self) -> None:
        """Forget the seed and every derived key."""
        self._seed = None
        self._cache.clear()
        logger.debug("Key provider locked")

    def key_for(self, derivation_path: str) -> SigningKey:
        if self._seed is None:
            raise KeyUnavailableError(derivation_path, "seed is locked")

        key = self._cache.get(derivation_path)
        if key is None:
            digest = hmac.new(
                self._seed,
                KEY_DERIVATION_DOMAIN + derivation_path.encode("utf-8"),
                hashlib.sha512,
            ).digest()
            key = SigningKey(digest[:ED25519_SEED_SIZE])
            self._cache[derivation_path] = key

        return key
