"""
ShieldNote Ed25519 Signatures

RFC 8032 Ed25519 (pure EdDSA) over transfer digests, backed by pycryptodome.

Seed size: 32 bytes
Public key size: 32 bytes
Signature size: 64 bytes
"""

from __future__ import annotations
import logging
import secrets

from Crypto.Signature import eddsa

from shieldnote.constants import ED25519_SEED_SIZE
from shieldnote.core.types import PublicKey, Signature

logger = logging.getLogger(__name__)

EDDSA_MODE = "rfc8032"


class SigningKey:
    """
    Ed25519 signing key built from a 32-byte seed.

    The seed is never exposed through repr().
    """

    def __init__(self, seed: bytes):
        if len(seed) != ED25519_SEED_SIZE:
            raise ValueError(f"Ed25519 seed must be {ED25519_SEED_SIZE} bytes, got {len(seed)}")
        self._key = eddsa.import_private_key(seed)
        self._public = PublicKey(self._key.public_key().export_key(format="raw"))

    @classmethod
    def generate(cls) -> SigningKey:
        """Create a key from fresh OS randomness."""
        return cls(secrets.token_bytes(ED25519_SEED_SIZE))

    @property
    def public_key(self) -> PublicKey:
        return self._public

    def sign(self, message: bytes) -> Signature:
        """Sign a message (deterministic per RFC 8032)."""
        signer = eddsa.new(self._key, EDDSA_MODE)
        return Signature(signer.sign(message))

    def __repr__(self) -> str:
        # Never expose key material
        return f"SigningKey(public={self._public.hex()[:16]}..., seed=<redacted>)"


def ed25519_verify(public_key: bytes, message: bytes, signature: bytes) -> bool:
    """
    Verify an Ed25519 signature.

    Malformed keys or signatures are treated as invalid, never raised.

    Args:
        public_key: 32-byte encoded public key
        message: Signed message
        signature: 64-byte signature

    Returns:
        True if signature is valid
    """
    try:
        key = eddsa.import_public_key(bytes(public_key))
        eddsa.new(key, EDDSA_MODE).verify(message, bytes(signature))
        return True
    except (ValueError, TypeError) as e:
        logger.debug(f"Ed25519 verification failed: {e}")
        return False
