"""
ShieldNote Cryptographic Types

Fixed-size byte wrappers shared by the tree, the ledger and the signer.
All multi-byte integers are LITTLE-ENDIAN unless noted.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from shieldnote.constants import (
    HASH_SIZE,
    ED25519_PUBLIC_KEY_SIZE,
    ED25519_SIGNATURE_SIZE,
    LITTLE_ENDIAN,
)


@dataclass(frozen=True, slots=True)
class Hash:
    """
    32-byte digest (BLAKE2b-256 or SHA-256 output).

    SIZE: 32 bytes
    SERIALIZATION: raw bytes
    """
    data: bytes = field(default_factory=lambda: bytes(HASH_SIZE))

    def __post_init__(self):
        if len(self.data) != HASH_SIZE:
            raise ValueError(f"Hash must be {HASH_SIZE} bytes, got {len(self.data)}")

    def __bytes__(self) -> bytes:
        return self.data

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Hash):
            return self.data == other.data
        if isinstance(other, bytes):
            return self.data == other
        return False

    def __hash__(self) -> int:
        return hash(self.data)

    def __repr__(self) -> str:
        return f"Hash({self.data.hex()[:16]}...)"

    def hex(self) -> str:
        return self.data.hex()

    @classmethod
    def from_hex(cls, hex_string: str) -> Hash:
        return cls(bytes.fromhex(hex_string))

    @classmethod
    def zero(cls) -> Hash:
        return cls(bytes(HASH_SIZE))


@dataclass(frozen=True, slots=True)
class PublicKey:
    """
    Ed25519 verifying key.

    SIZE: 32 bytes (RFC 8032 encoding)
    """
    data: bytes

    def __post_init__(self):
        if len(self.data) != ED25519_PUBLIC_KEY_SIZE:
            raise ValueError(
                f"PublicKey must be {ED25519_PUBLIC_KEY_SIZE} bytes, got {len(self.data)}"
            )

    def __bytes__(self) -> bytes:
        return self.data

    def __repr__(self) -> str:
        return f"PublicKey({self.data.hex()[:16]}...)"

    def hex(self) -> str:
        return self.data.hex()

    @classmethod
    def from_hex(cls, hex_string: str) -> PublicKey:
        return cls(bytes.fromhex(hex_string))


@dataclass(frozen=True, slots=True)
class Signature:
    """
    Ed25519 signature.

    SIZE: 64 bytes (R || S)
    """
    data: bytes

    def __post_init__(self):
        if len(self.data) != ED25519_SIGNATURE_SIZE:
            raise ValueError(
                f"Signature must be {ED25519_SIGNATURE_SIZE} bytes, got {len(self.data)}"
            )

    def __bytes__(self) -> bytes:
        return self.data

    def __repr__(self) -> str:
        return f"Signature({self.data.hex()[:16]}...)"

    def hex(self) -> str:
        return self.data.hex()

    @classmethod
    def from_hex(cls, hex_string: str) -> Signature:
        return cls(bytes.fromhex(hex_string))


def u64_le(value: int) -> bytes:
    """Encode an unsigned 64-bit integer little-endian."""
    return value.to_bytes(8, LITTLE_ENDIAN)
