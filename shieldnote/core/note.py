"""
ShieldNote Note Structures

Shielded note value object and note family.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

from shieldnote.constants import (
    FAMILY_ORCHARD,
    FAMILY_SAPLING,
    COMMITMENT_TAGS,
    NULLIFIER_TAGS,
    PRIVACY_RANK,
    DERIVATION_BRANCH,
)
from shieldnote.core.types import Hash


class NoteFamily(Enum):
    """
    Shielded pool a note belongs to.

    ORCHARD is family "A" (stronger privacy, larger proofs),
    SAPLING is family "B" (cheaper to prove). Every per-family
    parameter is looked up through the tag tables in constants.
    """
    ORCHARD = FAMILY_ORCHARD
    SAPLING = FAMILY_SAPLING

    @property
    def commitment_tag(self) -> bytes:
        return COMMITMENT_TAGS[self.value]

    @property
    def nullifier_tag(self) -> bytes:
        return NULLIFIER_TAGS[self.value]

    @property
    def privacy_rank(self) -> int:
        return PRIVACY_RANK[self.value]

    @property
    def derivation_branch(self) -> int:
        return DERIVATION_BRANCH[self.value]

    @classmethod
    def parse(cls, value: str | NoteFamily) -> NoteFamily:
        """Accept a family, its tag ("orchard") or its letter ("A"/"B")."""
        if isinstance(value, cls):
            return value
        lowered = str(value).lower()
        if lowered == "a":
            return cls.ORCHARD
        if lowered == "b":
            return cls.SAPLING
        return cls(lowered)


@dataclass(frozen=True, slots=True)
class Note:
    """
    Shielded note owned by the ledger.

    Immutable: lifecycle changes produce a new Note via with_spend().
    Invariant: (nullifier is None) == (spent_at_height is None).
    """
    # Identity
    id: str
    family: NoteFamily
    value: int                              # Smallest unit (zatoshi)

    # Commitment material
    commitment: Hash
    randomness: bytes
    recipient: str
    memo: Optional[bytes] = None
    tx_ref: Optional[bytes] = None

    # Provenance
    created_at_height: int = 0
    spent_at_height: Optional[int] = None
    nullifier: Optional[Hash] = None

    # Accumulator placement (fixed at insertion)
    position: Optional[int] = None
    merkle_path: Tuple[Hash, ...] = field(default_factory=tuple)

    @property
    def is_spent(self) -> bool:
        return self.nullifier is not None

    def with_spend(self, nullifier: Hash, height: int) -> Note:
        """Return a spent copy of this note."""
        return replace(self, nullifier=nullifier, spent_at_height=height)

    def to_dict(self) -> dict:
        """Export note as a JSON-compatible dictionary."""
        return {
            "id": self.id,
            "family": self.family.value,
            "value": self.value,
            "commitment": self.commitment.hex(),
            "randomness": self.randomness.hex(),
            "recipient": self.recipient,
            "memo": self.memo.hex() if self.memo is not None else None,
            "tx_ref": self.tx_ref.hex() if self.tx_ref is not None else None,
            "created_at_height": self.created_at_height,
            "spent_at_height": self.spent_at_height,
            "nullifier": self.nullifier.hex() if self.nullifier is not None else None,
            "position": self.position,
            "merkle_path": [h.hex() for h in self.merkle_path],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Note:
        """Rebuild a note exported by to_dict()."""
        memo = data.get("memo")
        tx_ref = data.get("tx_ref")
        nullifier = data.get("nullifier")
        return cls(
            id=data["id"],
            family=NoteFamily(data["family"]),
            value=int(data["value"]),
            commitment=Hash.from_hex(data["commitment"]),
            randomness=bytes.fromhex(data["randomness"]),
            recipient=data["recipient"],
            memo=bytes.fromhex(memo) if memo is not None else None,
            tx_ref=bytes.fromhex(tx_ref) if tx_ref is not None else None,
            created_at_height=int(data.get("created_at_height", 0)),
            spent_at_height=data.get("spent_at_height"),
            nullifier=Hash.from_hex(nullifier) if nullifier is not None else None,
            position=data.get("position"),
            merkle_path=tuple(Hash.from_hex(h) for h in data.get("merkle_path", [])),
        )
