"""
ShieldNote Transfer Structures

Inputs, outputs and signatures of a shielded transfer, and the digest
that binds them. A transfer is built UNSIGNED and becomes SIGNED once;
signing again means building a new transfer.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Tuple

from shieldnote.constants import ALGORITHM_EDDSA, TRANSFER_VERSION
from shieldnote.core.note import Note, NoteFamily
from shieldnote.core.types import Hash, PublicKey, Signature, u64_le
from shieldnote.crypto.hash import HashBuilder
from shieldnote.errors import SerializationError


class TransferState(Enum):
    UNSIGNED = "unsigned"
    SIGNED = "signed"


@dataclass(frozen=True, slots=True)
class ShieldedInput:
    """A note being spent, with its witness against the transfer anchor."""
    note: Note
    merkle_path: Tuple[Hash, ...]
    position: int

    def to_dict(self) -> dict:
        return {
            "note": self.note.to_dict(),
            "merkle_path": [h.hex() for h in self.merkle_path],
            "position": self.position,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ShieldedInput:
        return cls(
            note=Note.from_dict(data["note"]),
            merkle_path=tuple(Hash.from_hex(h) for h in data["merkle_path"]),
            position=int(data["position"]),
        )


@dataclass(frozen=True, slots=True)
class ShieldedOutput:
    """Payment or change output."""
    address: str
    value: int
    memo: Optional[bytes] = None
    family: NoteFamily = NoteFamily.ORCHARD

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "value": self.value,
            "memo": self.memo.hex() if self.memo is not None else None,
            "family": self.family.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ShieldedOutput:
        memo = data.get("memo")
        return cls(
            address=data["address"],
            value=int(data["value"]),
            memo=bytes.fromhex(memo) if memo is not None else None,
            family=NoteFamily(data.get("family", NoteFamily.ORCHARD.value)),
        )


@dataclass(frozen=True, slots=True)
class TransferSignature:
    """Spend authorization for one input."""
    signature: Signature
    public_key: PublicKey
    algorithm: str = ALGORITHM_EDDSA

    def to_dict(self) -> dict:
        return {
            "signature": self.signature.hex(),
            "public_key": self.public_key.hex(),
            "algorithm": self.algorithm,
        }

    @classmethod
    def from_dict(cls, data: dict) -> TransferSignature:
        return cls(
            signature=Signature.from_hex(data["signature"]),
            public_key=PublicKey.from_hex(data["public_key"]),
            algorithm=data.get("algorithm", ALGORITHM_EDDSA),
        )


def compute_transfer_digest(
    inputs: Sequence[ShieldedInput],
    outputs: Sequence[ShieldedOutput],
    fee: int,
    expiry_height: int
) -> Hash:
    """
    BLAKE2b-256 over, in order:
    commitment || position_le64 for each input,
    address || value_le64 || memo (when present) for each output,
    fee_le64, expiry_height_le64.

    Input and output order are part of the digest.
    """
    builder = HashBuilder()

    for item in inputs:
        builder.update(item.note.commitment.data)
        builder.update(u64_le(item.position))

    for output in outputs:
        builder.update(output.address.encode("utf-8"))
        builder.update(u64_le(output.value))
        if output.memo is not None:
            builder.update(output.memo)

    builder.update(u64_le(fee))
    builder.update(u64_le(expiry_height))

    return builder.finalize()


@dataclass(frozen=True, slots=True)
class SignedTransfer:
    """
    Shielded transfer, UNSIGNED or SIGNED.

    outputs holds the payment output followed by the change output, if
    any; change_output repeats the latter for convenience.
    """
    inputs: Tuple[ShieldedInput, ...]
    outputs: Tuple[ShieldedOutput, ...]
    fee: int
    expiry_height: int
    digest: Hash
    anchor: Hash
    change_output: Optional[ShieldedOutput] = None
    version: int = TRANSFER_VERSION
    signatures: Tuple[TransferSignature, ...] = field(default_factory=tuple)
    state: TransferState = TransferState.UNSIGNED

    @property
    def is_signed(self) -> bool:
        return self.state == TransferState.SIGNED

    @property
    def total_input(self) -> int:
        return sum(item.note.value for item in self.inputs)

    @property
    def total_output(self) -> int:
        return sum(output.value for output in self.outputs)

    @property
    def input_note_ids(self) -> Tuple[str, ...]:
        return tuple(item.note.id for item in self.inputs)

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "state": self.state.value,
            "inputs": [item.to_dict() for item in self.inputs],
            "outputs": [output.to_dict() for output in self.outputs],
            "change_output": self.change_output.to_dict() if self.change_output else None,
            "fee": self.fee,
            "expiry_height": self.expiry_height,
            "anchor": self.anchor.hex(),
            "digest": self.digest.hex(),
            "signatures": [sig.to_dict() for sig in self.signatures],
        }

    @classmethod
    def from_dict(cls, data: dict) -> SignedTransfer:
        """
        Rebuild a transfer exported by to_dict().

        Raises:
            SerializationError: If the payload is malformed
        """
        try:
            change = data.get("change_output")
            return cls(
                inputs=tuple(ShieldedInput.from_dict(i) for i in data["inputs"]),
                outputs=tuple(ShieldedOutput.from_dict(o) for o in data["outputs"]),
                fee=int(data["fee"]),
                expiry_height=int(data["expiry_height"]),
                digest=Hash.from_hex(data["digest"]),
                anchor=Hash.from_hex(data["anchor"]),
                change_output=ShieldedOutput.from_dict(change) if change else None,
                version=int(data.get("version", TRANSFER_VERSION)),
                signatures=tuple(TransferSignature.from_dict(s) for s in data.get("signatures", [])),
                state=TransferState(data.get("state", TransferState.UNSIGNED.value)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(f"malformed transfer: {e}") from e
