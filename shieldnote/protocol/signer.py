"""
ShieldNote Transaction Signer

Transfer creation, signing and verification.

Flow:
1. build()  - select notes, compute change, bind everything in a digest
2. sign()   - one Ed25519 signature per input, all or nothing
3. verify() - check every signature against the digest
4. after the transfer is durably broadcast, the caller marks the inputs
   spent (mark_inputs_spent() or NoteLedger.mark_spent()); the signer
   never does this on its own
"""

from __future__ import annotations
import dataclasses
import json
import logging
from typing import List, Optional, Union

from shieldnote.constants import (
    MEMO_MAX_SIZE,
    U64_MAX,
    DERIVATION_PATH_PREFIX,
    TX_BASE_OVERHEAD_BYTES,
    TX_INPUT_POSITION_BYTES,
    TX_OUTPUT_VALUE_BYTES,
    HASH_SIZE,
    ED25519_SIGNATURE_SIZE,
    ED25519_PUBLIC_KEY_SIZE,
)
from shieldnote.core.note import Note
from shieldnote.crypto.ed25519 import ed25519_verify
from shieldnote.errors import (
    InvalidParameterError,
    InvalidMemoLengthError,
    SerializationError,
    ShieldNoteError,
    SigningError,
    TransferStateError,
    ZeroAmountError,
)
from shieldnote.protocol.keys import KeyProvider
from shieldnote.protocol.transfer import (
    ShieldedInput,
    ShieldedOutput,
    SignedTransfer,
    TransferSignature,
    TransferState,
    compute_transfer_digest,
)
from shieldnote.state.ledger import NoteLedger
from shieldnote.state.selection import NoteSelector, SelectionStrategy

logger = logging.getLogger(__name__)


def derivation_path_of(note: Note) -> str:
    """
    Key path authorizing a note: m/44'/133'/0'/<branch>/<position>.

    Branch is 0 for Orchard notes and 1 for Sapling notes.
    """
    position = note.position if note.position is not None else 0
    return f"{DERIVATION_PATH_PREFIX}/{note.family.derivation_branch}/{position}"


class TransactionSigner:
    """
    Builds and signs transfers funded from a NoteLedger.

    The ledger is only read here; spends are recorded by the caller
    once the network has accepted the transfer.
    """

    def __init__(self, ledger: NoteLedger, selector: Optional[NoteSelector] = None):
        self._ledger = ledger
        self._selector = selector or NoteSelector(ledger)
        self._config = ledger.config

    @property
    def ledger(self) -> NoteLedger:
        return self._ledger

    @property
    def selector(self) -> NoteSelector:
        return self._selector

    def build(
        self,
        recipient: str,
        amount: int,
        fee: int,
        memo: Optional[bytes] = None,
        expiry_height: int = 0,
        strategy: Optional[Union[str, SelectionStrategy]] = None,
        change_address: Optional[str] = None,
    ) -> SignedTransfer:
        """
        Create an unsigned transfer.

        Args:
            recipient: Opaque recipient address
            amount: Value sent to recipient
            fee: Transfer fee
            memo: Optional memo for the recipient output (max 512 bytes)
            expiry_height: Height after which the transfer is invalid
            strategy: Selection strategy (defaults to the selector's)
            change_address: Destination for change (defaults to the
                configured change address)

        Returns:
            UNSIGNED SignedTransfer

        Raises:
            ZeroAmountError: If amount is 0
            InvalidMemoLengthError: If memo exceeds 512 bytes
            InsufficientFundsError: If unspent notes cannot cover amount + fee
            InvalidParameterError: If change is due and no change address is known
        """
        if amount == 0:
            raise ZeroAmountError()

        if amount < 0 or amount > U64_MAX:
            raise InvalidParameterError("amount", "must fit in an unsigned 64-bit integer")

        if fee < 0 or amount + fee > U64_MAX:
            raise InvalidParameterError("fee", "amount + fee must fit in an unsigned 64-bit integer")

        if expiry_height < 0 or expiry_height > U64_MAX:
            raise InvalidParameterError("expiry_height", "must fit in an unsigned 64-bit integer")

        if memo is not None and len(memo) > MEMO_MAX_SIZE:
            raise InvalidMemoLengthError(len(memo), MEMO_MAX_SIZE)

        notes = self._selector.select(amount + fee, strategy)
        total_input = sum(note.value for note in notes)
        change = total_input - amount - fee

        # Witnesses are taken against the current root (the anchor)
        anchor = self._ledger.root()
        inputs = []
        for note in notes:
            position, path = self._ledger.witness(note.id)
            inputs.append(ShieldedInput(note=note, merkle_path=tuple(path), position=position))

        outputs = [ShieldedOutput(address=recipient, value=amount, memo=memo)]

        change_output = None
        if change > 0:
            address = change_address or self._config.change_address
            if not address:
                raise InvalidParameterError("change_address", f"required for change of {change}")
            change_output = ShieldedOutput(address=address, value=change)
            outputs.append(change_output)

        digest = compute_transfer_digest(inputs, outputs, fee, expiry_height)

        logger.debug(
            f"Built transfer {digest.hex()[:16]}: {len(inputs)} inputs ({total_input}), "
            f"amount={amount} fee={fee} change={change}"
        )

        return SignedTransfer(
            inputs=tuple(inputs),
            outputs=tuple(outputs),
            fee=fee,
            expiry_height=expiry_height,
            digest=digest,
            anchor=anchor,
            change_output=change_output,
        )

    def sign(self, transfer: SignedTransfer, key_provider: KeyProvider) -> SignedTransfer:
        """
        Sign every input of an unsigned transfer.

        Nothing is returned or recorded unless every input is signed.

        Raises:
            TransferStateError: If the transfer is already signed
            SigningError: If a key cannot be resolved or used
        """
        if transfer.is_signed:
            raise TransferStateError(transfer.state.value, TransferState.UNSIGNED.value)

        signatures: List[TransferSignature] = []

        for item in transfer.inputs:
            path = derivation_path_of(item.note)
            try:
                key = key_provider.key_for(path)
                signature = key.sign(transfer.digest.data)
            except ShieldNoteError as e:
                raise SigningError(path, e.message) from e
            except Exception as e:
                # Any provider failure is a signing failure
                raise SigningError(path, f"{type(e).__name__}: {e}") from e

            signatures.append(TransferSignature(signature=signature, public_key=key.public_key))

        logger.info(f"Signed transfer {transfer.digest.hex()[:16]} ({len(signatures)} inputs)")

        return dataclasses.replace(
            transfer,
            signatures=tuple(signatures),
            state=TransferState.SIGNED,
        )

    def verify(self, transfer: SignedTransfer) -> bool:
        """
        Check that every input carries a valid signature over the digest.

        Amounts are not re-checked. Any failure returns False.
        """
        if len(transfer.signatures) != len(transfer.inputs):
            logger.debug(
                f"Signature count mismatch: {len(transfer.signatures)} != {len(transfer.inputs)}"
            )
            return False

        for index, entry in enumerate(transfer.signatures):
            if not ed25519_verify(entry.public_key.data, transfer.digest.data, entry.signature.data):
                logger.warning(f"Invalid signature for input {index} of {transfer.digest.hex()[:16]}")
                return False

        return True

    def estimate_fee(
        self,
        amount: int,
        strategy: Optional[Union[str, SelectionStrategy]] = None
    ) -> int:
        """
        Estimate the fee for sending amount.

        fee = base_fee + inputs * per_input_fee + outputs_fixed_fee; memos
        are free. Selection here ignores the fee itself, so a later build()
        for amount + fee may pick a different note set.

        Raises:
            InsufficientFundsError: If amount alone cannot be covered
        """
        notes = self._selector.select(amount, strategy)
        fees = self._config.fees
        return fees.base_fee + len(notes) * fees.per_input_fee + fees.outputs_fixed_fee

    def estimate_size(self, transfer: SignedTransfer) -> int:
        """Approximate encoded size of a transfer in bytes."""
        size = TX_BASE_OVERHEAD_BYTES

        for item in transfer.inputs:
            size += HASH_SIZE + TX_INPUT_POSITION_BYTES
            size += len(item.merkle_path) * HASH_SIZE

        for output in transfer.outputs:
            size += len(output.address.encode("utf-8")) + TX_OUTPUT_VALUE_BYTES
            if output.memo is not None:
                size += len(output.memo)

        size += len(transfer.signatures) * (ED25519_SIGNATURE_SIZE + ED25519_PUBLIC_KEY_SIZE)
        return size

    def serialize(self, transfer: SignedTransfer) -> bytes:
        """JSON payload handed to the broadcaster."""
        try:
            return json.dumps(transfer.to_dict(), sort_keys=True).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(f"failed to serialize transfer: {e}") from e

    def mark_inputs_spent(self, transfer: SignedTransfer, height: int) -> None:
        """
        Record the inputs of a broadcast transfer as spent.

        Raises:
            TransferStateError: If the transfer was never signed
        """
        if not transfer.is_signed:
            raise TransferStateError(transfer.state.value, TransferState.SIGNED.value)

        for item in transfer.inputs:
            self._ledger.mark_spent(item.note.id, height)
