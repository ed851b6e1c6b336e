"""
ShieldNote Transaction Signer Tests
"""

import dataclasses
import json

import pytest

from shieldnote.core.note import NoteFamily
from shieldnote.core.types import PublicKey, Signature
from shieldnote.crypto.ed25519 import SigningKey, ed25519_verify
from shieldnote.crypto.merkle import verify_path
from shieldnote.errors import (
    InsufficientFundsError,
    InvalidMemoLengthError,
    InvalidParameterError,
    KeyUnavailableError,
    SerializationError,
    SigningError,
    TransferStateError,
    ZeroAmountError,
)
from shieldnote.protocol.keys import KeyProvider, SeedKeyProvider
from shieldnote.protocol.signer import TransactionSigner, derivation_path_of
from shieldnote.protocol.transfer import (
    ShieldedOutput,
    SignedTransfer,
    TransferState,
    compute_transfer_digest,
)
from shieldnote.state.ledger import NoteLedger
from shieldnote.state.selection import SelectionStrategy

from conftest import CHANGE_ADDRESS, RECIPIENT


PAYEE = "zs1payee"


class TestEd25519:
    """Tests for Ed25519 keys."""

    def test_sign_verify(self):
        """Test a signature verifies under its key."""
        key = SigningKey(bytes([1] * 32))
        sig = key.sign(b"message")
        assert ed25519_verify(key.public_key.data, b"message", sig.data)
        assert not ed25519_verify(key.public_key.data, b"other", sig.data)

    def test_deterministic(self):
        """Test same seed and message give the same signature."""
        k1 = SigningKey(bytes([2] * 32))
        k2 = SigningKey(bytes([2] * 32))
        assert k1.public_key == k2.public_key
        assert k1.sign(b"x") == k2.sign(b"x")

    def test_bad_seed(self):
        """Test seed must be 32 bytes."""
        with pytest.raises(ValueError):
            SigningKey(bytes(31))

    def test_malformed_inputs(self):
        """Test malformed key or signature bytes verify as False."""
        key = SigningKey.generate()
        sig = key.sign(b"m")
        assert not ed25519_verify(b"\x00" * 5, b"m", sig.data)
        assert not ed25519_verify(key.public_key.data, b"m", sig.data[:10])

    def test_repr_hides_seed(self):
        """Test repr does not leak the seed."""
        seed = bytes([0xAB] * 32)
        assert seed.hex() not in repr(SigningKey(seed))


class TestKeyProvider:
    """Tests for SeedKeyProvider."""

    def test_protocol(self, key_provider):
        """Test provider satisfies KeyProvider."""
        assert isinstance(key_provider, KeyProvider)

    def test_deterministic_per_path(self, key_provider):
        """Test same path yields same key and paths differ."""
        a = key_provider.key_for("m/44'/133'/0'/0/0")
        b = SeedKeyProvider(bytes(range(32))).key_for("m/44'/133'/0'/0/0")
        c = key_provider.key_for("m/44'/133'/0'/0/1")
        assert a.public_key == b.public_key
        assert a.public_key != c.public_key

    def test_lock(self, key_provider):
        """Test locked provider refuses keys."""
        key_provider.lock()
        assert key_provider.is_locked
        with pytest.raises(KeyUnavailableError):
            key_provider.key_for("m/44'/133'/0'/0/0")

    def test_short_seed(self):
        """Test seeds shorter than 16 bytes are rejected."""
        with pytest.raises(ValueError):
            SeedKeyProvider(bytes(8))


class TestDerivationPath:
    """Tests for derivation paths."""

    def test_paths(self, rich_ledger):
        """Test branch follows family and leaf follows position."""
        orchard, sapling = rich_ledger.notes()
        assert derivation_path_of(orchard) == "m/44'/133'/0'/0/0"
        assert derivation_path_of(sapling) == "m/44'/133'/0'/1/1"


class TestBuild:
    """Tests for transfer construction."""

    def test_build_with_change(self, signer):
        """Test change output is added when inputs exceed amount + fee."""
        transfer = signer.build(PAYEE, 10_000, 2_000, memo=b"thanks")

        assert transfer.state == TransferState.UNSIGNED
        assert not transfer.is_signed
        assert [n.value for n in (i.note for i in transfer.inputs)] == [50_000]
        assert transfer.outputs[0] == ShieldedOutput(PAYEE, 10_000, b"thanks")
        assert transfer.change_output == ShieldedOutput(CHANGE_ADDRESS, 38_000)
        assert transfer.outputs[1] == transfer.change_output
        assert transfer.total_input == transfer.total_output + transfer.fee

    def test_exact_no_change(self, signer):
        """Test no change output when inputs equal amount + fee."""
        transfer = signer.build(PAYEE, 49_000, 1_000)
        assert transfer.change_output is None
        assert len(transfer.outputs) == 1

    def test_explicit_change_address(self, signer):
        """Test change address argument overrides configuration."""
        transfer = signer.build(PAYEE, 100, 10, change_address="zs1other")
        assert transfer.change_output.address == "zs1other"

    def test_missing_change_address(self, wallet_config):
        """Test change without any change address is rejected."""
        wallet_config.change_address = None
        ledger = NoteLedger(wallet_config)
        ledger.create_and_insert(1_000, RECIPIENT)

        with pytest.raises(InvalidParameterError):
            TransactionSigner(ledger).build(PAYEE, 100, 10)

    def test_zero_amount(self, signer):
        """Test zero amount is rejected."""
        with pytest.raises(ZeroAmountError):
            signer.build(PAYEE, 0, 10)

    def test_memo_limit(self, signer):
        """Test memo may be 512 bytes but not more."""
        signer.build(PAYEE, 100, 10, memo=bytes(512))
        with pytest.raises(InvalidMemoLengthError):
            signer.build(PAYEE, 100, 10, memo=bytes(513))

    def test_insufficient(self, signer):
        """Test fee is included in the selection target."""
        with pytest.raises(InsufficientFundsError) as exc_info:
            signer.build(PAYEE, 70_000, 1)
        assert exc_info.value.required == 70_001
        assert exc_info.value.available == 70_000

    def test_strategy_changes_inputs(self, signer):
        """Test the selection strategy reaches the inputs."""
        transfer = signer.build(PAYEE, 1_000, 100, strategy=SelectionStrategy.EFFICIENCY_FIRST)
        assert transfer.inputs[0].note.family == NoteFamily.SAPLING

    def test_witnesses_match_anchor(self, signer, rich_ledger):
        """Test input paths verify against the transfer anchor."""
        transfer = signer.build(PAYEE, 60_000, 1_000)

        assert transfer.anchor == rich_ledger.root()
        for item in transfer.inputs:
            assert verify_path(item.note.commitment, item.position, item.merkle_path, transfer.anchor)

    def test_digest_binds_fields(self, signer):
        """Test digest changes with fee and expiry."""
        transfer = signer.build(PAYEE, 1_000, 100, expiry_height=500)
        inputs, outputs = transfer.inputs, transfer.outputs

        assert transfer.digest == compute_transfer_digest(inputs, outputs, 100, 500)
        assert transfer.digest != compute_transfer_digest(inputs, outputs, 101, 500)
        assert transfer.digest != compute_transfer_digest(inputs, outputs, 100, 501)

    def test_build_does_not_spend(self, signer, rich_ledger):
        """Test building leaves the ledger unchanged."""
        signer.build(PAYEE, 1_000, 100)
        assert rich_ledger.total_value() == 70_000


class TestSignAndVerify:
    """Tests for signing and verification."""

    def test_round_trip(self, signer, key_provider):
        """Test a signed transfer verifies."""
        transfer = signer.build(PAYEE, 60_000, 1_000)
        signed = signer.sign(transfer, key_provider)

        assert signed.state == TransferState.SIGNED
        assert len(signed.signatures) == len(signed.inputs) == 2
        assert signer.verify(signed)
        assert transfer.state == TransferState.UNSIGNED

    def test_signature_keys_follow_paths(self, signer, key_provider):
        """Test each input is signed with the key of its derivation path."""
        signed = signer.sign(signer.build(PAYEE, 60_000, 1_000), key_provider)
        for item, entry in zip(signed.inputs, signed.signatures):
            expected = key_provider.key_for(derivation_path_of(item.note)).public_key
            assert entry.public_key == expected

    def test_byte_flip_rejected(self, signer, key_provider):
        """Test flipping any byte of any signature or public key fails verification."""
        signed = signer.sign(signer.build(PAYEE, 60_000, 1_000), key_provider)
        assert len(signed.signatures) == 2

        for index, entry in enumerate(signed.signatures):
            for offset in range(len(entry.signature.data)):
                raw = bytearray(entry.signature.data)
                raw[offset] ^= 0x01
                forged = dataclasses.replace(entry, signature=Signature(bytes(raw)))
                signatures = signed.signatures[:index] + (forged,) + signed.signatures[index + 1:]
                assert not signer.verify(dataclasses.replace(signed, signatures=signatures))

            for offset in range(len(entry.public_key.data)):
                raw = bytearray(entry.public_key.data)
                raw[offset] ^= 0x01
                forged = dataclasses.replace(entry, public_key=PublicKey(bytes(raw)))
                signatures = signed.signatures[:index] + (forged,) + signed.signatures[index + 1:]
                assert not signer.verify(dataclasses.replace(signed, signatures=signatures))

    def test_digest_tamper_rejected(self, signer, key_provider):
        """Test signatures do not verify over another digest."""
        signed = signer.sign(signer.build(PAYEE, 1_000, 100), key_provider)
        other = signer.build(PAYEE, 1_001, 100)
        assert not signer.verify(dataclasses.replace(signed, digest=other.digest))

    def test_count_mismatch_rejected(self, signer, key_provider):
        """Test missing signatures fail verification."""
        signed = signer.sign(signer.build(PAYEE, 60_000, 1_000), key_provider)
        assert not signer.verify(dataclasses.replace(signed, signatures=signed.signatures[:1]))

    def test_unsigned_does_not_verify(self, signer):
        """Test an unsigned transfer with inputs fails verification."""
        assert not signer.verify(signer.build(PAYEE, 1_000, 100))

    def test_resign_rejected(self, signer, key_provider):
        """Test a signed transfer cannot be signed again."""
        signed = signer.sign(signer.build(PAYEE, 1_000, 100), key_provider)
        with pytest.raises(TransferStateError):
            signer.sign(signed, key_provider)

    def test_locked_provider(self, signer, key_provider):
        """Test a locked provider surfaces SigningError with the path."""
        transfer = signer.build(PAYEE, 1_000, 100)
        key_provider.lock()

        with pytest.raises(SigningError) as exc_info:
            signer.sign(transfer, key_provider)

        assert exc_info.value.path == "m/44'/133'/0'/0/0"
        assert isinstance(exc_info.value.__cause__, KeyUnavailableError)

    def test_partial_failure_commits_nothing(self, signer, key_provider):
        """Test failure on a later input returns nothing and leaves the transfer unsigned."""

        class FailingProvider:
            def key_for(self, derivation_path):
                if derivation_path.endswith("/1"):
                    raise KeyUnavailableError(derivation_path, "hardware wallet disconnected")
                return key_provider.key_for(derivation_path)

        transfer = signer.build(PAYEE, 60_000, 1_000)
        with pytest.raises(SigningError):
            signer.sign(transfer, FailingProvider())

        assert transfer.signatures == ()
        assert transfer.state == TransferState.UNSIGNED

    def test_provider_crash_is_signing_error(self, signer):
        """Test an arbitrary provider exception surfaces as SigningError."""

        class OfflineProvider:
            def key_for(self, derivation_path):
                raise RuntimeError("hsm offline")

        with pytest.raises(SigningError) as exc_info:
            signer.sign(signer.build(PAYEE, 1_000, 100), OfflineProvider())

        assert exc_info.value.path == "m/44'/133'/0'/0/0"
        assert "hsm offline" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestFeesAndSize:
    """Tests for fee and size estimation."""

    def test_estimate_fee_one_input(self, signer):
        """Test fee for a single input: 1000 + 500 + 2*500."""
        assert signer.estimate_fee(10_000) == 2_500

    def test_estimate_fee_two_inputs(self, signer):
        """Test fee grows per input."""
        assert signer.estimate_fee(60_000) == 3_000

    def test_estimate_fee_ignores_memo(self, signer):
        """Test memos do not affect the estimate."""
        transfer = signer.build(PAYEE, 10_000, signer.estimate_fee(10_000), memo=bytes(512))
        assert transfer.fee == 2_500

    def test_estimate_fee_insufficient(self, signer):
        """Test estimate raises when amount alone is uncovered."""
        with pytest.raises(InsufficientFundsError):
            signer.estimate_fee(80_000)

    def test_estimate_size(self, signer, key_provider):
        """Test size grows with memo and signatures."""
        plain = signer.build(PAYEE, 1_000, 100)
        with_memo = signer.build(PAYEE, 1_000, 100, memo=bytes(100))
        signed = signer.sign(plain, key_provider)

        assert signer.estimate_size(with_memo) == signer.estimate_size(plain) + 100
        assert signer.estimate_size(signed) == signer.estimate_size(plain) + 96


class TestSerialization:
    """Tests for transfer serialization."""

    def test_serialize_round_trip(self, signer, key_provider):
        """Test serialized transfer restores and still verifies."""
        signed = signer.sign(signer.build(PAYEE, 1_000, 100, memo=b"m"), key_provider)
        payload = signer.serialize(signed)
        restored = SignedTransfer.from_dict(json.loads(payload))

        assert restored == signed
        assert signer.verify(restored)

    def test_malformed_payload(self):
        """Test malformed transfer payloads raise SerializationError."""
        with pytest.raises(SerializationError):
            SignedTransfer.from_dict({"inputs": []})


class TestMarkInputsSpent:
    """Tests for post-broadcast spend recording."""

    def test_mark_inputs_spent(self, signer, key_provider, rich_ledger):
        """Test inputs are spent only when the caller asks."""
        signed = signer.sign(signer.build(PAYEE, 1_000, 100), key_provider)
        assert rich_ledger.total_value() == 70_000

        signer.mark_inputs_spent(signed, height=200)

        for note_id in signed.input_note_ids:
            assert rich_ledger.get(note_id).spent_at_height == 200
        assert rich_ledger.total_value() == 20_000

    def test_unsigned_rejected(self, signer):
        """Test unsigned transfers cannot be marked."""
        with pytest.raises(TransferStateError):
            signer.mark_inputs_spent(signer.build(PAYEE, 1_000, 100), height=1)
