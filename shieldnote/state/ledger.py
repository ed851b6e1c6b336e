"""
ShieldNote Note Ledger

Owns the note collection and the commitment tree. Notes leave the
ledger only as immutable values; the only mutators are
create_and_insert(), mark_spent() and consolidate().

Not thread-safe: embedders must serialize all mutations.
"""

from __future__ import annotations
import json
import logging
import secrets
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Iterator, Tuple

from shieldnote.config import WalletConfig
from shieldnote.constants import RANDOMNESS_SIZE, NOTE_ID_SIZE, U64_MAX
from shieldnote.core.note import Note, NoteFamily
from shieldnote.core.types import Hash, u64_le
from shieldnote.crypto.hash import blake2b_256, sha256_raw
from shieldnote.crypto.merkle import CommitmentTree
from shieldnote.errors import InvalidParameterError, SerializationError

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


def compute_commitment(
    value: int,
    recipient: str,
    randomness: bytes,
    family: NoteFamily
) -> Hash:
    """BLAKE2b-256(family_tag || value_le64 || recipient || randomness)."""
    return blake2b_256(
        family.commitment_tag,
        u64_le(value),
        recipient.encode("utf-8"),
        randomness,
    )


def compute_note_id(commitment: Hash, recipient: str) -> str:
    """First 8 bytes of SHA-256(commitment || recipient), hex-encoded."""
    return sha256_raw(commitment.data, recipient.encode("utf-8"))[:NOTE_ID_SIZE].hex()


def compute_nullifier(note: Note) -> Hash:
    """BLAKE2b-256(commitment || randomness || family_nullifier_tag)."""
    return blake2b_256(note.commitment.data, note.randomness, note.family.nullifier_tag)


@dataclass
class LedgerStatistics:
    """Ledger balance and note-count summary."""
    total_balance: int = 0
    total_notes: int = 0
    unspent_notes: int = 0
    spent_notes: int = 0
    orchard_balance: int = 0
    orchard_count: int = 0
    sapling_balance: int = 0
    sapling_count: int = 0
    tree_size: int = 0
    by_family: Dict[str, Tuple[int, int]] = field(default_factory=dict)


class NoteLedger:
    """
    Note collection with spend lifecycle.

    Iteration order is insertion order; selection strategies that do
    not reorder (BALANCED) and all tie-breaks rely on it.
    """

    def __init__(
        self,
        config: Optional[WalletConfig] = None,
        tree: Optional[CommitmentTree] = None
    ):
        self._config = config or WalletConfig()
        self._tree = tree if tree is not None else CommitmentTree(depth=self._config.tree.depth)
        self._notes: Dict[str, Note] = {}

    @property
    def config(self) -> WalletConfig:
        return self._config

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def create_and_insert(
        self,
        value: int,
        recipient: str,
        memo: Optional[bytes] = None,
        family: NoteFamily = NoteFamily.ORCHARD,
        height: int = 0,
        tx_ref: Optional[bytes] = None,
        randomness: Optional[bytes] = None,
    ) -> Note:
        """
        Create a note and append its commitment to the tree.

        Args:
            value: Note value (u64, smallest unit)
            recipient: Opaque recipient address
            memo: Optional memo bytes
            family: Shielded pool
            height: Block height the note was created at
            tx_ref: Optional reference to the creating transaction
            randomness: Known note randomness (for notes scanned from
                chain); fresh randomness is drawn when omitted

        Returns:
            The stored note, with position and merkle_path filled in. A
            note already in the ledger (same commitment) is returned
            unchanged and nothing is inserted

        Raises:
            TreeFullError: If the commitment tree is exhausted
            InvalidParameterError: If value or randomness is out of range
        """
        if value < 0 or value > U64_MAX:
            raise InvalidParameterError("value", "must fit in an unsigned 64-bit integer")

        family = NoteFamily.parse(family)

        if randomness is None:
            randomness = secrets.token_bytes(RANDOMNESS_SIZE)
        elif len(randomness) != RANDOMNESS_SIZE:
            raise InvalidParameterError("randomness", f"must be {RANDOMNESS_SIZE} bytes")

        commitment = compute_commitment(value, recipient, randomness, family)
        note_id = compute_note_id(commitment, recipient)

        # Re-imported notes keep their leaf and spend state
        existing = self._notes.get(note_id)
        if existing is not None and existing.commitment == commitment:
            logger.debug(f"Note {note_id} already in ledger, not re-inserted")
            return existing

        position = self._tree.insert(commitment)
        merkle_path = tuple(self._tree.path(position))

        note = Note(
            id=note_id,
            family=family,
            value=value,
            commitment=commitment,
            randomness=randomness,
            recipient=recipient,
            memo=memo,
            tx_ref=tx_ref,
            created_at_height=height,
            position=position,
            merkle_path=merkle_path,
        )
        self._notes[note_id] = note

        logger.info(
            f"Created {family.value} note {note_id} value={value} "
            f"position={position} height={height}"
        )
        return note

    def mark_spent(self, note_id: str, height: int) -> None:
        """
        Record a note as spent.

        Unknown ids are ignored. The nullifier depends only on immutable
        note fields, so marking an already spent note changes nothing and
        the first spend height is kept.
        """
        note = self._notes.get(note_id)
        if note is None:
            logger.debug(f"mark_spent: unknown note {note_id}")
            return

        if note.is_spent:
            return

        self._notes[note_id] = note.with_spend(compute_nullifier(note), height)
        logger.info(f"Marked note {note_id} spent at height {height}")

    def consolidate(self, recipient: Optional[str] = None, height: int = 0) -> List[Note]:
        """
        Merge small unspent notes into a single Orchard note.

        Takes notes below the configured minimum value, smallest first,
        up to the configured maximum count, and only when at least two
        qualify. The merged notes are marked spent.

        Args:
            recipient: Destination of the merged note (defaults to the
                recipient of the smallest merged note)
            height: Height recorded on the new note and on the spends

        Returns:
            List containing the new note, or empty if nothing was merged
        """
        settings = self._config.consolidation
        if not settings.enabled:
            return []

        small = [note for note in self.unspent() if note.value < settings.min_value]
        if len(small) < 2:
            logger.debug(f"Consolidation skipped: {len(small)} small notes")
            return []

        small.sort(key=lambda note: note.value)
        chosen = small[:settings.max_notes]
        total = sum(note.value for note in chosen)

        merged = self.create_and_insert(
            total,
            recipient if recipient is not None else chosen[0].recipient,
            memo=None,
            family=NoteFamily.ORCHARD,
            height=height,
        )

        for note in chosen:
            self.mark_spent(note.id, height)

        logger.info(f"Consolidated {len(chosen)} notes into {merged.id} value={total}")
        return [merged]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, note_id: str) -> Optional[Note]:
        return self._notes.get(note_id)

    def __contains__(self, note_id: object) -> bool:
        return note_id in self._notes

    def __len__(self) -> int:
        return len(self._notes)

    def __iter__(self) -> Iterator[Note]:
        return iter(list(self._notes.values()))

    def notes(self) -> List[Note]:
        return list(self._notes.values())

    def is_spent(self, note_id: str) -> Optional[bool]:
        note = self._notes.get(note_id)
        return note.is_spent if note is not None else None

    def unspent(self) -> List[Note]:
        """Unspent notes in ledger order."""
        return [note for note in self._notes.values() if note.nullifier is None]

    def unspent_by_family(self, family: NoteFamily) -> List[Note]:
        family = NoteFamily.parse(family)
        return [note for note in self.unspent() if note.family == family]

    def total_value(self) -> int:
        return sum(note.value for note in self.unspent())

    def value_by_family(self, family: NoteFamily) -> int:
        return sum(note.value for note in self.unspent_by_family(family))

    # ------------------------------------------------------------------
    # Tree access
    # ------------------------------------------------------------------

    @property
    def tree_size(self) -> int:
        return self._tree.size

    def root(self) -> Hash:
        return self._tree.root()

    def tree_copy(self) -> CommitmentTree:
        """Independent copy of the commitment tree."""
        return self._tree.copy()

    def witness(self, note_id: str) -> Optional[Tuple[int, List[Hash]]]:
        """Current (position, path) of a note against the latest root."""
        note = self._notes.get(note_id)
        if note is None or note.position is None:
            return None
        return note.position, self._tree.path(note.position)

    def statistics(self) -> LedgerStatistics:
        stats = LedgerStatistics(
            total_notes=len(self._notes),
            tree_size=self._tree.size,
        )

        for note in self._notes.values():
            if note.is_spent:
                stats.spent_notes += 1
                continue
            stats.unspent_notes += 1
            stats.total_balance += note.value
            balance, count = stats.by_family.get(note.family.value, (0, 0))
            stats.by_family[note.family.value] = (balance + note.value, count + 1)

        stats.orchard_balance, stats.orchard_count = stats.by_family.get(
            NoteFamily.ORCHARD.value, (0, 0)
        )
        stats.sapling_balance, stats.sapling_count = stats.by_family.get(
            NoteFamily.SAPLING.value, (0, 0)
        )
        return stats

    # ------------------------------------------------------------------
    # Persistence boundary
    # ------------------------------------------------------------------

    def snapshot(self) -> dict:
        """Full ledger state as a JSON-compatible dictionary."""
        return {
            "version": SNAPSHOT_VERSION,
            "notes": [note.to_dict() for note in self._notes.values()],
            "tree": self._tree.to_dict(),
        }

    @classmethod
    def from_snapshot(cls, data: dict, config: Optional[WalletConfig] = None) -> NoteLedger:
        """
        Restore a ledger from snapshot().

        Raises:
            SerializationError: If the snapshot is malformed or its notes
                disagree with the tree
        """
        if not isinstance(data, dict):
            raise SerializationError("snapshot must be a mapping")

        if data.get("version") != SNAPSHOT_VERSION:
            raise SerializationError(f"unsupported snapshot version: {data.get('version')}")

        tree = CommitmentTree.from_dict(data.get("tree", {}))
        ledger = cls(config=config, tree=tree)

        for raw in data.get("notes", []):
            try:
                note = Note.from_dict(raw)
            except (KeyError, TypeError, ValueError) as e:
                raise SerializationError(f"malformed note: {e}") from e

            if not 0 <= note.value <= U64_MAX:
                raise SerializationError(f"note {note.id} value out of range")

            commitment = compute_commitment(note.value, note.recipient, note.randomness, note.family)
            if commitment != note.commitment or compute_note_id(commitment, note.recipient) != note.id:
                raise SerializationError(f"note {note.id} does not match its commitment")

            if note.position is None or tree.leaf(note.position) != note.commitment:
                raise SerializationError(f"note {note.id} is not in the commitment tree")

            if (note.nullifier is None) != (note.spent_at_height is None):
                raise SerializationError(f"note {note.id} has inconsistent spend state")

            if note.nullifier is not None and note.nullifier != compute_nullifier(note):
                raise SerializationError(f"note {note.id} has a foreign nullifier")

            ledger._notes[note.id] = note

        logger.debug(f"Restored ledger with {len(ledger)} notes, tree size {tree.size}")
        return ledger

    def to_json(self) -> str:
        return json.dumps(self.snapshot())

    @classmethod
    def from_json(cls, payload: str, config: Optional[WalletConfig] = None) -> NoteLedger:
        try:
            data = json.loads(payload)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"invalid JSON: {e}") from e
        return cls.from_snapshot(data, config)
