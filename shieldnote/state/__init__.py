"""
ShieldNote Ledger State
"""

from shieldnote.state.ledger import (
    NoteLedger,
    LedgerStatistics,
    compute_commitment,
    compute_note_id,
    compute_nullifier,
)
from shieldnote.state.selection import (
    NoteSelector,
    SelectionStrategy,
    order_notes,
    select_notes,
)

__all__ = [
    # Ledger
    "NoteLedger",
    "LedgerStatistics",
    "compute_commitment",
    "compute_note_id",
    "compute_nullifier",
    # Selection
    "NoteSelector",
    "SelectionStrategy",
    "order_notes",
    "select_notes",
]
