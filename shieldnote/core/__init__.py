"""
ShieldNote Core Data Structures
"""

from shieldnote.core.types import Hash, PublicKey, Signature, u64_le
from shieldnote.core.note import Note, NoteFamily

__all__ = [
    # Types
    "Hash",
    "PublicKey",
    "Signature",
    "u64_le",
    # Notes
    "Note",
    "NoteFamily",
]
