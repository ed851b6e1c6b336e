"""ShieldNote persistence."""

from shieldnote.storage.snapshot_store import SnapshotStore, SCHEMA_VERSION

__all__ = ["SnapshotStore", "SCHEMA_VERSION"]
