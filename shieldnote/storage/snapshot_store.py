"""
ShieldNote Snapshot Store

Persists full ledger snapshots (notes + commitment tree) in SQLite.
This is the persistence boundary: the ledger itself never touches disk.

One row per wallet name; saving replaces the previous snapshot.
"""

from __future__ import annotations
import logging
import time
from pathlib import Path
from typing import List, Optional, Union

import aiosqlite

from shieldnote.config import WalletConfig
from shieldnote.errors import SerializationError, StorageError
from shieldnote.state.ledger import NoteLedger

logger = logging.getLogger(__name__)


SCHEMA_VERSION = 1

SCHEMA = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

-- Ledger snapshots
CREATE TABLE IF NOT EXISTS ledger_snapshots (
    wallet TEXT PRIMARY KEY,
    snapshot TEXT NOT NULL,
    tree_root TEXT NOT NULL,
    tree_size INTEGER NOT NULL,
    note_count INTEGER NOT NULL,
    updated_at INTEGER NOT NULL
);
"""


class SnapshotStore:
    """
    Async SQLite store for ledger snapshots.

    Usage:
        async with SnapshotStore("wallet.db") as store:
            await store.save("default", ledger)
            ledger = await store.load("default")
    """

    def __init__(self, path: Union[str, Path]):
        self._path = str(path)
        self._db: Optional[aiosqlite.Connection] = None

    async def open(self) -> None:
        if self._db is not None:
            return
        try:
            self._db = await aiosqlite.connect(self._path)
            await self._db.executescript(SCHEMA)
            await self._db.execute(
                "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,)
            )
            await self._db.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"cannot open {self._path}: {e}") from e
        logger.debug(f"Snapshot store opened at {self._path}")

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> SnapshotStore:
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StorageError("snapshot store is not open")
        return self._db

    async def save(self, wallet: str, ledger: NoteLedger) -> None:
        """Store (or replace) the snapshot of a wallet's ledger."""
        db = self._conn()
        payload = ledger.to_json()
        try:
            await db.execute(
                """
                INSERT OR REPLACE INTO ledger_snapshots
                    (wallet, snapshot, tree_root, tree_size, note_count, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    wallet,
                    payload,
                    ledger.root().hex(),
                    ledger.tree_size,
                    len(ledger),
                    int(time.time()),
                ),
            )
            await db.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"cannot save snapshot for {wallet}: {e}") from e

        logger.info(f"Saved snapshot for {wallet}: {len(ledger)} notes, tree size {ledger.tree_size}")

    async def load(self, wallet: str, config: Optional[WalletConfig] = None) -> Optional[NoteLedger]:
        """
        Load a wallet's ledger.

        Returns:
            The restored ledger, or None if no snapshot exists

        Raises:
            SerializationError: If the stored snapshot is corrupt
        """
        db = self._conn()
        try:
            async with db.execute(
                "SELECT snapshot, tree_root FROM ledger_snapshots WHERE wallet = ?",
                (wallet,)
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StorageError(f"cannot load snapshot for {wallet}: {e}") from e

        if row is None:
            return None

        payload, tree_root = row
        ledger = NoteLedger.from_json(payload, config)

        if ledger.root().hex() != tree_root:
            raise SerializationError(f"stored root for {wallet} does not match snapshot")

        return ledger

    async def delete(self, wallet: str) -> bool:
        db = self._conn()
        try:
            cursor = await db.execute("DELETE FROM ledger_snapshots WHERE wallet = ?", (wallet,))
            await db.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"cannot delete snapshot for {wallet}: {e}") from e
        return cursor.rowcount > 0

    async def wallets(self) -> List[str]:
        db = self._conn()
        async with db.execute("SELECT wallet FROM ledger_snapshots ORDER BY wallet") as cursor:
            rows = await cursor.fetchall()
        return [row[0] for row in rows]

