"""
Progress Ledger

Durable, local key/value record of workflow progress. Every workflow step
checks the ledger before performing an external side effect and records the
result immediately after, so an interrupted run resumes where it stopped.

Entries are JSON values stored in SQLite and scoped by a namespace (one per
minting campaign). The workflows never delete entries; `clear()` exists for
manual resets only.
"""

import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiosqlite

logger = logging.getLogger(__name__)


class ProgressLedger:
    """SQLite-backed store of namespaced progress entries."""

    def __init__(self, db_path: Optional[str] = None):
        if db_path is None:
            from parcel_nfts.config import settings
            db_path = settings.ledger.db_path
        self.db_path = str(db_path)
        self._initialized = False
        self._write_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Create the progress table if it does not exist yet."""
        if self._initialized:
            return
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS progress (
                    namespace TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value_json TEXT NOT NULL,
                    updated_at REAL NOT NULL,
                    PRIMARY KEY (namespace, key)
                )
                """
            )
            await db.commit()
        self._initialized = True
        logger.debug(f"ProgressLedger: initialized at {self.db_path}")

    def namespace(self, name: str) -> "LedgerNamespace":
        return LedgerNamespace(self, name)

    async def get(self, namespace: str, key: str, default: Any = None) -> Any:
        await self.initialize()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT value_json FROM progress WHERE namespace = ? AND key = ?",
                (namespace, key),
            ) as cursor:
                row = await cursor.fetchone()
        if row is None:
            return default
        return json.loads(row[0])

    async def set(self, namespace: str, key: str, value: Any) -> None:
        # Serialize before waiting on the lock so writes land in call order
        # with the value as it was when `set` was called.
        value_json = json.dumps(value)
        await self.initialize()
        async with self._write_lock:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    """
                    INSERT INTO progress (namespace, key, value_json, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(namespace, key) DO UPDATE SET
                        value_json = excluded.value_json,
                        updated_at = excluded.updated_at
                    """,
                    (namespace, key, value_json, time.time()),
                )
                await db.commit()

    async def entries(self, namespace: str) -> Dict[str, Any]:
        await self.initialize()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT key, value_json FROM progress WHERE namespace = ? ORDER BY key",
                (namespace,),
            ) as cursor:
                rows = await cursor.fetchall()
        return {key: json.loads(value_json) for key, value_json in rows}

    async def namespaces(self) -> List[str]:
        await self.initialize()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT DISTINCT namespace FROM progress ORDER BY namespace"
            ) as cursor:
                rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def clear(self, namespace: str) -> int:
        """Delete every entry of a namespace. Returns the number of entries removed."""
        await self.initialize()
        async with self._write_lock:
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute(
                    "DELETE FROM progress WHERE namespace = ?", (namespace,)
                )
                await db.commit()
                removed = cursor.rowcount
        logger.info(f"ProgressLedger: cleared {removed} entries from {namespace!r}")
        return removed


class LedgerNamespace:
    """View of the ledger scoped to one campaign."""

    def __init__(self, ledger: ProgressLedger, name: str):
        self.ledger = ledger
        self.name = name

    async def get(self, key: str, default: Any = None) -> Any:
        return await self.ledger.get(self.name, key, default)

    async def set(self, key: str, value: Any) -> None:
        await self.ledger.set(self.name, key, value)

    async def entries(self) -> Dict[str, Any]:
        return await self.ledger.entries(self.name)

    def __repr__(self) -> str:
        return f"LedgerNamespace({self.name!r})"
