#! /usr/bin/python3
# -*- coding: utf-8 -*-
"""SQLite key/value schema and async blob access for Aurora Journal.

The whole journal is one text blob stored under one key, the same way the
browser app kept it in localStorage. Errors from SQLite or the filesystem
are raised as :class:`PersistenceFailure`.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional
import os
import sqlite3

import aiosqlite

from .errors import PersistenceFailure

DB_PATH = os.environ.get("AURORA_JOURNAL_DB", "aurora_journal.sqlite3")


# ---------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS blobs (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
"""


async def init_db(db_path: str = DB_PATH) -> None:
    """Create the blob table if it doesn't exist."""
    async with aiosqlite.connect(db_path) as db:
        await db.executescript(SCHEMA_SQL)
        await db.commit()


# ---------------------------------------------------------------------
# Blob rows
# ---------------------------------------------------------------------

async def get_blob(db_path: str, key: str) -> Optional[str]:
    """Return the value stored under *key*, or None."""
    async with aiosqlite.connect(db_path) as db:
        cur = await db.execute("SELECT value FROM blobs WHERE key = ?", (key,))
        row = await cur.fetchone()
        await cur.close()
        return row[0] if row else None


async def put_blob(db_path: str, key: str, value: str) -> None:
    """Insert or replace the value stored under *key*."""
    updated_at = datetime.now(timezone.utc).isoformat()
    async with aiosqlite.connect(db_path) as db:
        await db.execute(
            """
            INSERT INTO blobs (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                           updated_at = excluded.updated_at
            """,
            (key, value, updated_at),
        )
        await db.commit()


async def list_blob_keys(db_path: str, prefix: str = "") -> List[str]:
    """Return stored keys starting with *prefix*, sorted."""
    async with aiosqlite.connect(db_path) as db:
        cur = await db.execute(
            "SELECT key FROM blobs WHERE substr(key, 1, ?) = ? ORDER BY key",
            (len(prefix), prefix),
        )
        rows = await cur.fetchall()
        await cur.close()
        return [str(r[0]) for r in rows]


# ---------------------------------------------------------------------
# Storage objects handed to the Collection Store
# ---------------------------------------------------------------------

class SQLiteBlobStorage:
    """Blob storage backed by one SQLite file."""

    def __init__(self, db_path: str = DB_PATH) -> None:
        self.db_path = db_path
        self._ready = False

    async def _ensure(self) -> None:
        if not self._ready:
            # sqlite cannot open a directory; fail before a connection thread starts.
            if os.path.isdir(self.db_path):
                raise IsADirectoryError(f"{self.db_path} is a directory")
            await init_db(self.db_path)
            self._ready = True

    async def read(self, key: str) -> Optional[str]:
        try:
            await self._ensure()
            return await get_blob(self.db_path, key)
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceFailure(f"read of {key!r} failed: {exc}") from exc

    async def write(self, key: str, value: str) -> None:
        try:
            await self._ensure()
            await put_blob(self.db_path, key, value)
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceFailure(f"write of {key!r} failed: {exc}") from exc

    async def keys(self, prefix: str = "") -> List[str]:
        try:
            await self._ensure()
            return await list_blob_keys(self.db_path, prefix)
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceFailure(f"key listing failed: {exc}") from exc


class MemoryBlobStorage:
    """Dict-backed storage for tests and throwaway sessions.

    ``fail_reads`` / ``fail_writes`` simulate disabled or full storage.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.blobs: Dict[str, str] = dict(initial or {})
        self.fail_reads = False
        self.fail_writes = False

    async def read(self, key: str) -> Optional[str]:
        if self.fail_reads:
            raise PersistenceFailure(f"read of {key!r} failed: storage unavailable")
        return self.blobs.get(key)

    async def write(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise PersistenceFailure(f"write of {key!r} failed: quota exceeded")
        self.blobs[key] = value

    async def keys(self, prefix: str = "") -> List[str]:
        if self.fail_reads:
            raise PersistenceFailure("key listing failed: storage unavailable")
        return sorted(k for k in self.blobs if k.startswith(prefix))
