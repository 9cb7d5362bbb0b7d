# -*- coding: utf-8 -*-
"""Collection Store: CRUD over the whole journal as one persisted blob.

Every operation reads the full collection, changes it in memory and writes
it back. Storage failures are logged and absorbed: the call returns its
in-memory result and simply does not apply durably. Within one process an
``asyncio.Lock`` serializes read-modify-write; separate processes writing
the same blob get last-writer-wins.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import List, Optional, Tuple
import asyncio
import hashlib
import json
import logging

from .errors import LockStateError, NotFound, PersistenceFailure
from .models import Mood, Record, Unlocked, new_record_id, normalize_title, now_iso, parse_mood

logger = logging.getLogger(__name__)

STORAGE_KEY = "aurora_journal_entries"


def encode_collection(records: List[Record]) -> str:
    return json.dumps([r.to_dict() for r in records], ensure_ascii=False)


def decode_collection(blob: str) -> List[Record]:
    """Parse a stored blob. Raises ValueError when it is not a valid collection."""
    data = json.loads(blob)
    if not isinstance(data, list):
        raise ValueError("stored collection is not a list")
    records: List[Record] = []
    seen = set()
    for item in data:
        record = Record.from_dict(item)
        if record.id in seen:
            logger.warning("Dropping duplicate journal entry id %s", record.id)
            continue
        seen.add(record.id)
        records.append(record)
    return records


class CollectionStore:
    """Durable, ordered (newest first) collection of journal records."""

    def __init__(self, storage, key: str = STORAGE_KEY) -> None:
        self.storage = storage
        self.key = key
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop = None
        self._preserved = set()

    # -----------------------------------------------------------------
    # Internal load / save
    # -----------------------------------------------------------------

    async def _load(self) -> Tuple[List[Record], bool]:
        """Return (records, writable).

        ``writable`` is False when the blob could not be read at all, so
        callers must not overwrite it with a partial collection.
        """
        try:
            blob = await self.storage.read(self.key)
        except PersistenceFailure:
            logger.error("Error reading journal entries", exc_info=True)
            return [], False
        if not blob:
            return [], True
        try:
            return decode_collection(blob), True
        except ValueError:
            logger.warning("Stored journal entries are corrupt; starting from an empty collection", exc_info=True)
            await self._preserve_corrupt(blob)
            return [], True

    def _get_lock(self) -> asyncio.Lock:
        # One lock per running loop; a lock is bound to the loop it first waits on.
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def _save(self, records: List[Record]) -> None:
        try:
            await self.storage.write(self.key, encode_collection(records))
        except (PersistenceFailure, TypeError, ValueError):
            logger.error("Error writing journal entries", exc_info=True)

    async def _preserve(self, blob: str, tag: str) -> Optional[str]:
        """Copy *blob* to a timestamped side key; return that key or None."""
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
        backup_key = f"{self.key}.{tag}-{timestamp}"
        try:
            await self.storage.write(backup_key, blob)
        except PersistenceFailure:
            logger.error("Could not preserve journal blob under %s", backup_key, exc_info=True)
            return None
        logger.info("Preserved journal blob as %s", backup_key)
        return backup_key

    async def _preserve_corrupt(self, blob: str) -> None:
        """Preserve a corrupt blob once, however often it is read."""
        digest = hashlib.sha256(blob.encode("utf-8")).hexdigest()
        if digest in self._preserved:
            return
        try:
            for key in await self.storage.keys(f"{self.key}.corrupt-"):
                if await self.storage.read(key) == blob:
                    self._preserved.add(digest)
                    return
        except PersistenceFailure:
            logger.error("Could not look up preserved journal blobs", exc_info=True)
            return
        if await self._preserve(blob, "corrupt"):
            self._preserved.add(digest)

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    async def list(self) -> List[Record]:
        """Return all records in stored order; empty on missing or corrupt data."""
        records, _ = await self._load()
        return records

    async def find_by_id(self, record_id: str) -> Optional[Record]:
        records, _ = await self._load()
        for record in records:
            if record.id == record_id:
                return record
        return None

    async def create(self, title: str, content: str, mood: Optional[Mood] = None) -> Record:
        """Create an unlocked record, prepend it and persist."""
        async with self._get_lock():
            records, writable = await self._load()
            taken = {r.id for r in records}
            record_id = new_record_id()
            while record_id in taken:
                record_id = new_record_id()
            now = now_iso()
            record = Record(
                id=record_id,
                title=normalize_title(title),
                body=Unlocked(content=content),
                created_at=now,
                updated_at=now,
                mood=parse_mood(mood),
            )
            records.insert(0, record)
            if writable:
                await self._save(records)
            return record

    async def update(self, record_id: str, title: str, content: str) -> Record:
        """Replace title/content of an unlocked record.

        Raises NotFound for an unknown id and LockStateError for a locked
        record; locked records are edited through the Lock Engine.
        """
        async with self._get_lock():
            records, writable = await self._load()
            index = _index_of(records, record_id)
            current = records[index]
            if current.locked:
                raise LockStateError("Entry is password protected; unlock it to edit")
            updated = replace(
                current,
                title=normalize_title(title),
                body=Unlocked(content=content),
                updated_at=now_iso(),
            )
            records[index] = updated
            if writable:
                await self._save(records)
            return updated

    async def put(self, record: Record) -> Record:
        """Write back a record value (e.g. from the Lock Engine) in place."""
        async with self._get_lock():
            records, writable = await self._load()
            records[_index_of(records, record.id)] = record
            if writable:
                await self._save(records)
            return record

    async def delete(self, record_id: str) -> bool:
        """Remove a record permanently; False if the id was not found."""
        async with self._get_lock():
            records, writable = await self._load()
            remaining = [r for r in records if r.id != record_id]
            if len(remaining) == len(records):
                return False
            if writable:
                await self._save(remaining)
            return True

    async def backup(self) -> Optional[str]:
        """Copy the current blob to ``<key>.bak-<timestamp>``; return that key."""
        try:
            blob = await self.storage.read(self.key)
        except PersistenceFailure:
            logger.error("Error reading journal entries for backup", exc_info=True)
            return None
        if not blob:
            return None
        return await self._preserve(blob, "bak")


def _index_of(records: List[Record], record_id: str) -> int:
    for i, record in enumerate(records):
        if record.id == record_id:
            return i
    raise NotFound(record_id)
