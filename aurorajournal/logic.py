# -*- coding: utf-8 -*-
"""Application logic that composes the store, lock engine and session cache.

This module provides the public API used by the UI. It does not contain any
Textual UI code. All side effects (storage + config I/O) are explicit and local.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple
from pathlib import Path
import json
import os

from . import db
from .crypto import get_codec, make_password_hasher
from .errors import DecodeError, Denied, JournalError, LockStateError, NotFound
from .lock import MIN_PASSWORD_LENGTH, LockEngine
from .models import Mood, Record
from .session import SessionUnlockCache
from .store import CollectionStore

# ---------------------------------------------------------------------
# Config management (JSON on disk)
# ---------------------------------------------------------------------

APP_NAME = "aurorajournal"

THEMES = ("womb", "lavender", "earth", "night")

DEFAULT_CONFIG: Dict[str, object] = {
    "active_theme": "womb",
    "db_path": "aurora_journal.sqlite3",
    "hash_time_cost": 2,
    "hash_memory_cost": 102_400,
    "hash_parallelism": 8,
    # "xor" is a deterrent only; "aesgcm" is authenticated (scrypt + AES-GCM)
    "obscure_codec": "xor",
    "min_password_length": MIN_PASSWORD_LENGTH,
}

def config_dir() -> Path:
    """Return the config directory path for this platform."""
    if os.name == "nt":
        base = os.environ.get("APPDATA", os.path.expanduser("~\\AppData\\Roaming"))
        return Path(base) / APP_NAME
    base = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(base) / APP_NAME

def _config_path() -> Path:
    return config_dir() / "config.json"

def load_config() -> Dict[str, object]:
    """Load the merged configuration (defaults + file)."""
    path = _config_path()
    if not path.exists():
        save_config(DEFAULT_CONFIG)
        return json.loads(json.dumps(DEFAULT_CONFIG))
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    merged = json.loads(json.dumps(DEFAULT_CONFIG))
    merged.update(data)
    return merged

def save_config(cfg: Dict[str, object]) -> None:
    """Persist *cfg* to the JSON config file."""
    config_dir().mkdir(parents=True, exist_ok=True)
    with _config_path().open("w", encoding="utf-8") as f:
        json.dump(cfg, f, indent=2)

def resolve_db_path(cfg: Dict[str, object]) -> str:
    """The ``AURORA_JOURNAL_DB`` environment variable wins over the config file."""
    return os.environ.get("AURORA_JOURNAL_DB") or str(cfg.get("db_path") or db.DB_PATH)


# ---------------------------------------------------------------------
# Journal facade
# ---------------------------------------------------------------------

class Journal:
    """What the view layer calls: plain CRUD plus lock-aware flows."""

    def __init__(
        self,
        store: CollectionStore,
        engine: LockEngine,
        cache: Optional[SessionUnlockCache] = None,
    ) -> None:
        self.store = store
        self.engine = engine
        self.cache = cache if cache is not None else SessionUnlockCache()

    async def _get(self, record_id: str) -> Record:
        record = await self.store.find_by_id(record_id)
        if record is None:
            raise NotFound(record_id)
        return record

    async def entries(self) -> List[Record]:
        return await self.store.list()

    async def new_entry(self, title: str, content: str, mood: Optional[Mood] = None) -> Record:
        return await self.store.create(title, content, mood)

    async def read_entry(self, record_id: str) -> Tuple[Record, Optional[str]]:
        """Return (record, plaintext); plaintext is None while still locked this session."""
        record = await self._get(record_id)
        if not record.locked:
            return record, record.content
        return record, self.cache.content_for(record_id)

    async def unlock_entry(self, record_id: str, password: str) -> str:
        """Verify *password*, remember it for the session, return the content."""
        record = await self._get(record_id)
        content = await self.engine.unlock(record, password)
        self.cache.remember(record_id, password, content)
        return content

    async def save_entry(self, record_id: str, title: str, content: str) -> Record:
        """Save edits; protected entries are re-obscured, never stored in plaintext."""
        record = await self._get(record_id)
        if not record.locked:
            return await self.store.update(record_id, title, content)
        password = self.cache.password_for(record_id)
        if password is None:
            raise LockStateError("Unlock this entry before editing it")
        updated = await self.engine.unlock_and_edit(record, password, title, content)
        await self.store.put(updated)
        self.cache.update_content(record_id, content)
        return updated

    async def set_password(self, record_id: str, password: str) -> Record:
        record = await self._get(record_id)
        locked = await self.engine.lock(record, password)
        await self.store.put(locked)
        self.cache.remember(record_id, password, record.content)
        return locked

    async def remove_password(self, record_id: str, password: str) -> Record:
        record = await self._get(record_id)
        plain = await self.engine.remove_protection(record, password)
        await self.store.put(plain)
        self.cache.forget(record_id)
        return plain

    async def change_password(self, record_id: str, old_password: str, new_password: str) -> Record:
        record = await self._get(record_id)
        rotated = await self.engine.rotate_password(record, old_password, new_password)
        await self.store.put(rotated)
        content = self.cache.content_for(record_id)
        if content is not None:
            self.cache.remember(record_id, new_password, content)
        return rotated

    async def delete_entry(self, record_id: str) -> bool:
        self.cache.forget(record_id)
        return await self.store.delete(record_id)

    def lock_session(self) -> None:
        """Forget every password and plaintext cached this session."""
        self.cache.clear()


def open_journal(cfg: Optional[Dict[str, object]] = None) -> Journal:
    """Build a Journal from *cfg* (defaults to the on-disk config)."""
    cfg = cfg if cfg is not None else load_config()
    hasher = make_password_hasher(
        time_cost=int(cfg.get("hash_time_cost", 2)),
        memory_cost=int(cfg.get("hash_memory_cost", 102_400)),
        parallelism=int(cfg.get("hash_parallelism", 8)),
    )
    engine = LockEngine(
        hasher=hasher,
        codec=get_codec(str(cfg.get("obscure_codec", "xor"))),
        min_password_length=int(cfg.get("min_password_length", MIN_PASSWORD_LENGTH)),
    )
    store = CollectionStore(db.SQLiteBlobStorage(resolve_db_path(cfg)))
    return Journal(store, engine)


def describe_error(exc: Exception) -> str:
    """User-facing message; a wrong password and unreadable data stay distinct."""
    if isinstance(exc, Denied):
        return "Incorrect password"
    if isinstance(exc, DecodeError):
        return "This entry's data could not be read"
    if isinstance(exc, JournalError):
        return str(exc)
    return f"Unexpected error: {exc}"
