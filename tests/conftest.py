from __future__ import annotations

import base64

import bcrypt
import pytest
from argon2 import PasswordHasher

from aurorajournal.db import MemoryBlobStorage
from aurorajournal.lock import LockEngine
from aurorajournal.logic import Journal
from aurorajournal.store import CollectionStore


@pytest.fixture
def hasher() -> PasswordHasher:
    # Cheapest argon2 settings; keeps the suite fast.
    return PasswordHasher(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture
def engine(hasher) -> LockEngine:
    return LockEngine(hasher=hasher)


@pytest.fixture
def storage() -> MemoryBlobStorage:
    return MemoryBlobStorage()


@pytest.fixture
def store(storage) -> CollectionStore:
    return CollectionStore(storage)


@pytest.fixture
def journal(store, engine) -> Journal:
    return Journal(store, engine)


def _units(text: str):
    raw = text.encode("utf-16-le")
    return [int.from_bytes(raw[i:i + 2], "little") for i in range(0, len(raw), 2)]


@pytest.fixture
def browser_lock():
    """Protect content the way the browser app did: bcryptjs + code-unit XOR + btoa."""

    def lock(content: str, password: str):
        key = _units(password)
        mixed = [u ^ key[i % len(key)] for i, u in enumerate(_units(content))]
        # btoa only accepts code units up to 0xFF
        assert all(u <= 0xFF for u in mixed)
        password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=4, prefix=b"2a"))
        return password_hash.decode("ascii"), base64.b64encode(bytes(mixed)).decode("ascii")

    return lock
