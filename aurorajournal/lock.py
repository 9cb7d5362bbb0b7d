# -*- coding: utf-8 -*-
"""Lock Engine: password-gated transitions of a single record.

The engine is stateless and never touches storage. Each operation takes a
Record and returns a new Record (or plaintext); the caller persists the
result through the Collection Store.

    Unlocked --lock(pw)--> Locked
    Locked --unlock(pw)--> Locked             (returns plaintext only)
    Locked --unlock_and_edit(pw, ...)--> Locked
    Locked --rotate_password(old, new)--> Locked
    Locked --remove_protection(pw)--> Unlocked

Plaintext of a locked record is reachable only through an UnlockGrant, and
grants are only minted by :meth:`LockEngine.authorize` after the password
hash verified.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional
import asyncio

from argon2 import PasswordHasher

from .crypto import (
    PH,
    XorKeystreamCodec,
    hash_password,
    is_legacy_hash,
    reveal_any,
    reveal_legacy,
    verify_password,
)
from .errors import Denied, LockStateError, WeakPasswordError
from .models import Locked, Record, Unlocked, normalize_title, now_iso

MIN_PASSWORD_LENGTH = 4

_MINT = object()


@dataclass(frozen=True)
class UnlockGrant:
    """Proof that *password* verified against *password_hash*."""

    record_id: str
    password_hash: str
    password: str = field(repr=False)
    _mint: object = field(default=None, repr=False, compare=False)


class LockEngine:
    """Lock, unlock, edit and re-key records. Holds no record state."""

    def __init__(
        self,
        hasher: Optional[PasswordHasher] = None,
        codec=None,
        min_password_length: int = MIN_PASSWORD_LENGTH,
    ) -> None:
        self.hasher = hasher or PH
        self.codec = codec or XorKeystreamCodec()
        self.min_password_length = min_password_length

    # -----------------------------------------------------------------
    # Slow primitives (run off the event loop; cancelling the awaiting
    # task discards the result)
    # -----------------------------------------------------------------

    async def hash(self, password: str) -> str:
        return await asyncio.to_thread(hash_password, password, self.hasher)

    async def verify(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(verify_password, password, password_hash, self.hasher)

    # -----------------------------------------------------------------
    # Verification gate
    # -----------------------------------------------------------------

    async def authorize(self, record: Record, password: str) -> UnlockGrant:
        """Verify *password* for a locked *record*; raise Denied on failure."""
        body = _require_locked(record)
        if not await self.verify(password, body.password_hash):
            raise Denied()
        return UnlockGrant(record.id, body.password_hash, password, _MINT)

    def reveal(self, record: Record, grant: UnlockGrant) -> str:
        """Return the plaintext of *record* for a grant minted for it.

        Raises DecodeError when the stored cipher text is malformed.
        """
        body = _require_locked(record)
        if (
            grant._mint is not _MINT
            or grant.record_id != record.id
            or grant.password_hash != body.password_hash
        ):
            raise Denied()
        if is_legacy_hash(body.password_hash):
            return reveal_legacy(body.cipher_content, grant.password)
        return reveal_any(body.cipher_content, grant.password)

    # -----------------------------------------------------------------
    # Operations
    # -----------------------------------------------------------------

    async def lock(self, record: Record, password: str) -> Record:
        """Protect an unlocked record with *password*."""
        if not isinstance(record.body, Unlocked):
            raise LockStateError("Entry is already password protected")
        self._check_strength(password)
        password_hash = await self.hash(password)
        return replace(
            record,
            body=Locked(password_hash, self.codec.obscure(record.body.content, password)),
            updated_at=now_iso(),
        )

    async def unlock(self, record: Record, password: str) -> str:
        """Return the plaintext of a locked record without changing it."""
        grant = await self.authorize(record, password)
        return self.reveal(record, grant)

    async def unlock_and_edit(self, record: Record, password: str, new_title: str, new_content: str) -> Record:
        """Replace title and content of a locked record; it stays locked.

        Entries still carrying a browser-app hash are re-keyed to argon2 here.
        """
        grant = await self.authorize(record, password)
        password_hash = grant.password_hash
        if is_legacy_hash(password_hash):
            password_hash = await self.hash(password)
        return replace(
            record,
            title=normalize_title(new_title),
            body=Locked(password_hash, self.codec.obscure(new_content, grant.password)),
            updated_at=now_iso(),
        )

    async def remove_protection(self, record: Record, password: str) -> Record:
        """Turn a locked record back into a plain one."""
        grant = await self.authorize(record, password)
        plaintext = self.reveal(record, grant)
        return replace(record, body=Unlocked(plaintext), updated_at=now_iso())

    async def rotate_password(self, record: Record, old_password: str, new_password: str) -> Record:
        """Re-key a locked record from *old_password* to *new_password* in one step."""
        self._check_strength(new_password)
        grant = await self.authorize(record, old_password)
        plaintext = self.reveal(record, grant)
        new_hash = await self.hash(new_password)
        return replace(
            record,
            body=Locked(new_hash, self.codec.obscure(plaintext, new_password)),
            updated_at=now_iso(),
        )

    def _check_strength(self, password: str) -> None:
        if len(password or "") < max(self.min_password_length, 1):
            raise WeakPasswordError(self.min_password_length)


def _require_locked(record: Record) -> Locked:
    if not isinstance(record.body, Locked):
        raise LockStateError("Entry is not password protected")
    return record.body
