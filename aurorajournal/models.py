# -*- coding: utf-8 -*-
"""Journal record types and their persisted (JSON) shape.

A record is either unlocked (plaintext ``content``) or locked (a password
hash plus obscured content). The two states are separate types so a record
cannot carry half of the locked fields.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Mapping, Optional, Union
import secrets
import string
import time

DEFAULT_TITLE = "Untitled Entry"

_ID_ALPHABET = string.digits + string.ascii_lowercase


class Mood(str, Enum):
    PEACEFUL = "peaceful"
    JOYFUL = "joyful"
    TENDER = "tender"
    REFLECTIVE = "reflective"
    CREATIVE = "creative"
    NURTURING = "nurturing"


@dataclass(frozen=True)
class Unlocked:
    content: str


@dataclass(frozen=True)
class Locked:
    password_hash: str
    cipher_content: str


LockState = Union[Unlocked, Locked]


@dataclass(frozen=True)
class Record:
    """One journal entry. Mutations produce new values via ``dataclasses.replace``."""

    id: str
    title: str
    body: LockState
    created_at: str
    updated_at: str
    mood: Optional[Mood] = None

    @property
    def locked(self) -> bool:
        return isinstance(self.body, Locked)

    @property
    def content(self) -> str:
        """Plaintext content; always empty while the record is locked."""
        if isinstance(self.body, Unlocked):
            return self.body.content
        return ""

    @property
    def password_hash(self) -> Optional[str]:
        return self.body.password_hash if isinstance(self.body, Locked) else None

    @property
    def cipher_content(self) -> Optional[str]:
        return self.body.cipher_content if isinstance(self.body, Locked) else None

    def to_dict(self) -> Dict[str, object]:
        """Return the persisted representation of this record."""
        data: Dict[str, object] = {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.mood is not None:
            data["mood"] = self.mood.value
        if isinstance(self.body, Locked):
            data["locked"] = True
            data["passwordHash"] = self.body.password_hash
            data["cipherContent"] = self.body.cipher_content
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "Record":
        """Build a record from its persisted form.

        Accepts the legacy browser field names (``isPasswordProtected``,
        ``encryptedContent``). Records without a lock flag are unlocked.
        Raises ValueError when the mapping cannot be a valid record.
        """
        if not isinstance(data, Mapping):
            raise ValueError("record must be an object")

        record_id = data.get("id")
        created_at = data.get("createdAt")
        if not isinstance(record_id, str) or not record_id:
            raise ValueError("record id missing")
        if not isinstance(created_at, str) or not created_at:
            raise ValueError(f"record {record_id} has no createdAt")
        updated_at = data.get("updatedAt")
        if not isinstance(updated_at, str) or not updated_at:
            updated_at = created_at

        locked_flag = data.get("locked", data.get("isPasswordProtected", False))
        body: LockState
        if locked_flag:
            pwd_hash = data.get("passwordHash")
            cipher = data.get("cipherContent", data.get("encryptedContent"))
            if not isinstance(pwd_hash, str) or not pwd_hash or not isinstance(cipher, str):
                raise ValueError(f"record {record_id} is locked but lacks hash or cipher text")
            body = Locked(password_hash=pwd_hash, cipher_content=cipher)
        else:
            content = data.get("content", "")
            body = Unlocked(content=content if isinstance(content, str) else str(content))

        title = data.get("title", "")
        return cls(
            id=record_id,
            title=normalize_title(title if isinstance(title, str) else ""),
            body=body,
            created_at=created_at,
            updated_at=updated_at,
            mood=parse_mood(data.get("mood")),
        )


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def normalize_title(title: Optional[str]) -> str:
    """Strip *title*; fall back to the default label when nothing is left."""
    cleaned = (title or "").strip()
    return cleaned or DEFAULT_TITLE


def parse_mood(value: object) -> Optional[Mood]:
    """Return the Mood for *value*, or None for anything unrecognised."""
    if isinstance(value, Mood):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return Mood(value.strip().lower())
    except ValueError:
        return None


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_record_id() -> str:
    """Return an id of the form ``entry_<epoch millis>_<9 base36 chars>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"entry_{int(time.time() * 1000)}_{suffix}"
