# -*- coding: utf-8 -*-
"""In-memory cache of entries unlocked during this session.

Holds the verified password and the revealed content per record id so the
user is not prompted again on every open or save. Nothing here is ever
written to storage; the cache dies with the process or on ``clear()``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class _Unlocked:
    password: str = field(repr=False)
    content: str = field(repr=False)


class SessionUnlockCache:
    """record id -> (password, plaintext) for entries unlocked this session."""

    def __init__(self) -> None:
        self._entries: Dict[str, _Unlocked] = {}

    def remember(self, record_id: str, password: str, content: str) -> None:
        self._entries[record_id] = _Unlocked(password, content)

    def password_for(self, record_id: str) -> Optional[str]:
        item = self._entries.get(record_id)
        return item.password if item else None

    def content_for(self, record_id: str) -> Optional[str]:
        item = self._entries.get(record_id)
        return item.content if item else None

    def update_content(self, record_id: str, content: str) -> None:
        """Refresh cached plaintext after an edit; ignored for unknown ids."""
        item = self._entries.get(record_id)
        if item:
            item.content = content

    def forget(self, record_id: str) -> None:
        self._entries.pop(record_id, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
