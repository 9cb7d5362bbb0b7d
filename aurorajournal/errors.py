# -*- coding: utf-8 -*-
"""Error taxonomy for Aurora Journal.

Lock Engine failures are raised to the caller because they gate access to
user content. Storage failures are raised by :mod:`aurorajournal.db` and
absorbed (logged) by the Collection Store.
"""
from __future__ import annotations


class JournalError(Exception):
    """Base class for every error this package raises on purpose."""


class NotFound(JournalError, LookupError):
    """No record with the requested id exists in the collection."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Entry not found: {record_id}")
        self.record_id = record_id


class Denied(JournalError):
    """Password verification failed.

    The message is deliberately generic; it never says which check failed.
    """

    def __init__(self) -> None:
        super().__init__("Incorrect password")


class DecodeError(JournalError, ValueError):
    """Stored cipher text is structurally malformed (not a password issue)."""

    def __init__(self, detail: str = "") -> None:
        super().__init__("This entry's data could not be read")
        self.detail = detail


class PersistenceFailure(JournalError):
    """The underlying storage could not be read or written."""


class LockStateError(JournalError, ValueError):
    """The operation does not apply to the record's current lock state."""


class WeakPasswordError(JournalError, ValueError):
    """The chosen password is shorter than the configured minimum."""

    def __init__(self, min_length: int) -> None:
        super().__init__(f"Password must be at least {min_length} characters")
        self.min_length = min_length
