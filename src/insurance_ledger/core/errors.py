"""Error kinds raised by world-state operations."""

from __future__ import annotations


class LedgerError(ValueError):
    """Base class for record lifecycle failures."""

    def __init__(self, key: str, message: str):
        super().__init__(message)
        self.key = key


class RecordAlreadyExistsError(LedgerError):
    """Registration attempted on an occupied key."""

    def __init__(self, key: str):
        super().__init__(key, f"The record {key} already exists")


class RecordNotFoundError(LedgerError):
    """Lookup, update, delete or dependent read against a missing key."""

    def __init__(self, key: str):
        super().__init__(key, f"The record {key} does not exist")
