"""Key-value world-state store backed by the world_state table."""

from __future__ import annotations

from contextlib import AbstractContextManager

from insurance_ledger.core.crypto import CryptoService
from insurance_ledger.repositories.db_pool import ThreadLocalConnection


class WorldStateRepository:
    """Stores encrypted values under string keys in one flat namespace."""

    def __init__(self, pool: ThreadLocalConnection, crypto_service: CryptoService):
        self._pool = pool
        self._crypto = crypto_service

    def get(self, key: str) -> bytes | None:
        """Return the decrypted value under key, or None when absent."""
        row = self._pool.fetchone("SELECT value FROM world_state WHERE key = ?", (key,))
        if row is None:
            return None
        return self._crypto.decrypt_value(row["value"], key)

    def exists(self, key: str) -> bool:
        """Return True when a non-empty value is stored under key."""
        value = self.get(key)
        return bool(value)

    def put(self, key: str, value: bytes) -> None:
        self._pool.execute(
            """
            INSERT INTO world_state (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = CURRENT_TIMESTAMP
            """,
            (key, self._crypto.encrypt_value(value, key)),
        )

    def delete(self, key: str) -> None:
        self._pool.execute("DELETE FROM world_state WHERE key = ?", (key,))

    def scan_all(self) -> list[tuple[str, bytes]]:
        """Return every (key, value) pair in ascending key order."""
        rows = self._pool.fetchall("SELECT key, value FROM world_state ORDER BY key")
        return [(row["key"], self._crypto.decrypt_value(row["value"], row["key"])) for row in rows]

    def transaction(self) -> AbstractContextManager[None]:
        """Open a block whose writes commit together."""
        return self._pool.transaction()
