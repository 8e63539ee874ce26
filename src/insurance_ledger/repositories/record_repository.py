"""Kind-aware record access on top of the world-state store."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Mapping

from insurance_ledger.core.canonical import decode_record, encode_record
from insurance_ledger.core.errors import RecordNotFoundError
from insurance_ledger.models.records import RecordKind, infer_kind
from insurance_ledger.repositories.world_state_repository import WorldStateRepository


class RecordRepository:
    """Reads and writes canonical records, narrowed to the kinds a caller expects.

    A key holding a record of another kind is reported as missing, so a
    client lookup never returns a policy that happens to share its key.
    """

    def __init__(self, world_state: WorldStateRepository):
        self._world_state = world_state

    def exists(self, key: str, kind: RecordKind | None = None) -> bool:
        """Return True when key holds a value (of ``kind``, when given)."""
        raw = self._world_state.get(key)
        if not raw:
            return False
        if kind is None:
            return True
        return self._kind_of(raw) is kind

    def kind_of(self, key: str) -> RecordKind | None:
        """Return the kind stored under key; None when absent or unreadable."""
        raw = self._world_state.get(key)
        if not raw:
            return None
        return self._kind_of(raw)

    @staticmethod
    def _kind_of(raw: bytes) -> RecordKind | None:
        # Malformed values have no kind; they read as missing.
        try:
            return infer_kind(decode_record(raw))
        except ValueError:
            return None

    def read_text(self, key: str, *kinds: RecordKind) -> str:
        """Return the stored UTF-8 text of a record of one of ``kinds``."""
        raw = self._read_raw(key, kinds)
        return raw.decode("utf-8")

    def read_fields(self, key: str, *kinds: RecordKind) -> dict[str, Any]:
        """Return the decoded fields of a record of one of ``kinds``."""
        return decode_record(self._read_raw(key, kinds))

    def _read_raw(self, key: str, kinds: tuple[RecordKind, ...]) -> bytes:
        raw = self._world_state.get(key)
        if not raw:
            raise RecordNotFoundError(key)
        if kinds and self._kind_of(raw) not in kinds:
            raise RecordNotFoundError(key)
        return raw

    def write(self, key: str, fields: Mapping[str, Any]) -> None:
        self._world_state.put(key, encode_record(fields))

    def delete(self, key: str) -> None:
        """Delete a record of any kind."""
        if not self._world_state.exists(key):
            raise RecordNotFoundError(key)
        self._world_state.delete(key)

    def scan(self) -> list[tuple[str, bytes]]:
        return self._world_state.scan_all()

    def transaction(self) -> AbstractContextManager[None]:
        return self._world_state.transaction()
