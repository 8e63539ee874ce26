"""Deterministic record encoding for world-state values."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any


def encode_record(record: Mapping[str, Any]) -> bytes:
    """Encode a record with recursively sorted keys and compact separators."""
    return json.dumps(
        record,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def decode_record(raw: bytes) -> dict[str, Any]:
    """Decode stored bytes into a field mapping.

    Raises ``ValueError`` (``json.JSONDecodeError`` or ``UnicodeDecodeError``)
    when the bytes are not an encoded mapping.
    """
    value = json.loads(raw.decode("utf-8"))
    if not isinstance(value, dict):
        raise ValueError("Stored value is not a record mapping.")
    return value
