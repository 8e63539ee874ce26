"""Input validation rules for client and policy records."""

from __future__ import annotations

import re

from insurance_ledger.core.keys import COMPOSITE_KEY_DELIMITER

UNSIGNED_INTEGER_PATTERN = re.compile(r"\d+", re.ASCII)


def validate_record_id(value: str, field_name: str) -> str:
    """Validate a caller-supplied identifier used as a world-state key."""
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} is required.")
    if COMPOSITE_KEY_DELIMITER in value:
        raise ValueError(f"{field_name} may not contain NUL characters.")
    return value


def validate_required_text(value: str, field_name: str) -> str:
    """Validate non-empty text fields."""
    normalized = value.strip()
    if not normalized:
        raise ValueError(f"{field_name} is required.")
    return normalized


def validate_currency(value: str, field_name: str, marker: str) -> str:
    """Validate a marker-prefixed integer currency string such as ``$100``."""
    normalized = value.strip()
    digits = normalized[len(marker) :]
    if not normalized.startswith(marker) or not UNSIGNED_INTEGER_PATTERN.fullmatch(digits):
        raise ValueError(f"{field_name} must look like {marker}100.")
    return normalized


def validate_reimburse_amount(value: str | int, marker: str) -> str | int:
    """Accept a currency string, an integer string, or a non-negative int."""
    if isinstance(value, bool):
        raise ValueError("Reimburse amount must be a currency string or an integer.")
    if isinstance(value, int):
        if value < 0:
            raise ValueError("Reimburse amount may not be negative.")
        return value
    normalized = value.strip()
    if normalized.startswith(marker):
        return validate_currency(normalized, "Reimburse amount", marker)
    if not UNSIGNED_INTEGER_PATTERN.fullmatch(normalized):
        raise ValueError("Reimburse amount must be a currency string or an integer.")
    return normalized
