"""Composite key derivation for issued-policy records."""

from __future__ import annotations

CONCAT_SCHEME = "concat"
DELIMITED_SCHEME = "delimited"
KEY_SCHEMES = (CONCAT_SCHEME, DELIMITED_SCHEME)

COMPOSITE_KEY_DELIMITER = "\x00"


def composite_key(client_id: str, policy_id: str, scheme: str = CONCAT_SCHEME) -> str:
    """Return the world-state key of the (client, policy) ledger record.

    The ``concat`` scheme joins both ids with no separator, so "ab"+"c" and
    "a"+"bc" share a key. The ``delimited`` scheme wraps each id in
    ``COMPOSITE_KEY_DELIMITER``, which identifiers may not contain.
    """
    if scheme == CONCAT_SCHEME:
        return client_id + policy_id
    if scheme == DELIMITED_SCHEME:
        return COMPOSITE_KEY_DELIMITER.join(["", client_id, policy_id, ""])
    raise ValueError(f"Unsupported composite key scheme: {scheme}")
