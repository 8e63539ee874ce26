"""Invocation context passed to every ledger operation."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field


@dataclass(frozen=True)
class InvocationContext:
    """Caller identity and transaction id supplied by the invoking layer."""

    invoker: str = "system"
    tx_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def audit_fields(self) -> dict[str, str]:
        return {"invoker": self.invoker, "tx_id": self.tx_id}
