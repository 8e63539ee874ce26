"""Policy catalog service."""

from __future__ import annotations

import json

from insurance_ledger.core.config import LedgerConfig
from insurance_ledger.core.errors import RecordAlreadyExistsError
from insurance_ledger.core.validation import (
    validate_currency,
    validate_record_id,
    validate_reimburse_amount,
    validate_required_text,
)
from insurance_ledger.models.amount import Amount
from insurance_ledger.models.context import InvocationContext
from insurance_ledger.models.records import PolicyRecord, RecordKind
from insurance_ledger.repositories.audit_repository import AuditRepository
from insurance_ledger.repositories.record_repository import RecordRepository


class PolicyCatalog:
    """Registers and reads policy templates. Templates are immutable."""

    def __init__(
        self,
        record_repo: RecordRepository,
        audit_repo: AuditRepository,
        config: LedgerConfig,
    ):
        self._records = record_repo
        self._audit_repo = audit_repo
        self._config = config

    def register_policy(
        self,
        ctx: InvocationContext,
        policy_id: str,
        name: str,
        duration: str,
        premium: str,
        total_amount: str,
        reimburse_amount: str | int,
    ) -> PolicyRecord:
        """Validate and persist a new policy template."""
        marker = self._config.currency_marker
        validate_record_id(policy_id, "Policy ID")
        if self._records.exists(policy_id):
            raise RecordAlreadyExistsError(policy_id)

        policy = PolicyRecord(
            id=policy_id,
            name=validate_required_text(name, "Policy name"),
            duration=validate_required_text(str(duration), "Duration"),
            premium=Amount.parse(validate_currency(premium, "Premium", marker), marker),
            total_amount=Amount.parse(validate_currency(total_amount, "Total amount", marker), marker),
            reimburse_amount=validate_reimburse_amount(reimburse_amount, marker),
        )
        self._records.write(policy_id, policy.to_fields(marker))
        self._audit_repo.add_log(
            "CREATE",
            RecordKind.POLICY.value,
            policy_id,
            json.dumps(
                {"event": "policy registered", "after": policy.to_fields(marker), **ctx.audit_fields()},
                ensure_ascii=False,
            ),
        )
        return policy

    def get_policy_info(self, ctx: InvocationContext, policy_id: str) -> str:
        """Return the stored text of a policy template."""
        text = self._records.read_text(policy_id, RecordKind.POLICY)
        self._audit_repo.add_log(
            "READ",
            RecordKind.POLICY.value,
            policy_id,
            json.dumps({"event": "policy read", **ctx.audit_fields()}),
        )
        return text
