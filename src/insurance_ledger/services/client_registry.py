"""Client registry plus the generic world-state operations."""

from __future__ import annotations

import json
import logging
from contextlib import AbstractContextManager, nullcontext
from typing import Any

from insurance_ledger.core.config import LedgerConfig
from insurance_ledger.core.errors import RecordAlreadyExistsError, RecordNotFoundError
from insurance_ledger.core.validation import validate_record_id, validate_required_text
from insurance_ledger.models.context import InvocationContext
from insurance_ledger.models.records import ClientRecord, RecordKind
from insurance_ledger.repositories.audit_repository import AuditRepository
from insurance_ledger.repositories.record_repository import RecordRepository
from insurance_ledger.services.issued_policy_ledger import IssuedPolicyLedger

logger = logging.getLogger(__name__)


class ClientRegistry:
    """Coordinates client use cases."""

    def __init__(
        self,
        record_repo: RecordRepository,
        audit_repo: AuditRepository,
        ledger: IssuedPolicyLedger,
        config: LedgerConfig,
    ):
        self._records = record_repo
        self._audit_repo = audit_repo
        self._ledger = ledger
        self._config = config

    @staticmethod
    def _validate(
        client_id: str,
        name: str,
        dob: str,
        nominee: str,
        policy_id: str,
    ) -> ClientRecord:
        return ClientRecord(
            id=validate_record_id(client_id, "Client ID"),
            name=validate_required_text(name, "Name"),
            date_of_birth=validate_required_text(dob, "Date of birth"),
            nominee=validate_required_text(nominee, "Nominee"),
            policy_id=validate_record_id(policy_id, "Policy ID"),
        )

    def _write_block(self) -> AbstractContextManager[None]:
        if self._config.atomic_writes:
            return self._records.transaction()
        return nullcontext()

    def register_client(
        self,
        ctx: InvocationContext,
        client_id: str,
        name: str,
        dob: str,
        nominee: str,
        policy_id: str,
    ) -> ClientRecord:
        """Persist a new client and issue their initial policy.

        Without ``atomic_writes`` a failed issuance leaves the client record
        committed.
        """
        client = self._validate(client_id, name, dob, nominee, policy_id)
        if self._records.exists(client.id):
            raise RecordAlreadyExistsError(client.id)

        with self._write_block():
            self._records.write(client.id, client.to_fields())
            self._audit_repo.add_log(
                "CREATE",
                RecordKind.CLIENT.value,
                client.id,
                json.dumps(
                    {"event": "client registered", "after": client.to_fields(), **ctx.audit_fields()},
                    ensure_ascii=False,
                ),
            )
            self._ledger.issue_policy(ctx, client.id, client.policy_id)
        return client

    def get_client_info(self, ctx: InvocationContext, client_id: str) -> str:
        """Return the stored text of a client record."""
        text = self._records.read_text(client_id, RecordKind.CLIENT)
        self._audit_repo.add_log(
            "READ",
            RecordKind.CLIENT.value,
            client_id,
            json.dumps({"event": "client read", **ctx.audit_fields()}),
        )
        return text

    def update_client_details(
        self,
        ctx: InvocationContext,
        client_id: str,
        name: str,
        dob: str,
        nominee: str,
        insurance_policy: str,
    ) -> ClientRecord:
        """Overwrite every client field; the policy is kept under PolicyId."""
        if not self._records.exists(client_id, RecordKind.CLIENT):
            raise RecordNotFoundError(client_id)

        before = self._records.read_fields(client_id, RecordKind.CLIENT)
        client = self._validate(client_id, name, dob, nominee, insurance_policy)
        self._records.write(client.id, client.to_fields())
        self._audit_repo.add_log(
            "UPDATE",
            RecordKind.CLIENT.value,
            client.id,
            json.dumps(
                {
                    "event": "client updated",
                    "changes": self._diff(before, client.to_fields()),
                    **ctx.audit_fields(),
                },
                ensure_ascii=False,
            ),
        )
        return client

    def record_exists(self, ctx: InvocationContext, key: str) -> bool:
        """Return True when any record is stored under key."""
        return self._records.exists(key)

    def update_nominee(self, ctx: InvocationContext, client_id: str, new_nominee: str) -> str:
        """Replace the nominee and return the previous one."""
        fields = self._records.read_fields(client_id, RecordKind.CLIENT)
        old_nominee = fields.get("Nominee", "")
        fields["Nominee"] = validate_required_text(new_nominee, "Nominee")
        self._records.write(client_id, fields)
        self._audit_repo.add_log(
            "UPDATE",
            RecordKind.CLIENT.value,
            client_id,
            json.dumps(
                {
                    "event": "nominee changed",
                    "changes": {"Nominee": {"before": old_nominee, "after": fields["Nominee"]}},
                    **ctx.audit_fields(),
                },
                ensure_ascii=False,
            ),
        )
        return old_nominee

    def delete_record(self, ctx: InvocationContext, key: str) -> None:
        """Delete a record of any kind."""
        self._records.delete(key)
        self._audit_repo.add_log(
            "DELETE",
            "record",
            key,
            json.dumps({"event": "record deleted", **ctx.audit_fields()}),
        )

    def list_all(self, ctx: InvocationContext) -> list[Any]:
        """Return every stored record in key order.

        Values that do not parse are returned as raw text.
        """
        entries: list[Any] = []
        for key, raw in self._records.scan():
            text = raw.decode("utf-8", errors="replace")
            try:
                entries.append(json.loads(text))
            except json.JSONDecodeError as error:
                logger.warning("Stored value under %r is not a record: %s", key, error)
                entries.append(text)
        self._audit_repo.add_log(
            "READ",
            "record",
            None,
            json.dumps({"event": "world state listed", "count": len(entries), **ctx.audit_fields()}),
        )
        return entries

    @staticmethod
    def _diff(before: dict[str, Any], after: dict[str, Any]) -> dict[str, dict[str, Any]]:
        """Return changed fields for audit logs."""
        changes: dict[str, dict[str, Any]] = {}
        for key in sorted(set(before) | set(after)):
            old = before.get(key, "")
            new = after.get(key, "")
            if old != new:
                changes[key] = {"before": old, "after": new}
        return changes
