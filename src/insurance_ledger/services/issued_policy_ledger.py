"""Issued-policy ledger: issuance and premium accrual."""

from __future__ import annotations

import json
import logging
from dataclasses import replace

from insurance_ledger.core.config import LedgerConfig
from insurance_ledger.core.errors import RecordAlreadyExistsError, RecordNotFoundError
from insurance_ledger.core.keys import composite_key
from insurance_ledger.core.validation import validate_record_id
from insurance_ledger.models.amount import Amount
from insurance_ledger.models.context import InvocationContext
from insurance_ledger.models.payment import PaymentStatus, PremiumPayment
from insurance_ledger.models.records import IssuedPolicyRecord, PolicyRecord, RecordKind
from insurance_ledger.repositories.audit_repository import AuditRepository
from insurance_ledger.repositories.record_repository import RecordRepository
from insurance_ledger.services.refund_engine import RefundEngine

logger = logging.getLogger(__name__)


class IssuedPolicyLedger:
    """Owns the per-(client, policy) premium accrual records.

    A record is Accruing while AmountPaid < TotalAmount. The payment that
    would bring it to TotalAmount or beyond is not credited; the record is
    handed to the refund engine instead and becomes Settled.
    """

    _REISSUABLE_KINDS = (RecordKind.ISSUED_POLICY, RecordKind.REFUND)

    def __init__(
        self,
        record_repo: RecordRepository,
        audit_repo: AuditRepository,
        refund_engine: RefundEngine,
        config: LedgerConfig,
    ):
        self._records = record_repo
        self._audit_repo = audit_repo
        self._refund_engine = refund_engine
        self._config = config

    def _key(self, client_id: str, policy_id: str) -> str:
        return composite_key(client_id, policy_id, self._config.composite_key)

    def issue_policy(
        self,
        ctx: InvocationContext,
        client_id: str,
        policy_id: str,
    ) -> IssuedPolicyRecord:
        """Seed a new accrual record from the policy template.

        Re-issuing an existing pair overwrites it and drops accrued payments.
        A composite key already holding a client or policy record (possible
        with the concat scheme) is refused rather than overwritten.
        """
        validate_record_id(client_id, "Client ID")
        validate_record_id(policy_id, "Policy ID")
        if self._config.assert_client_exists and not self._records.exists(client_id, RecordKind.CLIENT):
            raise RecordNotFoundError(client_id)
        if not self._records.exists(policy_id, RecordKind.POLICY):
            raise RecordNotFoundError(policy_id)

        marker = self._config.currency_marker
        policy = PolicyRecord.from_fields(
            self._records.read_fields(policy_id, RecordKind.POLICY),
            marker,
        )
        key = self._key(client_id, policy_id)
        if self._records.exists(key) and self._records.kind_of(key) not in self._REISSUABLE_KINDS:
            raise RecordAlreadyExistsError(key)

        issued = IssuedPolicyRecord(
            id=key,
            premium=policy.premium,
            amount_paid=Amount.zero(),
            total_amount=policy.total_amount,
            reimburse_amount=policy.reimburse_amount,
        )
        self._records.write(issued.id, issued.to_fields(marker))
        self._audit_repo.add_log(
            "CREATE",
            RecordKind.ISSUED_POLICY.value,
            issued.id,
            json.dumps(
                {
                    "event": "policy issued",
                    "client_id": client_id,
                    "policy_id": policy_id,
                    "after": issued.to_fields(marker),
                    **ctx.audit_fields(),
                },
                ensure_ascii=False,
            ),
        )
        return issued

    def get_premium_info(self, ctx: InvocationContext, client_id: str, policy_id: str) -> str:
        """Return stored text of the pair's accrual record or its refund record."""
        key = self._key(client_id, policy_id)
        text = self._records.read_text(key, RecordKind.ISSUED_POLICY, RecordKind.REFUND)
        self._audit_repo.add_log(
            "READ",
            RecordKind.ISSUED_POLICY.value,
            key,
            json.dumps({"event": "premium read", **ctx.audit_fields()}),
        )
        return text

    def pay_premium(self, ctx: InvocationContext, client_id: str, policy_id: str) -> PremiumPayment:
        """Accrue one premium, or settle through the refund engine at the threshold."""
        # Checks the parties, not the ledger record itself.
        if not self._records.exists(client_id, RecordKind.CLIENT):
            raise RecordNotFoundError(client_id)
        if not self._records.exists(policy_id, RecordKind.POLICY):
            raise RecordNotFoundError(policy_id)

        marker = self._config.currency_marker
        key = self._key(client_id, policy_id)
        issued = IssuedPolicyRecord.from_fields(
            self._records.read_fields(key, RecordKind.ISSUED_POLICY),
            marker,
        )

        candidate = issued.next_paid_total
        if candidate >= issued.total_amount:
            logger.info(
                "Payment for client %s policy %s reaches %s; initiating refund",
                client_id,
                policy_id,
                issued.total_amount.format(marker),
            )
            refund = self._refund_engine.refund(ctx, client_id, policy_id)
            return PremiumPayment(status=PaymentStatus.REFUND_INITIATED, refund=refund)

        updated = replace(issued, amount_paid=candidate)
        self._records.write(key, updated.to_fields(marker))
        self._audit_repo.add_log(
            "UPDATE",
            RecordKind.ISSUED_POLICY.value,
            key,
            json.dumps(
                {
                    "event": "premium paid",
                    "changes": {
                        "AmountPaid": {
                            "before": issued.amount_paid.format(marker),
                            "after": updated.amount_paid.format(marker),
                        }
                    },
                    **ctx.audit_fields(),
                },
                ensure_ascii=False,
            ),
        )
        return PremiumPayment(status=PaymentStatus.ACCRUED, issued=updated)
