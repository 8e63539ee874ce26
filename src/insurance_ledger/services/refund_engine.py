"""Refund settlement for issued policies."""

from __future__ import annotations

import json
import logging
from contextlib import AbstractContextManager, nullcontext

from insurance_ledger.core.config import LedgerConfig
from insurance_ledger.core.errors import RecordNotFoundError
from insurance_ledger.core.keys import composite_key
from insurance_ledger.models.context import InvocationContext
from insurance_ledger.models.records import IssuedPolicyRecord, RecordKind, RefundRecord
from insurance_ledger.repositories.audit_repository import AuditRepository
from insurance_ledger.repositories.record_repository import RecordRepository

logger = logging.getLogger(__name__)


class RefundEngine:
    """Retires an issued policy and writes its refund record."""

    def __init__(
        self,
        record_repo: RecordRepository,
        audit_repo: AuditRepository,
        config: LedgerConfig,
    ):
        self._records = record_repo
        self._audit_repo = audit_repo
        self._config = config

    def _write_block(self) -> AbstractContextManager[None]:
        if self._config.atomic_writes:
            return self._records.transaction()
        return nullcontext()

    def refund(self, ctx: InvocationContext, client_id: str, policy_id: str) -> RefundRecord:
        """Settle the (client, policy) ledger record.

        The refunded amount is AmountPaid + Premium while that sum is still
        below TotalAmount, otherwise the policy's ReimburseAmount as stored.
        """
        if not self._records.exists(client_id, RecordKind.CLIENT):
            raise RecordNotFoundError(client_id)
        if not self._records.exists(policy_id, RecordKind.POLICY):
            raise RecordNotFoundError(policy_id)

        key = composite_key(client_id, policy_id, self._config.composite_key)
        issued = IssuedPolicyRecord.from_fields(
            self._records.read_fields(key, RecordKind.ISSUED_POLICY),
            self._config.currency_marker,
        )

        recomputed = issued.next_paid_total
        if recomputed < issued.total_amount:
            refund = RefundRecord(id=key, refunded_amount=recomputed.units)
        else:
            refund = RefundRecord(id=key, refunded_amount=issued.reimburse_amount)

        with self._write_block():
            self._records.delete(key)
            self._records.write(key, refund.to_fields())
            self._audit_repo.add_log(
                "REFUND",
                RecordKind.REFUND.value,
                key,
                json.dumps(
                    {
                        "event": "issued policy refunded",
                        "client_id": client_id,
                        "policy_id": policy_id,
                        "amount_paid": issued.amount_paid.format(self._config.currency_marker),
                        "refunded_amount": refund.refunded_amount,
                        **ctx.audit_fields(),
                    },
                    ensure_ascii=False,
                ),
            )

        logger.info("Refunded %s for client %s policy %s", refund.refunded_amount, client_id, policy_id)
        return refund
