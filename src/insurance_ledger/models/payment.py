"""Premium payment outcome models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from insurance_ledger.models.records import IssuedPolicyRecord, RefundRecord

REFUND_INITIATED_MESSAGE = "Refund Initiated"


class PaymentStatus(str, Enum):
    ACCRUED = "accrued"
    REFUND_INITIATED = "refund_initiated"


@dataclass
class PremiumPayment:
    """Result of one premium payment: an accrual or a hand-off to refund."""

    status: PaymentStatus
    issued: IssuedPolicyRecord | None = None
    refund: RefundRecord | None = None

    @property
    def refund_initiated(self) -> bool:
        return self.status is PaymentStatus.REFUND_INITIATED

    @property
    def message(self) -> str:
        if self.refund_initiated:
            return REFUND_INITIATED_MESSAGE
        return "Premium accrued"
