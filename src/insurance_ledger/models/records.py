"""World-state record models.

Every record is stored as a flat field mapping with a ``DocType``
discriminant so that entity kinds sharing the key namespace can be told
apart without relying on key shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from insurance_ledger.models.amount import DEFAULT_CURRENCY_MARKER, Amount

DOC_TYPE_FIELD = "DocType"


class RecordKind(str, Enum):
    CLIENT = "client"
    POLICY = "policy"
    ISSUED_POLICY = "issued_policy"
    REFUND = "refund"


def infer_kind(fields: Mapping[str, Any]) -> RecordKind | None:
    """Return the record kind, falling back to the field set for untagged data.

    Returns None for a ``DocType`` value this package does not know.
    """
    tagged = fields.get(DOC_TYPE_FIELD)
    if tagged is not None:
        known = {kind.value: kind for kind in RecordKind}
        return known.get(tagged)
    if "RefundedAmount" in fields:
        return RecordKind.REFUND
    if "AmountPaid" in fields:
        return RecordKind.ISSUED_POLICY
    if "TotalAmount" in fields:
        return RecordKind.POLICY
    return RecordKind.CLIENT


@dataclass
class ClientRecord:
    """Registered client (policy holder)."""

    id: str
    name: str
    date_of_birth: str
    nominee: str
    policy_id: str

    kind = RecordKind.CLIENT

    def to_fields(self) -> dict[str, Any]:
        return {
            "ID": self.id,
            "Name": self.name,
            "DateOfBirth": self.date_of_birth,
            "Nominee": self.nominee,
            "PolicyId": self.policy_id,
            DOC_TYPE_FIELD: self.kind.value,
        }

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> "ClientRecord":
        # Older detail updates stored the policy under InsurancePolicy.
        return cls(
            id=fields["ID"],
            name=fields.get("Name", ""),
            date_of_birth=fields.get("DateOfBirth", ""),
            nominee=fields.get("Nominee", ""),
            policy_id=fields.get("PolicyId", fields.get("InsurancePolicy", "")),
        )


@dataclass
class PolicyRecord:
    """Policy template in the catalog."""

    id: str
    name: str
    duration: str
    premium: Amount
    total_amount: Amount
    reimburse_amount: str | int

    kind = RecordKind.POLICY

    def to_fields(self, marker: str = DEFAULT_CURRENCY_MARKER) -> dict[str, Any]:
        return {
            "ID": self.id,
            "Name": self.name,
            "Duration": self.duration,
            "Premium": self.premium.format(marker),
            "TotalAmount": self.total_amount.format(marker),
            "ReimburseAmount": self.reimburse_amount,
            DOC_TYPE_FIELD: self.kind.value,
        }

    @classmethod
    def from_fields(
        cls,
        fields: Mapping[str, Any],
        marker: str = DEFAULT_CURRENCY_MARKER,
    ) -> "PolicyRecord":
        return cls(
            id=fields["ID"],
            name=fields.get("Name", ""),
            duration=fields.get("Duration", ""),
            premium=Amount.parse(fields["Premium"], marker),
            total_amount=Amount.parse(fields["TotalAmount"], marker),
            reimburse_amount=fields["ReimburseAmount"],
        )


@dataclass
class IssuedPolicyRecord:
    """Premium accrual for one (client, policy) pair."""

    id: str
    premium: Amount
    amount_paid: Amount
    total_amount: Amount
    reimburse_amount: str | int

    kind = RecordKind.ISSUED_POLICY

    @property
    def next_paid_total(self) -> Amount:
        """Paid total after one more premium."""
        return self.amount_paid + self.premium

    def to_fields(self, marker: str = DEFAULT_CURRENCY_MARKER) -> dict[str, Any]:
        return {
            "ID": self.id,
            "Premium": self.premium.format(marker),
            "AmountPaid": self.amount_paid.format(marker),
            "TotalAmount": self.total_amount.format(marker),
            "ReimburseAmount": self.reimburse_amount,
            DOC_TYPE_FIELD: self.kind.value,
        }

    @classmethod
    def from_fields(
        cls,
        fields: Mapping[str, Any],
        marker: str = DEFAULT_CURRENCY_MARKER,
    ) -> "IssuedPolicyRecord":
        return cls(
            id=fields["ID"],
            premium=Amount.parse(fields["Premium"], marker),
            amount_paid=Amount.parse(fields["AmountPaid"], marker),
            total_amount=Amount.parse(fields["TotalAmount"], marker),
            reimburse_amount=fields["ReimburseAmount"],
        )


@dataclass
class RefundRecord:
    """Settlement written in place of a retired issued policy."""

    id: str
    refunded_amount: str | int

    kind = RecordKind.REFUND

    def to_fields(self) -> dict[str, Any]:
        return {
            "ID": self.id,
            "RefundedAmount": self.refunded_amount,
            DOC_TYPE_FIELD: self.kind.value,
        }

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> "RefundRecord":
        return cls(id=fields["ID"], refunded_amount=fields["RefundedAmount"])
