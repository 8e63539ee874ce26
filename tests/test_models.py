"""Tests for amounts, record encoding and composite keys."""

from __future__ import annotations

import pytest

from insurance_ledger.core.canonical import decode_record, encode_record
from insurance_ledger.core.keys import composite_key
from insurance_ledger.models.amount import Amount
from insurance_ledger.models.records import (
    ClientRecord,
    IssuedPolicyRecord,
    RecordKind,
    infer_kind,
)


def test_amount_parse_and_format() -> None:
    assert Amount.parse("$30") == Amount(30)
    assert Amount.parse("€7", marker="€").format(marker="€") == "€7"
    assert (Amount.parse("$10") + Amount.parse("$20")).format() == "$30"
    assert Amount(20) < Amount(30)


@pytest.mark.parametrize("text", ["30", "$", "$-1", "$3.5", "$ 3", "$10\n"])
def test_amount_rejects_malformed_text(text) -> None:
    with pytest.raises(ValueError):
        Amount.parse(text)


def test_encoding_ignores_insertion_order() -> None:
    first = {"ID": "C", "Name": "Kapil", "Nominee": "Tomoko"}
    second = {"Nominee": "Tomoko", "ID": "C", "Name": "Kapil"}

    assert encode_record(first) == encode_record(second)
    assert encode_record(first) == b'{"ID":"C","Name":"Kapil","Nominee":"Tomoko"}'
    assert decode_record(encode_record(second)) == first


def test_decode_rejects_non_mapping() -> None:
    with pytest.raises(ValueError):
        decode_record(b"[1, 2]")


def test_composite_key_schemes() -> None:
    assert composite_key("C", "P") == "CP"
    assert composite_key("ab", "c") == composite_key("a", "bc")
    assert composite_key("ab", "c", "delimited") != composite_key("a", "bc", "delimited")
    with pytest.raises(ValueError):
        composite_key("C", "P", "hashed")


def test_infer_kind() -> None:
    assert infer_kind({"DocType": "refund", "ID": "x"}) is RecordKind.REFUND
    assert infer_kind({"DocType": "something-else"}) is None
    assert infer_kind({"RefundedAmount": 5}) is RecordKind.REFUND
    assert infer_kind({"AmountPaid": "$0", "TotalAmount": "$1"}) is RecordKind.ISSUED_POLICY
    assert infer_kind({"TotalAmount": "$1"}) is RecordKind.POLICY
    assert infer_kind({"Name": "Kapil"}) is RecordKind.CLIENT


def test_client_record_reads_legacy_policy_field() -> None:
    client = ClientRecord.from_fields(
        {"ID": "C", "Name": "Kapil", "Nominee": "Tomoko", "InsurancePolicy": "P"}
    )

    assert client.policy_id == "P"
    assert client.to_fields()["PolicyId"] == "P"


def test_issued_policy_next_paid_total() -> None:
    issued = IssuedPolicyRecord.from_fields(
        {"ID": "CP", "Premium": "$10", "AmountPaid": "$20", "TotalAmount": "$30", "ReimburseAmount": 5}
    )

    assert issued.next_paid_total == Amount(30)
    assert issued.to_fields()["AmountPaid"] == "$20"
