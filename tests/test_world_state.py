"""Tests for the world-state store and kind-aware record access."""

from __future__ import annotations

import logging

import pytest

from insurance_ledger.core.config import (
    AppConfig,
    DatabaseConfig,
    EncryptionConfig,
    LedgerConfig,
    LoggingConfig,
)
from insurance_ledger.core.crypto import CryptoService
from insurance_ledger.core.errors import RecordNotFoundError
from insurance_ledger.models.context import InvocationContext
from insurance_ledger.models.records import RecordKind
from insurance_ledger.repositories.audit_repository import AuditRepository
from insurance_ledger.repositories.db_pool import ThreadLocalConnection
from insurance_ledger.repositories.record_repository import RecordRepository
from insurance_ledger.repositories.schema import initialize_schema
from insurance_ledger.repositories.world_state_repository import WorldStateRepository
from insurance_ledger.services.client_registry import ClientRegistry
from insurance_ledger.services.issued_policy_ledger import IssuedPolicyLedger
from insurance_ledger.services.refund_engine import RefundEngine


@pytest.fixture
def pool(tmp_path, monkeypatch):
    monkeypatch.setattr("insurance_ledger.repositories.db_pool.SQLCIPHER_AVAILABLE", False)
    config = AppConfig(
        database=DatabaseConfig(
            path=str(tmp_path / "world_state.db"),
            key_env="LEDGER_DB_KEY",
            allow_sqlite_fallback=True,
        ),
        encryption=EncryptionConfig(key_env="LEDGER_ENCRYPTION_KEY"),
        logging=LoggingConfig(retention_days=30),
    )
    pool = ThreadLocalConnection(config)
    initialize_schema(pool)
    yield pool
    pool.close_connection()


@pytest.fixture
def world_state(pool):
    crypto = CryptoService.from_base64_key(CryptoService.generate_base64_key())
    return WorldStateRepository(pool, crypto)


def test_put_get_delete(world_state) -> None:
    assert world_state.get("k") is None
    assert not world_state.exists("k")

    world_state.put("k", b'{"ID":"k"}')
    assert world_state.get("k") == b'{"ID":"k"}'
    assert world_state.exists("k")

    world_state.put("k", b'{"ID":"k2"}')
    assert world_state.get("k") == b'{"ID":"k2"}'

    world_state.delete("k")
    assert world_state.get("k") is None


def test_empty_value_counts_as_absent(world_state) -> None:
    world_state.put("k", b"")
    assert not world_state.exists("k")


def test_values_are_encrypted_at_rest(pool, world_state) -> None:
    world_state.put("k", b'{"Nominee":"Tomoko"}')

    row = pool.fetchone("SELECT value FROM world_state WHERE key = ?", ("k",))

    assert b"Tomoko" not in bytes(row["value"])


def test_scan_all_in_key_order(world_state) -> None:
    for key in ["b", "a", "c"]:
        world_state.put(key, key.encode("utf-8"))

    assert world_state.scan_all() == [("a", b"a"), ("b", b"b"), ("c", b"c")]


def test_transaction_rolls_back_on_error(world_state) -> None:
    with pytest.raises(RuntimeError):
        with world_state.transaction():
            world_state.put("k", b"1")
            raise RuntimeError("boom")

    assert world_state.get("k") is None


def test_record_repository_narrows_by_kind(world_state) -> None:
    records = RecordRepository(world_state)
    records.write("P", {"ID": "P", "TotalAmount": "$30", "DocType": "policy"})

    assert records.exists("P")
    assert records.exists("P", RecordKind.POLICY)
    assert not records.exists("P", RecordKind.CLIENT)
    assert records.read_fields("P", RecordKind.POLICY)["TotalAmount"] == "$30"
    with pytest.raises(RecordNotFoundError):
        records.read_text("P", RecordKind.CLIENT)


def test_untagged_records_infer_kind(world_state) -> None:
    records = RecordRepository(world_state)
    records.write("CP", {"ID": "CP", "AmountPaid": "$0", "Premium": "$10", "TotalAmount": "$30"})

    assert records.exists("CP", RecordKind.ISSUED_POLICY)


def test_list_all_keeps_malformed_values(pool, world_state, caplog) -> None:
    records = RecordRepository(world_state)
    audit_repo = AuditRepository(pool)
    config = LedgerConfig()
    refund_engine = RefundEngine(records, audit_repo, config)
    ledger = IssuedPolicyLedger(records, audit_repo, refund_engine, config)
    registry = ClientRegistry(records, audit_repo, ledger, config)

    records.write("a", {"ID": "a", "DocType": "client"})
    world_state.put("b", b"not json")

    with caplog.at_level(logging.WARNING, logger="insurance_ledger"):
        entries = registry.list_all(InvocationContext())

    assert entries == [{"ID": "a", "DocType": "client"}, "not json"]
    assert "not a record" in caplog.text


def test_malformed_values_read_as_missing(pool, world_state) -> None:
    records = RecordRepository(world_state)
    audit_repo = AuditRepository(pool)
    config = LedgerConfig()
    refund_engine = RefundEngine(records, audit_repo, config)
    ledger = IssuedPolicyLedger(records, audit_repo, refund_engine, config)
    registry = ClientRegistry(records, audit_repo, ledger, config)
    ctx = InvocationContext()

    world_state.put("X", b"not json")
    records.write("P", {"ID": "P", "Premium": "$10", "TotalAmount": "$30", "DocType": "policy"})

    assert records.exists("X")
    assert not records.exists("X", RecordKind.CLIENT)
    assert records.kind_of("X") is None
    with pytest.raises(RecordNotFoundError):
        registry.get_client_info(ctx, "X")
    with pytest.raises(RecordNotFoundError):
        registry.update_client_details(ctx, "X", "Kapil", "12-03-1988", "Tomoko", "P")
    with pytest.raises(RecordNotFoundError):
        ledger.pay_premium(ctx, "X", "P")
    with pytest.raises(RecordNotFoundError):
        refund_engine.refund(ctx, "X", "P")
