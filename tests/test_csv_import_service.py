"""Tests for CSV import service."""

from __future__ import annotations

import csv

import pytest

from insurance_ledger.core.errors import RecordAlreadyExistsError
from insurance_ledger.models.context import InvocationContext
from insurance_ledger.services.csv_import_service import CsvImportService


class FakeClientRegistry:
    def __init__(self):
        self.items = []

    def register_client(self, ctx, client_id, name, dob, nominee, policy_id):
        if any(item[0] == client_id for item in self.items):
            raise RecordAlreadyExistsError(client_id)
        self.items.append((client_id, name, dob, nominee, policy_id))


class FakePolicyCatalog:
    def __init__(self):
        self.items = []

    def register_policy(self, ctx, policy_id, name, duration, premium, total_amount, reimburse_amount):
        if not premium.startswith("$"):
            raise ValueError("Premium must look like $100.")
        self.items.append((policy_id, premium, total_amount, reimburse_amount))


def write_csv(path, rows):
    with path.open("w", encoding="utf-8", newline="") as file:
        writer = csv.writer(file)
        writer.writerows(rows)


def test_import_policies(tmp_path) -> None:
    csv_path = tmp_path / "policies.csv"
    write_csv(
        csv_path,
        [
            ["ID", "Name", "Duration", "Premium", "TotalAmount", "ReimburseAmount"],
            ["P1", "Health Basic", "12 months", "$10", "$30", "5"],
            ["P2", "Health Plus", "24 months", "20", "$60", "15"],
        ],
    )
    catalog = FakePolicyCatalog()

    service = CsvImportService(FakeClientRegistry(), catalog)
    result = service.import_policies(InvocationContext(), str(csv_path))

    assert result.created_count == 1
    assert result.failed_count == 1
    assert result.error_messages[0].startswith("row 3:")
    assert catalog.items == [("P1", "$10", "$30", "5")]


def test_import_clients(tmp_path) -> None:
    csv_path = tmp_path / "clients.csv"
    write_csv(
        csv_path,
        [
            ["ID", "Name", "DateOfBirth", "Nominee", "PolicyId"],
            ["C1", "Kapil", "12-03-1988", "Tomoko", "P1"],
            ["C1", "Kapil", "12-03-1988", "Tomoko", "P1"],
        ],
    )
    registry = FakeClientRegistry()

    service = CsvImportService(registry, FakePolicyCatalog())
    result = service.import_clients(InvocationContext(), str(csv_path))

    assert result.created_count == 1
    assert result.failed_count == 1
    assert "already exists" in result.error_messages[0]


def test_import_rejects_missing_headers(tmp_path) -> None:
    csv_path = tmp_path / "clients.csv"
    write_csv(csv_path, [["ID", "Name"], ["C1", "Kapil"]])

    service = CsvImportService(FakeClientRegistry(), FakePolicyCatalog())
    with pytest.raises(ValueError):
        service.import_clients(InvocationContext(), str(csv_path))


def test_import_seeds_real_services(services, tmp_path) -> None:
    ctx = InvocationContext(invoker="seed")
    policies = tmp_path / "policies.csv"
    clients = tmp_path / "clients.csv"
    write_csv(
        policies,
        [
            ["ID", "Name", "Duration", "Premium", "TotalAmount", "ReimburseAmount"],
            ["P1", "Health Basic", "12 months", "$10", "$30", "5"],
        ],
    )
    write_csv(
        clients,
        [
            ["ID", "Name", "DateOfBirth", "Nominee", "PolicyId"],
            ["C1", "Kapil", "12-03-1988", "Tomoko", "P1"],
            ["C2", "Asha", "01-07-1990", "Ravi", "P9"],
        ],
    )

    assert services.csv_import_service.import_policies(ctx, str(policies)).created_count == 1
    result = services.csv_import_service.import_clients(ctx, str(clients))

    assert result.created_count == 1
    assert result.failed_count == 1
    assert services.client_registry.record_exists(ctx, "C1P1")
    assert not services.client_registry.record_exists(ctx, "C2")
