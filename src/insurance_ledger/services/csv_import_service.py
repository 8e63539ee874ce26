"""CSV seeding of policy templates and clients."""

from __future__ import annotations

import csv
from dataclasses import dataclass

from insurance_ledger.models.context import InvocationContext
from insurance_ledger.services.client_registry import ClientRegistry
from insurance_ledger.services.policy_catalog import PolicyCatalog

POLICY_CSV_HEADERS = ["ID", "Name", "Duration", "Premium", "TotalAmount", "ReimburseAmount"]
CLIENT_CSV_HEADERS = ["ID", "Name", "DateOfBirth", "Nominee", "PolicyId"]
MAX_ERROR_MESSAGES = 10


@dataclass
class CsvImportResult:
    """Result summary for CSV imports."""

    created_count: int
    failed_count: int
    error_messages: list[str]


class CsvImportService:
    """Imports records from CSV and delegates persistence to services.

    Policies should be imported before the clients that reference them,
    since every client row also issues its policy.
    """

    def __init__(self, client_registry: ClientRegistry, policy_catalog: PolicyCatalog):
        self._client_registry = client_registry
        self._policy_catalog = policy_catalog

    @staticmethod
    def _validate_headers(fieldnames: list[str] | None, required: list[str]) -> None:
        if fieldnames is None:
            raise ValueError("CSV file has no header row.")
        missing = [header for header in required if header not in fieldnames]
        if missing:
            raise ValueError(f"CSV headers missing: {', '.join(missing)}")

    def import_policies(self, ctx: InvocationContext, file_path: str) -> CsvImportResult:
        """Register every policy row and return success/failure counts."""
        created_count = 0
        failed_count = 0
        errors: list[str] = []

        with open(file_path, "r", encoding="utf-8-sig", newline="") as csv_file:
            reader = csv.DictReader(csv_file)
            self._validate_headers(reader.fieldnames, POLICY_CSV_HEADERS)

            for row_index, row in enumerate(reader, start=2):
                try:
                    self._policy_catalog.register_policy(
                        ctx,
                        row["ID"],
                        row["Name"],
                        row["Duration"],
                        row["Premium"],
                        row["TotalAmount"],
                        row["ReimburseAmount"],
                    )
                    created_count += 1
                except (ValueError, KeyError, TypeError, AttributeError) as error:
                    failed_count += 1
                    if len(errors) < MAX_ERROR_MESSAGES:
                        errors.append(f"row {row_index}: {error}")

        return CsvImportResult(
            created_count=created_count,
            failed_count=failed_count,
            error_messages=errors,
        )

    def import_clients(self, ctx: InvocationContext, file_path: str) -> CsvImportResult:
        """Register every client row (issuing its policy) and return counts."""
        created_count = 0
        failed_count = 0
        errors: list[str] = []

        with open(file_path, "r", encoding="utf-8-sig", newline="") as csv_file:
            reader = csv.DictReader(csv_file)
            self._validate_headers(reader.fieldnames, CLIENT_CSV_HEADERS)

            for row_index, row in enumerate(reader, start=2):
                try:
                    self._client_registry.register_client(
                        ctx,
                        row["ID"],
                        row["Name"],
                        row["DateOfBirth"],
                        row["Nominee"],
                        row["PolicyId"],
                    )
                    created_count += 1
                except (ValueError, KeyError, TypeError, AttributeError) as error:
                    failed_count += 1
                    if len(errors) < MAX_ERROR_MESSAGES:
                        errors.append(f"row {row_index}: {error}")

        return CsvImportResult(
            created_count=created_count,
            failed_count=failed_count,
            error_messages=errors,
        )
