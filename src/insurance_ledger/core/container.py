"""Application dependency container."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from insurance_ledger.core.config import AppConfig, ensure_runtime_keys, get_required_env, load_config
from insurance_ledger.core.crypto import CryptoService
from insurance_ledger.repositories.audit_repository import AuditRepository
from insurance_ledger.repositories.db_pool import ThreadLocalConnection
from insurance_ledger.repositories.record_repository import RecordRepository
from insurance_ledger.repositories.schema import initialize_schema
from insurance_ledger.repositories.world_state_repository import WorldStateRepository
from insurance_ledger.services.client_registry import ClientRegistry
from insurance_ledger.services.csv_import_service import CsvImportService
from insurance_ledger.services.issued_policy_ledger import IssuedPolicyLedger
from insurance_ledger.services.policy_catalog import PolicyCatalog
from insurance_ledger.services.refund_engine import RefundEngine

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Wires repositories and services."""

    config: AppConfig
    client_registry: ClientRegistry
    policy_catalog: PolicyCatalog
    ledger: IssuedPolicyLedger
    refund_engine: RefundEngine
    csv_import_service: CsvImportService
    audit_repo: AuditRepository


def wire_services(config: AppConfig, crypto: CryptoService) -> ServiceContainer:
    """Open the store, create tables and build the service graph."""
    pool = ThreadLocalConnection(config)
    initialize_schema(pool)

    audit_repo = AuditRepository(pool)
    record_repo = RecordRepository(WorldStateRepository(pool, crypto))

    refund_engine = RefundEngine(record_repo, audit_repo, config.ledger)
    ledger = IssuedPolicyLedger(record_repo, audit_repo, refund_engine, config.ledger)
    policy_catalog = PolicyCatalog(record_repo, audit_repo, config.ledger)
    client_registry = ClientRegistry(record_repo, audit_repo, ledger, config.ledger)

    return ServiceContainer(
        config=config,
        client_registry=client_registry,
        policy_catalog=policy_catalog,
        ledger=ledger,
        refund_engine=refund_engine,
        csv_import_service=CsvImportService(client_registry, policy_catalog),
        audit_repo=audit_repo,
    )


def build_container(config_path: Path | None = None) -> ServiceContainer:
    """Load configuration and keys, then build dependencies."""
    config = load_config(config_path)
    logging.getLogger("insurance_ledger").setLevel(config.logging.level)

    ensure_runtime_keys(config.database.path)
    crypto = CryptoService.from_base64_key(get_required_env(config.encryption.key_env))

    container = wire_services(config, crypto)
    removed = container.audit_repo.cleanup_old_logs(config.logging.retention_days)
    if removed:
        logger.info("Cleaned old audit logs: %s", removed)
    return container
