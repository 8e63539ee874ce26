from __future__ import annotations

import pytest

from insurance_ledger.core.config import (
    AppConfig,
    DatabaseConfig,
    EncryptionConfig,
    LedgerConfig,
    LoggingConfig,
)
from insurance_ledger.core.container import wire_services
from insurance_ledger.core.crypto import CryptoService
from insurance_ledger.models.context import InvocationContext


@pytest.fixture
def make_services(tmp_path, monkeypatch):
    # Keep the tests on plain SQLite even where pysqlcipher3 is installed.
    monkeypatch.setattr("insurance_ledger.repositories.db_pool.SQLCIPHER_AVAILABLE", False)

    def build(**ledger_options):
        config = AppConfig(
            database=DatabaseConfig(
                path=str(tmp_path / "world_state.db"),
                key_env="LEDGER_DB_KEY",
                allow_sqlite_fallback=True,
            ),
            encryption=EncryptionConfig(key_env="LEDGER_ENCRYPTION_KEY"),
            logging=LoggingConfig(retention_days=1095),
            ledger=LedgerConfig(**ledger_options),
        )
        crypto = CryptoService.from_base64_key(CryptoService.generate_base64_key())
        return wire_services(config, crypto)

    return build


@pytest.fixture
def services(make_services):
    return make_services()


@pytest.fixture
def ctx():
    return InvocationContext(invoker="tester", tx_id="tx-1")
