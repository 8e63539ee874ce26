"""Configuration loader for world-state storage, encryption and ledger rules."""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from insurance_ledger.core.crypto import CryptoService
from insurance_ledger.core.keys import CONCAT_SCHEME, KEY_SCHEMES
from insurance_ledger.models.amount import DEFAULT_CURRENCY_MARKER


@dataclass(frozen=True)
class DatabaseConfig:
    path: str
    key_env: str
    allow_sqlite_fallback: bool


@dataclass(frozen=True)
class EncryptionConfig:
    key_env: str


@dataclass(frozen=True)
class LoggingConfig:
    retention_days: int
    level: str = "INFO"


@dataclass(frozen=True)
class LedgerConfig:
    """Rules for composite keys, issuance checks and multi-write atomicity."""

    currency_marker: str = DEFAULT_CURRENCY_MARKER
    composite_key: str = CONCAT_SCHEME
    assert_client_exists: bool = False
    atomic_writes: bool = True


@dataclass(frozen=True)
class AppConfig:
    database: DatabaseConfig
    encryption: EncryptionConfig
    logging: LoggingConfig
    ledger: LedgerConfig = field(default_factory=LedgerConfig)


DEFAULT_CONFIG_REL_PATH = Path("config/ledger.yaml")
DEFAULT_DB_KEY_ENV = "LEDGER_DB_KEY"
DEFAULT_ENCRYPTION_KEY_ENV = "LEDGER_ENCRYPTION_KEY"
RUNTIME_ENV_REL_PATH = Path("config/runtime.env")
_RUNTIME_ENV_LOADED = False


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    """Parse ``KEY=VALUE`` or ``export KEY=VALUE``; quotes are stripped."""
    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    if line.startswith("export "):
        line = line[len("export ") :]

    key, value = (part.strip() for part in line.split("=", 1))
    if not key:
        return None
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        value = value[1:-1]
    return key, value


def _project_root() -> Path:
    return Path(__file__).resolve().parents[3]


def _iter_env_candidates() -> list[Path]:
    """Return local files that may hold runtime keys, without duplicates."""
    candidates: list[Path] = []
    for root in (Path.cwd(), _project_root()):
        for path in (root / ".env.local", root / RUNTIME_ENV_REL_PATH):
            resolved = path.resolve()
            if resolved not in candidates:
                candidates.append(resolved)
    return candidates


def _load_env_from_file(path: Path) -> None:
    """Copy keys from a local env file into the process environment."""
    if not path.is_file():
        return
    with path.open("r", encoding="utf-8") as file:
        for line in file:
            parsed = _parse_env_line(line)
            if parsed and parsed[0] not in os.environ:
                os.environ[parsed[0]] = parsed[1]


def _runtime_root() -> Path:
    """Return writable root for runtime env creation."""
    return _project_root()


def _ensure_runtime_env_loaded() -> None:
    global _RUNTIME_ENV_LOADED
    if _RUNTIME_ENV_LOADED:
        return
    for path in _iter_env_candidates():
        _load_env_from_file(path)
    _RUNTIME_ENV_LOADED = True


def _bootstrap_default_keys_if_needed(config_db_path: str | None = None) -> None:
    """Generate store keys on first run; refuse when a database already exists."""
    db_key = os.getenv(DEFAULT_DB_KEY_ENV)
    encryption_key = os.getenv(DEFAULT_ENCRYPTION_KEY_ENV)
    if db_key and encryption_key:
        return

    runtime_env = _runtime_root() / RUNTIME_ENV_REL_PATH
    if config_db_path and Path(config_db_path).exists() and not runtime_env.exists():
        raise RuntimeError(
            "Runtime key file is missing while the world-state database exists. "
            f"Restore the key file or set {DEFAULT_DB_KEY_ENV}/{DEFAULT_ENCRYPTION_KEY_ENV}."
        )

    db_key = db_key or secrets.token_urlsafe(48)
    encryption_key = encryption_key or CryptoService.generate_base64_key()
    os.environ[DEFAULT_DB_KEY_ENV] = db_key
    os.environ[DEFAULT_ENCRYPTION_KEY_ENV] = encryption_key

    runtime_env.parent.mkdir(parents=True, exist_ok=True)
    runtime_env.write_text(
        f"{DEFAULT_DB_KEY_ENV}='{db_key}'\n{DEFAULT_ENCRYPTION_KEY_ENV}='{encryption_key}'\n",
        encoding="utf-8",
    )


def ensure_runtime_keys(config_db_path: str | None = None) -> None:
    """Ensure runtime keys are loaded or bootstrapped for a configured DB path."""
    _ensure_runtime_env_loaded()
    _bootstrap_default_keys_if_needed(config_db_path)


def resolve_default_config_path() -> Path:
    """Resolve configuration path from LEDGER_CONFIG_PATH, cwd, then project root."""
    env_path = os.getenv("LEDGER_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    candidates = [Path.cwd() / DEFAULT_CONFIG_REL_PATH, _project_root() / DEFAULT_CONFIG_REL_PATH]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return candidates[0]


def _load_ledger_section(raw: dict | None) -> LedgerConfig:
    raw = raw or {}
    defaults = LedgerConfig()
    scheme = str(raw.get("composite_key", defaults.composite_key))
    if scheme not in KEY_SCHEMES:
        raise ValueError(f"ledger.composite_key must be one of {', '.join(KEY_SCHEMES)}")
    return LedgerConfig(
        currency_marker=str(raw.get("currency_marker", defaults.currency_marker)),
        composite_key=scheme,
        assert_client_exists=bool(raw.get("assert_client_exists", defaults.assert_client_exists)),
        atomic_writes=bool(raw.get("atomic_writes", defaults.atomic_writes)),
    )


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load the app configuration from YAML."""
    path = config_path or resolve_default_config_path()
    with path.open("r", encoding="utf-8") as file:
        raw = yaml.safe_load(file)

    return AppConfig(
        database=DatabaseConfig(
            path=str(raw["db"]["path"]),
            key_env=str(raw["db"]["key_env"]),
            allow_sqlite_fallback=bool(raw["db"].get("allow_sqlite_fallback", False)),
        ),
        encryption=EncryptionConfig(
            key_env=str(raw["encryption"]["key_env"]),
        ),
        logging=LoggingConfig(
            retention_days=int(raw["logging"].get("retention_days", 1095)),
            level=str(raw["logging"].get("level", "INFO")).upper(),
        ),
        ledger=_load_ledger_section(raw.get("ledger")),
    )


def get_required_env(name: str) -> str:
    """Return a required environment variable or raise a clear error."""
    _ensure_runtime_env_loaded()
    if name in {DEFAULT_DB_KEY_ENV, DEFAULT_ENCRYPTION_KEY_ENV}:
        _bootstrap_default_keys_if_needed()
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Required environment variable is missing: {name}")
    return value
