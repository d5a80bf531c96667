from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..services.committer import OPERATIONS_PER_STUDENT

"""Config loader.

Responsibilities:
- Load YAML (default ``config/import.yml``)
- Validate it against the packaged JSON schema
- Apply defaults (timezone=UTC, group size 200, query chunk 10, ...)
- Let environment variables override connection settings
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")

DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class StoreConfig:
    backend: str  # postgres | memory
    group_size: int = 200
    duplicate_query_chunk_size: int = 10
    max_write_operations: int = 500
    max_query_values: int = 10
    students_collection: str = "students"
    addresses_collection: str = "addresses"


@dataclass(frozen=True)
class DatabaseConfig:
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None

    def resolve_dsn(self) -> str:
        """Environment first (DATABASE_URL / PGDSN / PG*), then this config."""
        dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or self.dsn
        if dsn:
            return dsn
        host = os.getenv("PGHOST", self.host or "localhost")
        port = os.getenv("PGPORT", str(self.port) if self.port else "5432")
        user = os.getenv("PGUSER", self.user or "postgres")
        password = os.getenv("PGPASSWORD", self.password or "")
        database = os.getenv("PGDATABASE", self.database or "postgres")
        dsn = f"host={host} port={port} user={user} dbname={database}"
        if password:
            dsn += f" password={password}"
        return dsn


@dataclass(frozen=True)
class CrmConfig:
    student_sync_url: str | None = None
    queue_size: int = 1000
    workers: int = 1
    timeout_seconds: float = 10.0

    @property
    def resolved_url(self) -> str | None:
        return os.getenv("CRM_STUDENT_SYNC_URL") or self.student_sync_url


@dataclass(frozen=True)
class ImportConfig:
    store: StoreConfig
    database: DatabaseConfig
    crm: CrmConfig
    timezone: str = "UTC"


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the packaged JSON schema.

    Raises:
        ConfigError: the schema file is missing or unreadable, or ``data``
            violates it (missing keys, wrong types, unknown keys)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)

    store = StoreConfig(**data["store"])
    if store.group_size * OPERATIONS_PER_STUDENT > store.max_write_operations:
        raise ConfigError(
            f"store.group_size {store.group_size} needs {store.group_size * OPERATIONS_PER_STUDENT} operations per "
            f"write, above store.max_write_operations {store.max_write_operations}"
        )
    if store.duplicate_query_chunk_size > store.max_query_values:
        raise ConfigError(
            f"store.duplicate_query_chunk_size {store.duplicate_query_chunk_size} is above "
            f"store.max_query_values {store.max_query_values}"
        )
    return ImportConfig(
        store=store,
        database=DatabaseConfig(**(data.get("database") or {})),
        crm=CrmConfig(**(data.get("crm") or {})),
        timezone=data.get("timezone", "UTC"),
    )
