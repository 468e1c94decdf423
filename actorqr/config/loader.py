from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..errors import ConfigurationError
from ..models.config_models import (
    DatabaseConfig,
    PacingConfig,
    PipelineConfig,
    StorageConfig,
)

"""Config loader.

Responsibilities:
- Load the optional YAML file (default ``config/pipeline.yml``)
- Validate it against ``pipeline_schema.json`` shipped next to this module
- Apply environment overrides (environment wins over the file)
- Build the immutable PipelineConfig; its own validation raises ConfigurationError
"""

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
]

DEFAULT_CONFIG_PATH = Path("config/pipeline.yml")
SCHEMA_PATH = Path(__file__).with_name("pipeline_schema.json")


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigurationError: If the schema file is missing or not valid JSON, or
            the config data fails schema validation (unknown keys, wrong types).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigurationError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigurationError(f"config validation failed: {e.message}") from e


def _read_yaml(path: Path | None) -> dict[str, Any]:
    if path is None:
        return {}
    if not path.exists():
        raise ConfigurationError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"config root must be a mapping: {path}")
    return data


def _env(environ: Mapping[str, str], name: str) -> str | None:
    """Trimmed env value, None when unset or empty."""
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def _split_fields(raw: str) -> list[str]:
    return [s.strip() for s in raw.split(",") if s.strip()]


def load_config(path: Path | None = None, environ: Mapping[str, str] | None = None) -> PipelineConfig:
    """Build the PipelineConfig from an optional YAML file plus environment overrides.

    Environment variables: API_TARGET_URL, QR_SECRET_KEY, QR_TEMPLATE, QR_FIELDS,
    STORAGE_BUCKET, STORAGE_ENDPOINT_URL, STORAGE_DOWNLOAD_BASE_URL, AUDIT_TABLE.
    """
    env = os.environ if environ is None else environ
    data = _read_yaml(path)
    _validate_config_schema(data)

    api = data.get("api", {})
    qr = data.get("qr", {})
    pacing_raw = data.get("pacing", {})
    storage_raw = data.get("storage", {})
    db_raw = data.get("database", {})

    api_url = _env(env, "API_TARGET_URL") or (api.get("url") or "").strip()
    passphrase = _env(env, "QR_SECRET_KEY") or (qr.get("secret_key") or "").strip()

    # template is used verbatim (no trim); empty string means "not configured"
    template = env.get("QR_TEMPLATE") or qr.get("template") or None
    env_fields = _env(env, "QR_FIELDS")
    fields = _split_fields(env_fields) if env_fields else [f.strip() for f in qr.get("fields", []) if f.strip()]

    pacing_defaults = PacingConfig()
    pacing = PacingConfig(
        min_delay_ms=pacing_raw.get("min_delay_ms", pacing_defaults.min_delay_ms),
        max_delay_ms=pacing_raw.get("max_delay_ms", pacing_defaults.max_delay_ms),
    )

    storage_defaults = StorageConfig()
    storage = StorageConfig(
        bucket=_env(env, "STORAGE_BUCKET") or storage_raw.get("bucket", storage_defaults.bucket),
        endpoint_url=_env(env, "STORAGE_ENDPOINT_URL") or storage_raw.get("endpoint_url"),
        region=storage_raw.get("region", storage_defaults.region),
        download_base_url=(
            _env(env, "STORAGE_DOWNLOAD_BASE_URL")
            or storage_raw.get("download_base_url", storage_defaults.download_base_url)
        ).rstrip("/"),
        key_prefix=storage_raw.get("key_prefix", storage_defaults.key_prefix),
    )

    database = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )

    audit_table = _env(env, "AUDIT_TABLE") or data.get("audit", {}).get("table", "actors")
    if not audit_table.replace("_", "").isalnum():
        raise ConfigurationError(f"invalid audit table name: {audit_table!r}")

    return PipelineConfig(
        api_url=api_url,
        passphrase=passphrase,
        qr_template=template,
        qr_fields=tuple(fields),
        request_timeout_seconds=float(api.get("timeout_seconds", 15.0)),
        audit_table=audit_table,
        pacing=pacing,
        storage=storage,
        database=database,
    )
