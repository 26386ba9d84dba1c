from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_ERROR_LOG_DIR,
    DatabaseConfig,
    ImportConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config (default config/import.yml)
- Validate against config_schema.json (shipped next to this module)
- Apply defaults (chunk_size=100, error_log_dir=./logs)

An empty file is a valid config: every key is optional.
"""

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "ConfigError",
    "load_config",
]

DEFAULT_CONFIG_PATH = Path("config/import.yml")
SCHEMA_PATH = Path(__file__).parent / "config_schema.json"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If any of the following occurs:
            - The schema file does not exist.
            - The schema file is not valid JSON.
            - The config data fails schema validation (unknown keys, wrong
              types, chunk_size < 1, ...).
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


def load_config(path: Path | str = DEFAULT_CONFIG_PATH) -> ImportConfig:
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return ImportConfig(
        database=db,
        chunk_size=data.get("chunk_size", DEFAULT_CHUNK_SIZE),
        error_log_dir=data.get("error_log_dir", DEFAULT_ERROR_LOG_DIR),
    )
