from __future__ import annotations

import json
from pathlib import Path

import jsonschema
import pytest
import yaml
from jsonschema.exceptions import ValidationError

from address_import.config.loader import SCHEMA_PATH, ConfigError, load_config

"""Config schema contract test."""

REPO_ROOT = Path(__file__).resolve().parents[2]


def _schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_config_schema_valid_example():
    config = {
        "database": {
            "host": "localhost",
            "port": 5432,
            "user": "appuser",
            "password": "secret",
            "database": "appdb",
            "dsn": None,
        },
        "chunk_size": 100,
        "error_log_dir": "./logs",
    }
    jsonschema.validate(config, _schema())


def test_shipped_sample_config_is_valid():
    sample = yaml.safe_load((REPO_ROOT / "config" / "import.yml").read_text(encoding="utf-8"))
    jsonschema.validate(sample, _schema())


@pytest.mark.parametrize("config", [
    {"chunk_size": 0},
    {"chunk_size": "100"},
    {"error_log_dir": ""},
    {"database": {"port": "5432"}},
    {"database": {"hostname": "x"}},
    {"source_directory": "./data"},
])
def test_config_schema_rejects_invalid(config):
    with pytest.raises(ValidationError):
        jsonschema.validate(config, _schema())


def test_loader_reports_schema_violation(temp_workdir: Path):
    path = temp_workdir / "config" / "import.yml"
    path.write_text("chunk_size: -5\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(path)
