# Shared pytest fixtures
from __future__ import annotations

import csv
import io
import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path

import pandas as pd
import pytest

from address_import.db.memory_store import InMemoryAddressStore
from address_import.logging.init import reset_logging
from address_import.models.address import Address

PROJECT = "proj-1"

# 必須 + 形式制約をすべて満たす 1 行 (label -> value)
VALID_ROW = {
    "Company Name": "Acme Corp",
    "Contact Person": "Rajesh Kumar",
    "Address Line 1": "123 MG Road",
    "City": "Mumbai",
    "State": "Maharashtra",
    "PIN Code": "400001",
    "Country": "India",
    "Phone": "9876543210",
    "Email": "rajesh@example.com",
    "GSTIN": "27AAPFU0939F1ZV",
}


@pytest.fixture(autouse=True)
def _clean_logging():
    # CLI テストで stdout ハンドラが capsys 差し替え前の stream を掴まないように
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
chunk_size: 100
error_log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def project_id() -> str:
    return PROJECT


@pytest.fixture()
def store() -> InMemoryAddressStore:
    return InMemoryAddressStore()


@pytest.fixture()
def seed_ship_to(store: InMemoryAddressStore) -> Callable[..., Address]:
    """Factory storing a ship_to address with the given company name."""
    def _seed(company_name: str, project: str = PROJECT) -> Address:
        return store.add_address(Address(
            project=project,
            address_type="ship_to",
            values={"company_name": company_name, "address_line_1": "1 Dock Rd",
                    "city": "Pune", "state": "Maharashtra", "country": "India"},
        ))
    return _seed


@pytest.fixture()
def valid_row() -> Callable[..., dict[str, str]]:
    """Factory returning a valid label -> value row with overrides applied."""
    def _row(**overrides: str) -> dict[str, str]:
        row = dict(VALID_ROW)
        for label, value in overrides.items():
            row[label.replace("_", " ")] = value
        return row
    return _row


def _table(rows: Sequence[dict[str, str]], headers: Sequence[str] | None) -> tuple[list[str], list[list[str]]]:
    headers = list(headers) if headers is not None else list(VALID_ROW.keys())
    return headers, [[r.get(h, "") for h in headers] for r in rows]


@pytest.fixture()
def csv_bytes() -> Callable[..., bytes]:
    def _build(rows: Sequence[dict[str, str]], headers: Sequence[str] | None = None) -> bytes:
        header, data = _table(rows, headers)
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(header)
        writer.writerows(data)
        return buf.getvalue().encode("utf-8")
    return _build


@pytest.fixture()
def xlsx_bytes() -> Callable[..., bytes]:
    def _build(rows: Sequence[dict[str, str]], headers: Sequence[str] | None = None) -> bytes:
        header, data = _table(rows, headers)
        buf = io.BytesIO()
        df = pd.DataFrame(data, columns=header)
        with pd.ExcelWriter(buf, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Addresses", index=False)
        return buf.getvalue()
    return _build
