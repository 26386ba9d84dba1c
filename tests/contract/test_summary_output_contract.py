from __future__ import annotations

import re
from pathlib import Path

from address_import.cli.__main__ import main as cli_main

"""SUMMARY output contract: exactly one SUMMARY line per CLI run."""

VALIDATE_LINE = re.compile(r"^SUMMARY mode=validate rows=\d+ valid=\d+ error_rows=\d+ errors=\d+$")
IMPORT_LINE = re.compile(
    r"^SUMMARY mode=import rows=\d+ imported=\d+ failed=\d+ chunks=\d+/\d+ "
    r"rolled_back=(true|false) elapsed_sec=[0-9.]+ throughput_rps=[0-9.]+"
    r"( avg_chunk_sec=[0-9.]+ p95_chunk_sec=[0-9.]+)?$"
)


def _summary_lines(out: str) -> list[str]:
    return [line for line in out.splitlines() if line.startswith("SUMMARY")]


def test_validate_emits_single_summary_line(write_config, temp_workdir: Path, csv_bytes, valid_row, monkeypatch, capsys):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    data = temp_workdir / "data" / "bill_to.csv"
    data.write_bytes(csv_bytes([valid_row(), valid_row(City="")]))
    code = cli_main(["validate", str(data), "--project", "p", "--type", "bill_to"])
    lines = _summary_lines(capsys.readouterr().out)
    assert code == 2
    assert len(lines) == 1
    assert VALIDATE_LINE.match(lines[0]), lines[0]


def test_import_emits_single_summary_line(write_config, temp_workdir: Path, csv_bytes, valid_row, monkeypatch, capsys):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    data = temp_workdir / "data" / "bill_to.csv"
    data.write_bytes(csv_bytes([valid_row() for _ in range(3)]))
    code = cli_main(["import", str(data), "--project", "p", "--type", "bill_to"])
    lines = _summary_lines(capsys.readouterr().out)
    assert code == 0
    assert len(lines) == 1
    assert IMPORT_LINE.match(lines[0]), lines[0]
    assert "imported=3" in lines[0]
