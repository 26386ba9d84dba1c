from __future__ import annotations

import json
import re
from pathlib import Path

from address_import.logging.error_log import ErrorLogBuffer, ErrorRecord


def _rec(row: int, message: str = "dup") -> ErrorRecord:
    return ErrorRecord.create("proj-1", "ship_to", row, "", "SAVE_ERROR", f"Failed to save: {message}")


def test_error_log_buffer_flush(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(_rec(2))
    buf.append(ErrorRecord.create("proj-1", "ship_to", 3, "City", "REVALIDATION_ERROR", "City is required"))
    path = buf.flush()
    assert path.exists()
    assert path.parent.resolve() == (temp_workdir / "logs").resolve()
    assert re.fullmatch(r"errors-\d{8}-\d{6}\.log", path.name)
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    for raw in lines:
        obj = json.loads(raw)
        assert set(obj.keys()) == {"timestamp", "project", "address_type", "row", "field", "error_type", "message"}
    # flush 後バッファクリア
    assert len(buf) == 0


def test_empty_buffer_flush_creates_nothing(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path / "nested" / "logs")
    assert buf.flush() is None
    assert not (tmp_path / "nested").exists()


def test_error_log_buffer_multiple_flushes(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path)
    buf.append(_rec(1))
    path = buf.flush()
    size1 = path.stat().st_size
    # 再追加して再flush
    buf.append(_rec(2, "dup2"))
    path2 = buf.flush()
    assert path == path2
    assert path2.stat().st_size > size1
