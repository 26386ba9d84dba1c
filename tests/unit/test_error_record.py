from __future__ import annotations

import json

from address_import.models.error_record import ERROR_TYPES, ErrorRecord

KEYS = {"timestamp", "project", "address_type", "row", "field", "error_type", "message"}


def test_create_stamps_utc_timestamp():
    rec = ErrorRecord.create("proj-1", "install_at", 12, "Ship To Reference", "REFERENCE_NOT_FOUND", 'Ship To "X" not found')
    assert rec.timestamp.endswith("Z")
    assert "+00:00" not in rec.timestamp


def test_to_json_line_has_fixed_keys():
    rec = ErrorRecord.create("proj-1", "ship_to", 2, "", "SAVE_ERROR", "Failed to save: duplicate")
    data = json.loads(rec.to_json_line())
    assert set(data) == KEYS
    assert data["row"] == 2
    assert data["field"] == ""


def test_non_ascii_messages_preserved():
    rec = ErrorRecord.create("p", "ship_to", -1, "", "TRANSACTION_ERROR", "接続が切断されました")
    line = rec.to_json_line()
    assert "接続が切断されました" in line
    assert json.loads(line)["row"] == -1


def test_error_types():
    assert ERROR_TYPES == {"REVALIDATION_ERROR", "REFERENCE_NOT_FOUND", "SAVE_ERROR", "TRANSACTION_ERROR"}
