from __future__ import annotations

from address_import.services.default_policies import ensure_default_policies
from address_import.services.pipeline import commit, validate_upload

"""Preview and commit scenarios driven by project policy and references."""


def test_bill_from_row_missing_seven_required_fields(store, project_id, csv_bytes, valid_row):
    ensure_default_policies(store, project_id)
    row = valid_row(**{
        "Company Name": "", "Address Line 1": "", "City": "", "State": "",
        "PIN Code": "", "Country": "", "GSTIN": "",
    })
    result = validate_upload(store, csv_bytes([row]), "csv", project_id, "bill_from")
    assert result.error_rows == 1
    assert len(result.errors) == 7
    assert {e.row for e in result.errors} == {2}
    assert [e.field for e in result.errors] == [
        "Company Name", "Address Line 1", "City", "State", "PIN Code", "Country", "GSTIN",
    ]


def test_install_at_unknown_ship_to_is_rejected_at_commit(store, project_id):
    rows = [{
        "ship_to_reference": "Ghost Co",
        "address_line_1": "5 Plant Rd",
        "city": "Chennai",
        "state": "Tamil Nadu",
        "country": "India",
    }]
    result = commit(store, project_id, "install_at", rows, progress=False)
    assert result.imported == 0
    assert result.rolled_back is True
    assert any('"Ghost Co"' in e.message for e in result.errors)
    assert store.find_addresses(project_id, "install_at") == []


def test_install_at_unknown_ship_to_in_preview(store, project_id, seed_ship_to, csv_bytes, valid_row):
    seed_ship_to("Acme Corp")
    headers = ["Ship To Reference", *valid_row().keys()]
    rows = [
        dict(valid_row(), **{"Ship To Reference": "Acme Corp"}),
        dict(valid_row(), **{"Ship To Reference": "Ghost Co"}),
    ]
    result = validate_upload(store, csv_bytes(rows, headers=headers), "csv", project_id, "install_at")
    assert result.error_rows == 1
    (err,) = result.errors
    assert (err.row, err.field) == (3, "Ship To Reference")
    assert err.message == 'No Ship To address with company name "Ghost Co" found in this project'


def test_policy_requiring_company_name_and_phone(store, project_id, csv_bytes, valid_row):
    store.save_required_settings(project_id, "ship_to", {"req_company_name": True, "req_phone": True})
    rows = [valid_row(), valid_row(Phone="")]
    result = validate_upload(store, csv_bytes(rows), "csv", project_id, "ship_to")
    assert result.valid_rows == 1
    assert [(e.row, e.field, e.message) for e in result.errors] == [(3, "Phone", "Phone is required")]
