from __future__ import annotations

from unittest.mock import MagicMock

from address_import.db.store import StorageError
from address_import.models.address import Address
from address_import.services.reference import build_ship_to_lookup


def test_lookup_maps_company_name_to_id(store, project_id, seed_ship_to):
    acme = seed_ship_to("Acme Corp")
    beta = seed_ship_to("Beta Ltd")
    assert build_ship_to_lookup(store, project_id) == {"Acme Corp": acme.id, "Beta Ltd": beta.id}


def test_lookup_is_scoped_to_project_and_ship_to(store, project_id, seed_ship_to):
    seed_ship_to("Other Project Co", project="proj-2")
    store.add_address(Address(project=project_id, address_type="bill_to", values={"company_name": "Billing Co"}))
    assert build_ship_to_lookup(store, project_id) == {}


def test_lookup_skips_blank_company_names(store, project_id):
    store.add_address(Address(project=project_id, address_type="ship_to", values={"city": "Pune"}))
    assert build_ship_to_lookup(store, project_id) == {}


def test_lookup_is_rebuilt_on_every_call(store, project_id, seed_ship_to):
    acme = seed_ship_to("Acme Corp")
    assert "Acme Corp" in build_ship_to_lookup(store, project_id)
    store.delete_address(acme.id)
    assert build_ship_to_lookup(store, project_id) == {}


def test_lookup_fails_open_on_storage_error(project_id):
    broken = MagicMock()
    broken.find_addresses.side_effect = StorageError("timeout")
    assert build_ship_to_lookup(broken, project_id) == {}
