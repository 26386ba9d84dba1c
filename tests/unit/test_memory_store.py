from __future__ import annotations

import pytest

from address_import.db.memory_store import InMemoryAddressStore
from address_import.db.store import StorageError
from address_import.models.address import Address


def _addr(name: str = "Acme") -> Address:
    return Address(project="p", address_type="ship_to", values={"company_name": name})


def test_transaction_commits_on_clean_exit(store):
    with store.transaction() as tx:
        new_id = tx.create_address(_addr())
    stored = store.get_address(new_id)
    assert stored is not None and stored.id == new_id
    assert store.committed_transactions == 1
    assert len(store) == 1


def test_transaction_rolls_back_on_exception(store):
    with pytest.raises(RuntimeError):
        with store.transaction() as tx:
            tx.create_address(_addr("a"))
            raise RuntimeError("boom")
    assert len(store) == 0
    assert store.rolled_back_transactions == 1


def test_staged_writes_invisible_until_commit(store):
    with store.transaction() as tx:
        tx.create_address(_addr())
        assert store.find_addresses("p", "ship_to") == []
    assert len(store.find_addresses("p", "ship_to")) == 1


def test_constraint_hook_rejects_records():
    def constraint(address: Address) -> None:
        if address.get("company_name") == "bad":
            raise StorageError("check constraint violated")

    store = InMemoryAddressStore(constraint=constraint)
    with pytest.raises(StorageError):
        with store.transaction() as tx:
            tx.create_address(_addr("ok"))
            tx.create_address(_addr("bad"))
    assert len(store) == 0


def test_created_ids_are_unique(store):
    with store.transaction() as tx:
        ids = {tx.create_address(_addr(str(i))) for i in range(50)}
    assert len(ids) == 50


def test_settings_roundtrip_and_copy(store):
    assert store.find_required_settings("p", "bill_to") is None
    store.save_required_settings("p", "bill_to", {"req_gstin": 1})
    settings = store.find_required_settings("p", "bill_to")
    assert settings == {"req_gstin": True}
    settings["req_gstin"] = False
    assert store.find_required_settings("p", "bill_to") == {"req_gstin": True}


def test_delete_does_not_cascade(store):
    parent = store.add_address(_addr("Parent"))
    child = store.add_address(Address(project="p", address_type="install_at", ship_to_parent=parent.id))
    store.delete_address(parent.id)
    assert store.get_address(child.id).ship_to_parent == parent.id


def test_delete_unknown_address_raises(store):
    with pytest.raises(StorageError):
        store.delete_address("missing")
