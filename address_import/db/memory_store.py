from __future__ import annotations

import uuid
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import replace
from typing import Any

from ..models.address import Address
from .store import StorageError

"""In-memory AddressStore.

Used by the test-suite and by the CLI when DISABLE_DB_CONNECT=1 (dry-run mode).
Writes made inside a transaction are staged and only become visible on commit,
so chunk rollback semantics behave the same as with PostgreSQL.

An optional ``constraint`` callable plays the role of database constraints: it is
called for every created record and may raise StorageError to reject it.
"""

__all__ = [
    "InMemoryAddressStore",
]


class _MemoryTransaction:
    def __init__(self, store: InMemoryAddressStore) -> None:
        self._store = store
        self.staged: list[Address] = []

    def create_address(self, address: Address) -> str:
        if self._store.constraint is not None:
            self._store.constraint(address)
        new_id = uuid.uuid4().hex[:15]
        self.staged.append(replace(address, id=new_id, values=dict(address.values)))
        return new_id


class InMemoryAddressStore:
    def __init__(self, constraint: Callable[[Address], None] | None = None) -> None:
        self.constraint = constraint
        self._addresses: dict[str, Address] = {}
        self._settings: dict[tuple[str, str], dict[str, bool]] = {}
        self.committed_transactions = 0
        self.rolled_back_transactions = 0

    # -- reads -------------------------------------------------------------
    def get_address(self, address_id: str) -> Address | None:
        return self._addresses.get(address_id)

    def find_addresses(self, project_id: str, address_type: str) -> list[Address]:
        return [
            a for a in self._addresses.values()
            if a.project == project_id and a.address_type == address_type
        ]

    def find_required_settings(self, project_id: str, address_type: str) -> Mapping[str, Any] | None:
        settings = self._settings.get((project_id, address_type))
        return dict(settings) if settings is not None else None

    # -- writes ------------------------------------------------------------
    def save_required_settings(
        self, project_id: str, address_type: str, flags: Mapping[str, bool]
    ) -> None:
        self._settings[(project_id, address_type)] = {k: bool(v) for k, v in flags.items()}

    def add_address(self, address: Address) -> Address:
        """Store an address outside of any transaction (fixtures / seeding)."""
        stored = replace(address, id=address.id or uuid.uuid4().hex[:15])
        self._addresses[stored.id] = stored
        return stored

    def delete_address(self, address_id: str) -> None:
        # 参照 (ship_to_parent) はカスケードしない
        if self._addresses.pop(address_id, None) is None:
            raise StorageError(f"address not found: {address_id}")

    @contextmanager
    def transaction(self) -> Iterator[_MemoryTransaction]:
        tx = _MemoryTransaction(self)
        try:
            yield tx
        except BaseException:
            self.rolled_back_transactions += 1
            raise
        for address in tx.staged:
            self._addresses[address.id] = address
        self.committed_transactions += 1

    def __len__(self) -> int:
        return len(self._addresses)
