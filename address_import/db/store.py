from __future__ import annotations

from collections.abc import Mapping
from contextlib import AbstractContextManager
from typing import Any, Protocol

from ..models.address import Address

"""Storage collaborator interface.

The pipeline only talks to storage through AddressStore. Backends must wrap
their driver exceptions in StorageError so the core never has to know which
database sits underneath.

Transaction contract:
- store.transaction() returns a context manager yielding an AddressTransaction
- clean exit commits, an exception rolls everything back and is re-raised
- records created inside a rolled back transaction are never visible
"""

__all__ = [
    "AddressStore",
    "AddressTransaction",
    "StorageError",
]


class StorageError(Exception):
    """Raised by storage backends for any read/write/transaction failure."""


class AddressTransaction(Protocol):
    def create_address(self, address: Address) -> str:
        """Persist a new address and return its assigned id."""
        ...


class AddressStore(Protocol):
    def get_address(self, address_id: str) -> Address | None:
        ...

    def find_addresses(self, project_id: str, address_type: str) -> list[Address]:
        ...

    def find_required_settings(self, project_id: str, address_type: str) -> Mapping[str, Any] | None:
        """Return the raw settings record (req_<field> -> bool) or None when absent."""
        ...

    def save_required_settings(
        self, project_id: str, address_type: str, flags: Mapping[str, bool]
    ) -> None:
        ...

    def transaction(self) -> AbstractContextManager[AddressTransaction]:
        ...
