from __future__ import annotations

from dataclasses import dataclass, field

"""Address entity as persisted by the storage collaborator."""

__all__ = [
    "Address",
]


@dataclass(frozen=True)
class Address:
    """A stored (or about to be stored) address.

    id is None until the storage backend assigns one on create.
    ship_to_parent is only meaningful for install_at addresses and holds the id of
    a ship_to address in the same project. Deleting that parent does not cascade.
    """
    project: str
    address_type: str
    values: dict[str, str] = field(default_factory=dict)  # common field key -> value
    ship_to_parent: str | None = None
    id: str | None = None

    def get(self, key: str) -> str:
        return self.values.get(key, "")
