from __future__ import annotations

import logging

from ..db.store import AddressStore, StorageError
from ..models.template_field import AddressType

"""Ship-to reference resolver.

install_at rows point at a ship_to address by company name. The lookup is
rebuilt on every call from the addresses currently stored for the project;
caching it across calls would hide ship_to changes made after preview.
"""

__all__ = [
    "build_ship_to_lookup",
]

logger = logging.getLogger(__name__)


def build_ship_to_lookup(store: AddressStore, project_id: str) -> dict[str, str]:
    """Return company_name -> address id for the project's ship_to addresses.

    If the storage query fails the lookup is empty, so references simply fail to
    resolve instead of aborting the pipeline.
    """
    try:
        addresses = store.find_addresses(project_id, AddressType.SHIP_TO.value)
    except StorageError as e:
        logger.warning("ship_to lookup failed project=%s: %s", project_id, e)
        return {}

    lookup: dict[str, str] = {}
    for address in addresses:
        name = address.get("company_name")
        if name and address.id:
            lookup[name] = address.id
    return lookup
