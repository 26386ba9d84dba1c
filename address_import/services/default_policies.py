from __future__ import annotations

import logging

from ..db.store import AddressStore
from ..models.template_field import AddressType
from .required_policy import SETTING_PREFIX

"""Default required-field policies.

New projects get one settings record per address type. Existing records are
never overwritten, so calling ensure_default_policies repeatedly is safe.
"""

logger = logging.getLogger(__name__)

DEFAULT_REQUIRED_FIELDS: dict[AddressType, frozenset[str]] = {
    AddressType.BILL_FROM: frozenset({
        "company_name", "address_line_1", "city", "state", "pin_code", "country", "gstin",
    }),
    AddressType.SHIP_FROM: frozenset({
        "company_name", "address_line_1", "city", "state", "pin_code", "country",
    }),
    AddressType.BILL_TO: frozenset({
        "company_name", "contact_person", "address_line_1", "city", "state",
        "pin_code", "country", "gstin",
    }),
    AddressType.SHIP_TO: frozenset({
        "contact_person", "address_line_1", "city", "state", "pin_code", "country", "phone",
    }),
    AddressType.INSTALL_AT: frozenset({
        "contact_person", "address_line_1", "city", "state", "pin_code", "country", "phone",
    }),
}


def default_settings(address_type: AddressType) -> dict[str, bool]:
    return {SETTING_PREFIX + key: True for key in sorted(DEFAULT_REQUIRED_FIELDS[address_type])}


def ensure_default_policies(store: AddressStore, project_id: str) -> list[AddressType]:
    """Create missing settings records for a project.

    Returns:
        address types for which a settings record was created
    """
    created: list[AddressType] = []
    for address_type in AddressType:
        if store.find_required_settings(project_id, address_type.value) is not None:
            continue
        store.save_required_settings(project_id, address_type.value, default_settings(address_type))
        created.append(address_type)
        logger.debug("default settings created project=%s type=%s", project_id, address_type.value)
    return created
