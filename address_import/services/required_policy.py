from __future__ import annotations

import logging
from collections.abc import Mapping

from ..db.store import AddressStore, StorageError
from ..models.template_field import AddressType, TemplateField
from .field_schema import ADDRESS_FIELD_KEYS, COMMON_FIELDS

"""Required-field policy loader.

A project stores one settings record per address type holding a boolean
``req_<field_key>`` flag for every configurable column. The effective requirement
of a field is ``always_required OR policy flag``; it is recomputed on every call
because the policy may change between preview and commit.
"""

__all__ = [
    "SETTING_PREFIX",
    "effective_required",
    "load_required_policy",
    "required_field_keys",
    "validate_address",
]

logger = logging.getLogger(__name__)

SETTING_PREFIX = "req_"


def load_required_policy(
    store: AddressStore, project_id: str, address_type: AddressType | str
) -> dict[str, bool]:
    """Return field key -> required flag for (project, address type).

    A missing settings record means nothing beyond the always-required fields
    is required, so an empty mapping is returned. Storage failures are logged
    and treated the same way.
    """
    address_type = AddressType(address_type)
    try:
        settings = store.find_required_settings(project_id, address_type.value)
    except StorageError as e:
        logger.warning(
            "required-field settings unavailable project=%s type=%s: %s",
            project_id, address_type.value, e,
        )
        return {}
    if not settings:
        return {}
    return {
        key: bool(settings.get(SETTING_PREFIX + key))
        for key in ADDRESS_FIELD_KEYS
        if settings.get(SETTING_PREFIX + key)
    }


def effective_required(always_required: bool, policy_flag: bool) -> bool:
    return always_required or policy_flag


def required_field_keys(fields: tuple[TemplateField, ...], policy: Mapping[str, bool]) -> set[str]:
    return {
        f.key for f in fields
        if effective_required(f.always_required, policy.get(f.key, False))
    }


def validate_address(
    store: AddressStore,
    project_id: str,
    address_type: AddressType | str,
    values: Mapping[str, str],
) -> dict[str, str]:
    """Check one address (e.g. a form submission) against the project policy.

    Only the project-configured flags are checked, mirroring the settings screen.

    Returns:
        field key -> "<Label> is required" for every missing required value
    """
    policy = load_required_policy(store, project_id, address_type)
    errors: dict[str, str] = {}
    for f in COMMON_FIELDS:
        if policy.get(f.key) and not (values.get(f.key) or "").strip():
            errors[f.key] = f"{f.label} is required"
    return errors
