from __future__ import annotations

from types import MappingProxyType

from ..models.template_field import AddressType, TemplateField

"""Field schema resolver.

Static, immutable field tables per address type. Every type shares the common
address columns; install_at prepends an always-required "Ship To Reference"
column holding the company name of a ship_to address in the same project.
"""

__all__ = [
    "ADDRESS_FIELD_KEYS",
    "COMMON_FIELDS",
    "INSTALL_AT_FIELDS",
    "SHIP_TO_REFERENCE_KEY",
    "SHIP_TO_REFERENCE_LABEL",
    "field_labels",
    "template_fields",
]

SHIP_TO_REFERENCE_KEY = "ship_to_reference"
SHIP_TO_REFERENCE_LABEL = "Ship To Reference"

COMMON_FIELDS: tuple[TemplateField, ...] = (
    TemplateField("company_name", "Company Name", "Company or organisation name", example_value="Acme Corp"),
    TemplateField("contact_person", "Contact Person", "Primary contact at the address", example_value="Rajesh Kumar"),
    TemplateField("address_line_1", "Address Line 1", "Street address", example_value="123 MG Road", always_required=True),
    TemplateField("address_line_2", "Address Line 2", "Locality / landmark", example_value="Near City Mall"),
    TemplateField("city", "City", "City name", example_value="Mumbai", always_required=True),
    TemplateField("state", "State", "Indian state (select from dropdown)", example_value="Maharashtra", always_required=True),
    TemplateField("pin_code", "PIN Code", "6-digit Indian postal code", "Exactly 6 digits", "400001"),
    TemplateField("country", "Country", "Country (select from dropdown)", example_value="India", always_required=True),
    TemplateField("landmark", "Landmark", "Nearby landmark for reference", example_value="Opposite City Mall"),
    TemplateField("district", "District", "District name", example_value="Mumbai Suburban"),
    TemplateField("phone", "Phone", "10-digit mobile number", "10 digits starting with 6-9", "9876543210"),
    TemplateField("email", "Email", "Email address", "Valid email format", "rajesh@example.com"),
    TemplateField("fax", "Fax", "Fax number", example_value="022-12345678"),
    TemplateField("website", "Website", "Website URL", "Valid URL", "https://example.com"),
    TemplateField("gstin", "GSTIN", "15-character GST Identification Number", "Format: 22AAAAA0000A1Z5", "27AAPFU0939F1ZV"),
    TemplateField("pan", "PAN", "10-character Permanent Account Number", "Format: ABCDE1234F", "ABCDE1234F"),
    TemplateField("cin", "CIN", "21-character Corporate Identity Number", "Format: U12345AB1234ABC123456", "U74999MH2000PTC123456"),
)

INSTALL_AT_FIELDS: tuple[TemplateField, ...] = (
    TemplateField(
        SHIP_TO_REFERENCE_KEY,
        SHIP_TO_REFERENCE_LABEL,
        "Must match an existing Ship To 'Company Name' in this project",
        "Exact match required",
        "Acme Corp",
        always_required=True,
    ),
) + COMMON_FIELDS

# 永続化対象カラム (ship_to_reference は参照解決用の仮想列なので含めない)
ADDRESS_FIELD_KEYS: tuple[str, ...] = tuple(f.key for f in COMMON_FIELDS)

_FIELDS_BY_TYPE = MappingProxyType({
    address_type: (INSTALL_AT_FIELDS if address_type is AddressType.INSTALL_AT else COMMON_FIELDS)
    for address_type in AddressType
})


def template_fields(address_type: AddressType | str) -> tuple[TemplateField, ...]:
    """Return the ordered fields for an address type.

    Raises:
        ValueError: if address_type is not a known AddressType value
    """
    return _FIELDS_BY_TYPE[AddressType(address_type)]


def field_labels(fields: tuple[TemplateField, ...]) -> dict[str, str]:
    """field key -> display label"""
    return {f.key: f.label for f in fields}
