from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass

"""Pattern-based format rules for address fields.

Every validator treats an empty (or whitespace only) value as valid: presence is
enforced by the required-field check, never by a format rule. Tax identifiers
(GSTIN, PAN, CIN) are upper-cased before matching.
"""

__all__ = [
    "FORMAT_RULES",
    "FormatRule",
    "validate_address_format",
    "validate_cin",
    "validate_email",
    "validate_gstin",
    "validate_pan",
    "validate_phone",
    "validate_pin_code",
]

GSTIN_PATTERN = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")
PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
PIN_PATTERN = re.compile(r"^[1-9][0-9]{5}$")
PHONE_PATTERN = re.compile(r"^[6-9][0-9]{9}$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")
CIN_PATTERN = re.compile(r"^[A-Z][0-9]{5}[A-Z]{2}[0-9]{4}[A-Z]{3}[0-9]{6}$")


def validate_gstin(value: str) -> bool:
    value = value.strip().upper()
    if not value:
        return True
    return len(value) == 15 and GSTIN_PATTERN.match(value) is not None


def validate_pan(value: str) -> bool:
    value = value.strip().upper()
    if not value:
        return True
    return len(value) == 10 and PAN_PATTERN.match(value) is not None


def validate_pin_code(value: str) -> bool:
    """Indian PIN code: 6 digits, first digit non-zero."""
    value = value.strip()
    if not value:
        return True
    return len(value) == 6 and PIN_PATTERN.match(value) is not None


def validate_phone(value: str) -> bool:
    """Indian mobile number: 10 digits starting with 6-9."""
    value = value.strip()
    if not value:
        return True
    return len(value) == 10 and PHONE_PATTERN.match(value) is not None


def validate_email(value: str) -> bool:
    value = value.strip()
    if not value:
        return True
    return EMAIL_PATTERN.match(value) is not None


def validate_cin(value: str) -> bool:
    value = value.strip().upper()
    if not value:
        return True
    return len(value) == 21 and CIN_PATTERN.match(value) is not None


@dataclass(frozen=True)
class FormatRule:
    key: str
    label: str
    check: Callable[[str], bool]
    row_message: str  # message used for uploaded rows
    form_message: str  # message used for single-record validation


# 順序 = 行エラーの出力順
FORMAT_RULES: tuple[FormatRule, ...] = (
    FormatRule("pin_code", "PIN Code", validate_pin_code,
               "PIN Code must be exactly 6 digits",
               "Invalid PIN Code (expected: 6 digits, e.g., 400001)"),
    FormatRule("phone", "Phone", validate_phone,
               "Phone must be 10 digits starting with 6-9",
               "Invalid phone number (expected: 10 digits starting with 6-9)"),
    FormatRule("email", "Email", validate_email,
               "Invalid email format",
               "Invalid email format"),
    FormatRule("gstin", "GSTIN", validate_gstin,
               "GSTIN must be 15 characters in format 22AAAAA0000A1Z5",
               "Invalid GSTIN format (expected: 15-character, e.g., 27AAPFU0939F1ZV)"),
    FormatRule("pan", "PAN", validate_pan,
               "PAN must be 10 characters in format ABCDE1234F",
               "Invalid PAN format (expected: 10-character, e.g., ABCDE1234F)"),
    FormatRule("cin", "CIN", validate_cin,
               "CIN must be 21 characters in format U12345AB1234ABC123456",
               "Invalid CIN format (expected: 21-character)"),
)


def validate_address_format(values: Mapping[str, str]) -> dict[str, str]:
    """Check the format-constrained fields of a single address record.

    Returns:
        field key -> error message for every violation (empty dict when valid)
    """
    errors: dict[str, str] = {}
    for rule in FORMAT_RULES:
        value = values.get(rule.key) or ""
        if value and not rule.check(value):
            errors[rule.key] = rule.form_message
    return errors
