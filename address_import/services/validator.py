from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence

from ..db.store import AddressStore
from ..models.template_field import AddressType, TemplateField
from ..models.validation import ParsedRow, ValidationError
from .field_schema import SHIP_TO_REFERENCE_KEY, SHIP_TO_REFERENCE_LABEL, field_labels, template_fields
from .formats import FORMAT_RULES
from .reference import build_ship_to_lookup
from .required_policy import load_required_policy, required_field_keys

"""Row validator.

Three independent checks per row:

1. required   - every effectively required field must be non-empty
2. format     - non-empty values of pattern-constrained fields must match
3. reference  - (install_at only) a non-empty Ship To Reference must name an
                existing ship_to company in the project

Errors are emitted in row order, and within a row in field order
(required, format, reference). Row numbers are data index + 2.
"""

__all__ = [
    "HEADER_ROW_OFFSET",
    "row_number",
    "summarize",
    "validate_against_project",
    "validate_row",
    "validate_rows",
]

# 1 ヘッダ行 + 1-based
HEADER_ROW_OFFSET = 2


def row_number(index: int) -> int:
    return index + HEADER_ROW_OFFSET


def _required_errors(
    row_num: int, row: ParsedRow, fields: Sequence[TemplateField], required_keys: Collection[str]
) -> list[ValidationError]:
    errors = []
    for f in fields:
        if f.key in required_keys and not row.get(f.key):
            errors.append(ValidationError(row=row_num, field=f.label, message=f"{f.label} is required"))
    return errors


def _format_errors(row_num: int, row: ParsedRow) -> list[ValidationError]:
    errors = []
    for rule in FORMAT_RULES:
        value = row.get(rule.key) or ""
        # 空値は形式チェック対象外 (必須チェックの責務)
        if value and not rule.check(value):
            errors.append(ValidationError(row=row_num, field=rule.label, message=rule.row_message))
    return errors


def validate_row(
    index: int,
    row: ParsedRow,
    fields: Sequence[TemplateField],
    required_keys: Collection[str],
    address_type: AddressType | str,
    ship_to_names: Collection[str] = (),
) -> list[ValidationError]:
    row_num = row_number(index)
    errors = _required_errors(row_num, row, fields, required_keys)
    errors.extend(_format_errors(row_num, row))

    if AddressType(address_type) is AddressType.INSTALL_AT:
        ref = row.get(SHIP_TO_REFERENCE_KEY) or ""
        if ref and ref not in ship_to_names:
            errors.append(ValidationError(
                row=row_num,
                field=SHIP_TO_REFERENCE_LABEL,
                message=f'No Ship To address with company name "{ref}" found in this project',
            ))
    return errors


def validate_rows(
    rows: Sequence[ParsedRow],
    fields: Sequence[TemplateField],
    required_keys: Collection[str],
    address_type: AddressType | str,
    ship_to_names: Collection[str] = (),
) -> list[ValidationError]:
    """Validate all rows and return every violation found."""
    labels = field_labels(tuple(fields))
    # 未知キーはラベル解決できないため必須集合から除外しない (key をそのまま表示)
    unknown = [k for k in required_keys if k not in labels]
    extra_fields = [TemplateField(key=k, label=k) for k in sorted(unknown)]
    all_fields = [*fields, *extra_fields]

    errors: list[ValidationError] = []
    for index, row in enumerate(rows):
        errors.extend(validate_row(index, row, all_fields, required_keys, address_type, ship_to_names))
    return errors


def summarize(errors: Iterable[ValidationError], total_rows: int) -> tuple[int, int]:
    """Return (valid_rows, error_rows); error_rows counts distinct rows."""
    error_rows = len({e.row for e in errors})
    return total_rows - error_rows, error_rows


def validate_against_project(
    store: AddressStore,
    project_id: str,
    address_type: AddressType | str,
    rows: Sequence[ParsedRow],
) -> list[ValidationError]:
    """Validate rows against the project's *current* policy and ship_to addresses.

    Shared by the preview and by commit-time revalidation; both read fresh state.
    """
    address_type = AddressType(address_type)
    fields = template_fields(address_type)
    required_keys = required_field_keys(fields, load_required_policy(store, project_id, address_type))
    ship_to_names: Collection[str] = ()
    if address_type is AddressType.INSTALL_AT:
        ship_to_names = build_ship_to_lookup(store, project_id).keys()
    return validate_rows(rows, fields, required_keys, address_type, ship_to_names)
