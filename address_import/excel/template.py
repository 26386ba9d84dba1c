from __future__ import annotations

import io

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.datavalidation import DataValidation

from ..db.store import AddressStore
from ..models.template_field import AddressType, TemplateField
from ..services.field_schema import template_fields
from ..services.required_policy import load_required_policy, required_field_keys
from .reader import REQUIRED_MARKER

"""Downloadable address import template (.xlsx).

Sheet "Addresses" carries one header per template field; effectively required
columns get the " *" marker the column mapper strips again on upload. A hidden
"Instructions" sheet documents every column.
"""

__all__ = [
    "COUNTRIES",
    "INDIAN_STATES",
    "generate_address_template",
]

INDIAN_STATES = (
    "Andhra Pradesh", "Arunachal Pradesh", "Assam", "Bihar", "Chhattisgarh", "Goa",
    "Gujarat", "Haryana", "Himachal Pradesh", "Jharkhand", "Karnataka", "Kerala",
    "Madhya Pradesh", "Maharashtra", "Manipur", "Meghalaya", "Mizoram", "Nagaland",
    "Odisha", "Punjab", "Rajasthan", "Sikkim", "Tamil Nadu", "Telangana", "Tripura",
    "Uttar Pradesh", "Uttarakhand", "West Bengal",
    "Andaman and Nicobar Islands", "Chandigarh", "Dadra and Nagar Haveli and Daman and Diu",
    "Delhi", "Jammu and Kashmir", "Ladakh", "Lakshadweep", "Puducherry",
)

COUNTRIES = ("India", "Bangladesh", "Bhutan", "Nepal", "Sri Lanka", "United Arab Emirates")

SHEET_NAME = "Addresses"
INSTRUCTIONS_SHEET = "Instructions"
_LIST_SHEET = "Lists"

_REQUIRED_FILL = PatternFill(fill_type="solid", start_color="1D4ED8", end_color="1D4ED8")
_OPTIONAL_FILL = PatternFill(fill_type="solid", start_color="6B7280", end_color="6B7280")
_INSTRUCTION_FILL = PatternFill(fill_type="solid", start_color="E5E7EB", end_color="E5E7EB")


def _add_drop_list(wb: Workbook, ws, column: str, list_column: str, values: tuple[str, ...]) -> None:
    # リストが 255 文字を超えるため隠しシート参照で入力規則を作る
    lists = wb[_LIST_SHEET]
    for idx, value in enumerate(values, start=1):
        lists[f"{list_column}{idx}"] = value
    dv = DataValidation(
        type="list",
        formula1=f"={_LIST_SHEET}!${list_column}$1:${list_column}${len(values)}",
        allow_blank=True,
    )
    dv.add(f"{column}2:{column}1048576")
    ws.add_data_validation(dv)


def _add_instructions(
    wb: Workbook, fields: tuple[TemplateField, ...], required: set[str], address_type: AddressType
) -> None:
    ws = wb.create_sheet(INSTRUCTIONS_SHEET)
    ws["A1"] = f"{address_type.label} Address Import - Instructions"
    ws["A1"].font = Font(bold=True, size=14)

    for idx, header in enumerate(("Field Name", "Required?", "Format Rule", "Description", "Example"), start=1):
        cell = ws.cell(row=3, column=idx, value=header)
        cell.font = Font(bold=True, size=11)
        cell.fill = _INSTRUCTION_FILL

    for row_idx, f in enumerate(fields, start=4):
        ws.cell(row=row_idx, column=1, value=f.label)
        ws.cell(row=row_idx, column=2, value="Required" if f.key in required else "Optional")
        ws.cell(row=row_idx, column=3, value=f.format_rule)
        ws.cell(row=row_idx, column=4, value=f.description)
        ws.cell(row=row_idx, column=5, value=f.example_value)

    for idx, width in enumerate((20, 12, 30, 45, 25), start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width
    ws.sheet_state = "hidden"


def generate_address_template(
    store: AddressStore, project_id: str, address_type: AddressType | str
) -> bytes:
    """Build the import template for a project and address type."""
    address_type = AddressType(address_type)
    fields = template_fields(address_type)
    policy = load_required_policy(store, project_id, address_type)
    required = required_field_keys(fields, policy)

    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME
    lists = wb.create_sheet(_LIST_SHEET)
    lists.sheet_state = "hidden"

    for col_idx, f in enumerate(fields, start=1):
        letter = get_column_letter(col_idx)
        is_required = f.key in required
        cell = ws.cell(row=1, column=col_idx, value=f.label + (REQUIRED_MARKER if is_required else ""))
        cell.font = Font(bold=True, color="FFFFFF", size=11)
        cell.fill = _REQUIRED_FILL if is_required else _OPTIONAL_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        ws.column_dimensions[letter].width = max(15, len(f.label) * 1.3)

        if f.key == "state":
            _add_drop_list(wb, ws, letter, "A", INDIAN_STATES)
        elif f.key == "country":
            _add_drop_list(wb, ws, letter, "B", COUNTRIES)

    ws.freeze_panes = "A2"
    _add_instructions(wb, fields, required, address_type)

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
