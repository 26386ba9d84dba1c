from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from ..excel.renderer import ExcelRenderer
from ..models.import_result import ImportRowError
from ..models.validation import ValidationError

"""Error report artifact.

Shapes validation / commit errors into a three column table (row, field,
message) in insertion order. Encoding into a file is left to the renderer.
"""

__all__ = [
    "ERROR_REPORT_HEADERS",
    "ERROR_REPORT_SHEET",
    "error_report_rows",
    "generate_error_report",
]

ERROR_REPORT_SHEET = "Errors"
ERROR_REPORT_HEADERS = ("Row #", "Field", "Error")
_COLUMN_WIDTHS = (8, 22, 55)


class RowsRenderer(Protocol):
    def render_rows(self, sheet_name, headers, rows, column_widths=None) -> bytes:
        ...


def error_report_rows(errors: Iterable[ValidationError | ImportRowError]) -> list[list[object]]:
    return [[e.row, e.field, e.message] for e in errors]


def generate_error_report(
    errors: Iterable[ValidationError | ImportRowError],
    renderer: RowsRenderer | None = None,
) -> bytes:
    """Render the error list as a downloadable spreadsheet.

    An empty error list still yields a valid, header-only workbook.
    """
    renderer = renderer or ExcelRenderer()
    return renderer.render_rows(
        ERROR_REPORT_SHEET,
        ERROR_REPORT_HEADERS,
        error_report_rows(errors),
        column_widths=_COLUMN_WIDTHS,
    )
