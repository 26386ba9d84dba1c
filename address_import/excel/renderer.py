from __future__ import annotations

import io
from collections.abc import Sequence
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

"""Spreadsheet renderer.

Turns a header + rows table into .xlsx bytes (pandas ExcelWriter / openpyxl).
Used for the downloadable error report; styling is limited to a coloured bold
header row and column widths.
"""

__all__ = [
    "ExcelRenderer",
    "MAX_SHEET_NAME",
]

MAX_SHEET_NAME = 31  # Excel のシート名上限


class ExcelRenderer:
    def __init__(self, header_color: str = "DC2626") -> None:
        self.header_color = header_color

    def render_rows(
        self,
        sheet_name: str,
        headers: Sequence[str],
        rows: Sequence[Sequence[Any]],
        column_widths: Sequence[float] | None = None,
    ) -> bytes:
        """Render one sheet and return the workbook bytes.

        An empty ``rows`` still produces a valid workbook holding only the header.
        """
        sheet_name = sheet_name[:MAX_SHEET_NAME]
        df = pd.DataFrame(list(rows), columns=list(headers))
        buf = io.BytesIO()
        with pd.ExcelWriter(buf, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=sheet_name, index=False)
            ws = writer.sheets[sheet_name]
            fill = PatternFill(fill_type="solid", start_color=self.header_color, end_color=self.header_color)
            for cell in ws[1]:
                cell.font = Font(bold=True, color="FFFFFF", size=11)
                cell.fill = fill
                cell.alignment = Alignment(horizontal="center")
            for idx, width in enumerate(column_widths or (), start=1):
                ws.column_dimensions[get_column_letter(idx)].width = width
        return buf.getvalue()
