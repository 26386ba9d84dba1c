from __future__ import annotations

import io

from openpyxl import load_workbook

from address_import.excel.renderer import MAX_SHEET_NAME, ExcelRenderer


def test_render_rows_writes_header_and_rows():
    data = ExcelRenderer().render_rows("Errors", ["Row #", "Error"], [[2, "bad"], [3, "worse"]])
    ws = load_workbook(io.BytesIO(data))["Errors"]
    assert [c.value for c in ws[1]] == ["Row #", "Error"]
    assert [c.value for c in ws[3]] == [3, "worse"]


def test_header_style_and_widths():
    data = ExcelRenderer(header_color="00FF00").render_rows("S", ["A", "B"], [], column_widths=(8, 40))
    ws = load_workbook(io.BytesIO(data))["S"]
    assert ws["A1"].font.bold is True
    assert ws["A1"].fill.start_color.rgb.endswith("00FF00")
    assert ws.column_dimensions["B"].width == 40


def test_long_sheet_names_truncated():
    name = "x" * 40
    data = ExcelRenderer().render_rows(name, ["A"], [["v"]])
    assert load_workbook(io.BytesIO(data)).sheetnames == [name[:MAX_SHEET_NAME]]
