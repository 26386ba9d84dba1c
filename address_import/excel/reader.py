from __future__ import annotations

import io
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

import pandas as pd

from ..models.template_field import TemplateField
from ..models.validation import ParsedRow

"""Tabular parser and column mapper.

- Row 1 is the header row, rows 2.. are data rows (error row numbers follow this)
- csv and xlsx are supported; for xlsx only the first sheet is read
- every cell becomes a trimmed string, blanks become ""
- headers are matched to template field labels case-insensitively, ignoring the
  trailing " *" the downloadable template adds to required columns
"""

__all__ = [
    "ColumnMapping",
    "ParseError",
    "SUPPORTED_FILE_KINDS",
    "extract_rows",
    "file_kind_from_name",
    "map_headers_to_fields",
    "normalize_header",
    "parse_tabular",
]

SUPPORTED_FILE_KINDS = ("csv", "xlsx")
REQUIRED_MARKER = " *"


class ParseError(Exception):
    """Raised when an uploaded file cannot be turned into header + data rows."""


@dataclass
class ColumnMapping:
    keys: list[str]  # 列位置ごとの field key ("" = 未認識列)
    unrecognized: list[str] = field(default_factory=list)


def file_kind_from_name(file_name: str) -> str:
    """Return the file kind for a file name (".CSV" -> "csv")."""
    return Path(file_name).suffix.lower().lstrip(".")


def _cell_to_str(value: Any) -> str:
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        # Excel 数値セル 400001.0 -> "400001"
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def _read_frame(source: bytes | IO[bytes], file_kind: str) -> pd.DataFrame:
    buf = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
    try:
        if file_kind == "csv":
            return pd.read_csv(
                buf,
                header=None,
                dtype=str,
                keep_default_na=False,
                skipinitialspace=True,
                skip_blank_lines=True,
                encoding="utf-8-sig",
            )
        return pd.read_excel(buf, sheet_name=0, header=None, dtype=object, engine="openpyxl")
    except pd.errors.EmptyDataError as e:
        raise ParseError("file must contain a header row and at least one data row") from e
    except Exception as e:
        # pandas / openpyxl / zipfile が壊れたファイルで投げる例外型は多岐にわたる
        raise ParseError(f"failed to parse {file_kind.upper()} file: {e}") from e


def parse_tabular(source: bytes | IO[bytes], file_kind: str) -> tuple[list[str], list[list[str]]]:
    """Decode an uploaded file into (headers, data_rows).

    Raises:
        ParseError: unsupported kind, undecodable content or fewer than 2 rows
    """
    kind = file_kind.lower().lstrip(".")
    if kind not in SUPPORTED_FILE_KINDS:
        raise ParseError("unsupported file format: must be .csv or .xlsx")

    df = _read_frame(source, kind)
    rows = [[_cell_to_str(v) for v in raw] for raw in df.itertuples(index=False, name=None)]
    if kind == "xlsx":
        # xlsx のみ末尾の空行を除去 (途中の空行は行番号を保つため残す)。
        # CSV の ",,," 行はデータ行として扱い、完全な空行は read_csv が読み飛ばす
        while rows and not any(rows[-1]):
            rows.pop()
    if len(rows) < 2:
        raise ParseError("file must contain a header row and at least one data row")
    return rows[0], rows[1:]


def normalize_header(text: str) -> str:
    norm = text.strip().casefold()
    norm = norm.removesuffix(REQUIRED_MARKER)
    return norm.strip()


def map_headers_to_fields(headers: Sequence[str], fields: Sequence[TemplateField]) -> ColumnMapping:
    """Map uploaded headers positionally onto field keys."""
    label_to_key = {normalize_header(f.label): f.key for f in fields}
    keys: list[str] = []
    unrecognized: list[str] = []
    for header in headers:
        key = label_to_key.get(normalize_header(header))
        if key is None:
            keys.append("")
            unrecognized.append(header)
        else:
            keys.append(key)
    return ColumnMapping(keys=keys, unrecognized=unrecognized)


def extract_rows(mapping: ColumnMapping, data_rows: Sequence[Sequence[str]]) -> list[ParsedRow]:
    rows: list[ParsedRow] = []
    for raw in data_rows:
        row: ParsedRow = {}
        for col_idx, key in enumerate(mapping.keys):
            if not key:
                continue
            row[key] = raw[col_idx].strip() if col_idx < len(raw) else ""
        rows.append(row)
    return rows
