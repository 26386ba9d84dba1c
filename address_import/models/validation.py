from __future__ import annotations

from dataclasses import dataclass, field

"""Preview-phase result models.

ValidationError is one row/field violation. ValidationResult aggregates all
violations of an upload together with the parsed rows, which the caller keeps
and later hands to the committer.
"""

__all__ = [
    "ParsedRow",
    "ValidationError",
    "ValidationResult",
]

# field key -> trimmed cell value
ParsedRow = dict[str, str]


@dataclass(frozen=True)
class ValidationError:
    """A single field-level violation on one row.

    row is the spreadsheet row number: data index + 2 (1-based, header row first).
    field is the display label of the offending column, not its key.
    """
    row: int
    field: str
    message: str


@dataclass(frozen=True)
class ValidationResult:
    total_rows: int
    valid_rows: int
    error_rows: int  # エラーを含む行数 (エラー件数ではない)
    errors: list[ValidationError] = field(default_factory=list)
    parsed_rows: list[ParsedRow] = field(default_factory=list)
    file_name: str = ""
    unrecognized_columns: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
