from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines import error log.

Each record describes one commit-time failure. row=-1 is used for import-level
errors where no specific spreadsheet row applies (e.g. a transaction that could
not even begin). The key set is fixed; to_json_line never emits extra keys.
"""

__all__ = [
    "ErrorRecord",
    "ERROR_TYPES",
]

ERROR_TYPES = frozenset({
    "REVALIDATION_ERROR",
    "REFERENCE_NOT_FOUND",
    "SAVE_ERROR",
    "TRANSACTION_ERROR",
})


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        project: Project id the import targeted
        address_type: Address type value (e.g. "install_at")
        row: Spreadsheet row number. -1 when unknown
        field: Field label, empty when the error is not tied to a column
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable description
    """
    timestamp: str  # ISO8601 UTC
    project: str
    address_type: str
    row: int  # 行番号。不明な場合 -1 許容
    field: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(
        project: str,
        address_type: str,
        row: int,
        field: str,
        error_type: str,
        message: str,
    ) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            project=project,
            address_type=address_type,
            row=row,
            field=field,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # 追加キー阻止: dataclass -> dict して json.dumps
        return json.dumps(asdict(self), ensure_ascii=False)
