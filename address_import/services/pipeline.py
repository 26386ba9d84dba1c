from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import IO

from ..db.store import AddressStore
from ..excel.reader import extract_rows, map_headers_to_fields, parse_tabular
from ..logging.error_log import ErrorLogBuffer
from ..models.import_result import ChunkStatsAccumulator, ImportResult, ImportRowError
from ..models.template_field import AddressType
from ..models.validation import ParsedRow, ValidationError, ValidationResult
from .committer import IMPORT_CHUNK_SIZE, commit_import
from .error_report import generate_error_report
from .field_schema import template_fields
from .validator import summarize, validate_against_project

"""Upload -> preview -> commit facade.

validate_upload never writes; its ValidationResult.parsed_rows is what the
caller hands back to commit once the user has reviewed the preview.
"""

__all__ = [
    "commit",
    "generate_error_artifact",
    "validate_upload",
]

logger = logging.getLogger(__name__)


def validate_upload(
    store: AddressStore,
    source: bytes | IO[bytes],
    file_kind: str,
    project_id: str,
    address_type: AddressType | str,
    file_name: str = "",
) -> ValidationResult:
    """Parse an uploaded file and validate every row (preview phase).

    Raises:
        ParseError: the file cannot be decoded into header + data rows
    """
    address_type = AddressType(address_type)
    headers, data_rows = parse_tabular(source, file_kind)

    fields = template_fields(address_type)
    mapping = map_headers_to_fields(headers, fields)
    if mapping.unrecognized:
        logger.debug("ignoring unrecognized columns: %s", mapping.unrecognized)
    rows = extract_rows(mapping, data_rows)

    errors = validate_against_project(store, project_id, address_type, rows)
    valid_rows, error_rows = summarize(errors, len(rows))
    logger.info(
        "validated file=%s project=%s type=%s rows=%d valid=%d error_rows=%d",
        file_name or "-", project_id, address_type.value, len(rows), valid_rows, error_rows,
    )
    return ValidationResult(
        total_rows=len(rows),
        valid_rows=valid_rows,
        error_rows=error_rows,
        errors=errors,
        parsed_rows=rows,
        file_name=file_name,
        unrecognized_columns=mapping.unrecognized,
    )


def commit(
    store: AddressStore,
    project_id: str,
    address_type: AddressType | str,
    parsed_rows: Sequence[ParsedRow],
    *,
    chunk_size: int = IMPORT_CHUNK_SIZE,
    error_log: ErrorLogBuffer | None = None,
    progress: bool = True,
    stats: ChunkStatsAccumulator | None = None,
) -> ImportResult:
    """Commit previously validated rows; see commit_import."""
    return commit_import(
        store,
        project_id,
        address_type,
        parsed_rows,
        chunk_size=chunk_size,
        error_log=error_log,
        progress=progress,
        stats=stats,
    )


def generate_error_artifact(errors: Iterable[ValidationError | ImportRowError]) -> bytes:
    return generate_error_report(errors)
