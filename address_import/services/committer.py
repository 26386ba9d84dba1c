from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence

from ..db.store import AddressStore, StorageError
from ..logging.error_log import ErrorLogBuffer
from ..models.address import Address
from ..models.error_record import ErrorRecord
from ..models.import_result import (
    ChunkResult,
    ChunkStatsAccumulator,
    ChunkStatus,
    ImportResult,
    ImportRowError,
)
from ..models.template_field import AddressType
from ..models.validation import ParsedRow
from .field_schema import ADDRESS_FIELD_KEYS, SHIP_TO_REFERENCE_KEY, SHIP_TO_REFERENCE_LABEL
from .progress import ChunkProgressTracker
from .reference import build_ship_to_lookup
from .validator import row_number, validate_against_project

"""Chunked transactional committer.

Two-phase protocol:

1. revalidate the parsed rows against the *current* policy and ship_to state;
   any error rejects the whole commit and nothing is written
2. write the rows in fixed-size chunks, each inside its own transaction

A failing chunk is rolled back as a whole (every row of it, not only the
offending one). Chunks before it stay committed and chunks after it are still
attempted. There is no dataset-level transaction and no deduplication: a
retried commit of the same rows creates the rows again.
"""

__all__ = [
    "IMPORT_CHUNK_SIZE",
    "commit_import",
]

logger = logging.getLogger(__name__)

IMPORT_CHUNK_SIZE = 100


class _ChunkAborted(Exception):
    """Raised inside a chunk transaction to force its rollback."""


def _build_address(project_id: str, address_type: AddressType, row: ParsedRow, ship_to_parent: str | None) -> Address:
    # 空値は保存しない
    values = {k: row[k] for k in ADDRESS_FIELD_KEYS if row.get(k)}
    return Address(
        project=project_id,
        address_type=address_type.value,
        values=values,
        ship_to_parent=ship_to_parent,
    )


def _log_error(
    error_log: ErrorLogBuffer | None,
    project_id: str,
    address_type: AddressType,
    error: ImportRowError,
    error_type: str,
) -> None:
    if error_log is None:
        return
    error_log.append(ErrorRecord.create(
        project=project_id,
        address_type=address_type.value,
        row=error.row,
        field=error.field,
        error_type=error_type,
        message=error.message,
    ))


def _commit_chunk(
    store: AddressStore,
    project_id: str,
    address_type: AddressType,
    chunk: Sequence[ParsedRow],
    index: int,
    start_index: int,
    ship_to_lookup: Mapping[str, str],
    error_log: ErrorLogBuffer | None,
) -> ChunkResult:
    """Write one chunk inside one transaction and report its final state."""
    start_row = row_number(start_index)
    row_errors: list[ImportRowError] = []
    started = time.perf_counter()
    try:
        with store.transaction() as tx:
            for offset, row in enumerate(chunk):
                row_num = row_number(start_index + offset)
                ship_to_parent = None
                if address_type is AddressType.INSTALL_AT:
                    ref = row.get(SHIP_TO_REFERENCE_KEY) or ""
                    if ref:
                        ship_to_parent = ship_to_lookup.get(ref)
                        if ship_to_parent is None:
                            # 再検証後に ship_to が削除/改名された場合
                            err = ImportRowError(row_num, SHIP_TO_REFERENCE_LABEL, f'Ship To "{ref}" not found')
                            row_errors.append(err)
                            _log_error(error_log, project_id, address_type, err, "REFERENCE_NOT_FOUND")
                            raise _ChunkAborted(f"ship_to_reference lookup failed at row {row_num}")

                address = _build_address(project_id, address_type, row, ship_to_parent)
                try:
                    tx.create_address(address)
                except StorageError as e:
                    err = ImportRowError(row_num, "", f"Failed to save: {e}")
                    row_errors.append(err)
                    _log_error(error_log, project_id, address_type, err, "SAVE_ERROR")
                    raise _ChunkAborted(f"save failed at row {row_num}: {e}") from e
    except Exception as e:
        # StorageError 以外 (制約フック, ドライバ例外など) もチャンク失敗として扱う
        elapsed = time.perf_counter() - started
        logger.warning("chunk %d (rows %d-%d) rolled back: %s",
                       index + 1, start_row, start_row + len(chunk) - 1, e)
        if not row_errors:
            err = ImportRowError(start_row, "", f"Transaction failed: {e}")
            row_errors.append(err)
            _log_error(error_log, project_id, address_type, err, "TRANSACTION_ERROR")
        return ChunkResult(
            index=index,
            start_row=start_row,
            size=len(chunk),
            status=ChunkStatus.ROLLED_BACK,
            errors=row_errors,
            elapsed_seconds=elapsed,
        )

    elapsed = time.perf_counter() - started
    logger.debug("chunk %d committed rows=%d elapsed=%.3fs", index + 1, len(chunk), elapsed)
    return ChunkResult(
        index=index,
        start_row=start_row,
        size=len(chunk),
        status=ChunkStatus.COMMITTED,
        elapsed_seconds=elapsed,
    )


def commit_import(
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
    """Revalidate and persist parsed rows chunk by chunk.

    Args:
        store: Storage backend
        project_id: Target project
        address_type: Address type of every row
        parsed_rows: Rows as returned by the preview (ValidationResult.parsed_rows)
        chunk_size: Rows per transaction
        error_log: Optional JSON Lines buffer receiving every commit-time error
        progress: Show a tqdm bar when stdout is a TTY
        stats: Optional accumulator receiving per-chunk timings

    Returns:
        ImportResult aggregating the outcome of every chunk. Any exception raised
        inside a chunk transaction rolls that chunk back and is reported in the
        result; StorageError only escapes for failures outside chunk transactions.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    address_type = AddressType(address_type)
    total = len(parsed_rows)

    # 1. commit 時点の設定・参照で再検証
    revalidation_errors = validate_against_project(store, project_id, address_type, parsed_rows)
    if revalidation_errors:
        errors = [ImportRowError(e.row, e.field, e.message) for e in revalidation_errors]
        for err in errors:
            _log_error(error_log, project_id, address_type, err, "REVALIDATION_ERROR")
        failed_rows = len({e.row for e in errors})
        logger.info(
            "commit rejected by revalidation project=%s type=%s error_rows=%d errors=%d",
            project_id, address_type.value, failed_rows, len(errors),
        )
        return ImportResult(
            total_rows=total,
            imported=0,
            failed=failed_rows,
            errors=errors,
            rolled_back=True,
        )

    # 2. install_at: 参照表は一度だけ構築し全チャンクで共有
    ship_to_lookup: dict[str, str] = {}
    if address_type is AddressType.INSTALL_AT:
        ship_to_lookup = build_ship_to_lookup(store, project_id)

    chunks: list[ChunkResult] = []
    imported = 0
    failed = 0
    errors: list[ImportRowError] = []

    with ChunkProgressTracker(total, enabled=progress) as tracker:
        for index, start in enumerate(range(0, total, chunk_size)):
            chunk = parsed_rows[start:start + chunk_size]
            tracker.start_chunk(index, len(chunk))
            result = _commit_chunk(
                store, project_id, address_type, chunk, index, start, ship_to_lookup, error_log
            )
            chunks.append(result)
            if stats is not None:
                stats.add_chunk_time(result.elapsed_seconds)

            if result.committed:
                imported += result.size
            else:
                failed += result.size  # チャンク全体を失敗として数える
                errors.extend(result.errors)
            tracker.finish_chunk(result.size, committed=result.committed)
            tracker.set_postfix(imported=tracker.committed_rows, failed=tracker.rolled_back_rows)

    logger.info(
        "commit finished project=%s type=%s rows=%d imported=%d failed=%d chunks=%d",
        project_id, address_type.value, total, imported, failed, len(chunks),
    )
    return ImportResult(
        total_rows=total,
        imported=imported,
        failed=failed,
        errors=errors,
        rolled_back=failed > 0,
        chunks=chunks,
    )
