from __future__ import annotations

import re

from address_import.models.import_result import (
    ChunkResult,
    ChunkStatsAccumulator,
    ChunkStatus,
    ImportResult,
)
from address_import.models.validation import ValidationError, ValidationResult
from address_import.services.summary import (
    format_number,
    render_import_summary,
    render_validation_summary,
)

"""Unit tests for the SUMMARY line rendering service."""

IMPORT_PATTERN = re.compile(
    r"^SUMMARY mode=import rows=([0-9]+) imported=([0-9]+) failed=([0-9]+) "
    r"chunks=([0-9]+)/([0-9]+) rolled_back=(true|false) "
    r"elapsed_sec=([0-9]+\.?[0-9]*) throughput_rps=([0-9]+\.?[0-9]*)"
    r"( avg_chunk_sec=[0-9]+\.?[0-9]* p95_chunk_sec=[0-9]+\.?[0-9]*)?$"
)


def _result(statuses: list[ChunkStatus], imported: int, failed: int) -> ImportResult:
    chunks = [ChunkResult(i, 2 + i * 100, 100, status=s) for i, s in enumerate(statuses)]
    return ImportResult(
        total_rows=imported + failed,
        imported=imported,
        failed=failed,
        rolled_back=failed > 0,
        chunks=chunks,
    )


def test_format_number():
    assert format_number(0) == "0"
    assert format_number(2.0) == "2"
    assert format_number(2.5) == "2.5"
    assert format_number(0.0001234) == "0.000123"
    assert "e" not in format_number(0.00000123)


def test_render_import_summary_all_success():
    line = render_import_summary(_result([ChunkStatus.COMMITTED] * 2, 200, 0), 2.0)
    match = IMPORT_PATTERN.match(line)
    assert match, line
    assert match.group(2) == "200"
    assert match.group(4) == "2" and match.group(5) == "2"
    assert match.group(6) == "false"
    assert match.group(7) == "2"
    assert match.group(8) == "100"


def test_render_import_summary_partial_failure():
    statuses = [ChunkStatus.COMMITTED, ChunkStatus.ROLLED_BACK, ChunkStatus.COMMITTED]
    line = render_import_summary(_result(statuses, 200, 100), 4.0)
    match = IMPORT_PATTERN.match(line)
    assert match, line
    assert (match.group(3), match.group(4), match.group(5), match.group(6)) == ("100", "2", "3", "true")


def test_render_import_summary_zero_elapsed():
    line = render_import_summary(_result([], 0, 0), 0.0)
    assert line.endswith("elapsed_sec=0 throughput_rps=0")


def test_render_import_summary_with_chunk_stats():
    stats = ChunkStatsAccumulator()
    stats.add_chunk_time(0.5)
    stats.add_chunk_time(1.5)
    line = render_import_summary(_result([ChunkStatus.COMMITTED] * 2, 200, 0), 2.0, stats)
    assert IMPORT_PATTERN.match(line), line
    assert "avg_chunk_sec=1 " in line


def test_empty_stats_omit_chunk_timings():
    line = render_import_summary(_result([], 0, 0), 1.0, ChunkStatsAccumulator())
    assert "avg_chunk_sec" not in line


def test_render_validation_summary():
    result = ValidationResult(
        total_rows=10,
        valid_rows=8,
        error_rows=2,
        errors=[ValidationError(2, "City", "m"), ValidationError(2, "State", "m"), ValidationError(4, "City", "m")],
    )
    assert render_validation_summary(result) == "SUMMARY mode=validate rows=10 valid=8 error_rows=2 errors=3"
