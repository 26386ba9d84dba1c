from __future__ import annotations

from ..models.import_result import ChunkStatsAccumulator, ImportResult
from ..models.validation import ValidationResult

"""SUMMARY line rendering.

Formats (one line per CLI run, ``SUMMARY`` prefix added by log_summary):

    SUMMARY mode=validate rows={total} valid={valid} error_rows={error_rows} errors={errors}
    SUMMARY mode=import rows={total} imported={imported} failed={failed} chunks={committed}/{chunks}
        rolled_back={true|false} elapsed_sec={elapsed} throughput_rps={throughput}
        [avg_chunk_sec={avg} p95_chunk_sec={p95}]
"""

__all__ = [
    "format_number",
    "render_import_summary",
    "render_validation_summary",
]


def format_number(value: float) -> str:
    """Render numbers without trailing zeros or scientific notation.

    >>> format_number(2.0)
    '2'
    >>> format_number(0.0001234)
    '0.000123'
    """
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip('0').rstrip('.')
    return str(round(value, 3))


def render_validation_summary(result: ValidationResult) -> str:
    return (
        f"SUMMARY mode=validate "
        f"rows={result.total_rows} "
        f"valid={result.valid_rows} "
        f"error_rows={result.error_rows} "
        f"errors={len(result.errors)}"
    )


def render_import_summary(
    result: ImportResult,
    elapsed_seconds: float,
    stats: ChunkStatsAccumulator | None = None,
) -> str:
    """Render the SUMMARY line of an import run.

    Args:
        result: Outcome of commit_import
        elapsed_seconds: Wall time of the commit call
        stats: Optional chunk timings; adds avg/p95 chunk seconds when non-empty
    """
    committed_chunks = sum(1 for c in result.chunks if c.committed)
    throughput = result.imported / elapsed_seconds if elapsed_seconds > 0 else 0.0

    line = (
        f"SUMMARY mode=import "
        f"rows={result.total_rows} "
        f"imported={result.imported} "
        f"failed={result.failed} "
        f"chunks={committed_chunks}/{len(result.chunks)} "
        f"rolled_back={'true' if result.rolled_back else 'false'} "
        f"elapsed_sec={format_number(elapsed_seconds)} "
        f"throughput_rps={format_number(throughput)}"
    )
    if stats is not None:
        total_chunks, avg_chunk, p95_chunk = stats.get_stats()
        if total_chunks:
            line += f" avg_chunk_sec={format_number(avg_chunk)} p95_chunk_sec={format_number(p95_chunk)}"
    return line
