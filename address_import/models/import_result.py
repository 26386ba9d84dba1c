from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from enum import Enum

"""Commit-phase result models.

Each chunk of rows moves through ChunkStatus (PENDING -> COMMITTED | ROLLED_BACK)
and the per-chunk outcomes are folded into a single ImportResult. Chunk failures
are values here, never exceptions, so the caller always sees how much of the
dataset made it into storage.
"""

__all__ = [
    "ChunkResult",
    "ChunkStatsAccumulator",
    "ChunkStatus",
    "ImportResult",
    "ImportRowError",
]


class ChunkStatus(Enum):
    """Lifecycle of one chunk transaction.

    State transitions: pending -> (committed | rolled_back)
    """
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class ImportRowError:
    """Commit-time analog of ValidationError (same row numbering)."""
    row: int
    field: str
    message: str


@dataclass(frozen=True)
class ChunkResult:
    index: int  # 0-based chunk number
    start_row: int  # spreadsheet row number of the first row in the chunk
    size: int
    status: ChunkStatus = ChunkStatus.PENDING
    errors: list[ImportRowError] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def committed(self) -> bool:
        return self.status is ChunkStatus.COMMITTED


@dataclass(frozen=True)
class ImportResult:
    """Aggregated outcome of a commit call.

    rolled_back is True when revalidation blocked the whole import or when at
    least one chunk transaction was rolled back.
    """
    total_rows: int
    imported: int
    failed: int
    errors: list[ImportRowError] = field(default_factory=list)
    rolled_back: bool = False
    chunks: list[ChunkResult] = field(default_factory=list)


class ChunkStatsAccumulator:
    """Collects chunk timings and derives summary statistics."""

    def __init__(self) -> None:
        self.chunk_times: list[float] = []

    def add_chunk_time(self, elapsed_seconds: float) -> None:
        self.chunk_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Calculate chunk statistics.

        Returns:
            tuple: (total_chunks, avg_chunk_seconds, p95_chunk_seconds)
        """
        if not self.chunk_times:
            return (0, 0.0, 0.0)

        total_chunks = len(self.chunk_times)
        avg_chunk_seconds = statistics.mean(self.chunk_times)

        if total_chunks == 1:
            p95_chunk_seconds = self.chunk_times[0]
        else:
            p95_chunk_seconds = statistics.quantiles(
                self.chunk_times, n=20, method='inclusive'
            )[18]  # 95th percentile (19th out of 20 quantiles, 0-indexed)

        return (total_chunks, avg_chunk_seconds, p95_chunk_seconds)
