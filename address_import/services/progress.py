from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Chunk progress display with tqdm (TTY only).

A single tqdm bar counts committed rows chunk by chunk. In non-TTY environments
(CI, piped output) the bar is disabled entirely to avoid ANSI control sequence
spam in logs.
"""

__all__ = [
    "ChunkProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ChunkProgressTracker:
    """Progress tracker for chunked commits."""

    def __init__(self, total_rows: int, *, description: str = "Importing rows", enabled: bool = True) -> None:
        """Initialize progress tracker.

        Args:
            total_rows: Number of rows that will be committed
            description: Description for the progress bar
            enabled: Set False to suppress the bar even on a TTY
        """
        self.total_rows = total_rows
        self.description = description
        self.current_chunk = 0
        self.committed_rows = 0
        self.rolled_back_rows = 0

        self.enabled = enabled and is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_chunk(self, index: int, size: int) -> None:
        self.current_chunk = index + 1
        if self.enabled and self.pbar is not None:
            self.pbar.set_description(f"{self.description} (chunk {self.current_chunk}, {size} rows)")

    def finish_chunk(self, size: int, committed: bool = True) -> None:
        """Advance the bar by the rows of a finished chunk (rolled back rows count too)."""
        if committed:
            self.committed_rows += size
        else:
            self.rolled_back_rows += size
        if self.enabled and self.pbar is not None:
            self.pbar.update(size)
            self.pbar.set_description(self.description)

    def set_postfix(self, **kwargs: Any) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ChunkProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
