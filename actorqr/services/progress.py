from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.processing_result import RowStatus

"""Row progress display with tqdm (TTY only).

A single tqdm instance per batch; disabled when stdout is not a TTY so CI logs
are not flooded with ANSI control sequences. The postfix shows running
ok/skipped/error counts.
"""

__all__ = [
    "RowProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class RowProgressTracker:
    """Progress tracker over the data rows of one workbook."""

    def __init__(self, total_rows: int, *, description: str = "Processing rows") -> None:
        self.total_rows = total_rows
        self.description = description
        self.counts = {status: 0 for status in RowStatus}

        self.enabled = is_tty_enabled()
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

    def finish_row(self, row_number: int, status: RowStatus) -> None:
        """Record a row's terminal status and advance the bar."""
        self.counts[status] += 1
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_postfix(
                row=row_number,
                ok=self.counts[RowStatus.OK],
                skipped=self.counts[RowStatus.SKIPPED],
                errors=self.counts[RowStatus.ERROR],
            )

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> RowProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
