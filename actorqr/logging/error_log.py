from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Per-process JSON Lines error log for workbook batches.

Rows that fail are collected while a batch runs and written in one append when
the batch ends (or is rejected). The target is
``<logs_dir>/errors-YYYYMMDD-HHMMSS.log`` where the stamp is the UTC time of
the first write; a process that never fails leaves no file behind.

Every line is an ``ErrorRecord``, so the key set is fixed.
"""

__all__ = [
    "BatchErrorLog",
    "DEFAULT_LOGS_DIR",
]

DEFAULT_LOGS_DIR = Path("./logs")
FILE_STAMP_FORMAT = "%Y%m%d-%H%M%S"


class BatchErrorLog:
    """Pending row failures plus running per-``error_type`` totals.

    Not thread safe; the orchestrator is its only writer.
    """

    def __init__(self, logs_dir: Path | None = None, *, now: Callable[[], datetime] | None = None) -> None:
        self.logs_dir = Path(logs_dir) if logs_dir is not None else DEFAULT_LOGS_DIR
        self._now = now or (lambda: datetime.now(UTC))
        self._pending: list[ErrorRecord] = []
        self._path: Path | None = None
        self.totals: Counter[str] = Counter()

    @property
    def path(self) -> Path | None:
        """The file written so far, or None before the first non-empty flush."""
        return self._path

    @property
    def pending(self) -> tuple[ErrorRecord, ...]:
        return tuple(self._pending)

    def add(self, record: ErrorRecord) -> None:
        self._pending.append(record)
        self.totals[record.error_type] += 1

    def describe_totals(self) -> str:
        """``AUDIT_ERROR=1 PUBLISH_ERROR=2``, sorted by error type."""
        return " ".join(f"{error_type}={n}" for error_type, n in sorted(self.totals.items()))

    def flush(self) -> Path | None:
        """Append pending records and return the file path; None when nothing was pending.

        Records stay pending if the write raises, so a later flush can retry them.
        """
        if not self._pending:
            return None
        if self._path is None:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            self._path = self.logs_dir / f"errors-{self._now().strftime(FILE_STAMP_FORMAT)}.log"
        block = "".join(r.to_json_line() + "\n" for r in self._pending)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(block)
        self._pending.clear()
        return self._path
