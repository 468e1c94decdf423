from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from ..errors import UNEXPECTED_ERROR_TYPE

"""One line of the JSON Lines error log.

Keys are fixed: timestamp, file, row, error_type, message. ``row`` is the
Excel row number, or -1 for failures that reject the whole workbook
(unreadable bytes, header mismatch).
"""

__all__ = [
    "ErrorRecord",
    "BATCH_LEVEL_ROW",
    "classify",
]

BATCH_LEVEL_ROW = -1


def classify(exc: BaseException) -> tuple[str, str]:
    """(error_type, message) for an exception raised while processing a workbook.

    Pipeline errors carry their own ``error_type`` label; anything else is
    reported as UNEXPECTED_ERROR with the exception class name prefixed.
    """
    error_type = getattr(exc, "error_type", None)
    if isinstance(error_type, str):
        return error_type, str(exc)
    return UNEXPECTED_ERROR_TYPE, f"{type(exc).__name__}: {exc}"


def _utc_stamp(when: datetime | None = None) -> str:
    return (when or datetime.now(UTC)).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ErrorRecord:
    timestamp: str  # ISO8601 UTC, 'Z' suffix
    file: str
    row: int
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, row: int, error_type: str, message: str, when: datetime | None = None) -> ErrorRecord:
        return ErrorRecord(
            timestamp=_utc_stamp(when),
            file=file,
            row=row,
            error_type=error_type,
            message=message,
        )

    @staticmethod
    def from_exception(file: str, row: int, exc: BaseException) -> ErrorRecord:
        error_type, message = classify(exc)
        return ErrorRecord.create(file, row, error_type, message)

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
