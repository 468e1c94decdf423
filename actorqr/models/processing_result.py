from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Processing result models for the actor QR batch pipeline.

RowResult is produced once per data row; BatchResult aggregates them in row
order and serializes to the JSON shape returned to the uploader:
``{total, ok, skipped, errors, results[{row, status, qrUrl?, error?}]}``.
"""

__all__ = [
    "RowStatus",
    "RowResult",
    "BatchResult",
]


class RowStatus(Enum):
    """Terminal status of a data row.

    - OK: every stage completed (published, dispatched, audited)
    - ERROR: a stage failed; ``RowResult.error`` carries the message
    - SKIPPED: all required fields blank, nothing was done
    """
    OK = "ok"
    ERROR = "error"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class RowResult:
    row: int  # Excel row number (row 1 = header, first data row = 2)
    status: RowStatus
    qr_url: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"row": self.row, "status": self.status.value}
        if self.qr_url is not None:
            data["qrUrl"] = self.qr_url
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class BatchResult:
    """Aggregated outcome of one ``BatchOrchestrator.process`` call."""
    total: int
    ok: int
    skipped: int
    errors: int
    results: list[RowResult] = field(default_factory=list)
    elapsed_seconds: float = 0.0  # summary line only, not serialized

    @classmethod
    def from_results(cls, results: list[RowResult], elapsed_seconds: float = 0.0) -> BatchResult:
        return cls(
            total=len(results),
            ok=sum(1 for r in results if r.status is RowStatus.OK),
            skipped=sum(1 for r in results if r.status is RowStatus.SKIPPED),
            errors=sum(1 for r in results if r.status is RowStatus.ERROR),
            results=list(results),
            elapsed_seconds=elapsed_seconds,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "ok": self.ok,
            "skipped": self.skipped,
            "errors": self.errors,
            "results": [r.to_dict() for r in self.results],
        }
