from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .record import Record, is_blank

"""AuditEntry: the durable document written for every processed row."""

__all__ = [
    "AuditEntry",
    "AUDIT_COLUMNS",
]

AUDIT_COLUMNS: tuple[str, ...] = (
    "codigo",
    "nombres",
    "telefono",
    "denominacion",
    "estado",
    "numpases",
    "qr_url",
    "token",
)


@dataclass(frozen=True)
class AuditEntry:
    codigo: str | None
    nombres: str | None
    telefono: str | None
    denominacion: str | None
    estado: str | None
    numpases: str | None
    qr_url: str | None
    token: str | None

    @classmethod
    def from_row(cls, record: Record, qr_url: str, token: str) -> AuditEntry:
        return cls(**record.as_dict(), qr_url=qr_url, token=token)

    def to_params(self) -> tuple[Any, ...]:
        """Column values in AUDIT_COLUMNS order; blank values become explicit NULLs."""
        values = []
        for col in AUDIT_COLUMNS:
            v = getattr(self, col)
            values.append(None if is_blank(v) else v)
        return tuple(values)
