from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Record model: one spreadsheet data row keyed by the closed RequiredField set."""

__all__ = [
    "RequiredField",
    "REQUIRED_FIELDS",
    "Record",
    "is_blank",
]


class RequiredField(Enum):
    """Closed set of columns every workbook must carry (order-independent, set-exact).

    Declaration order is the canonical order used for JSON payloads and audit rows.
    """
    CODIGO = "codigo"
    NOMBRES = "nombres"
    TELEFONO = "telefono"
    DENOMINACION = "denominacion"
    ESTADO = "estado"
    NUMPASES = "numpases"


REQUIRED_FIELDS: tuple[RequiredField, ...] = tuple(RequiredField)


def is_blank(value: str | None) -> bool:
    """A value is blank iff it is None or its trimmed length is zero."""
    return value is None or len(value.strip()) == 0


@dataclass(frozen=True)
class Record:
    """Trimmed string values of one valid data row."""
    codigo: str
    nombres: str
    telefono: str
    denominacion: str
    estado: str
    numpases: str

    @classmethod
    def from_values(cls, values: dict[RequiredField, str]) -> Record:
        return cls(**{f.value: values[f] for f in REQUIRED_FIELDS})

    def get(self, field_name: str, default: str = "") -> str:
        """Lookup by raw field name, ``default`` for anything outside RequiredField."""
        try:
            return getattr(self, RequiredField(field_name).value)
        except ValueError:
            return default

    def as_dict(self) -> dict[str, str]:
        return {f.value: getattr(self, f.value) for f in REQUIRED_FIELDS}
