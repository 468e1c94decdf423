from __future__ import annotations

import re
import unicodedata
from collections.abc import Sequence

from ..errors import RowValidationError, SchemaError
from ..models.record import REQUIRED_FIELDS, Record, RequiredField, is_blank

"""Header validation and row extraction.

The header check runs once per workbook, before any row is touched: the set
of normalized non-blank headers must equal the RequiredField set exactly
(order-independent, case/accent-insensitive). Unexpected columns are rejected
just like missing ones.
"""

__all__ = [
    "HeaderIndex",
    "normalize_header",
    "validate_headers",
    "extract_row",
]

HeaderIndex = dict[RequiredField, int]

_COMBINING_MARKS = re.compile("[\u0300-\u036f]")
_REQUIRED_NAMES = {f.value for f in REQUIRED_FIELDS}


def normalize_header(label: str | None) -> str:
    """NFD decompose, strip diacritics, trim, lowercase ("  Teléfono " -> "telefono")."""
    decomposed = unicodedata.normalize("NFD", label or "")
    return _COMBINING_MARKS.sub("", decomposed).strip().lower()


def validate_headers(raw_headers: Sequence[str]) -> HeaderIndex:
    """Build the RequiredField -> column position index from the header row.

    Raises:
        SchemaError: If a required column is missing or an unknown column is present.
    """
    positions: dict[str, int] = {}
    for idx, raw in enumerate(raw_headers):
        norm = normalize_header(raw)
        if norm:
            positions[norm] = idx  # duplicate labels: right-most column wins

    missing = [f.value for f in REQUIRED_FIELDS if f.value not in positions]
    extras: list[str] = []
    for raw in raw_headers:
        norm = normalize_header(raw)
        if norm and norm not in _REQUIRED_NAMES and norm not in extras:
            extras.append(norm)

    if missing or extras:
        parts = []
        if missing:
            parts.append(f"missing columns: {', '.join(missing)}")
        if extras:
            parts.append(f"unexpected columns: {', '.join(extras)}")
        parts.append(f"headers read: [{' | '.join(raw_headers)}]")
        raise SchemaError(
            f"invalid headers. {' | '.join(parts)}",
            missing=missing,
            extras=extras,
            raw_headers=list(raw_headers),
        )

    return {f: positions[f.value] for f in REQUIRED_FIELDS}


def extract_row(cells: Sequence[str], header_index: HeaderIndex, row_number: int) -> Record | None:
    """Read one data row into a Record.

    Returns None when every required field is blank (row is skipped).

    Raises:
        RowValidationError: If some, but not all, required fields are blank.
    """
    values: dict[RequiredField, str] = {}
    for f in REQUIRED_FIELDS:
        pos = header_index[f]
        values[f] = cells[pos].strip() if pos < len(cells) else ""

    blank = [f.value for f in REQUIRED_FIELDS if is_blank(values[f])]
    if len(blank) == len(REQUIRED_FIELDS):
        return None
    if blank:
        raise RowValidationError(
            f"row {row_number}: blank fields -> {', '.join(blank)}",
            blank_fields=blank,
        )
    return Record.from_values(values)
