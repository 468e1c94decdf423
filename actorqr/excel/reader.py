from __future__ import annotations

import io
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any

import pandas as pd

from ..errors import WorkbookError

"""Workbook reader.

Row 1 of the first worksheet is the header row, rows 2.. are data rows. Cells
are read raw (``header=None``, no NA conversion) and rendered to their display
text so that phone numbers and codes keep their digits.
"""

__all__ = [
    "SheetData",
    "cell_text",
    "read_first_sheet",
]


@dataclass
class SheetData:
    sheet_name: str
    raw_headers: list[str]
    # (excel row number, cell texts) for every data row, blank rows included
    rows: list[tuple[int, list[str]]] = field(default_factory=list)


def cell_text(value: Any) -> str:
    """Render a raw cell value as trimmed display text ('' for empty cells)."""
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value).strip()


def read_first_sheet(data: bytes) -> SheetData:
    """Read the first worksheet of an .xlsx payload.

    Parameters
    ----------
    data: raw workbook bytes as uploaded

    Raises
    ------
    WorkbookError: bytes are not a readable workbook, or it has no worksheet
    """
    try:
        xls = pd.ExcelFile(io.BytesIO(data), engine="openpyxl")
    except Exception as e:
        raise WorkbookError(f"workbook could not be read: {e}") from e
    if not xls.sheet_names:
        raise WorkbookError("workbook has no worksheets")

    name = xls.sheet_names[0]
    try:
        # keep_default_na=False: the text "NA" is a value, empty cells stay ''
        df = xls.parse(name, header=None, keep_default_na=False)
    except Exception as e:
        raise WorkbookError(f"worksheet '{name}' could not be read: {e}") from e

    if df.shape[0] == 0:
        return SheetData(sheet_name=str(name), raw_headers=[], rows=[])

    raw_headers = [cell_text(v) for v in df.iloc[0].tolist()]
    rows: list[tuple[int, list[str]]] = []
    for idx in range(1, df.shape[0]):
        # DataFrame index 0 is Excel row 1
        rows.append((idx + 1, [cell_text(v) for v in df.iloc[idx].tolist()]))
    return SheetData(sheet_name=str(name), raw_headers=raw_headers, rows=rows)
