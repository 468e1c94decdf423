from __future__ import annotations

import json
import re
from collections.abc import Sequence

from ..models.record import Record

"""QR plaintext construction.

Priority, exactly one branch per call:
1. template   -> every ``{{field}}`` replaced by the record value ('' if unknown)
2. field list -> ``field=value`` pairs joined by ';' (';' inside values -> ',')
3. fallback   -> compact JSON of the whole record, RequiredField order
"""

__all__ = [
    "PayloadEncoder",
]

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


class PayloadEncoder:
    def __init__(self, template: str | None = None, fields: Sequence[str] = ()) -> None:
        self.template = template or None
        self.fields = tuple(fields)

    def encode(self, record: Record) -> str:
        if self.template:
            return _PLACEHOLDER.sub(lambda m: record.get(m.group(1)), self.template)
        if self.fields:
            return ";".join(f"{f}={record.get(f).replace(';', ',')}" for f in self.fields)
        return json.dumps(record.as_dict(), ensure_ascii=False, separators=(",", ":"))
