from __future__ import annotations

from enum import Enum

"""RowState enum for the per-row processing state machine.

State transitions (happy path):
    start → extracted → encoded → encrypted → rendered → published → dispatched → audited

    start → skipped                      (all required fields blank)
    <any non-terminal state> → failed    (stage raised; row recorded as error)

The state reached before a failure identifies which side effects already
happened for that row (e.g. ``published`` = artifact uploaded, API not called).
"""

__all__ = [
    "RowState",
]


class RowState(Enum):
    START = "start"
    SKIPPED = "skipped"
    EXTRACTED = "extracted"
    ENCODED = "encoded"
    ENCRYPTED = "encrypted"
    RENDERED = "rendered"
    PUBLISHED = "published"
    DISPATCHED = "dispatched"
    AUDITED = "audited"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RowState.SKIPPED, RowState.AUDITED, RowState.FAILED)
