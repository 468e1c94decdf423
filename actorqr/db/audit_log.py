from __future__ import annotations

import logging
from typing import Any

from ..errors import AuditError, ConfigurationError
from ..models.audit_entry import AUDIT_COLUMNS, AuditEntry

"""Audit log writer (PostgreSQL via a psycopg2 cursor).

One INSERT per processed row into a fixed table (default ``actors``). The
creation timestamp is assigned by the server (``now()``). The connection is
expected in autocommit mode so that a failed insert never poisons later rows.
"""

__all__ = [
    "AuditLogger",
    "ensure_audit_table",
]

logger = logging.getLogger(__name__)


def _check_table_name(table: str) -> str:
    # identifiers cannot be bound as parameters: alphanumerics and underscores only
    if not table or not table.replace("_", "").isalnum():
        raise ConfigurationError(f"invalid audit table name: {table!r}")
    return table


def ensure_audit_table(cursor: Any, table: str = "actors") -> None:
    """CREATE TABLE IF NOT EXISTS for the audit table."""
    table = _check_table_name(table)
    cols_sql = ",\n    ".join(f'"{c}" text NULL' for c in AUDIT_COLUMNS)
    cursor.execute(
        f"CREATE TABLE IF NOT EXISTS {table} (\n"
        f"    id bigserial PRIMARY KEY,\n"
        f"    {cols_sql},\n"
        f"    created_at timestamptz NOT NULL DEFAULT now()\n"
        f")"
    )


class AuditLogger:
    def __init__(self, cursor: Any, table: str = "actors") -> None:
        self._cursor = cursor
        self.table = _check_table_name(table)
        cols_sql = ",".join(f'"{c}"' for c in AUDIT_COLUMNS)
        placeholders = ",".join(["%s"] * len(AUDIT_COLUMNS))
        self._sql = f"INSERT INTO {self.table} ({cols_sql},\"created_at\") VALUES ({placeholders},now())"

    def record(self, entry: AuditEntry) -> None:
        """Append one audit row.

        Raises:
            AuditError: If the insert fails for any reason.
        """
        try:
            self._cursor.execute(self._sql, entry.to_params())
        except Exception as e:
            raise AuditError(f"audit insert into {self.table} failed: {e}") from e
        logger.debug("audit row written table=%s codigo=%s", self.table, entry.codigo)
