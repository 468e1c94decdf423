from __future__ import annotations

"""Error taxonomy for the actor QR batch pipeline.

Fatal errors (ConfigurationError, WorkbookError, SchemaError) propagate to the
caller and abort the whole batch before any row is processed. Row-scoped errors
derive from RowProcessingError and are caught by the orchestrator, recorded on
the row's result and never halt subsequent rows.

``error_type`` is the UPPER_SNAKE label written to the JSON Lines error log.
"""

__all__ = [
    "ConfigurationError",
    "WorkbookError",
    "SchemaError",
    "RowProcessingError",
    "RowValidationError",
    "EncodingError",
    "PublishError",
    "DispatchError",
    "AuditError",
    "UNEXPECTED_ERROR_TYPE",
]

UNEXPECTED_ERROR_TYPE = "UNEXPECTED_ERROR"


class ConfigurationError(Exception):
    """Invalid configuration detected at construction time."""


class WorkbookError(Exception):
    """Workbook bytes unreadable or without a worksheet."""

    error_type = "WORKBOOK_ERROR"


class SchemaError(Exception):
    """Header row does not match the required column set exactly."""

    error_type = "SCHEMA_ERROR"

    def __init__(self, message: str, missing: list[str], extras: list[str], raw_headers: list[str]) -> None:
        super().__init__(message)
        self.missing = missing
        self.extras = extras
        self.raw_headers = raw_headers


class RowProcessingError(Exception):
    """Base class for failures scoped to a single data row."""

    error_type = "ROW_PROCESSING_ERROR"


class RowValidationError(RowProcessingError):
    error_type = "ROW_VALIDATION_ERROR"

    def __init__(self, message: str, blank_fields: list[str]) -> None:
        super().__init__(message)
        self.blank_fields = blank_fields


class EncodingError(RowProcessingError):
    error_type = "ENCODING_ERROR"


class PublishError(RowProcessingError):
    error_type = "PUBLISH_ERROR"


class DispatchError(RowProcessingError):
    """Downstream API rejected the row or could not be reached.

    ``status`` is None for network-level failures.
    """

    error_type = "DISPATCH_ERROR"

    def __init__(self, message: str, status: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class AuditError(RowProcessingError):
    error_type = "AUDIT_ERROR"
