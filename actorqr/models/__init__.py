"""Domain models for the actor QR batch pipeline.

This package contains the configuration, record, state and result types used
throughout the application.
"""

from .audit_entry import AuditEntry
from .config_models import DatabaseConfig, PacingConfig, PipelineConfig, StorageConfig
from .error_record import ErrorRecord
from .processing_result import BatchResult, RowResult, RowStatus
from .record import REQUIRED_FIELDS, Record, RequiredField, is_blank
from .row_state import RowState

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "PacingConfig",
    "PipelineConfig",
    "StorageConfig",
    # Row models
    "REQUIRED_FIELDS",
    "Record",
    "RequiredField",
    "is_blank",
    "RowState",
    "AuditEntry",
    # Result models
    "RowStatus",
    "RowResult",
    "BatchResult",
    "ErrorRecord",
]
