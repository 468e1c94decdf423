from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import urlparse

from ..errors import ConfigurationError

"""Config dataclasses for the actor QR batch pipeline.

All configuration is process-wide immutable (frozen dataclasses) and validated
eagerly in ``__post_init__`` so that an invalid downstream URL or a short
passphrase fails construction instead of failing on every row.
"""

__all__ = [
    "MIN_PASSPHRASE_LENGTH",
    "DatabaseConfig",
    "StorageConfig",
    "PacingConfig",
    "PipelineConfig",
    "validate_api_url",
]

MIN_PASSPHRASE_LENGTH = 12
DEFAULT_DOWNLOAD_BASE_URL = "https://firebasestorage.googleapis.com"


def validate_api_url(url: str) -> str:
    """Return ``url`` unchanged if it parses as an absolute http(s) URL.

    Raises:
        ConfigurationError: If the URL is empty, relative or uses another scheme.
    """
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise ConfigurationError(f"invalid or missing API_TARGET_URL: {url!r}") from e
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"invalid or missing API_TARGET_URL: {url!r}")
    return url


@dataclass(frozen=True)
class DatabaseConfig:
    """Audit database connection settings.

    Environment variables (DATABASE_URL / PGDSN / PG*) take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class StorageConfig:
    """Object storage bucket for published QR images."""
    bucket: str = ""
    endpoint_url: str | None = None  # S3 compatible endpoint (None = AWS default)
    region: str = "us-east-1"
    download_base_url: str = DEFAULT_DOWNLOAD_BASE_URL
    key_prefix: str = "qr"


@dataclass(frozen=True)
class PacingConfig:
    """Inter-row delay window in milliseconds (inclusive bounds)."""
    min_delay_ms: int = 3000
    max_delay_ms: int = 5000

    def __post_init__(self) -> None:
        if self.min_delay_ms < 0 or self.max_delay_ms < self.min_delay_ms:
            raise ConfigurationError(
                f"invalid pacing window: [{self.min_delay_ms}, {self.max_delay_ms}] ms"
            )


@dataclass(frozen=True)
class PipelineConfig:
    """Root configuration for one BatchOrchestrator."""
    api_url: str
    passphrase: str
    qr_template: str | None = None  # "{{codigo}}-{{nombres}}" style template
    qr_fields: tuple[str, ...] = ()  # ordered field list for key=value payloads
    request_timeout_seconds: float = 15.0
    audit_table: str = "actors"
    pacing: PacingConfig = field(default_factory=PacingConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    def __post_init__(self) -> None:
        validate_api_url(self.api_url)
        if not self.passphrase or len(self.passphrase) < MIN_PASSPHRASE_LENGTH:
            raise ConfigurationError(
                f"QR_SECRET_KEY missing or too short (>= {MIN_PASSPHRASE_LENGTH} chars)"
            )
        # list -> tuple so the config stays hashable / immutable
        if not isinstance(self.qr_fields, tuple):
            object.__setattr__(self, "qr_fields", tuple(self.qr_fields))
