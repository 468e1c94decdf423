from __future__ import annotations

import logging

import boto3
from botocore.config import Config

from ..errors import ConfigurationError
from ..models.config_models import StorageConfig

"""S3-compatible object storage backend (AWS S3, GCS interoperability, MinIO).

Credentials come from the standard boto3 chain (environment, shared config,
instance role); nothing credential related is read here.
"""

__all__ = [
    "S3ObjectStorage",
]

logger = logging.getLogger(__name__)


class S3ObjectStorage:
    def __init__(self, config: StorageConfig, client=None) -> None:
        if not config.bucket.strip():
            raise ConfigurationError("STORAGE_BUCKET missing: object storage bucket is required")
        self.bucket = config.bucket
        if client is None:
            client_kwargs = {
                "service_name": "s3",
                "region_name": config.region,
                "config": Config(signature_version="s3v4"),
            }
            if config.endpoint_url:
                client_kwargs["endpoint_url"] = config.endpoint_url
            client = boto3.client(**client_kwargs)
        self.client = client
        logger.debug("s3 storage bucket=%s endpoint=%s", config.bucket, config.endpoint_url)

    def save(self, path: str, data: bytes, content_type: str, metadata: dict[str, str]) -> None:
        """Single non-resumable private upload."""
        key = path.lstrip("/")
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            Metadata=metadata,
        )
        logger.debug("stored key=%s size=%d", key, len(data))
