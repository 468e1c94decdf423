from __future__ import annotations

import uuid
from typing import Protocol
from urllib.parse import quote

from ..errors import ConfigurationError, PublishError

"""Artifact publication.

The PNG is saved under a unique key per row invocation (row number plus epoch
milliseconds), so no overwrite protection is needed. A random access token is
stored as object metadata and embedded in the returned URL, which grants read
access without further authentication.
"""

__all__ = [
    "ObjectStorage",
    "ArtifactPublisher",
    "artifact_path",
    "DOWNLOAD_TOKEN_METADATA_KEY",
]

# metadata key the download-URL endpoint checks the ``token`` query parameter against
DOWNLOAD_TOKEN_METADATA_KEY = "firebaseStorageDownloadTokens"
PNG_CONTENT_TYPE = "image/png"


class ObjectStorage(Protocol):
    """Storage collaborator capability."""

    bucket: str

    def save(self, path: str, data: bytes, content_type: str, metadata: dict[str, str]) -> None: ...


def artifact_path(row_number: int, epoch_ms: int, prefix: str = "qr") -> str:
    """``qr/qr_row_<row>_<epoch_ms>.png``"""
    return f"{prefix}/qr_row_{row_number}_{epoch_ms}.png"


class ArtifactPublisher:
    def __init__(self, storage: ObjectStorage, download_base_url: str) -> None:
        if not (storage.bucket or "").strip():
            raise ConfigurationError("STORAGE_BUCKET missing: download URLs need a bucket name")
        self._storage = storage
        self._download_base_url = download_base_url.rstrip("/")

    def download_url(self, path: str, access_token: str) -> str:
        encoded = quote(path, safe="")
        return (
            f"{self._download_base_url}/v0/b/{self._storage.bucket}/o/{encoded}"
            f"?alt=media&token={access_token}"
        )

    def publish(self, data: bytes, path: str) -> str:
        """Upload ``data`` at ``path`` and return its token-scoped download URL.

        Raises:
            PublishError: On any storage failure (network, permission, quota).
        """
        access_token = str(uuid.uuid4())
        try:
            self._storage.save(
                path,
                data,
                PNG_CONTENT_TYPE,
                {DOWNLOAD_TOKEN_METADATA_KEY: access_token},
            )
        except Exception as e:
            raise PublishError(f"upload of {path} failed: {e}") from e
        return self.download_url(path, access_token)
