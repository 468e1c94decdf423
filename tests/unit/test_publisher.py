from __future__ import annotations

import re
from unittest.mock import MagicMock, patch

import pytest

from actorqr.errors import ConfigurationError, PublishError
from actorqr.models.config_models import StorageConfig
from actorqr.storage.publisher import DOWNLOAD_TOKEN_METADATA_KEY, ArtifactPublisher, artifact_path
from actorqr.storage.s3 import S3ObjectStorage

BASE = "https://firebasestorage.googleapis.com"


def test_artifact_path_layout():
    assert artifact_path(7, 1700000000123) == "qr/qr_row_7_1700000000123.png"
    assert artifact_path(2, 5, prefix="actors") == "actors/qr_row_2_5.png"


def test_publish_saves_png_with_token_metadata(storage):
    url = ArtifactPublisher(storage, BASE).publish(b"png-bytes", "qr/qr_row_2_1.png")

    assert len(storage.saved) == 1
    path, data, content_type, metadata = storage.saved[0]
    assert path == "qr/qr_row_2_1.png"
    assert data == b"png-bytes"
    assert content_type == "image/png"
    token = metadata["firebaseStorageDownloadTokens"]
    assert re.fullmatch(r"[0-9a-f-]{36}", token)
    assert url == (
        f"{BASE}/v0/b/actors-bucket/o/qr%2Fqr_row_2_1.png?alt=media&token={token}"
    )


def test_download_token_metadata_key_matches_download_endpoint(storage):
    assert DOWNLOAD_TOKEN_METADATA_KEY == "firebaseStorageDownloadTokens"
    ArtifactPublisher(storage, BASE).publish(b"png", "qr/a.png")
    assert list(storage.saved[0][3]) == ["firebaseStorageDownloadTokens"]


@pytest.mark.parametrize("bucket", ["", "   "])
def test_publisher_rejects_storage_without_bucket(storage, bucket):
    storage.bucket = bucket
    with pytest.raises(ConfigurationError, match="STORAGE_BUCKET missing"):
        ArtifactPublisher(storage, BASE)
    assert storage.saved == []


def test_s3_storage_requires_bucket():
    client = MagicMock()
    with pytest.raises(ConfigurationError, match="STORAGE_BUCKET missing"):
        S3ObjectStorage(StorageConfig(), client=client)
    client.put_object.assert_not_called()


def test_each_publish_uses_a_fresh_token(storage):
    pub = ArtifactPublisher(storage, BASE + "/")
    first = pub.publish(b"a", "qr/a.png")
    second = pub.publish(b"b", "qr/b.png")
    assert storage.saved[0][3] != storage.saved[1][3]
    assert first != second
    assert first.startswith(f"{BASE}/v0/b/")


def test_storage_failure_becomes_publish_error(storage):
    storage.fail_with = PermissionError("403 forbidden")
    with pytest.raises(PublishError) as e:
        ArtifactPublisher(storage, BASE).publish(b"a", "qr/a.png")
    assert "403 forbidden" in str(e.value)
    assert e.value.error_type == "PUBLISH_ERROR"


def test_s3_storage_put_object():
    client = MagicMock()
    store = S3ObjectStorage(StorageConfig(bucket="b1"), client=client)
    store.save("/qr/x.png", b"data", "image/png", {"firebaseStorageDownloadTokens": "t"})
    client.put_object.assert_called_once_with(
        Bucket="b1",
        Key="qr/x.png",
        Body=b"data",
        ContentType="image/png",
        Metadata={"firebaseStorageDownloadTokens": "t"},
    )


def test_s3_storage_builds_boto3_client():
    with patch("actorqr.storage.s3.boto3.client") as mock_client:
        store = S3ObjectStorage(StorageConfig(bucket="b1", endpoint_url="http://minio:9000", region="eu-west-1"))
    kwargs = mock_client.call_args.kwargs
    assert kwargs["service_name"] == "s3"
    assert kwargs["endpoint_url"] == "http://minio:9000"
    assert kwargs["region_name"] == "eu-west-1"
    assert store.client is mock_client.return_value
    assert store.bucket == "b1"


def test_s3_storage_without_endpoint_uses_default():
    with patch("actorqr.storage.s3.boto3.client") as mock_client:
        S3ObjectStorage(StorageConfig(bucket="b1"))
    assert "endpoint_url" not in mock_client.call_args.kwargs
