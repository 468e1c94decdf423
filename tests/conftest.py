# Shared pytest fixtures
from __future__ import annotations
import io
import logging
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pandas as pd
import pytest

from actorqr.db.audit_log import AuditLogger
from actorqr.dispatch.api_client import ApiDispatcher
from actorqr.logging.error_log import BatchErrorLog
from actorqr.logging.init import LOGGER_NAME, reset_logging
from actorqr.models.config_models import PipelineConfig, StorageConfig
from actorqr.services.orchestrator import BatchOrchestrator
from actorqr.services.pacer import Pacer
from actorqr.storage.publisher import ArtifactPublisher

HEADERS = ["codigo", "nombres", "telefono", "denominacion", "estado", "numpases"]
PASSPHRASE = "correct horse battery staple"


def make_workbook(rows: list[list[object]], sheet_name: str = "Actores") -> bytes:
    """Build .xlsx bytes in memory; ``None`` cells are left empty."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return buf.getvalue()


class FakeStorage:
    """In-memory ObjectStorage; set ``fail_with`` to make every save raise."""

    def __init__(self, bucket: str = "actors-bucket") -> None:
        self.bucket = bucket
        self.saved: list[tuple[str, bytes, str, dict[str, str]]] = []
        self.fail_with: Exception | None = None

    def save(self, path: str, data: bytes, content_type: str, metadata: dict[str, str]) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.saved.append((path, data, content_type, metadata))


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def make_response(status: int = 200, body: object = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = {"ok": True} if body is None else body
    resp.text = "" if body is None else str(body)
    return resp


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "API_TARGET_URL",
        "QR_SECRET_KEY",
        "QR_TEMPLATE",
        "QR_FIELDS",
        "STORAGE_BUCKET",
        "STORAGE_ENDPOINT_URL",
        "STORAGE_DOWNLOAD_BASE_URL",
        "AUDIT_TABLE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def sample_config_yaml() -> str:
    return """api:
  url: https://api.example.com/actors/notify
  timeout_seconds: 15
qr:
  secret_key: correct horse battery staple
pacing:
  min_delay_ms: 3000
  max_delay_ms: 5000
storage:
  bucket: actors-bucket
  download_base_url: https://firebasestorage.googleapis.com
audit:
  table: actors
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "pipeline.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def pipeline_config() -> PipelineConfig:
    return PipelineConfig(
        api_url="https://api.example.com/actors/notify",
        passphrase=PASSPHRASE,
        storage=StorageConfig(bucket="actors-bucket"),
    )


@pytest.fixture()
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture()
def http_session() -> MagicMock:
    session = MagicMock()
    session.post.return_value = make_response(200)
    return session


@pytest.fixture()
def audit_cursor() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture()
def error_log(tmp_path: Path) -> BatchErrorLog:
    return BatchErrorLog(logs_dir=tmp_path / "logs")


@pytest.fixture()
def orchestrator(pipeline_config, storage, http_session, audit_cursor, sleep_recorder, error_log) -> BatchOrchestrator:
    return BatchOrchestrator(
        pipeline_config,
        publisher=ArtifactPublisher(storage, pipeline_config.storage.download_base_url),
        dispatcher=ApiDispatcher(pipeline_config.api_url, session=http_session),
        audit_logger=AuditLogger(audit_cursor, pipeline_config.audit_table),
        pacer=Pacer(sleep=sleep_recorder),
        error_log=error_log,
        clock=lambda: 1700000000.5,
    )


@pytest.fixture()
def workbook():
    return make_workbook


@pytest.fixture()
def response():
    return make_response


@pytest.fixture(autouse=True)
def clean_logging():
    # handlers bound to a previous test's captured stdout must not leak
    reset_logging()
    yield
    reset_logging()
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
