from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import Any

from ..crypto.token_cipher import TokenCipher
from ..db.audit_log import AuditLogger
from ..dispatch.api_client import ApiDispatcher
from ..errors import SchemaError, WorkbookError
from ..excel.headers import HeaderIndex, extract_row, validate_headers
from ..excel.reader import read_first_sheet
from ..logging.error_log import BatchErrorLog
from ..models.audit_entry import AuditEntry
from ..models.config_models import PipelineConfig
from ..models.error_record import BATCH_LEVEL_ROW, ErrorRecord, classify
from ..models.processing_result import BatchResult, RowResult, RowStatus
from ..models.row_state import RowState
from ..qr.encoder import QrEncoder
from ..storage.publisher import ArtifactPublisher, ObjectStorage, artifact_path
from .pacer import Pacer
from .payload import PayloadEncoder
from .progress import RowProgressTracker

"""Batch orchestration for the actor QR pipeline.

``process`` validates the header row once, then walks the data rows strictly
in order, one at a time. Each row runs through a small state machine

    extract -> encode -> encrypt -> render -> publish -> dispatch -> audit

and any exception raised inside a row is converted into that row's error
result without touching the following rows. Rows that end ok or error are
followed by a randomized pacing delay; skipped rows are not.

Side effects already issued for a row that fails later (uploaded artifact,
sent POST) are not rolled back.
"""

__all__ = [
    "BatchOrchestrator",
]

logger = logging.getLogger(__name__)


class BatchOrchestrator:
    """Sequences the per-row pipeline and aggregates the BatchResult.

    All side-effecting collaborators are injected; ``from_config`` wires the
    default implementations from a PipelineConfig.
    """

    def __init__(
        self,
        config: PipelineConfig,
        *,
        publisher: ArtifactPublisher,
        dispatcher: ApiDispatcher,
        audit_logger: AuditLogger,
        pacer: Pacer | None = None,
        cipher: TokenCipher | None = None,
        qr_encoder: QrEncoder | None = None,
        payload_encoder: PayloadEncoder | None = None,
        error_log: BatchErrorLog | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.config = config
        self._publisher = publisher
        self._dispatcher = dispatcher
        self._audit = audit_logger
        # constructing the cipher re-checks the passphrase: fail fast, not per row
        self._cipher = cipher or TokenCipher(config.passphrase)
        self._qr = qr_encoder or QrEncoder()
        self._payload = payload_encoder or PayloadEncoder(config.qr_template, config.qr_fields)
        self._pacer = pacer or Pacer(config.pacing.min_delay_ms, config.pacing.max_delay_ms)
        self._error_log = error_log
        self._clock = clock or time.time

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        *,
        storage: ObjectStorage,
        cursor: Any,
        session: Any = None,
        error_log: BatchErrorLog | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> BatchOrchestrator:
        return cls(
            config,
            publisher=ArtifactPublisher(storage, config.storage.download_base_url),
            dispatcher=ApiDispatcher(config.api_url, session=session, timeout=config.request_timeout_seconds),
            audit_logger=AuditLogger(cursor, config.audit_table),
            pacer=Pacer(config.pacing.min_delay_ms, config.pacing.max_delay_ms, sleep=sleep),
            error_log=error_log,
        )

    def process(self, file_bytes: bytes, file_name: str = "upload.xlsx") -> BatchResult:
        """Process every data row of the first worksheet.

        Raises:
            WorkbookError: The workbook is unreadable or has no worksheet.
            SchemaError: The header row is not exactly the required column set.
        Both abort the batch before any row is processed.
        """
        start = time.monotonic()
        try:
            sheet = read_first_sheet(file_bytes)
            header_index = validate_headers(sheet.raw_headers)
        except (WorkbookError, SchemaError) as e:
            logger.error("file=%s rejected: %s", file_name, e)
            self._record_error(ErrorRecord.from_exception(file_name, BATCH_LEVEL_ROW, e))
            self._flush_error_log()
            raise

        logger.info("file=%s sheet=%s data_rows=%d", file_name, sheet.sheet_name, len(sheet.rows))

        results: list[RowResult] = []
        with RowProgressTracker(len(sheet.rows)) as progress:
            for row_number, cells in sheet.rows:
                result = self.process_row(row_number, cells, header_index, file_name=file_name)
                results.append(result)
                progress.finish_row(row_number, result.status)
                if result.status is not RowStatus.SKIPPED:
                    self._pacer.wait(row_number)

        batch = BatchResult.from_results(results, elapsed_seconds=time.monotonic() - start)
        self._flush_error_log()
        logger.info(
            "file=%s total=%d ok=%d skipped=%d errors=%d",
            file_name,
            batch.total,
            batch.ok,
            batch.skipped,
            batch.errors,
        )
        return batch

    def process_row(
        self,
        row_number: int,
        cells: Sequence[str],
        header_index: HeaderIndex,
        file_name: str = "upload.xlsx",
    ) -> RowResult:
        """Run one row through the state machine; never raises for row-level failures."""
        state = RowState.START
        try:
            record = extract_row(cells, header_index, row_number)
            if record is None:
                state = RowState.SKIPPED
                logger.debug("row %d skipped (all fields blank)", row_number)
                return RowResult(row=row_number, status=RowStatus.SKIPPED)
            state = RowState.EXTRACTED

            plaintext = self._payload.encode(record)
            state = RowState.ENCODED

            token = self._cipher.encrypt(plaintext)
            state = RowState.ENCRYPTED

            png = self._qr.render(token)
            state = RowState.RENDERED

            path = artifact_path(row_number, int(self._clock() * 1000), self.config.storage.key_prefix)
            qr_url = self._publisher.publish(png, path)
            state = RowState.PUBLISHED

            self._dispatcher.dispatch(record, qr_url, png)
            state = RowState.DISPATCHED

            self._audit.record(AuditEntry.from_row(record, qr_url, token))
            state = RowState.AUDITED
        except Exception as e:
            error_type, message = classify(e)
            logger.error("row %d %s after %s: %s", row_number, error_type, state.value, message)
            self._record_error(ErrorRecord.create(file_name, row_number, error_type, message))
            return RowResult(row=row_number, status=RowStatus.ERROR, error=message)

        logger.info("row %d ok qr_url=%s", row_number, qr_url)
        return RowResult(row=row_number, status=RowStatus.OK, qr_url=qr_url)

    def _record_error(self, record: ErrorRecord) -> None:
        if self._error_log is not None:
            self._error_log.add(record)

    def _flush_error_log(self) -> None:
        if self._error_log is None:
            return
        try:
            path = self._error_log.flush()
        except OSError as e:
            # the BatchResult still carries every row error
            logger.warning("error log flush failed: %s", e)
            return
        if path is not None:
            logger.info("error log written: %s (%s)", path, self._error_log.describe_totals())
