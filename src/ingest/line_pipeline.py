"""Per-file line pipeline.

A file worker scans decompressed lines into a bounded line queue.
Parser workers turn lines into upload items on a bounded upload
queue, and uploader workers write those items to their shards.
Every failure is counted against the file being processed.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Iterable

from core.errors import AppsLoadError
from core.logging_config import get_logger
from core.types import FileOutcome, FileStatus, PipelineWidths, UploadItem
from ingest.error_counter import ErrorCounter
from ingest.record_codec import build_upload_item
from ingest.work_queue import BoundedWorkQueue, WorkerPool
from store.shard_router import ShardRouter

_LOGGER = get_logger(__name__)


class LinePipelineState(str, Enum):
    """Lifecycle of one file run through the line pipeline."""

    IDLE = "idle"
    SCANNING = "scanning"
    DRAINING = "draining"
    DONE = "done"


class LinePipeline:
    """Parser and uploader pools for one file at a time.

    A file worker owns one instance and reuses it for each of its
    files; queues, pools, and the error counter are fresh per file.
    """

    def __init__(self, router: ShardRouter, widths: PipelineWidths, logger: Any = None) -> None:
        self._router = router
        self._widths = widths
        self._logger = logger or _LOGGER
        self._state = LinePipelineState.IDLE

    @property
    def state(self) -> LinePipelineState:
        return self._state

    def run(self, file_path: Path, lines: Iterable[str]) -> FileOutcome:
        """Push every line through parsing and upload, then drain.

        Args:
            file_path: Input file the lines belong to.
            lines: Decompressed lines of the file.

        Returns:
            Outcome with final line and error counts.

        Raises:
            DecompressError: If ``lines`` fails mid-stream; the pools are
                drained before the error propagates.
        """
        errors = ErrorCounter()
        line_queue: BoundedWorkQueue[str] = BoundedWorkQueue(self._widths.queue_capacity)
        upload_queue: BoundedWorkQueue[UploadItem] = BoundedWorkQueue(
            self._widths.queue_capacity
        )
        parsers = self._build_parser_pool(file_path, line_queue, upload_queue, errors)
        uploaders = self._build_uploader_pool(file_path, upload_queue, errors)
        uploaders.start()
        parsers.start()
        self._state = LinePipelineState.SCANNING
        total_lines = 0
        try:
            for line in lines:
                total_lines += 1
                line_queue.put(line)
        finally:
            self._state = LinePipelineState.DRAINING
            line_queue.close()
            parsers.join()
            upload_queue.close()
            uploaders.join()
            self._state = LinePipelineState.DONE
        return FileOutcome(
            path=file_path,
            status=FileStatus.DONE,
            total_lines=total_lines,
            error_count=errors.total,
            errors_by_kind=errors.by_kind(),
        )

    def _build_parser_pool(
        self,
        file_path: Path,
        line_queue: BoundedWorkQueue[str],
        upload_queue: BoundedWorkQueue[UploadItem],
        errors: ErrorCounter,
    ) -> WorkerPool[str]:
        def parse(line: str) -> None:
            upload_queue.put(build_upload_item(line))

        def on_error(line: str, error: Exception) -> None:
            errors.record(_error_kind(error))
            self._logger.warning(
                "line_rejected",
                path=str(file_path),
                error_kind=_error_kind(error),
                detail=str(error),
            )

        return WorkerPool(
            name="parser",
            width=self._widths.parser_workers,
            source=line_queue,
            worker_factory=lambda: parse,
            on_error=on_error,
        )

    def _build_uploader_pool(
        self,
        file_path: Path,
        upload_queue: BoundedWorkQueue[UploadItem],
        errors: ErrorCounter,
    ) -> WorkerPool[UploadItem]:
        def on_error(item: UploadItem, error: Exception) -> None:
            errors.record(_error_kind(error))
            self._logger.warning(
                "upload_failed",
                path=str(file_path),
                key=item.key,
                device_type=item.device_type,
                error_kind=_error_kind(error),
                detail=str(error),
            )

        return WorkerPool(
            name="uploader",
            width=self._widths.uploader_workers,
            source=upload_queue,
            worker_factory=lambda: self._router.dispatch,
            on_error=on_error,
        )


def _error_kind(error: Exception) -> str:
    """Return the domain kind of an error, or ``unexpected``."""
    if isinstance(error, AppsLoadError):
        return error.kind
    return "unexpected"
