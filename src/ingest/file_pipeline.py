"""File discovery, dispatch, and completion marking.

This module feeds glob matches to a fixed pool of file workers. Each
worker runs one file at a time through its own line pipeline and
renames the file with the done marker once the pipeline drained.
"""

from __future__ import annotations

import glob
from pathlib import Path
import threading
from typing import Any, Callable, Iterable

from core.constants import DEFAULT_MAX_ERROR_RATE, DONE_MARKER
from core.errors import FileIngestError
from core.logging_config import get_logger
from core.types import FileJob, FileOutcome, FileStatus, PipelineWidths
from ingest.input_reader import open_record_lines
from ingest.line_pipeline import LinePipeline
from ingest.work_queue import BoundedWorkQueue, WorkerPool
from store.shard_router import ShardRouter

_LOGGER = get_logger(__name__)


def discover_input_files(pattern: str) -> list[Path]:
    """Return files matching ``pattern`` that are not marked done.

    Args:
        pattern: Glob pattern, absolute or relative to the working directory.

    Returns:
        Sorted unmarked file paths.
    """
    matches = sorted(glob.glob(pattern))
    return [
        Path(match)
        for match in matches
        if Path(match).is_file() and not is_marked_done(Path(match))
    ]


def is_marked_done(file_path: Path) -> bool:
    """Return whether the file name carries the done marker."""
    return file_path.name.startswith(DONE_MARKER)


def mark_file_done(file_path: Path) -> Path:
    """Rename a file in place with the done marker prefix.

    Returns:
        The renamed path.
    """
    marked_path = file_path.with_name(f"{DONE_MARKER}{file_path.name}")
    return file_path.rename(marked_path)


class FileWorker:
    """Processes files one at a time with its own line pipeline."""

    def __init__(
        self,
        pipeline: LinePipeline,
        max_error_rate: float,
        record_outcome: Callable[[FileOutcome], None],
        logger: Any,
    ) -> None:
        self._pipeline = pipeline
        self._max_error_rate = max_error_rate
        self._record_outcome = record_outcome
        self._logger = logger

    def process(self, job: FileJob) -> None:
        """Load one file and mark it done, or skip it on read failure."""
        self._logger.info("file_processing_started", path=str(job.path))
        try:
            with open_record_lines(job.path) as lines:
                outcome = self._pipeline.run(job.path, lines)
        except FileIngestError as error:
            self._skip(job, error)
            return
        self._report(outcome)
        marked_path = mark_file_done(job.path)
        self._logger.debug("file_marked_done", path=str(job.path), marked_path=str(marked_path))
        self._record_outcome(outcome)

    def _skip(self, job: FileJob, error: FileIngestError) -> None:
        self._logger.error(
            "file_skipped",
            path=str(job.path),
            error_kind=error.kind,
            detail=str(error),
        )
        self._record_outcome(
            FileOutcome(path=job.path, status=FileStatus.SKIPPED, failure=str(error))
        )

    def _report(self, outcome: FileOutcome) -> None:
        fields = {
            "path": str(outcome.path),
            "total_lines": outcome.total_lines,
            "error_count": outcome.error_count,
            "error_rate_percent": round(100 * outcome.error_rate, 2),
            "errors_by_kind": dict(outcome.errors_by_kind),
        }
        if outcome.error_rate > self._max_error_rate:
            self._logger.error("file_processed_high_error_rate", **fields)
            return
        self._logger.info("file_processed", **fields)


class FilePipeline:
    """Pool of file workers draining one dispatch queue."""

    def __init__(
        self,
        router: ShardRouter,
        widths: PipelineWidths,
        max_error_rate: float = DEFAULT_MAX_ERROR_RATE,
        logger: Any = None,
    ) -> None:
        self._router = router
        self._widths = widths
        self._max_error_rate = max_error_rate
        self._logger = logger or _LOGGER

    def run(self, file_paths: Iterable[Path]) -> list[FileOutcome]:
        """Process every file and wait for all workers to finish.

        Args:
            file_paths: Unmarked input files.

        Returns:
            One outcome per file, in completion order.
        """
        outcomes: list[FileOutcome] = []
        outcomes_lock = threading.Lock()

        def record_outcome(outcome: FileOutcome) -> None:
            with outcomes_lock:
                outcomes.append(outcome)

        def build_worker() -> Callable[[FileJob], None]:
            pipeline = LinePipeline(self._router, self._widths, self._logger)
            worker = FileWorker(pipeline, self._max_error_rate, record_outcome, self._logger)
            return worker.process

        def on_error(job: FileJob, error: Exception) -> None:
            self._logger.error(
                "file_worker_failed", path=str(job.path), detail=str(error), exc_info=error
            )
            record_outcome(
                FileOutcome(path=job.path, status=FileStatus.SKIPPED, failure=str(error))
            )

        dispatch_queue: BoundedWorkQueue[FileJob] = BoundedWorkQueue(self._widths.file_workers)
        workers = WorkerPool(
            name="file-worker",
            width=self._widths.file_workers,
            source=dispatch_queue,
            worker_factory=build_worker,
            on_error=on_error,
        )
        workers.start()
        try:
            for file_path in file_paths:
                dispatch_queue.put(FileJob(path=file_path))
        finally:
            dispatch_queue.close()
            workers.join()
        return outcomes
