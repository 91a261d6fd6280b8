"""Shared typed models.

This module defines immutable data models passed between the codec,
shard router, and pipeline layers to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Mapping

from core.constants import KEY_SEPARATOR


@dataclass(frozen=True)
class InstallRecord:
    """Installed applications of one device.

    Attributes:
        app_ids: Ordered unsigned 32-bit application ids.
        latitude: Device latitude.
        longitude: Device longitude.
    """

    app_ids: tuple[int, ...]
    latitude: float
    longitude: float


@dataclass(frozen=True)
class ParsedLine:
    """Validated content of one input line.

    Attributes:
        device_type: Device id namespace, also the shard label.
        device_id: Device identifier within its namespace.
        record: Parsed install record.
    """

    device_type: str
    device_id: str
    record: InstallRecord

    @property
    def key(self) -> str:
        """Cache key for this device."""
        return f"{self.device_type}{KEY_SEPARATOR}{self.device_id}"


@dataclass(frozen=True)
class UploadItem:
    """Serialized record ready for a shard write.

    Attributes:
        key: Cache key ``device_type:device_id``.
        value: Encoded install record payload.
        device_type: Shard label used for routing.
    """

    key: str
    value: bytes
    device_type: str


@dataclass(frozen=True)
class ShardAddress:
    """Network address of one cache shard."""

    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class ShardTable:
    """Device type to shard address mapping for one run.

    Attributes:
        addresses: Shard address per device type.
    """

    addresses: Mapping[str, ShardAddress]

    @property
    def device_types(self) -> tuple[str, ...]:
        """Configured device types in stable order."""
        return tuple(sorted(self.addresses))


@dataclass(frozen=True)
class PipelineWidths:
    """Worker pool sizes and queue capacity.

    Attributes:
        file_workers: Files processed concurrently.
        parser_workers: Parser threads per file.
        uploader_workers: Uploader threads per file.
        queue_capacity: Capacity of each line and upload queue.
    """

    file_workers: int
    parser_workers: int
    uploader_workers: int
    queue_capacity: int


@dataclass(frozen=True)
class FileJob:
    """One input file dispatched to a file worker."""

    path: Path


class FileStatus(str, Enum):
    """Final state of one input file."""

    DONE = "done"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class FileOutcome:
    """Result of processing one input file.

    Attributes:
        path: Input path as discovered.
        status: Whether the file was drained and marked or skipped.
        total_lines: Lines read from the decompressed stream.
        error_count: Lines and uploads that failed.
        errors_by_kind: Error count per error kind.
        failure: Reason the file was skipped, if it was.
    """

    path: Path
    status: FileStatus
    total_lines: int = 0
    error_count: int = 0
    errors_by_kind: Mapping[str, int] = field(default_factory=dict)
    failure: str | None = None

    @property
    def error_rate(self) -> float:
        """Fraction of failed lines; zero for an empty file."""
        if self.total_lines == 0:
            return 0.0
        return self.error_count / self.total_lines


@dataclass(frozen=True)
class RunSummary:
    """Aggregate result of one load run.

    Attributes:
        outcomes: Per-file outcomes in completion order.
        elapsed_seconds: Wall-clock duration of the run.
    """

    outcomes: tuple[FileOutcome, ...]
    elapsed_seconds: float

    @property
    def processed_files(self) -> int:
        """Files drained and marked done."""
        return sum(1 for outcome in self.outcomes if outcome.status is FileStatus.DONE)

    @property
    def skipped_files(self) -> int:
        """Files left unmarked after an open or decompress failure."""
        return sum(1 for outcome in self.outcomes if outcome.status is FileStatus.SKIPPED)

    @property
    def total_lines(self) -> int:
        """Lines read across all files."""
        return sum(outcome.total_lines for outcome in self.outcomes)

    @property
    def error_count(self) -> int:
        """Failed lines and uploads across all files."""
        return sum(outcome.error_count for outcome in self.outcomes)
