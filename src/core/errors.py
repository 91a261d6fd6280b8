"""Appsload exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Per-line, per-upload, and per-file errors are recoverable and carry
a short ``kind`` used for error breakdowns in file outcomes.
"""

from __future__ import annotations


class AppsLoadError(Exception):
    """Base exception for all appsload failures."""

    kind = "error"


class AppsLoadConfigError(AppsLoadError):
    """Raised for invalid runtime configuration."""

    kind = "config"


class PipelineStateError(AppsLoadError):
    """Raised when a work queue is used after it was closed."""

    kind = "pipeline_state"


class RecordError(AppsLoadError):
    """Raised when one input line cannot become an upload item."""

    kind = "record"


class MalformedLineError(RecordError):
    """Raised for lines without exactly five tab-separated fields."""

    kind = "malformed_line"


class InvalidAppIdError(RecordError):
    """Raised for app id tokens that are not 32-bit integers."""

    kind = "invalid_app_id"


class InvalidGeoError(RecordError):
    """Raised for latitude or longitude values that are not floats."""

    kind = "invalid_geo"


class RecordSerializationError(RecordError):
    """Raised when a parsed record cannot be encoded."""

    kind = "serialization"


class UploadError(AppsLoadError):
    """Raised when one upload item cannot be written to its shard."""

    kind = "upload"


class UnknownShardError(UploadError):
    """Raised for device types without a configured shard."""

    kind = "unknown_shard"


class ShardWriteError(UploadError):
    """Raised when a shard backend rejects or fails a write."""

    kind = "write"


class FileIngestError(AppsLoadError):
    """Raised when an input file cannot be read as a record stream."""

    kind = "file"


class FileOpenError(FileIngestError):
    """Raised when an input file cannot be opened."""

    kind = "file_open"


class DecompressError(FileIngestError):
    """Raised when an input file is not a readable gzip stream."""

    kind = "decompress"
