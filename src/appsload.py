"""Public SDK surface for appsload.

This module provides a stable import path for embedding the loader.
It re-exports the run entry point and typed config and result models.
"""

from __future__ import annotations

from core.config import LoaderConfig
from core.types import FileOutcome, FileStatus, InstallRecord, RunSummary, UploadItem
from ingest.record_codec import build_upload_item, decode_record, parse_line, serialize_record
from ingest.run_supervisor import load_installed_apps
from store.shard_router import ShardRouter

__all__ = [
    "FileOutcome",
    "FileStatus",
    "InstallRecord",
    "LoaderConfig",
    "RunSummary",
    "ShardRouter",
    "UploadItem",
    "build_upload_item",
    "decode_record",
    "load_installed_apps",
    "parse_line",
    "serialize_record",
]
