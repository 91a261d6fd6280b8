"""Gzip line readers for ingestion.

This module opens a compressed input file, validates its gzip header
up front, and streams decoded lines to the line pipeline.
"""

from __future__ import annotations

from contextlib import contextmanager
import gzip
import io
from pathlib import Path
from typing import BinaryIO, Iterator
import zlib

from core.constants import INPUT_ENCODING
from core.errors import DecompressError, FileOpenError

_GZIP_ERRORS = (gzip.BadGzipFile, EOFError, zlib.error)
_GZIP_MAGIC = b"\x1f\x8b"


@contextmanager
def open_record_lines(file_path: Path) -> Iterator[Iterator[str]]:
    """Open a gzip file and yield an iterator over its lines.

    Open and header failures are raised before any line is produced.
    Corruption found later in the stream is raised while iterating.

    Args:
        file_path: Path to a gzip-compressed text file.

    Yields:
        Lines without their line terminators.

    Raises:
        FileOpenError: If the file cannot be opened.
        DecompressError: If the gzip stream is invalid.
    """
    try:
        raw_handle = file_path.open("rb")
    except OSError as error:
        raise FileOpenError(f"Failed to open input file {file_path}: {error}") from error
    with raw_handle:
        _check_gzip_magic(file_path, raw_handle)
        gzip_handle = gzip.GzipFile(fileobj=raw_handle, mode="rb")
        _check_gzip_header(file_path, gzip_handle)
        with io.TextIOWrapper(
            gzip_handle, encoding=INPUT_ENCODING, errors="replace", newline="\n"
        ) as text_handle:
            yield _iter_lines(file_path, text_handle)


def _check_gzip_magic(file_path: Path, raw_handle: BinaryIO) -> None:
    """Require the gzip magic bytes, so zero-byte files are rejected.

    Raises:
        DecompressError: If the file does not start with a gzip header.
    """
    magic = raw_handle.read(len(_GZIP_MAGIC))
    if magic != _GZIP_MAGIC:
        raise DecompressError(
            f"Invalid gzip stream in {file_path}: expected gzip header, got {magic!r}"
        )
    raw_handle.seek(0)


def _check_gzip_header(file_path: Path, gzip_handle: gzip.GzipFile) -> None:
    """Force the gzip header to be read.

    Raises:
        DecompressError: If the header is not a valid gzip header.
    """
    try:
        gzip_handle.peek(1)
    except (*_GZIP_ERRORS, OSError) as error:
        raise DecompressError(f"Invalid gzip stream in {file_path}: {error}") from error


def _iter_lines(file_path: Path, text_handle: io.TextIOWrapper) -> Iterator[str]:
    try:
        for line in text_handle:
            yield line.rstrip("\r\n")
    except _GZIP_ERRORS as error:
        raise DecompressError(f"Corrupt gzip data in {file_path}: {error}") from error

