"""Structured logging configuration.

This module renders structlog events as JSON lines with a stable
format. The run supervisor owns the sink: it opens stdout or a log
file once per run and closes it when the run ends.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
import sys
from typing import Any, Iterator, TextIO

import structlog


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger bound to the currently configured sink.
    """
    return structlog.get_logger(name)


def configure_logging(stream: TextIO | None = None) -> None:
    """Route structured events to ``stream`` as JSON lines.

    Args:
        stream: Open text stream, or None for the current stdout.
    """
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )


@contextmanager
def open_log_sink(log_path: Path | None) -> Iterator[None]:
    """Configure logging for one run and release the sink afterwards.

    Args:
        log_path: Append-mode log file, or None to log to stdout.

    Yields:
        Nothing; logging is configured while the context is active.
    """
    if log_path is None:
        configure_logging()
        try:
            yield
        finally:
            sys.stdout.flush()
        return
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with log_path.open("a", encoding="utf-8") as log_file:
        configure_logging(log_file)
        try:
            yield
        finally:
            log_file.flush()
            configure_logging()
