"""Per-file error accounting shared by pipeline workers."""

from __future__ import annotations

from collections import Counter
import threading


class ErrorCounter:
    """Thread-safe error counter with a per-kind breakdown.

    One counter is created per file and shared by all parser and
    uploader workers of that file. Read it only after they joined.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_kind: Counter[str] = Counter()
        self._total = 0

    def record(self, kind: str) -> None:
        """Count one failure of the given kind."""
        with self._lock:
            self._total += 1
            self._by_kind[kind] += 1

    @property
    def total(self) -> int:
        with self._lock:
            return self._total

    def by_kind(self) -> dict[str, int]:
        """Return a snapshot of failures per kind."""
        with self._lock:
            return dict(self._by_kind)
