"""Bounded work queues and the worker pools that drain them.

A ``BoundedWorkQueue`` blocks producers when full and consumers when
empty. Closing it lets consumers finish the queued items and then
stop. A ``WorkerPool`` runs a fixed set of threads over one queue
until it is drained.
"""

from __future__ import annotations

import queue
import threading
from typing import Callable, Generic, Iterator, TypeVar

from core.errors import PipelineStateError

T = TypeVar("T")

_CLOSED = object()


class BoundedWorkQueue(Generic[T]):
    """Closable FIFO queue with fixed capacity.

    Close only after every producer has finished putting items.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"Queue capacity must be at least 1, got {capacity}")
        self._queue: queue.Queue[object] = queue.Queue(maxsize=capacity)
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        """Whether ``close`` has been called."""
        return self._closed

    def put(self, item: T) -> None:
        """Append an item, blocking while the queue is full.

        Raises:
            PipelineStateError: If the queue is already closed.
        """
        if self._closed:
            raise PipelineStateError("Cannot put into a closed work queue")
        self._queue.put(item)

    def close(self) -> None:
        """Mark the end of input; repeated calls are no-ops."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._queue.put(_CLOSED)

    def drain(self) -> Iterator[T]:
        """Yield items until the queue is closed and empty."""
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                # Leave the marker for the remaining consumers.
                self._queue.put(_CLOSED)
                return
            yield item  # type: ignore[misc]


class WorkerPool(Generic[T]):
    """Fixed-size thread pool draining one work queue.

    Each thread calls ``worker_factory`` once and feeds every item it
    takes from the queue to the returned handler. Exceptions raised by
    a handler go to ``on_error`` and the thread moves on to the next
    item. Exceptions raised by ``on_error`` are counted in
    ``hook_failures``.
    """

    def __init__(
        self,
        name: str,
        width: int,
        source: BoundedWorkQueue[T],
        worker_factory: Callable[[], Callable[[T], None]],
        on_error: Callable[[T, Exception], None],
    ) -> None:
        if width < 1:
            raise ValueError(f"Worker pool width must be at least 1, got {width}")
        self._name = name
        self._width = width
        self._source = source
        self._worker_factory = worker_factory
        self._on_error = on_error
        self._threads: list[threading.Thread] = []
        self._hook_failures = 0
        self._hook_lock = threading.Lock()

    @property
    def width(self) -> int:
        return self._width

    @property
    def hook_failures(self) -> int:
        """Number of times ``on_error`` itself raised."""
        with self._hook_lock:
            return self._hook_failures

    def start(self) -> None:
        """Start all worker threads."""
        if self._threads:
            raise PipelineStateError(f"Worker pool {self._name} already started")
        for index in range(self._width):
            thread = threading.Thread(
                target=self._work, name=f"{self._name}-{index}", daemon=True
            )
            self._threads.append(thread)
            thread.start()

    def join(self) -> None:
        """Wait until every worker has drained the queue and exited."""
        for thread in self._threads:
            thread.join()

    def _work(self) -> None:
        handler = self._worker_factory()
        for item in self._source.drain():
            try:
                handler(item)
            except Exception as error:
                self._report_error(item, error)

    def _report_error(self, item: T, error: Exception) -> None:
        try:
            self._on_error(item, error)
        except Exception:
            # Keep draining; producers block forever once every worker is gone.
            with self._hook_lock:
                self._hook_failures += 1
