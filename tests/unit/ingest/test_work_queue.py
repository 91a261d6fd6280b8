"""Unit tests for bounded work queues and worker pools."""

from __future__ import annotations

import threading

import pytest

from core.errors import PipelineStateError
from ingest.work_queue import BoundedWorkQueue, WorkerPool


def _ignore_error(item: object, error: Exception) -> None:
    return None


def test_drain_yields_items_then_stops_after_close() -> None:
    """Consumers should see queued items before the close marker."""
    work_queue: BoundedWorkQueue[int] = BoundedWorkQueue(4)
    for item in [1, 2, 3]:
        work_queue.put(item)
    work_queue.close()

    assert list(work_queue.drain()) == [1, 2, 3]
    assert list(work_queue.drain()) == []


def test_put_after_close_raises() -> None:
    work_queue: BoundedWorkQueue[int] = BoundedWorkQueue(1)
    work_queue.close()

    with pytest.raises(PipelineStateError):
        work_queue.put(1)

    assert work_queue.closed


def test_queue_rejects_zero_capacity() -> None:
    with pytest.raises(ValueError):
        BoundedWorkQueue(0)


def test_worker_pool_processes_every_item_once() -> None:
    """All pool threads should share the queue without losing items."""
    work_queue: BoundedWorkQueue[int] = BoundedWorkQueue(2)
    seen: list[int] = []
    lock = threading.Lock()

    def handle(item: int) -> None:
        with lock:
            seen.append(item)

    pool = WorkerPool("test", 4, work_queue, lambda: handle, _ignore_error)
    pool.start()
    for item in range(200):
        work_queue.put(item)
    work_queue.close()
    pool.join()

    assert sorted(seen) == list(range(200))


def test_worker_pool_reports_handler_errors_and_continues() -> None:
    """A failing item should go to on_error without stopping the worker."""
    work_queue: BoundedWorkQueue[int] = BoundedWorkQueue(8)
    failures: list[int] = []
    handled: list[int] = []

    def handle(item: int) -> None:
        if item % 2:
            raise RuntimeError(f"odd {item}")
        handled.append(item)

    pool = WorkerPool(
        "test", 1, work_queue, lambda: handle, lambda item, error: failures.append(item)
    )
    pool.start()
    for item in range(6):
        work_queue.put(item)
    work_queue.close()
    pool.join()

    assert handled == [0, 2, 4]
    assert failures == [1, 3, 5]


def test_worker_pool_builds_one_handler_per_thread() -> None:
    work_queue: BoundedWorkQueue[int] = BoundedWorkQueue(1)
    built: list[str] = []
    lock = threading.Lock()

    def factory():
        with lock:
            built.append(threading.current_thread().name)
        return lambda item: None

    pool = WorkerPool("files", 3, work_queue, factory, _ignore_error)
    pool.start()
    work_queue.close()
    pool.join()

    assert sorted(built) == ["files-0", "files-1", "files-2"]


def test_worker_pool_cannot_start_twice() -> None:
    work_queue: BoundedWorkQueue[int] = BoundedWorkQueue(1)
    pool = WorkerPool("test", 1, work_queue, lambda: (lambda item: None), _ignore_error)
    pool.start()

    with pytest.raises(PipelineStateError):
        pool.start()

    work_queue.close()
    pool.join()


def test_worker_pool_keeps_draining_when_error_hook_raises() -> None:
    """A failing on_error hook should not kill the worker or stall producers."""
    work_queue: BoundedWorkQueue[int] = BoundedWorkQueue(1)

    def handle(item: int) -> None:
        raise RuntimeError(f"bad item {item}")

    def failing_hook(item: int, error: Exception) -> None:
        raise OSError("log sink gone")

    pool = WorkerPool("test", 1, work_queue, lambda: handle, failing_hook)
    pool.start()

    def produce() -> None:
        for item in range(5):
            work_queue.put(item)
        work_queue.close()

    producer = threading.Thread(target=produce)
    producer.start()
    producer.join(timeout=5)
    pool.join()

    assert not producer.is_alive()
    assert pool.hook_failures == 5
