"""A bounded task queue served by worker threads with a concurrency limit."""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

Task = Callable[[], object]

_CLOSED = object()


@dataclass(frozen=True)
class PoolStats:
    """Counters of a pool at one moment."""

    running: int
    current_queued: int
    total_queued: int
    rejected: int


@dataclass
class WorkPoolConfig:
    """Settings for ``new_with_config``; workers start only if *worker_count* > 0."""

    name: str = ""
    max_concurrent: int = 1
    max_queue: int = 0
    worker_count: int = 0


class _TaskQueue:
    """A queue with a fixed capacity; with capacity 0 a put succeeds only for a waiting taker."""

    def __init__(self, capacity: int) -> None:
        self._capacity = max(capacity, 0)
        self._items: deque[Task] = deque()
        self._waiting = 0
        self._closed = False
        self._cond = threading.Condition()

    def offer(self, item: Task) -> bool:
        with self._cond:
            if self._closed:
                raise RuntimeError("work pool is stopped")
            if len(self._items) >= max(self._capacity, self._waiting):
                return False
            self._items.append(item)
            self._cond.notify()
            return True

    def take(self) -> object:
        with self._cond:
            self._waiting += 1
            try:
                while not self._items and not self._closed:
                    self._cond.wait()
            finally:
                self._waiting -= 1
            if self._items:
                return self._items.popleft()
            return _CLOSED

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()


class WorkPool:
    """Queues up to *max_queue* tasks and runs at most *max_concurrent* at a time."""

    def __init__(self, name: str, max_concurrent: int, max_queue: int) -> None:
        self.name = name
        self.max_concurrent = max_concurrent
        self.max_queue = max_queue
        self._slots = threading.Semaphore(max_concurrent)
        self._tasks = _TaskQueue(max_queue)
        self._workers: list[threading.Thread] = []
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._running = 0
        self._pending = 0
        self._queued = 0
        self._current_queued = 0
        self._rejected = 0

    def submit(self, task: Task, cancel: threading.Event | None = None) -> bool:
        """Queue *task* without blocking; return ``False`` if the queue is full or *cancel* is set."""
        if cancel is not None and cancel.is_set():
            return False
        if self._tasks.offer(task):
            with self._lock:
                self._queued += 1
                self._current_queued += 1
            return True
        with self._lock:
            self._rejected += 1
        return False

    def start(self, worker_count: int) -> None:
        """Start *worker_count* threads that take tasks from the queue."""
        for index in range(worker_count):
            worker = threading.Thread(
                target=self._work, name=f"{self.name}-worker-{index}", daemon=True
            )
            self._workers.append(worker)
            worker.start()

    def _work(self) -> None:
        while True:
            task = self._tasks.take()
            if task is _CLOSED:
                return
            with self._lock:
                self._current_queued -= 1
            self._slots.acquire()
            with self._lock:
                self._running += 1
                self._pending += 1
            threading.Thread(target=self._run_task, args=(task,), daemon=True).start()

    def _run_task(self, task: Task) -> None:
        try:
            task()
        finally:
            with self._lock:
                self._running -= 1
                self._pending -= 1
                self._idle.notify_all()
            self._slots.release()

    def stop(self) -> None:
        """Stop accepting tasks, finish the queued ones and wait for all to complete."""
        self._tasks.close()
        self.wait()
        with self._idle:
            while self._pending > 0:
                self._idle.wait()

    def wait(self) -> None:
        """Wait for the worker threads to exit."""
        for worker in self._workers:
            worker.join()

    def stats(self) -> PoolStats:
        """Return the current counters."""
        with self._lock:
            return PoolStats(
                running=self._running,
                current_queued=self._current_queued,
                total_queued=self._queued,
                rejected=self._rejected,
            )

    def running(self) -> int:
        """Number of tasks executing right now."""
        with self._lock:
            return self._running

    def __str__(self) -> str:
        return self.name


def new_with_config(config: WorkPoolConfig) -> WorkPool:
    """Create a pool from *config*, starting its workers if a count is given."""
    pool = WorkPool(config.name, config.max_concurrent, config.max_queue)
    if config.worker_count > 0:
        pool.start(config.worker_count)
    return pool


class TimedWorkPool:
    """A pool whose tasks are skipped if their deadline has passed when they start.

    *timeout* is in seconds and counts from the moment a task is picked up.
    """

    def __init__(self, name: str, max_concurrent: int, max_queue: int, timeout: float) -> None:
        self.pool = WorkPool(name, max_concurrent, max_queue)
        self.timeout = timeout

    def submit(self, task: Task) -> bool:
        """Queue *task*; return ``False`` if the queue is full."""
        timeout = self.timeout

        def timed() -> None:
            deadline = time.monotonic() + timeout
            if time.monotonic() < deadline:
                task()

        return self.pool.submit(timed)

    def start(self, worker_count: int) -> None:
        """Start the worker threads."""
        self.pool.start(worker_count)

    def stop(self) -> None:
        """Finish queued tasks and stop."""
        self.pool.stop()

    def stats(self) -> PoolStats:
        """Return the pool's counters."""
        return self.pool.stats()