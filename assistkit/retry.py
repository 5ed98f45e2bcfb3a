"""Retrying calls with exponential backoff, directly or on worker threads."""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

_log = logging.getLogger("assistkit.retry")
_POLL = 0.05


class RetryCancelled(Exception):
    """The retry loop was cancelled before it could finish."""


def _retry_any(error: BaseException | None) -> bool:
    """Retry whenever there is an error at all."""
    return error is not None


@dataclass
class RetryHooks:
    """Callbacks invoked at points of the retry loop; any may be ``None``."""

    before_retry: Callable[[int, BaseException], None] | None = None
    after_retry: Callable[[int, BaseException], None] | None = None
    on_success: Callable[[Any], None] | None = None
    on_fail: Callable[[BaseException], None] | None = None


@dataclass
class RetryConfig:
    """Retry settings; delays are in seconds.

    ``retry_if`` decides whether an error is worth another attempt; ``None``
    retries every error.
    """

    max_retries: int = 3
    initial_delay: float = 0.2
    max_delay: float = 3.0
    multiplier: float = 2.0
    retry_if: Callable[[BaseException], bool] | None = _retry_any
    logger: logging.Logger | None = field(default_factory=lambda: _log)
    hooks: RetryHooks = field(default_factory=RetryHooks)


def default_config() -> RetryConfig:
    """Three retries starting at 200 ms, doubling up to 3 s, retrying every error."""
    return RetryConfig()


def retry_call(
    fn: Callable[[], Any],
    config: RetryConfig | None = None,
    cancel: threading.Event | None = None,
) -> Any:
    """Call *fn* until it succeeds or the retries run out, and return its result.

    The last error is re-raised when all attempts fail or ``retry_if`` rejects it.
    ``RetryCancelled`` is raised if *cancel* is set before an attempt.
    """
    cfg = config if config is not None else default_config()
    logger = cfg.logger if cfg.logger is not None else _log
    hooks = cfg.hooks
    delay = cfg.initial_delay

    for attempt in range(cfg.max_retries + 1):
        if cancel is not None and cancel.is_set():
            logger.info("[retry] context canceled")
            raise RetryCancelled("context canceled")

        try:
            result = fn()
        except Exception as exc:
            error = exc
        else:
            if hooks.on_success is not None:
                hooks.on_success(result)
            return result

        if hooks.before_retry is not None:
            hooks.before_retry(attempt, error)

        if cfg.retry_if is not None and not cfg.retry_if(error):
            if hooks.on_fail is not None:
                hooks.on_fail(error)
            raise error

        logger.warning("[retry] attempt=%d failed: %s", attempt + 1, error)

        if attempt == cfg.max_retries:
            if hooks.on_fail is not None:
                hooks.on_fail(error)
            raise error

        if hooks.after_retry is not None:
            hooks.after_retry(attempt, error)

        if cancel is not None:
            cancel.wait(delay)
        else:
            time.sleep(delay)
        delay = min(cfg.max_delay, delay * cfg.multiplier)

    raise RuntimeError("retry: no attempt was made")


@dataclass
class RetryResult:
    """Outcome of an asynchronous task: a value or the error that ended it."""

    value: Any = None
    error: BaseException | None = None


@dataclass
class AsyncTask:
    """A function to retry on a worker; its result is put on ``done``."""

    fn: Callable[[], Any]
    config: RetryConfig = field(default_factory=default_config)
    done: queue.Queue = field(default_factory=queue.Queue)


class RetryAsyncRunner:
    """Runs submitted tasks with retries on a set of worker threads."""

    def __init__(self, buffer: int = 0, logger: logging.Logger | None = None) -> None:
        self._cancel = threading.Event()
        self._tasks: queue.Queue[object] = queue.Queue(maxsize=max(buffer, 1))
        self._logger = logger if logger is not None else _log
        self._submitters: list[threading.Thread] = []
        self._lock = threading.Lock()

    def submit(self, task: AsyncTask) -> None:
        """Hand *task* to the workers without blocking the caller."""
        thread = threading.Thread(target=self._enqueue, args=(task,), daemon=True)
        with self._lock:
            self._submitters.append(thread)
        thread.start()

    def _enqueue(self, task: AsyncTask) -> None:
        while not self._cancel.is_set():
            try:
                self._tasks.put(task, timeout=_POLL)
            except queue.Full:
                continue
            return
        if task.config.logger is not None:
            task.config.logger.info("[retry async] runner canceled")

    def start(self, workers: int) -> None:
        """Start *workers* threads that run queued tasks."""
        for index in range(workers):
            threading.Thread(
                target=self._work, name=f"retry-worker-{index}", daemon=True
            ).start()

    def _work(self) -> None:
        while not self._cancel.is_set():
            try:
                item = self._tasks.get(timeout=_POLL)
            except queue.Empty:
                continue
            if not isinstance(item, AsyncTask):
                self._logger.warning("[retry async] unknown task type")
                continue
            try:
                result = RetryResult(value=retry_call(item.fn, item.config, self._cancel))
            except Exception as exc:
                result = RetryResult(error=exc)
            item.done.put(result)

    def stop(self) -> None:
        """Cancel the runner and wait for pending submissions to give up."""
        self._cancel.set()
        with self._lock:
            submitters = list(self._submitters)
        for thread in submitters:
            thread.join()