"""Single-worker FIFO queue for disk mutations."""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from tiercache.errors.exceptions import QueueClosedError

logger = logging.getLogger(__name__)

_STOP = object()


@dataclass
class _Task:
    fn: Callable[..., Any]
    args: tuple[Any, ...] = field(default_factory=tuple)
    description: str = ""


class WriteQueue:
    """Runs submitted tasks one at a time, in submission order, on a daemon thread.

    ``enqueue`` returns as soon as the task is queued. A task that raises is
    logged and counted; the worker keeps going with the next one. Nothing is
    reported back to whoever enqueued it.
    """

    def __init__(self, name: str = "tiercache-writer") -> None:
        self._name = name
        self._queue: queue.Queue[Any] = queue.Queue()
        self._worker: threading.Thread | None = None
        self._lock = threading.Lock()
        self._closed = False
        self._completed = 0
        self._failed = 0

    def enqueue(self, fn: Callable[..., Any], *args: Any, description: str = "") -> None:
        """Queue ``fn(*args)`` to run after everything queued before it."""
        with self._lock:
            if self._closed:
                raise QueueClosedError(f"Write queue {self._name} is closed")
            self._ensure_worker()
            self._queue.put(_Task(fn, args, description or getattr(fn, "__name__", "task")))

    def join(self, timeout: float | None = None) -> bool:
        """Wait until every task queued so far has run.

        Returns False if ``timeout`` elapsed first.
        """
        if timeout is None:
            self._queue.join()
            return True
        deadline = time.monotonic() + timeout
        # queue.Queue.join has no timeout; poll unfinished_tasks under its condition
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._queue.all_tasks_done.wait(remaining)
        return True

    def close(self, timeout: float | None = None) -> None:
        """Stop accepting tasks, finish pending ones, stop the worker."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            worker = self._worker
            if worker is not None:
                self._queue.put(_STOP)
        if worker is not None:
            worker.join(timeout)
            if worker.is_alive():
                logger.warning(
                    "Write queue %s still has %d pending tasks after close",
                    self._name,
                    self.pending,
                )

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def completed_count(self) -> int:
        return self._completed

    @property
    def failed_count(self) -> int:
        return self._failed

    def _ensure_worker(self) -> None:
        if self._worker is None or not self._worker.is_alive():
            self._worker = threading.Thread(target=self._run, name=self._name, daemon=True)
            self._worker.start()

    def _run(self) -> None:
        while True:
            task = self._queue.get()
            try:
                if task is _STOP:
                    return
                self._execute(task)
            finally:
                self._queue.task_done()

    def _execute(self, task: _Task) -> None:
        try:
            task.fn(*task.args)
        except Exception:
            self._failed += 1
            logger.exception("Disk task failed: %s", task.description)
        else:
            self._completed += 1
            logger.debug("Disk task done: %s", task.description)
