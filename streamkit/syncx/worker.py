"""A bounded pool of worker threads with backpressure policies and metrics."""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .errors import (
    SyncTimeoutError,
    TaskDroppedError,
    UnknownBackpressurePolicyError,
    WorkerPoolAlreadyStartedError,
    WorkerPoolAlreadyStoppedError,
    WorkerPoolStoppedError,
)

_log = logging.getLogger(__name__)

_DEFAULT_QUEUE_SIZE = 100

Task = Callable[[], object]


class BackpressurePolicy(Enum):
    """What a submit does when the task queue is full."""

    BLOCK = 0
    DROP_OLDEST = 1
    DROP_NEWEST = 2


@dataclass
class WorkerConfig:
    """Settings of a worker pool; zero or negative sizes take the defaults."""

    workers: int = 1
    queue_size: int = _DEFAULT_QUEUE_SIZE
    backpressure: BackpressurePolicy = BackpressurePolicy.BLOCK
    metrics: bool = False


@dataclass
class WorkerMetrics:
    """Counters describing a pool's activity."""

    tasks_submitted: int = 0
    tasks_completed: int = 0
    tasks_dropped: int = 0
    queue_depth: int = 0
    active_workers: int = 0


class WorkerPool:
    """Runs submitted callables on a fixed number of threads."""

    def __init__(self, config: WorkerConfig | None = None) -> None:
        config = config if config is not None else WorkerConfig()
        self._workers = config.workers if config.workers > 0 else 1
        self._queue_size = config.queue_size if config.queue_size > 0 else _DEFAULT_QUEUE_SIZE
        self._backpressure = config.backpressure
        self._metrics = WorkerMetrics() if config.metrics else None
        self._metrics_lock = threading.Lock()

        self._queue: deque[Task | None] = deque()
        self._cond = threading.Condition()
        self._quit = False

        self._state_lock = threading.Lock()
        self._started = False
        self._stopped = False
        self._threads: list[threading.Thread] = []

    @property
    def workers(self) -> int:
        return self._workers

    @property
    def queue_size(self) -> int:
        return self._queue_size

    @property
    def backpressure(self) -> BackpressurePolicy:
        return self._backpressure

    def start(self) -> None:
        """Launch the worker threads; raise if already started."""
        with self._state_lock:
            if self._started:
                raise WorkerPoolAlreadyStartedError()
            self._started = True
            for number in range(self._workers):
                thread = threading.Thread(
                    target=self._run, name=f"worker-{number}", daemon=True
                )
                self._threads.append(thread)
                thread.start()

    def submit(self, task: Task) -> None:
        """Queue ``task``, applying the backpressure policy when the queue is full."""
        if self.is_stopped():
            raise WorkerPoolStoppedError()
        self._update_metrics(submitted=1, depth=self.queue_depth())
        with self._cond:
            if len(self._queue) < self._queue_size:
                self._enqueue(task)
                return
        self._handle_backpressure(task)

    def submit_with_timeout(self, task: Task, timeout: float) -> None:
        """Queue ``task``, waiting at most ``timeout`` seconds for room."""
        if self.is_stopped():
            raise WorkerPoolStoppedError()
        with self._cond:
            has_room = self._cond.wait_for(
                lambda: len(self._queue) < self._queue_size, max(timeout, 0.0)
            )
            if not has_room:
                raise SyncTimeoutError()
            self._enqueue(task)
            depth = len(self._queue)
        self._update_metrics(submitted=1, depth=depth)

    def stop(self, timeout: float | None = None) -> None:
        """Signal the workers to quit and wait for them.

        Raises ``WorkerPoolAlreadyStoppedError`` on a second call and
        ``SyncTimeoutError`` if the workers do not exit within ``timeout``.
        """
        with self._state_lock:
            if self._stopped:
                raise WorkerPoolAlreadyStoppedError()
            self._stopped = True
            threads = list(self._threads)
        with self._cond:
            self._quit = True
            self._cond.notify_all()

        deadline = None if timeout is None else time.monotonic() + timeout
        for thread in threads:
            remaining = None if deadline is None else max(deadline - time.monotonic(), 0.0)
            thread.join(remaining)
            if thread.is_alive():
                raise SyncTimeoutError()

    def metrics(self) -> WorkerMetrics:
        """A snapshot of the metrics; all zero when metrics are disabled."""
        if self._metrics is None:
            return WorkerMetrics()
        with self._metrics_lock:
            return dataclasses.replace(self._metrics)

    def queue_depth(self) -> int:
        with self._cond:
            return len(self._queue)

    def is_started(self) -> bool:
        with self._state_lock:
            return self._started

    def is_stopped(self) -> bool:
        with self._state_lock:
            return self._stopped

    def _enqueue(self, task: Task) -> None:
        self._queue.append(task)
        self._cond.notify_all()

    def _update_metrics(
        self,
        *,
        submitted: int = 0,
        completed: int = 0,
        dropped: int = 0,
        active: int = 0,
        depth: int | None = None,
    ) -> None:
        if self._metrics is None:
            return
        with self._metrics_lock:
            self._metrics.tasks_submitted += submitted
            self._metrics.tasks_completed += completed
            self._metrics.tasks_dropped += dropped
            self._metrics.active_workers += active
            if depth is not None:
                self._metrics.queue_depth = depth

    def _put_waiting(self, task: Task) -> None:
        with self._cond:
            self._cond.wait_for(lambda: len(self._queue) < self._queue_size or self._quit)
            if self._quit:
                raise WorkerPoolStoppedError()
            self._enqueue(task)

    def _handle_backpressure(self, task: Task) -> None:
        policy = self._backpressure
        if policy is BackpressurePolicy.BLOCK:
            self._put_waiting(task)
        elif policy is BackpressurePolicy.DROP_OLDEST:
            with self._cond:
                dropped = bool(self._queue)
                if dropped:
                    self._queue.popleft()
                    self._cond.notify_all()
            if dropped:
                self._update_metrics(dropped=1)
            self._put_waiting(task)
        elif policy is BackpressurePolicy.DROP_NEWEST:
            self._update_metrics(dropped=1)
            raise TaskDroppedError()
        else:
            raise UnknownBackpressurePolicyError()

    def _run(self) -> None:
        self._update_metrics(active=1)
        try:
            while True:
                with self._cond:
                    self._cond.wait_for(lambda: bool(self._queue) or self._quit)
                    if self._quit:
                        return
                    task = self._queue.popleft()
                    self._cond.notify_all()
                if task is None:
                    continue
                try:
                    task()
                except Exception:
                    _log.exception("worker task failed")
                    continue
                self._update_metrics(completed=1, depth=self.queue_depth())
        finally:
            self._update_metrics(active=-1)