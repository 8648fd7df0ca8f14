"""Errors of the synchronisation utilities and a thread-safe error collector."""

from __future__ import annotations

import threading


class SyncError(Exception):
    """Base class for synchronisation utility errors."""

    default_message = "synchronisation error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(self.default_message if message is None else message)


class WorkerPoolAlreadyStartedError(SyncError):
    default_message = "worker pool already started"


class WorkerPoolStoppedError(SyncError):
    default_message = "worker pool is stopped"


class WorkerPoolAlreadyStoppedError(SyncError):
    default_message = "worker pool already stopped"


class TaskDroppedError(SyncError):
    default_message = "task dropped due to backpressure"


class SyncTimeoutError(SyncError):
    default_message = "operation timed out"


class UnknownBackpressurePolicyError(SyncError):
    default_message = "unknown backpressure policy"


class QueueClosedError(SyncError):
    default_message = "queue is closed"


class QueueFullError(SyncError):
    default_message = "queue is full"


class ItemDroppedError(SyncError):
    default_message = "item dropped due to overflow policy"


class UnknownOverflowPolicyError(SyncError):
    default_message = "unknown overflow policy"


class ContextMergeError(SyncError):
    default_message = "context merge failed"


class MultiError(SyncError):
    """Thread-safe collection of errors that is itself an error."""

    def __init__(self) -> None:
        super().__init__("")
        self._lock = threading.Lock()
        self._errors: list[BaseException] = []

    def add(self, err: BaseException | None) -> None:
        """Record ``err``; ``None`` is ignored."""
        if err is None:
            return
        with self._lock:
            self._errors.append(err)

    def errors(self) -> list[BaseException]:
        """A copy of the collected errors, oldest first."""
        with self._lock:
            return list(self._errors)

    def has_errors(self) -> bool:
        with self._lock:
            return bool(self._errors)

    def count(self) -> int:
        with self._lock:
            return len(self._errors)

    def to_error(self) -> MultiError | None:
        """``None`` when empty, otherwise this collection."""
        return self if self.has_errors() else None

    def clear(self) -> None:
        with self._lock:
            self._errors.clear()

    def first(self) -> BaseException | None:
        with self._lock:
            return self._errors[0] if self._errors else None

    def last(self) -> BaseException | None:
        with self._lock:
            return self._errors[-1] if self._errors else None

    def __str__(self) -> str:
        with self._lock:
            errors = list(self._errors)
        if not errors:
            return ""
        if len(errors) == 1:
            return str(errors[0])
        lines = "\n".join(f"[{number}] {err}" for number, err in enumerate(errors, 1))
        return f"multiple errors occurred:\n{lines}"