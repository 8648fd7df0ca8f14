"""Cancellation contexts and context-aware synchronisation helpers."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from .errors import SyncError, SyncTimeoutError

_Callback = Callable[["Context"], None]


class ContextCancelledError(SyncError):
    default_message = "context canceled"


class DeadlineExceededError(SyncError):
    default_message = "context deadline exceeded"


class Context:
    """A cancellation signal that flows from parents to children.

    A context finishes once, either cancelled or past its deadline, and
    every context derived from it finishes with the same error. Contexts
    also carry values, looked up through the chain of parents.
    """

    def __init__(
        self,
        parent: Context | None = None,
        values: dict[Any, Any] | None = None,
        *,
        cancellable: bool = True,
    ) -> None:
        self._parent = parent
        self._values = dict(values or {})
        self._cancellable = cancellable
        self._never_done = not cancellable and (parent is None or parent._never_done)
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._err: SyncError | None = None
        self._callbacks: list[_Callback] = []
        self._timer: threading.Timer | None = None
        if parent is not None and not parent._never_done:
            parent._add_done_callback(self._on_parent_done)

    def cancel(self) -> None:
        """Cancel this context and everything derived from it."""
        if self._cancellable:
            self._finish(ContextCancelledError())

    def done(self) -> bool:
        """Whether the context has finished."""
        return self._event.is_set()

    def error(self) -> SyncError | None:
        """Why the context finished, or ``None`` while it is live."""
        with self._lock:
            return self._err

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the context finishes; ``False`` if ``timeout`` ran out first."""
        return self._event.wait(timeout)

    def value(self, key: Any) -> Any:
        """The value stored under ``key`` here or in a parent, else ``None``."""
        ctx: Context | None = self
        while ctx is not None:
            if key in ctx._values:
                return ctx._values[key]
            ctx = ctx._parent
        return None

    def __enter__(self) -> Context:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()

    def __repr__(self) -> str:
        state = "live" if self._err is None else str(self._err)
        return f"<Context {state}>"

    def _on_parent_done(self, parent: Context) -> None:
        err = parent.error()
        if err is not None:
            self._finish(err)

    def _add_done_callback(self, callback: _Callback) -> None:
        if self._never_done:
            return
        with self._lock:
            if self._err is None:
                self._callbacks.append(callback)
                return
        callback(self)

    def _remove_done_callback(self, callback: _Callback) -> None:
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

    def _start_deadline(self, timeout: float) -> None:
        if timeout <= 0:
            self._finish(DeadlineExceededError())
            return
        timer = threading.Timer(timeout, self._finish, args=(DeadlineExceededError(),))
        timer.daemon = True
        with self._lock:
            if self._err is not None:
                return
            self._timer = timer
            timer.start()

    def _finish(self, err: SyncError) -> None:
        with self._lock:
            if self._err is not None:
                return
            self._err = err
            callbacks, self._callbacks = self._callbacks, []
            timer, self._timer = self._timer, None
        self._event.set()
        if timer is not None:
            timer.cancel()
        if self._parent is not None:
            self._parent._remove_done_callback(self._on_parent_done)
        for callback in callbacks:
            callback(self)


_BACKGROUND = Context(cancellable=False)


def background() -> Context:
    """The root context, which never finishes."""
    return _BACKGROUND


def with_cancel(parent: Context) -> Context:
    """A cancellable child of ``parent``."""
    return Context(parent)


def with_timeout(parent: Context, timeout: float) -> Context:
    """A child of ``parent`` that finishes ``timeout`` seconds from now."""
    ctx = Context(parent)
    ctx._start_deadline(timeout)
    return ctx


def merge_contexts(*contexts: Context) -> Context:
    """A context cancelled as soon as any of ``contexts`` finishes."""
    if not contexts:
        return with_cancel(background())
    if len(contexts) == 1:
        return with_cancel(contexts[0])

    merged = Context(background())

    def on_source_done(_source: Context) -> None:
        merged.cancel()

    def detach(_merged: Context) -> None:
        for source in contexts:
            source._remove_done_callback(on_source_done)

    merged._add_done_callback(detach)
    for source in contexts:
        source._add_done_callback(on_source_done)
    return merged


def with_timeout_fallback(
    parent: Context, timeout: float, fallback: Callable[[], None] | None
) -> Context:
    """A timed child of ``parent`` that calls ``fallback`` if its deadline passes."""
    ctx = Context(parent)

    def check(done: Context) -> None:
        if isinstance(done.error(), DeadlineExceededError) and fallback is not None:
            fallback()

    ctx._add_done_callback(check)
    ctx._start_deadline(timeout)
    return ctx


def with_values(parent: Context, *key_values: Any) -> Context:
    """A child of ``parent`` carrying alternating keys and values."""
    if len(key_values) % 2:
        raise ValueError("key_values must contain an even number of elements")
    values = dict(zip(key_values[::2], key_values[1::2]))
    return Context(parent, values, cancellable=False)


@contextmanager
def _notify_on_done(context: Context, cond: threading.Condition) -> Iterator[None]:
    def wake(_ctx: Context) -> None:
        with cond:
            cond.notify_all()

    context._add_done_callback(wake)
    try:
        yield
    finally:
        context._remove_done_callback(wake)


class WaitGroup:
    """Counts outstanding work; waiting gives up when the context finishes."""

    def __init__(self, context: Context | None = None) -> None:
        self._context = context if context is not None else background()
        self._cond = threading.Condition()
        self._count = 0

    def add(self, delta: int) -> None:
        with self._cond:
            if self._count + delta < 0:
                raise ValueError("negative WaitGroup counter")
            self._count += delta
            if self._count == 0:
                self._cond.notify_all()

    def done(self) -> None:
        self.add(-1)

    def wait(self) -> None:
        """Block until the counter is zero; raise the context's error if it finishes first."""
        self._wait(None)

    def wait_with_timeout(self, timeout: float) -> None:
        """Like ``wait`` but raise ``DeadlineExceededError`` after ``timeout`` seconds."""
        self._wait(timeout)

    def _wait(self, timeout: float | None) -> None:
        with _notify_on_done(self._context, self._cond), self._cond:
            self._cond.wait_for(lambda: self._count == 0 or self._context.done(), timeout)
            if self._count == 0:
                return
            err = self._context.error()
            if err is not None:
                raise err
            raise DeadlineExceededError()


class Barrier:
    """Releases its waiters together once ``n`` of them have arrived."""

    def __init__(self, n: int) -> None:
        self._n = n
        self._count = 0
        self._released = False
        self._cond = threading.Condition()

    def _arrive(self) -> None:
        if self._released:
            return
        self._count += 1
        if self._count == self._n:
            self._released = True
            self._cond.notify_all()

    def wait(self) -> None:
        with self._cond:
            self._arrive()
            self._cond.wait_for(lambda: self._released)

    def wait_with_context(self, context: Context) -> None:
        """Arrive and wait; raise the context's error if it finishes first."""
        with _notify_on_done(context, self._cond), self._cond:
            self._arrive()
            self._cond.wait_for(lambda: self._released or context.done())
            if self._released:
                return
            err = context.error()
            raise err if err is not None else ContextCancelledError()

    def reset(self) -> None:
        """Make the barrier reusable."""
        with self._cond:
            self._count = 0
            self._released = False


class Latch:
    """A one-shot gate that stays open once released."""

    def __init__(self) -> None:
        self._released = False
        self._cond = threading.Condition()

    def count_down(self) -> None:
        with self._cond:
            self._released = True
            self._cond.notify_all()

    def wait(self) -> None:
        with self._cond:
            self._cond.wait_for(lambda: self._released)

    def wait_with_context(self, context: Context) -> None:
        """Wait for release; raise the context's error if it finishes first."""
        with _notify_on_done(context, self._cond), self._cond:
            self._cond.wait_for(lambda: self._released or context.done())
            if self._released:
                return
            err = context.error()
            raise err if err is not None else ContextCancelledError()

    def wait_with_timeout(self, timeout: float) -> None:
        """Wait for release; raise ``SyncTimeoutError`` after ``timeout`` seconds."""
        with self._cond:
            if not self._cond.wait_for(lambda: self._released, timeout):
                raise SyncTimeoutError()

    def is_released(self) -> bool:
        with self._cond:
            return self._released