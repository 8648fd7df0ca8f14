"""Atomic values, keyed lock groups, a timed mutex and a counting semaphore."""

from __future__ import annotations

import threading
from typing import Callable

_DEFAULT_GROUP_SIZE = 16
_INT64_SPAN = 1 << 64
_INT64_HALF = 1 << 63


class AtomicBool:
    """A boolean whose operations are atomic."""

    def __init__(self, initial: bool = False) -> None:
        self._lock = threading.Lock()
        self._value = bool(initial)

    def load(self) -> bool:
        with self._lock:
            return self._value

    def store(self, value: bool) -> None:
        with self._lock:
            self._value = bool(value)

    def compare_and_swap(self, old: bool, new: bool) -> bool:
        """Set ``new`` if the value is ``old``; report whether it was set."""
        with self._lock:
            if self._value != bool(old):
                return False
            self._value = bool(new)
            return True

    def swap(self, new: bool) -> bool:
        """Set ``new`` and return the previous value."""
        with self._lock:
            old, self._value = self._value, bool(new)
            return old

    def toggle(self) -> bool:
        """Invert the value and return the new one."""
        with self._lock:
            self._value = not self._value
            return self._value

    def __bool__(self) -> bool:
        return self.load()

    def __repr__(self) -> str:
        return f"AtomicBool({self.load()})"


class AtomicCounter:
    """An integer counter whose operations are atomic."""

    def __init__(self, initial: int = 0) -> None:
        self._lock = threading.Lock()
        self._value = initial

    def load(self) -> int:
        with self._lock:
            return self._value

    def store(self, value: int) -> None:
        with self._lock:
            self._value = value

    def add(self, delta: int) -> int:
        """Add ``delta`` and return the new value."""
        with self._lock:
            self._value += delta
            return self._value

    def inc(self) -> int:
        return self.add(1)

    def dec(self) -> int:
        return self.add(-1)

    def compare_and_swap(self, old: int, new: int) -> bool:
        """Set ``new`` if the value is ``old``; report whether it was set."""
        with self._lock:
            if self._value != old:
                return False
            self._value = new
            return True

    def swap(self, new: int) -> int:
        """Set ``new`` and return the previous value."""
        with self._lock:
            old, self._value = self._value, new
            return old

    def reset(self) -> int:
        """Set zero and return the previous value."""
        return self.swap(0)

    def __int__(self) -> int:
        return self.load()

    def __repr__(self) -> str:
        return f"AtomicCounter({self.load()})"


class _RWLock:
    """A readers-writer lock in which a waiting writer holds off new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    def acquire_read(self) -> None:
        with self._cond:
            self._cond.wait_for(lambda: not self._writer and self._waiting_writers == 0)
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._readers == 0:
                raise RuntimeError("read unlock of unlocked RWMutex")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._waiting_writers += 1
            try:
                self._cond.wait_for(lambda: not self._writer and self._readers == 0)
            finally:
                self._waiting_writers -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError("unlock of unlocked RWMutex")
            self._writer = False
            self._cond.notify_all()


def _string_hash(text: str) -> int:
    h = 0
    for char in text:
        h = (31 * h + ord(char) + _INT64_HALF) % _INT64_SPAN - _INT64_HALF
    return -h if h < 0 else h


class RWMutexGroup:
    """A fixed set of readers-writer locks shared out among string keys."""

    def __init__(self, size: int = _DEFAULT_GROUP_SIZE) -> None:
        if size <= 0:
            size = _DEFAULT_GROUP_SIZE
        self._size = size
        self._locks = [_RWLock() for _ in range(size)]

    @property
    def size(self) -> int:
        return self._size

    def _lock_for(self, key: str) -> _RWLock:
        return self._locks[_string_hash(key) % self._size]

    def lock(self, key: str) -> None:
        self._lock_for(key).acquire_write()

    def unlock(self, key: str) -> None:
        self._lock_for(key).release_write()

    def rlock(self, key: str) -> None:
        self._lock_for(key).acquire_read()

    def runlock(self, key: str) -> None:
        self._lock_for(key).release_read()


class _Once:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._done = False

    def do(self, func: Callable[[], object]) -> None:
        with self._lock:
            if self._done:
                return
            try:
                func()
            finally:
                self._done = True


class OnceGroup:
    """Runs a function at most once per key."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._onces: dict[str, _Once] = {}

    def do(self, key: str, func: Callable[[], object]) -> None:
        """Call ``func`` unless it has already been called for ``key``."""
        with self._lock:
            once = self._onces.setdefault(key, _Once())
        once.do(func)

    def reset(self, key: str) -> None:
        """Forget ``key`` so the next ``do`` for it runs again."""
        with self._lock:
            self._onces.pop(key, None)

    def clear(self) -> None:
        """Forget every key."""
        with self._lock:
            self._onces.clear()


class TimeoutMutex:
    """A mutex that can be tried or acquired with a time limit."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def lock(self) -> None:
        self._lock.acquire()

    def try_lock(self) -> bool:
        return self._lock.acquire(blocking=False)

    def lock_with_timeout(self, timeout: float) -> bool:
        """Acquire within ``timeout`` seconds; report whether it was acquired."""
        if timeout <= 0:
            return self._lock.acquire(blocking=False)
        return self._lock.acquire(timeout=timeout)

    def unlock(self) -> None:
        """Release; raise ``RuntimeError`` if the mutex is not locked."""
        try:
            self._lock.release()
        except RuntimeError:
            raise RuntimeError("unlock of unlocked TimeoutMutex") from None

    def __enter__(self) -> TimeoutMutex:
        self.lock()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unlock()


class Semaphore:
    """A counting semaphore with ``capacity`` permits."""

    def __init__(self, capacity: int) -> None:
        self._capacity = max(capacity, 0)
        self._held = 0
        self._cond = threading.Condition()

    @property
    def capacity(self) -> int:
        return self._capacity

    def acquire(self) -> None:
        with self._cond:
            self._cond.wait_for(lambda: self._held < self._capacity)
            self._held += 1

    def try_acquire(self) -> bool:
        with self._cond:
            if self._held >= self._capacity:
                return False
            self._held += 1
            return True

    def acquire_with_timeout(self, timeout: float) -> bool:
        """Take a permit within ``timeout`` seconds; report whether one was taken."""
        with self._cond:
            if not self._cond.wait_for(
                lambda: self._held < self._capacity, max(timeout, 0.0)
            ):
                return False
            self._held += 1
            return True

    def release(self) -> None:
        """Return a permit; raise ``RuntimeError`` if none is held."""
        with self._cond:
            if self._held == 0:
                raise RuntimeError("release without acquire")
            self._held -= 1
            self._cond.notify()

    def available(self) -> int:
        with self._cond:
            return self._capacity - self._held

    def drain_permits(self) -> int:
        """Take every free permit and return how many were taken."""
        with self._cond:
            free = self._capacity - self._held
            self._held = self._capacity
            return free

    def __enter__(self) -> Semaphore:
        self.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()