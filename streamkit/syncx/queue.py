"""Thread-safe bounded and priority queues."""

from __future__ import annotations

import heapq
import itertools
import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import (
    ItemDroppedError,
    QueueClosedError,
    QueueFullError,
    SyncTimeoutError,
    UnknownOverflowPolicyError,
)

_DEFAULT_CAPACITY = 100


class OverflowPolicy(Enum):
    """What a full bounded queue does with a new item."""

    BLOCK = 0
    DROP_OLDEST = 1
    DROP_NEWEST = 2
    REJECT = 3


class BoundedQueue:
    """A FIFO queue holding at most ``capacity`` items.

    A full queue handles new items according to its overflow policy:
    ``DROP_OLDEST`` discards the head, ``DROP_NEWEST`` raises
    ``ItemDroppedError``, and ``REJECT`` and ``BLOCK`` raise ``QueueFullError``.
    """

    def __init__(self, capacity: int, policy: OverflowPolicy = OverflowPolicy.BLOCK) -> None:
        if capacity <= 0:
            capacity = _DEFAULT_CAPACITY
        self._capacity = capacity
        self._policy = policy
        self._items: deque[Any] = deque()
        self._cond = threading.Condition()
        self._closed = False

    def push(self, item: Any) -> None:
        """Add ``item`` at the tail, applying the overflow policy when full."""
        with self._cond:
            if self._closed:
                raise QueueClosedError()
            if len(self._items) < self._capacity:
                self._items.append(item)
                self._cond.notify()
                return
            if self._policy is OverflowPolicy.DROP_OLDEST:
                self._items.popleft()
                self._items.append(item)
                self._cond.notify()
                return
            if self._policy is OverflowPolicy.DROP_NEWEST:
                raise ItemDroppedError()
            if self._policy in (OverflowPolicy.REJECT, OverflowPolicy.BLOCK):
                raise QueueFullError()
            raise UnknownOverflowPolicyError()

    def pop(self) -> Any:
        """Remove and return the head item; raise ``IndexError`` when empty."""
        with self._cond:
            if not self._items:
                raise IndexError("pop from an empty queue")
            return self._items.popleft()

    def pop_blocking(self) -> Any:
        """Remove and return the head item, waiting for one to arrive.

        Raises ``QueueClosedError`` once the queue is closed and empty.
        """
        with self._cond:
            self._cond.wait_for(lambda: bool(self._items) or self._closed)
            if not self._items:
                raise QueueClosedError()
            return self._items.popleft()

    def pop_with_timeout(self, timeout: float) -> Any:
        """Remove and return the head item, waiting at most ``timeout`` seconds.

        Raises ``SyncTimeoutError`` when nothing arrives in time and
        ``QueueClosedError`` when the queue is closed and empty.
        """
        with self._cond:
            if not self._items:
                if self._closed:
                    raise QueueClosedError()
                self._cond.wait_for(lambda: bool(self._items) or self._closed, timeout)
            if self._items:
                return self._items.popleft()
            if self._closed:
                raise QueueClosedError()
            raise SyncTimeoutError()

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def drain(self) -> list[Any]:
        """Remove and return every item, oldest first."""
        with self._cond:
            items = list(self._items)
            self._items.clear()
            return items

    def close(self) -> None:
        """Refuse further pushes and wake every blocked reader."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def policy(self) -> OverflowPolicy:
        return self._policy


@dataclass
class PriorityItem:
    """A value held by a priority queue together with its priority."""

    value: Any
    priority: int


class PriorityQueue:
    """A thread-safe queue that hands out the highest priority first.

    Items of equal priority come out in the order they went in.
    """

    def __init__(self) -> None:
        self._heap: list[tuple[int, int, PriorityItem]] = []
        self._sequence = itertools.count()
        self._lock = threading.Lock()
        self._closed = False

    def push(self, value: Any, priority: int) -> None:
        """Add ``value`` with ``priority``; raise ``QueueClosedError`` once closed."""
        with self._lock:
            if self._closed:
                raise QueueClosedError()
            item = PriorityItem(value, priority)
            heapq.heappush(self._heap, (-priority, next(self._sequence), item))

    def pop(self) -> Any:
        """Remove and return the highest-priority value; ``IndexError`` when empty."""
        with self._lock:
            if not self._heap:
                raise IndexError("pop from an empty priority queue")
            return heapq.heappop(self._heap)[2].value

    def __len__(self) -> int:
        with self._lock:
            return len(self._heap)

    def peek(self) -> tuple[Any, int]:
        """The highest-priority value and its priority, left in place."""
        with self._lock:
            if not self._heap:
                raise IndexError("peek into an empty priority queue")
            item = self._heap[0][2]
            return item.value, item.priority

    def drain(self) -> list[Any]:
        """Remove and return every value, highest priority first."""
        with self._lock:
            values = [heapq.heappop(self._heap)[2].value for _ in range(len(self._heap))]
            return values

    def close(self) -> None:
        """Refuse further pushes."""
        with self._lock:
            self._closed = True

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed