"""
backend/pipeline.py

BoundedQueue — the single synchronisation point between the ingestion
thread and the analysis thread.

Semantics:
  - Fixed capacity, FIFO, never drops data. A full queue blocks the
    producer (backpressure) instead of discarding records.
  - One lock, two conditions on it (not_empty / not_full). Every push or
    pop notifies exactly one waiter on the opposite side; close() wakes
    everybody so no thread stays parked during shutdown.
  - After close(): push raises QueueClosed immediately; pop / try_pop keep
    returning buffered records and raise QueueClosed once drained.

The internal deque and lock are never exposed to callers.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Generic, TypeVar

from .errors import ConfigError, QueueClosed
from .metrics import METRICS

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Empty:
    """Sentinel type returned by try_pop() when nothing is buffered."""

    _instance: "_Empty | None" = None

    def __new__(cls) -> "_Empty":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "EMPTY"


EMPTY = _Empty()


class BoundedQueue(Generic[T]):
    """
    Fixed-capacity thread-safe FIFO with blocking push/pop.

    Args:
        capacity: Maximum number of buffered items (must be > 0).
    """

    def __init__(self, capacity: int) -> None:
        if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity <= 0:
            raise ConfigError(f"queue capacity must be a positive integer — got {capacity!r}")
        self._capacity = capacity
        self._items: deque[T] = deque()
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)
        self._closed = False
        self._high_water = 0
        self._pushed = 0
        self._popped = 0
        logger.debug("BoundedQueue initialised — capacity=%d", capacity)

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def push(self, item: T) -> None:
        """
        Append ``item``, blocking while the queue is full.

        Raises:
            QueueClosed: the queue was closed before or while waiting.
        """
        with self._not_full:
            if self._closed:
                raise QueueClosed("push on closed queue")
            if len(self._items) >= self._capacity:
                METRICS.backpressure_waits.inc()
                while len(self._items) >= self._capacity and not self._closed:
                    self._not_full.wait()
                if self._closed:
                    raise QueueClosed("queue closed while waiting to push")
            self._items.append(item)
            self._pushed += 1
            if len(self._items) > self._high_water:
                self._high_water = len(self._items)
            self._not_empty.notify()

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    def pop(self) -> T:
        """
        Remove and return the oldest item, blocking while the queue is empty.

        Raises:
            QueueClosed: the queue is closed and fully drained.
        """
        with self._not_empty:
            while not self._items:
                if self._closed:
                    raise QueueClosed("queue closed and drained")
                self._not_empty.wait()
            return self._take()

    def try_pop(self) -> "T | _Empty":
        """
        Non-blocking pop.

        Returns:
            The oldest item, or EMPTY when nothing is buffered right now.

        Raises:
            QueueClosed: the queue is closed and fully drained.
        """
        with self._lock:
            if not self._items:
                if self._closed:
                    raise QueueClosed("queue closed and drained")
                return EMPTY
            return self._take()

    def _take(self) -> T:
        # Caller holds self._lock.
        item = self._items.popleft()
        self._popped += 1
        self._not_full.notify()
        return item

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Mark the queue finished and wake every parked pusher and popper."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._not_empty.notify_all()
            self._not_full.notify_all()
            remaining = len(self._items)
        logger.info("BoundedQueue closed — %d record(s) left to drain", remaining)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def high_water(self) -> int:
        """Largest number of items buffered at any one time."""
        with self._lock:
            return self._high_water

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def stats(self) -> dict:
        with self._lock:
            return {
                "capacity": self._capacity,
                "size": len(self._items),
                "high_water": self._high_water,
                "pushed": self._pushed,
                "popped": self._popped,
                "closed": self._closed,
            }

    def __repr__(self) -> str:  # pragma: no cover
        return f"BoundedQueue(capacity={self._capacity}, size={len(self)}, closed={self.closed})"
