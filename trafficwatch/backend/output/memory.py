"""
output/memory.py

LatestResultsSink — keeps the most recent WindowResults in a bounded ring
so the status API can serve them.

Thread safety: emit() runs on the analysis thread while the API reads from
uvicorn's thread, so every access goes through one lock.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Sequence

from ..aggregation.models import WindowResult
from ..errors import ConfigError
from ..models import Record


class LatestResultsSink:
    """
    Ring buffer of the last ``maxlen`` windows (oldest evicted first).

    This is an in-memory view for monitoring, not window history storage.
    """

    def __init__(self, maxlen: int = 100) -> None:
        if maxlen < 1:
            raise ConfigError(f"maxlen must be >= 1 — got {maxlen!r}")
        self._results: deque[WindowResult] = deque(maxlen=maxlen)
        self._lock = threading.Lock()
        self._total = 0

    def emit(self, window_start: float, window_end: float, top: Sequence[Record]) -> None:
        result = WindowResult(window_start=window_start, window_end=window_end, top=tuple(top))
        with self._lock:
            self._results.append(result)
            self._total += 1

    def latest(self) -> WindowResult | None:
        with self._lock:
            return self._results[-1] if self._results else None

    def recent(self, limit: int = 10) -> list[WindowResult]:
        """Newest first."""
        with self._lock:
            items = list(self._results)
        items.reverse()
        return items[:limit]

    @property
    def total(self) -> int:
        """Windows received since start, including evicted ones."""
        with self._lock:
            return self._total
