"""
aggregation/time_window.py

WindowAggregator — buckets records into fixed-size tumbling windows and
selects the top-N records of each window when it closes.

Design:
  - Window boundaries come from record timestamps, never from the wall
    clock, so a given input sequence always yields the same windows.
  - The first record opens the window floor(ts / d) * d.
  - A record at or past the window end seals the window and opens the
    window that holds the new timestamp. Empty windows in a gap are
    skipped; only windows that received a record produce a result.
  - A record earlier than the open window's start is kept in the open
    window (no late-arrival correction) and counted in stats.
  - The accumulator is an unbounded list; its size is arrival rate ×
    window duration.

Thread safety: NOT thread-safe. Owned exclusively by the analysis thread.
"""

from __future__ import annotations

import heapq
import logging
from typing import Iterable

from ..errors import ConfigError
from ..models import Record
from .models import Window, WindowResult

logger = logging.getLogger(__name__)


def _rank_key(record: Record) -> tuple[int, float, str]:
    # metric desc, then earliest timestamp, then source_id asc
    return (-record.metric, record.timestamp, record.source_id)


def select_top_n(records: Iterable[Record], n: int) -> list[Record]:
    """
    Return the ``n`` highest-metric records in rank order.

    Ties on metric go to the earliest timestamp, then the smallest
    source_id, which makes the order total and reproducible.
    """
    return heapq.nsmallest(n, records, key=_rank_key)


class WindowAggregator:
    """
    Turns an unbounded record stream into per-window top-N results.

    Args:
        window_duration: Window length in seconds (> 0).
        top_n:           Records reported per window (>= 1).
    """

    def __init__(self, window_duration: float, top_n: int) -> None:
        if window_duration is None or window_duration <= 0:
            raise ConfigError(f"window_duration must be > 0 — got {window_duration!r}")
        if not isinstance(top_n, int) or isinstance(top_n, bool) or top_n < 1:
            raise ConfigError(f"top_n must be an integer >= 1 — got {top_n!r}")
        self._duration = float(window_duration)
        self._top_n = top_n
        self._window: Window | None = None
        self._records: list[Record] = []

        self.stats: dict[str, int] = {
            "records_accepted": 0,
            "late_records": 0,
            "windows_closed": 0,
        }
        logger.debug(
            "WindowAggregator initialised — duration=%gs top_n=%d",
            self._duration,
            self._top_n,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def current_window(self) -> Window | None:
        return self._window

    @property
    def pending(self) -> int:
        """Records buffered in the open window."""
        return len(self._records)

    def accept(self, record: Record) -> WindowResult | None:
        """
        Add a record to the stream.

        Returns:
            The WindowResult of the window this record closed, else None.
        """
        self.stats["records_accepted"] += 1

        if self._window is None:
            self._open(record.timestamp)
            self._records.append(record)
            return None

        if record.timestamp >= self._window.end:
            completed = self._seal()
            self._open(record.timestamp)
            self._records.append(record)
            return completed

        if record.timestamp < self._window.start:
            self.stats["late_records"] += 1
            logger.debug(
                "Late record %s@%g placed in %r",
                record.source_id,
                record.timestamp,
                self._window,
            )

        self._records.append(record)
        return None

    def flush(self) -> WindowResult | None:
        """
        Close the open window at end of stream.

        Returns None if no window is open or it holds no records.
        """
        if self._window is None or not self._records:
            self._window = None
            return None
        completed = self._seal()
        self._window = None
        return completed

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _open(self, timestamp: float) -> None:
        self._window = Window.containing(timestamp, self._duration)
        self._records = []

    def _seal(self) -> WindowResult:
        """Rank the open window's records into a WindowResult and clear them."""
        assert self._window is not None
        top = select_top_n(self._records, self._top_n)
        result = WindowResult(
            window_start=self._window.start,
            window_end=self._window.end,
            top=tuple(top),
        )
        self.stats["windows_closed"] += 1
        logger.debug(
            "Window sealed — %r records=%d top=%d",
            self._window,
            len(self._records),
            len(top),
        )
        self._records = []
        return result
