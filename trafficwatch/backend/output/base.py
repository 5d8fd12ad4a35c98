"""
output/base.py

ResultSink protocol plus the small helpers every sink shares.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Protocol, Sequence

from ..models import Record

logger = logging.getLogger(__name__)

# Time-of-day inputs past midnight keep counting up (see ingestion/parser.py);
# anything at or beyond this is an epoch timestamp.
_RELATIVE_LIMIT = 366 * 86_400


class ResultSink(Protocol):
    """Receives one completed window's top-N records."""

    def emit(self, window_start: float, window_end: float, top: Sequence[Record]) -> None:
        ...


def format_timestamp(ts: float) -> str:
    """
    Render a timeline value for humans.

    Values below one year are seconds since the first midnight of the input
    and render as HH:MM:SS with hours running past 24, so the end of the
    23:00 window is 24:00:00 and the next day's first hour is 24:00:00 -
    25:00:00. Anything larger is an epoch timestamp rendered as ISO-8601 UTC.
    """
    if 0 <= ts < _RELATIVE_LIMIT:
        whole = int(ts)
        return f"{whole // 3600:02d}:{whole % 3600 // 60:02d}:{whole % 60:02d}"
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


class FanoutSink:
    """
    Forwards every window to several sinks.

    A failing sink is logged and skipped; the others still receive the
    window.
    """

    def __init__(self, sinks: Iterable[ResultSink]) -> None:
        self._sinks = list(sinks)

    def emit(self, window_start: float, window_end: float, top: Sequence[Record]) -> None:
        for sink in self._sinks:
            try:
                sink.emit(window_start, window_end, top)
            except Exception:
                logger.exception("Sink %r failed — skipping", sink)

    def __len__(self) -> int:
        return len(self._sinks)
