"""
output/console.py

ConsoleSink — prints one report block per window:

    Time: 07:00:00 - 08:00:00

    Max Number Of Cars Crossed Through

    Traffic Light ID: TL-3
    Number Of Cars Passed: 42

    --------------------------------------

LoggingSink — the same information as a single INFO log line.
"""

from __future__ import annotations

import logging
import sys
from typing import Sequence, TextIO

from ..models import Record
from .base import format_timestamp

logger = logging.getLogger(__name__)

_RULE = "-" * 38


def render_window(window_start: float, window_end: float, top: Sequence[Record]) -> str:
    lines = [
        f"Time: {format_timestamp(window_start)} - {format_timestamp(window_end)}",
        "",
        "Max Number Of Cars Crossed Through",
        "",
    ]
    for record in top:
        lines.append(f"Traffic Light ID: {record.source_id}")
        lines.append(f"Number Of Cars Passed: {record.metric}")
        lines.append("")
    lines.append(_RULE)
    lines.append("")
    return "\n".join(lines) + "\n"


class ConsoleSink:
    """
    Writes rendered windows to a text stream (stdout by default).

    Write failures are logged here and never raised to the caller.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def emit(self, window_start: float, window_end: float, top: Sequence[Record]) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        try:
            stream.write(render_window(window_start, window_end, top))
            stream.flush()
        except (OSError, ValueError) as exc:
            # ValueError: write to a closed file
            logger.error("Console write failed for window starting %s: %s",
                         format_timestamp(window_start), exc)


class LoggingSink:
    """Logs each window's ranking on one line."""

    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level

    def emit(self, window_start: float, window_end: float, top: Sequence[Record]) -> None:
        ranking = ", ".join(f"{r.source_id}={r.metric}" for r in top)
        logger.log(
            self._level,
            "Window %s - %s top=%d [%s]",
            format_timestamp(window_start),
            format_timestamp(window_end),
            len(top),
            ranking,
        )
