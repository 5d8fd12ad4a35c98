"""
aggregation/models.py

Data models for the aggregation layer.

Window       — half-open time interval [start, end) used to bucket records
WindowResult — completed window snapshot handed to result sinks
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from ..models import Record


# ---------------------------------------------------------------------------
# Window: half-open bucket on the record timeline
# ---------------------------------------------------------------------------

class Window(NamedTuple):
    """
    Half-open interval ``[start, end)``.

    Windows are aligned to multiples of their duration, so a given
    timestamp maps to exactly one window for a fixed duration.
    """

    start: float
    end: float

    @classmethod
    def containing(cls, timestamp: float, duration: float) -> "Window":
        """Return the aligned window of ``duration`` seconds that holds ``timestamp``."""
        start = math.floor(timestamp / duration) * duration
        return cls(start, start + duration)

    @property
    def duration(self) -> float:
        return self.end - self.start

    def __contains__(self, timestamp: object) -> bool:
        return isinstance(timestamp, (int, float)) and self.start <= timestamp < self.end

    def __repr__(self) -> str:
        return f"Window[{self.start:g}, {self.end:g})"


# ---------------------------------------------------------------------------
# WindowResult: top-N snapshot of a closed window
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WindowResult:
    """Top-N records of one completed window."""

    window_start: float
    window_end: float

    top: tuple["Record", ...] = field(default_factory=tuple)
    """Records sorted by metric desc, timestamp asc, source_id asc."""

    def to_dict(self) -> dict:
        return {
            "window_start": self.window_start,
            "window_end": self.window_end,
            "top": [
                {
                    "timestamp": r.timestamp,
                    "source_id": r.source_id,
                    "metric": r.metric,
                }
                for r in self.top
            ],
        }
