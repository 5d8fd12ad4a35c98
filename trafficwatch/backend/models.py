"""
backend/models.py

Shared dataclasses for every stage of the pipeline.

Record is the only object that crosses the queue between the ingestion
thread and the analysis thread, so it is frozen: once the parser builds it,
nobody mutates it.
"""

from __future__ import annotations

from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Stage 1: Parser output / queue payload
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Record:
    """One timestamped sensor reading."""

    timestamp: float
    """Seconds on the logical timeline (epoch seconds or seconds since midnight)."""

    source_id: str
    """Sensor / traffic-light identifier, e.g. 'TL-07'."""

    metric: int
    """Non-negative congestion count (cars passed)."""


# ---------------------------------------------------------------------------
# Stage 2: Aggregation output  (canonical class lives in aggregation/models.py)
# ---------------------------------------------------------------------------

from .aggregation.models import Window, WindowResult  # noqa: E402

__all__ = ["Record", "Window", "WindowResult"]
