"""
api/serializers.py

Response models for the status API.
"""

from __future__ import annotations
from pydantic import BaseModel

from ..aggregation.models import WindowResult
from ..output.base import format_timestamp


class RecordResponse(BaseModel):
    timestamp: float
    source_id: str
    metric: int


class WindowResponse(BaseModel):
    window_start: float
    window_end: float
    window_label: str
    top: list[RecordResponse] = []

    @classmethod
    def from_result(cls, result: WindowResult) -> "WindowResponse":
        return cls(
            window_start=result.window_start,
            window_end=result.window_end,
            window_label=(
                f"{format_timestamp(result.window_start)} - "
                f"{format_timestamp(result.window_end)}"
            ),
            top=[
                RecordResponse(timestamp=r.timestamp, source_id=r.source_id, metric=r.metric)
                for r in result.top
            ],
        )


class WindowListResponse(BaseModel):
    items: list[WindowResponse]
    total_windows: int


class StatsResponse(BaseModel):
    counters: dict[str, int]
    queue: dict = {}
    ingestor: dict[str, int] = {}
    analyzer: dict[str, int] = {}
    windows: dict[str, int] = {}
