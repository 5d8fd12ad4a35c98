"""
api/routes/stats.py

GET /api/stats — live pipeline counters, queue occupancy and loop stats
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ...metrics import METRICS
from ..serializers import StatsResponse

router = APIRouter(prefix="/stats", tags=["stats"])


def _get_pipeline_stats() -> dict:
    from ..main import get_pipeline_stats
    return get_pipeline_stats()


@router.get("", response_model=StatsResponse)
async def get_stats(
    pipeline: dict = Depends(_get_pipeline_stats),
) -> StatsResponse:
    """Return global counters plus per-component pipeline stats."""
    return StatsResponse(
        counters=METRICS.as_dict(),
        queue=pipeline.get("queue", {}),
        ingestor=pipeline.get("ingestor", {}),
        analyzer=pipeline.get("analyzer", {}),
        windows=pipeline.get("windows", {}),
    )
