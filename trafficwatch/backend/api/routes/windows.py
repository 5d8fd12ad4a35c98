"""
api/routes/windows.py

GET /api/windows         — most recent completed windows, newest first
GET /api/windows/latest  — newest completed window
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from ...output.memory import LatestResultsSink
from ..serializers import WindowListResponse, WindowResponse

router = APIRouter(prefix="/windows", tags=["windows"])


def _get_results() -> LatestResultsSink:
    """FastAPI dependency — replaced in tests via app.dependency_overrides."""
    from ..main import get_results_sink
    return get_results_sink()


@router.get("", response_model=WindowListResponse)
async def list_windows(
    limit:   Annotated[int, Query(ge=1, le=1000)] = 10,
    results: LatestResultsSink = Depends(_get_results),
) -> WindowListResponse:
    """Return the most recent window results, newest first."""
    return WindowListResponse(
        items=[WindowResponse.from_result(r) for r in results.recent(limit)],
        total_windows=results.total,
    )


@router.get("/latest", response_model=WindowResponse)
async def latest_window(
    results: LatestResultsSink = Depends(_get_results),
) -> WindowResponse:
    """Return the newest completed window."""
    latest = results.latest()
    if latest is None:
        raise HTTPException(status_code=404, detail="No window has completed yet")
    return WindowResponse.from_result(latest)
