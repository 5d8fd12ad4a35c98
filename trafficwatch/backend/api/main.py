"""
api/main.py

Read-only status API: health, pipeline counters, latest window results.

State is injected by main.py through set_results_sink() and
set_stats_provider() before the app starts serving.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI

from ..output.memory import LatestResultsSink
from .routes import stats as stats_router
from .routes import windows as windows_router

logger = logging.getLogger(__name__)

_results_sink: LatestResultsSink | None = None
_stats_provider: Callable[[], dict] | None = None


def set_results_sink(sink: LatestResultsSink) -> None:
    global _results_sink
    _results_sink = sink


def get_results_sink() -> LatestResultsSink:
    if _results_sink is None:
        raise RuntimeError("Results sink not initialised — call set_results_sink() first")
    return _results_sink


def set_stats_provider(provider: Callable[[], dict]) -> None:
    global _stats_provider
    _stats_provider = provider


def get_pipeline_stats() -> dict:
    if _stats_provider is None:
        return {}
    return dict(_stats_provider())


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("FastAPI startup")
        yield
        logger.info("FastAPI shutdown")

    app = FastAPI(
        title="TrafficWatch — Congestion Monitor",
        version="1.0.0",
        description="Rolling top-N congestion report over traffic-sensor readings",
        lifespan=lifespan,
    )

    app.include_router(stats_router.router,   prefix="/api")
    app.include_router(windows_router.router, prefix="/api")

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "results_ready": _results_sink is not None}

    return app
