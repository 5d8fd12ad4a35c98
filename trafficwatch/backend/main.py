from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from typing import NoReturn

import uvicorn

from .api.main import create_app, set_results_sink, set_stats_provider
from .config import Settings, load_settings
from .errors import ConfigError, SourceReadError
from .ingestion import FileRecordSource
from .metrics import METRICS
from .output import ConsoleSink, FanoutSink, LatestResultsSink
from .runner import Pipeline, run_sequential

logger = logging.getLogger("trafficwatch.main")

EXIT_OK = 0
EXIT_READ_ERROR = 1
EXIT_CONFIG_ERROR = 2


# ---------------------------------------------------------------------------
# Status API: uvicorn on a daemon thread
# ---------------------------------------------------------------------------

def _start_api(settings: Settings) -> uvicorn.Server:
    app = create_app()
    uv_config = uvicorn.Config(
        app,
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level="warning",
    )
    server = uvicorn.Server(uv_config)
    # uvicorn only installs signal handlers on the main thread
    threading.Thread(target=server.run, name="api", daemon=True).start()
    logger.info("Status API listening on http://%s:%d", settings.API_HOST, settings.API_PORT)
    return server


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def run(settings: Settings) -> int:
    shutdown_event = threading.Event()
    results = LatestResultsSink(maxlen=settings.RECENT_WINDOWS)
    sink = FanoutSink([ConsoleSink(), results])
    source = FileRecordSource(settings.DATA_FILE)

    if settings.RUN_MODE == "sequential":
        if settings.API_ENABLED:
            logger.warning("Status API is only served in threaded mode — ignoring API_ENABLED")
        try:
            stats = run_sequential(source, sink, settings.WINDOW_SECONDS, settings.TOP_N)
        except SourceReadError as exc:
            logger.error("Run aborted: %s", exc)
            return EXIT_READ_ERROR
        logger.info("Final stats — %s", stats)
        return EXIT_OK

    # Built before anything starts: bad configuration fails here
    pipeline = Pipeline(
        source,
        sink,
        queue_capacity=settings.QUEUE_CAPACITY,
        window_duration=settings.WINDOW_SECONDS,
        top_n=settings.TOP_N,
    )

    def _signal_handler(_signum, _frame) -> None:
        logger.info("Shutdown signal received")
        shutdown_event.set()
        pipeline.stop()

    previous = {sig: signal.signal(sig, _signal_handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        return _run_threaded(settings, pipeline, results, shutdown_event)
    finally:
        for sig, handler in previous.items():
            if handler is not None:
                signal.signal(sig, handler)


def _run_threaded(
    settings: Settings,
    pipeline: Pipeline,
    results: LatestResultsSink,
    shutdown_event: threading.Event,
) -> int:
    server = None
    if settings.API_ENABLED:
        set_results_sink(results)
        set_stats_provider(pipeline.stats)
        server = _start_api(settings)

    logger.info(
        "TrafficWatch — file=%r capacity=%d window=%gs top_n=%d",
        settings.DATA_FILE, settings.QUEUE_CAPACITY, settings.WINDOW_SECONDS, settings.TOP_N,
    )
    pipeline.start()
    exit_code = EXIT_OK
    try:
        pipeline.join()
    except SourceReadError as exc:
        logger.error("Run aborted: %s", exc)
        exit_code = EXIT_READ_ERROR

    logger.info("Final stats — pipeline=%s counters=%s", pipeline.stats(), METRICS.as_dict())

    if server is not None:
        logger.info("Pipeline finished — status API stays up until interrupted")
        while not shutdown_event.wait(1.0):
            pass
        server.should_exit = True

    logger.info("TrafficWatch stopped cleanly")
    return exit_code


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="TrafficWatch — rolling top-N congestion report")
    parser.add_argument("--file", dest="DATA_FILE", help="input file of '<time> <sensor> <count>' lines")
    parser.add_argument("--capacity", dest="QUEUE_CAPACITY", type=int, help="bounded queue capacity")
    parser.add_argument("--window", dest="WINDOW_SECONDS", type=float, help="window length in seconds")
    parser.add_argument("--top-n", dest="TOP_N", type=int, help="sensors reported per window")
    parser.add_argument("--mode", dest="RUN_MODE", choices=["threaded", "sequential"])
    parser.add_argument(
        "--serve", dest="API_ENABLED", action="store_const", const=True,
        help="serve the status API and keep running after the input is consumed",
    )
    parser.add_argument(
        "--log-level", dest="LOG_LEVEL",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> NoReturn:
    args = _parse_args(argv)
    try:
        settings = load_settings(**vars(args))
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        code = run(settings)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)
    sys.exit(code)


if __name__ == "__main__":
    main()
