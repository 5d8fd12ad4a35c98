"""
backend/runner.py

Wires the two loops together.

Pipeline (threaded mode):
    ingestion thread:  RecordSource → RecordParser → BoundedQueue.push
    analysis thread:   BoundedQueue.pop → WindowAggregator → ResultSink

Every component is built in __init__, so a ConfigError surfaces before
any thread starts or any line is read. The threads share nothing but the
queue; shutdown is cooperative (the ingestor closes the queue, the
analyzer drains it and flushes).

run_sequential() is the single-threaded baseline: parse everything, then
aggregate, with no queue in between.
"""

from __future__ import annotations

import logging
import threading
import time

from .aggregation import Analyzer
from .ingestion import Ingestor, RecordParser, RecordSource, iter_records
from .output.base import ResultSink
from .pipeline import BoundedQueue

logger = logging.getLogger(__name__)

_JOIN_POLL_SECONDS = 0.5


class Pipeline:
    """
    Threaded ingestion + analysis pipeline.

    Args:
        source:          RecordSource yielding raw lines.
        sink:            ResultSink receiving each completed window.
        queue_capacity:  BoundedQueue capacity (> 0).
        window_duration: Window length in seconds (> 0).
        top_n:           Records reported per window (>= 1).
        parser:          Optional RecordParser override.
    """

    def __init__(
        self,
        source: RecordSource,
        sink: ResultSink,
        queue_capacity: int,
        window_duration: float,
        top_n: int,
        parser: RecordParser | None = None,
    ) -> None:
        self.queue: BoundedQueue = BoundedQueue(queue_capacity)
        self.analyzer = Analyzer(self.queue, sink, window_duration, top_n)
        self.ingestor = Ingestor(source, self.queue, parser)
        self._threads: list[threading.Thread] = []
        self._started_at: float | None = None
        self.elapsed_us: int | None = None

    def start(self) -> None:
        if self._threads:
            raise RuntimeError("Pipeline already started")
        self._started_at = time.perf_counter()
        # Consumer first so it is already parked in pop() when data arrives
        self._threads = [
            threading.Thread(target=self.analyzer.run, name="analysis"),
            threading.Thread(target=self.ingestor.run, name="ingestion"),
        ]
        for t in self._threads:
            t.start()
        logger.info("Pipeline started — capacity=%d", self.queue.capacity)

    def join(self) -> None:
        """
        Wait for both threads to finish.

        Raises:
            BaseException:   whatever killed the analysis loop (the queue was
                             closed, so the ingestor stopped too).
            SourceReadError: the ingestor stopped on a read failure (raised
                             only after the analyzer drained what it had).
        """
        for t in self._threads:
            # Short joins keep the main thread responsive to KeyboardInterrupt
            while t.is_alive():
                t.join(_JOIN_POLL_SECONDS)
        if self._started_at is not None and self.elapsed_us is None:
            self.elapsed_us = int((time.perf_counter() - self._started_at) * 1_000_000)
            logger.info("Execution time: %d microseconds", self.elapsed_us)
        if self.analyzer.error is not None:
            raise self.analyzer.error
        if self.ingestor.error is not None:
            raise self.ingestor.error

    def stop(self) -> None:
        """Close the queue early; both loops wind down and drain."""
        logger.info("Pipeline stop requested")
        self.queue.close()

    def stats(self) -> dict:
        return {
            "queue": self.queue.stats(),
            "ingestor": dict(self.ingestor.stats),
            "analyzer": dict(self.analyzer.stats),
            "windows": self.analyzer.window_stats,
        }


def run_pipeline(
    source: RecordSource,
    sink: ResultSink,
    queue_capacity: int,
    window_duration: float,
    top_n: int,
    parser: RecordParser | None = None,
) -> dict:
    """Build, run and join a threaded Pipeline; return its final stats."""
    pipeline = Pipeline(source, sink, queue_capacity, window_duration, top_n, parser)
    pipeline.start()
    pipeline.join()
    stats = pipeline.stats()
    stats["elapsed_us"] = pipeline.elapsed_us
    return stats


def run_sequential(
    source: RecordSource,
    sink: ResultSink,
    window_duration: float,
    top_n: int,
    parser: RecordParser | None = None,
) -> dict:
    """
    Single-threaded baseline: read and parse the whole source, then aggregate.

    Parsed records are held in a list, so memory grows with input size.
    Read errors propagate to the caller before anything is emitted.
    """
    analyzer = Analyzer(None, sink, window_duration, top_n)
    ingest_stats = {"lines_read": 0, "records_enqueued": 0, "parse_errors": 0, "lines_skipped": 0}

    started = time.perf_counter()
    records = [record for _, record in iter_records(source, parser or RecordParser(), ingest_stats)]
    ingest_stats["records_enqueued"] = len(records)
    analyzer.consume(records)
    analyzer.finish()
    elapsed_us = int((time.perf_counter() - started) * 1_000_000)
    logger.info("Execution time: %d microseconds", elapsed_us)

    return {
        "ingestor": ingest_stats,
        "analyzer": dict(analyzer.stats),
        "windows": analyzer.window_stats,
        "elapsed_us": elapsed_us,
    }
