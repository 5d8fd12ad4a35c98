"""
aggregation/aggregator.py

Analyzer — the analysis loop.

Consumes Records from the bounded queue, feeds the WindowAggregator, and
hands every completed window's top-N list to the ResultSink.

Scheduling:
  - Blocks in queue.pop() for the first record of a batch, then drains the
    backlog with queue.try_pop() until it reports EMPTY. The batch size is
    logged at DEBUG so a lagging consumer is visible.
  - QueueClosed from either call means the producer is done and the queue
    is drained: the open window is flushed and run() returns.
  - A sink that raises an Exception is logged and counted; the loop keeps
    going. Anything else that escapes (a BaseException from a sink, a bug)
    is stored on .error and the queue is closed on the way out, so an
    ingestor blocked in push() gets QueueClosed instead of waiting forever.

Stats dict (read by the status API and logged at shutdown):
    records_consumed  — records popped from the queue
    batches           — pop + drain cycles
    largest_batch     — biggest backlog drained in one cycle
    windows_emitted   — results handed to the sink
    sink_errors       — sink calls that raised
"""

from __future__ import annotations

import logging
from typing import Iterable

from ..errors import QueueClosed
from ..metrics import METRICS
from ..models import Record
from ..pipeline import EMPTY, BoundedQueue
from .models import WindowResult
from .time_window import WindowAggregator

logger = logging.getLogger(__name__)


class Analyzer:
    """
    Bridges the bounded queue → window aggregation → result sink.

    Args:
        queue:           BoundedQueue[Record] shared with the ingestion thread
                         (None when records are fed through consume()).
        sink:            Any object with emit(window_start, window_end, top).
        window_duration: Window length in seconds.
        top_n:           Records reported per window.
    """

    def __init__(
        self,
        queue: BoundedQueue | None,
        sink,
        window_duration: float,
        top_n: int,
    ) -> None:
        self._queue = queue
        self._sink = sink
        self._windows = WindowAggregator(window_duration, top_n)
        self.error: BaseException | None = None

        self.stats: dict[str, int] = {
            "records_consumed": 0,
            "batches": 0,
            "largest_batch": 0,
            "windows_emitted": 0,
            "sink_errors": 0,
        }

    @property
    def window_stats(self) -> dict[str, int]:
        return dict(self._windows.stats)

    # ------------------------------------------------------------------
    # Main loop: runs on the analysis thread
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Consume until the queue is closed and drained, then flush."""
        if self._queue is None:
            raise RuntimeError("Analyzer.run() needs a queue — use consume() instead")
        logger.info("Analyzer started")
        try:
            while True:
                try:
                    record = self._queue.pop()
                except QueueClosed:
                    break
                if not self._drain_batch(record):
                    break

            logger.info("Queue closed and drained — flushing open window")
            self.finish()
        except BaseException as exc:
            self.error = exc
            logger.exception("Analysis loop died — closing queue")
        finally:
            self._queue.close()

    def consume(self, records: Iterable[Record]) -> None:
        """Feed records directly, without a queue (sequential mode)."""
        for record in records:
            self._process(record)

    def finish(self) -> None:
        """Emit the open, possibly partial, window at end of stream."""
        final = self._windows.flush()
        if final is not None:
            self._emit(final)
        logger.info(
            "Analyzer shutdown — stats=%s windows=%s",
            self.stats,
            self._windows.stats,
        )

    # ------------------------------------------------------------------
    # Internal: per-batch logic
    # ------------------------------------------------------------------

    def _drain_batch(self, first: Record) -> bool:
        """
        Process ``first`` plus whatever backlog is already buffered.

        Returns False once the queue reports closed, True otherwise.
        """
        self._process(first)
        batch = 1
        open_ = True
        while True:
            try:
                item = self._queue.try_pop()
            except QueueClosed:
                open_ = False
                break
            if item is EMPTY:
                break
            self._process(item)
            batch += 1

        self.stats["batches"] += 1
        if batch > self.stats["largest_batch"]:
            self.stats["largest_batch"] = batch
        logger.debug("Drained batch of %d record(s)", batch)
        return open_

    def _process(self, record: Record) -> None:
        self.stats["records_consumed"] += 1
        METRICS.records_consumed.inc()
        completed = self._windows.accept(record)
        if completed is not None:
            self._emit(completed)

    def _emit(self, result: WindowResult) -> None:
        """Hand a completed window to the sink; sink failures never escape."""
        try:
            self._sink.emit(result.window_start, result.window_end, list(result.top))
        except Exception:
            self.stats["sink_errors"] += 1
            METRICS.sink_errors.inc()
            logger.exception(
                "Result sink failed for window [%g, %g) — continuing",
                result.window_start,
                result.window_end,
            )
            return
        self.stats["windows_emitted"] += 1
        METRICS.windows_emitted.inc()
