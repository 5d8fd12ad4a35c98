"""
ingestion/ingestor.py

Ingestor — the ingestion loop.

Reads raw lines from a RecordSource, parses them with a RecordParser and
pushes the resulting Records onto the BoundedQueue.

Key behaviour:
  - A malformed line is logged with its line number, counted and skipped.
    One bad line never stops the stream.
  - push() blocks while the queue is full; that is the only place this
    loop ever waits.
  - Whatever ends the loop (source exhausted, SourceReadError, queue closed
    from elsewhere) the queue is closed in `finally`, so the analysis
    thread always drains and exits.
  - A SourceReadError is kept on `self.error` for the caller to re-raise
    after both threads have been joined.
"""

from __future__ import annotations

import logging
from typing import Iterator

from ..errors import ParseError, QueueClosed, SourceReadError
from ..metrics import METRICS
from ..models import Record
from ..pipeline import BoundedQueue
from .parser import RecordParser
from .source import RecordSource

logger = logging.getLogger(__name__)


class Ingestor:
    """
    Bridges a record source → parser → bounded queue.

    Args:
        source: RecordSource yielding raw lines.
        queue:  BoundedQueue[Record] shared with the analysis thread.
        parser: RecordParser (a default one is created if omitted).
    """

    def __init__(
        self,
        source: RecordSource,
        queue: BoundedQueue,
        parser: RecordParser | None = None,
    ) -> None:
        self._source = source
        self._queue = queue
        self._parser = parser or RecordParser()
        self.error: SourceReadError | None = None

        self.stats: dict[str, int] = {
            "lines_read": 0,
            "records_enqueued": 0,
            "parse_errors": 0,
            "lines_skipped": 0,
        }

    def run(self) -> None:
        """Ingest until the source ends, then close the queue."""
        logger.info("Ingestor started — queue capacity=%d", self._queue.capacity)
        try:
            self._pump()
        except SourceReadError as exc:
            self.error = exc
            logger.error("Source read failed — stopping ingestion: %s", exc)
        finally:
            self._queue.close()
            logger.info("Ingestor finished — stats=%s", self.stats)

    def _pump(self) -> None:
        for lineno, record in iter_records(self._source, self._parser, self.stats):
            try:
                self._queue.push(record)
            except QueueClosed:
                logger.warning("Queue closed before source was exhausted — stopping at line %d", lineno)
                return
            self.stats["records_enqueued"] += 1
            METRICS.records_enqueued.inc()

        logger.info("Source exhausted after %d line(s)", self.stats["lines_read"])


def iter_records(
    source: RecordSource,
    parser: RecordParser,
    stats: dict[str, int],
) -> Iterator[tuple[int, Record]]:
    """
    Yield ``(line_number, Record)`` for every well-formed line of ``source``.

    Malformed lines are logged and skipped; blank lines and comments are
    skipped silently. ``stats`` is updated in place.
    """
    for lineno, line in enumerate(source, start=1):
        stats["lines_read"] += 1
        METRICS.lines_read.inc()

        try:
            record = parser.parse(line)
        except ParseError as exc:
            stats["parse_errors"] += 1
            METRICS.parse_errors.inc()
            logger.warning("Skipping line %d: %s (%r)", lineno, exc, exc.line)
            continue

        if record is None:
            # Blank line or comment
            stats["lines_skipped"] += 1
            continue

        METRICS.records_parsed.inc()
        yield lineno, record