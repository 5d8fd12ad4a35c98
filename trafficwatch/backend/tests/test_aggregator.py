"""
tests/test_aggregator.py

Tests for the Analyzer — puts Records onto a BoundedQueue and asserts
which windows reach the sink.

Most tests pre-fill and close the queue, then call run() directly on the
test thread; run() returns once the queue is drained.
"""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from trafficwatch.backend.aggregation.aggregator import Analyzer
from trafficwatch.backend.metrics import METRICS
from trafficwatch.backend.models import Record
from trafficwatch.backend.pipeline import BoundedQueue

JOIN_TIMEOUT = 5.0


@pytest.fixture(autouse=True)
def _reset_metrics():
    METRICS.reset_all()
    yield


class CollectingSink:
    def __init__(self) -> None:
        self.windows: list[tuple[float, float, list[Record]]] = []

    def emit(self, window_start, window_end, top) -> None:
        self.windows.append((window_start, window_end, list(top)))


def rec(ts: float, source_id: str = "TL-1", metric: int = 1) -> Record:
    return Record(timestamp=ts, source_id=source_id, metric=metric)


def closed_queue(records: list[Record]) -> BoundedQueue:
    q = BoundedQueue(max(1, len(records)))
    for r in records:
        q.push(r)
    q.close()
    return q


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------

class TestAnalyzerStats:

    def test_stats_initialized(self):
        agg = Analyzer(BoundedQueue(1), CollectingSink(), 60, 3)
        assert agg.stats["records_consumed"] == 0
        assert agg.stats["windows_emitted"] == 0
        assert agg.stats["sink_errors"] == 0

    def test_backlog_drained_in_one_batch(self):
        q = closed_queue([rec(float(i)) for i in range(5)])
        agg = Analyzer(q, CollectingSink(), 60, 3)
        agg.run()
        assert agg.stats["records_consumed"] == 5
        assert agg.stats["batches"] == 1
        assert agg.stats["largest_batch"] == 5
        assert METRICS.records_consumed.value == 5


# ---------------------------------------------------------------------------
# Window emission
# ---------------------------------------------------------------------------

class TestAnalyzerEmission:

    def test_windows_emitted_in_order_with_final_flush(self):
        sink = CollectingSink()
        q = closed_queue([
            rec(10.0, "A", 5),
            rec(50.0, "B", 9),
            rec(65.0, "C", 3),
        ])
        Analyzer(q, sink, 60, 1).run()

        assert [(s, e) for s, e, _ in sink.windows] == [(0.0, 60.0), (60.0, 120.0)]
        assert [r.source_id for r in sink.windows[0][2]] == ["B"]
        assert [r.source_id for r in sink.windows[1][2]] == ["C"]
        assert METRICS.windows_emitted.value == 2

    def test_empty_queue_emits_nothing(self):
        sink = CollectingSink()
        Analyzer(closed_queue([]), sink, 60, 3).run()
        assert sink.windows == []

    def test_run_returns_when_closed_while_waiting(self):
        q = BoundedQueue(4)
        sink = CollectingSink()
        agg = Analyzer(q, sink, 60, 3)
        t = threading.Thread(target=agg.run, daemon=True)
        t.start()

        q.push(rec(1.0, "A", 4))
        q.push(rec(2.0, "B", 6))
        q.close()
        t.join(JOIN_TIMEOUT)

        assert not t.is_alive()
        assert len(sink.windows) == 1
        assert [r.source_id for r in sink.windows[0][2]] == ["B", "A"]

    def test_consume_without_queue(self):
        sink = CollectingSink()
        agg = Analyzer(None, sink, 60, 2)
        agg.consume([rec(1.0, "A", 1), rec(61.0, "B", 2)])
        agg.finish()
        assert len(sink.windows) == 2

    def test_run_without_queue_raises(self):
        with pytest.raises(RuntimeError):
            Analyzer(None, CollectingSink(), 60, 2).run()


# ---------------------------------------------------------------------------
# Sink failures
# ---------------------------------------------------------------------------

class TestSinkFailures:

    def test_sink_exception_does_not_stop_loop(self):
        sink = MagicMock()
        sink.emit.side_effect = [IOError("disk full"), None]
        q = closed_queue([rec(1.0), rec(61.0)])
        agg = Analyzer(q, sink, 60, 3)

        agg.run()

        assert sink.emit.call_count == 2
        assert agg.stats["sink_errors"] == 1
        assert agg.stats["windows_emitted"] == 1
        assert METRICS.sink_errors.value == 1

    def test_failed_flush_is_logged(self, caplog):
        sink = MagicMock()
        sink.emit.side_effect = RuntimeError("boom")
        agg = Analyzer(closed_queue([rec(1.0)]), sink, 60, 3)
        with caplog.at_level("ERROR"):
            agg.run()
        assert "Result sink failed" in caplog.text

    def test_escaping_failure_is_stored_and_queue_closed(self):
        class Abort(BaseException):
            pass

        sink = MagicMock()
        sink.emit.side_effect = Abort("stop")
        q = BoundedQueue(4)
        q.push(rec(1.0))
        q.push(rec(61.0))
        agg = Analyzer(q, sink, 60, 3)

        agg.run()

        assert isinstance(agg.error, Abort)
        assert q.closed
        assert agg.stats["windows_emitted"] == 0
