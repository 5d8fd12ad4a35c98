"""
tests/test_time_window.py

Tests for aggregation/time_window.py and aggregation/models.py.
Window boundaries are driven purely by record timestamps, so no clock
patching is needed.
"""

from __future__ import annotations

import pytest

from trafficwatch.backend.aggregation.models import Window, WindowResult
from trafficwatch.backend.aggregation.time_window import WindowAggregator, select_top_n
from trafficwatch.backend.errors import ConfigError
from trafficwatch.backend.models import Record


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def hms(text: str) -> float:
    h, m, s = (int(p) for p in text.split(":"))
    return float(h * 3600 + m * 60 + s)


def rec(ts: str | float, source_id: str = "TL-1", metric: int = 1) -> Record:
    timestamp = hms(ts) if isinstance(ts, str) else float(ts)
    return Record(timestamp=timestamp, source_id=source_id, metric=metric)


def feed(agg: WindowAggregator, records: list[Record]) -> list[WindowResult]:
    results = [r for r in (agg.accept(x) for x in records) if r is not None]
    final = agg.flush()
    if final is not None:
        results.append(final)
    return results


# ---------------------------------------------------------------------------
# Window
# ---------------------------------------------------------------------------

class TestWindow:

    @pytest.mark.parametrize("ts,expected", [
        (0.0, (0.0, 60.0)),
        (59.9, (0.0, 60.0)),
        (60.0, (60.0, 120.0)),
        (125.0, (120.0, 180.0)),
    ])
    def test_containing_is_aligned(self, ts, expected):
        assert tuple(Window.containing(ts, 60)) == expected

    def test_half_open(self):
        w = Window(0.0, 60.0)
        assert 0.0 in w
        assert 59.999 in w
        assert 60.0 not in w
        assert w.duration == 60.0


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestWindowAggregatorInit:

    @pytest.mark.parametrize("top_n", [0, -1])
    def test_non_positive_top_n_rejected(self, top_n):
        with pytest.raises(ConfigError):
            WindowAggregator(60, top_n)

    @pytest.mark.parametrize("duration", [0, -5])
    def test_non_positive_duration_rejected(self, duration):
        with pytest.raises(ConfigError):
            WindowAggregator(duration, 3)

    def test_no_window_open_initially(self):
        agg = WindowAggregator(60, 3)
        assert agg.current_window is None
        assert agg.flush() is None


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

class TestWindowAggregatorAccept:

    def test_first_record_opens_floored_window(self):
        agg = WindowAggregator(60, 3)
        assert agg.accept(rec("00:00:10")) is None
        assert agg.current_window == Window(0.0, 60.0)

    def test_window_correctness_example(self):
        agg = WindowAggregator(60, 1)
        a = rec("00:00:10", "A", 5)
        b = rec("00:00:50", "B", 9)
        c = rec("00:01:05", "C", 3)

        assert agg.accept(a) is None
        assert agg.accept(b) is None
        first = agg.accept(c)
        assert first == WindowResult(0.0, 60.0, (b,))

        second = agg.flush()
        assert second == WindowResult(60.0, 120.0, (c,))

    def test_record_exactly_at_window_end_closes_it(self):
        agg = WindowAggregator(60, 3)
        agg.accept(rec(0.0))
        result = agg.accept(rec(60.0))
        assert result is not None
        assert (result.window_start, result.window_end) == (0.0, 60.0)
        assert agg.current_window == Window(60.0, 120.0)

    def test_empty_windows_in_gap_are_not_emitted(self):
        agg = WindowAggregator(60, 3)
        results = feed(agg, [rec("00:00:05"), rec("00:10:05")])
        assert [(r.window_start, r.window_end) for r in results] == [
            (0.0, 60.0),
            (600.0, 660.0),
        ]

    def test_late_record_joins_open_window(self):
        agg = WindowAggregator(60, 5)
        agg.accept(rec(130.0, "A", 1))      # opens [120, 180)
        late = rec(30.0, "LATE", 99)
        assert agg.accept(late) is None
        assert agg.current_window == Window(120.0, 180.0)
        assert agg.stats["late_records"] == 1
        result = agg.flush()
        assert result.top[0] == late

    def test_flush_emits_partial_window_then_resets(self):
        agg = WindowAggregator(3600, 3)
        agg.accept(rec("07:15:00", "A", 4))
        result = agg.flush()
        assert result.window_start == hms("07:00:00")
        assert result.window_end == hms("08:00:00")
        assert agg.current_window is None
        assert agg.flush() is None

    def test_fewer_records_than_n_emits_all(self):
        agg = WindowAggregator(60, 5)
        results = feed(agg, [rec(1.0, "A", 2), rec(2.0, "B", 7)])
        assert len(results) == 1
        assert [r.source_id for r in results[0].top] == ["B", "A"]

    def test_each_record_lands_in_exactly_one_window(self):
        agg = WindowAggregator(10, 100)
        records = [rec(float(t), f"S{t}", t) for t in range(0, 95, 3)]
        results = feed(agg, records)
        emitted = [r for res in results for r in res.top]
        assert sorted(emitted, key=lambda r: r.timestamp) == records
        for res in results:
            for r in res.top:
                assert res.window_start <= r.timestamp < res.window_end

    def test_stats_track_windows(self):
        agg = WindowAggregator(60, 1)
        feed(agg, [rec(1.0), rec(61.0), rec(121.0)])
        assert agg.stats["records_accepted"] == 3
        assert agg.stats["windows_closed"] == 3


# ---------------------------------------------------------------------------
# Top-N ranking
# ---------------------------------------------------------------------------

class TestSelectTopN:

    def test_sorted_by_metric_descending(self):
        records = [rec(i, f"S{i}", m) for i, m in enumerate([3, 9, 1, 7])]
        assert [r.metric for r in select_top_n(records, 3)] == [9, 7, 3]

    def test_tie_broken_by_earliest_timestamp(self):
        later = rec(20.0, "A", 5)
        earlier = rec(10.0, "Z", 5)
        assert select_top_n([later, earlier], 2) == [earlier, later]

    def test_tie_broken_by_source_id_when_timestamps_equal(self):
        b = rec(10.0, "B", 5)
        a = rec(10.0, "A", 5)
        assert select_top_n([b, a], 2) == [a, b]

    def test_order_independent_of_arrival(self):
        records = [
            rec(10.0, "C", 5),
            rec(10.0, "A", 5),
            rec(5.0, "B", 5),
            rec(1.0, "D", 8),
        ]
        expected = [records[3], records[2], records[1], records[0]]
        assert select_top_n(records, 4) == expected
        assert select_top_n(list(reversed(records)), 4) == expected

    def test_n_larger_than_input(self):
        assert len(select_top_n([rec(1.0)], 10)) == 1
