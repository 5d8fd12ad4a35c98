"""
backend/metrics.py

Lightweight thread-safe counters for the ingestion / analysis pipeline.
No external dependencies — uses Python's threading.Lock.

Usage:
    from trafficwatch.backend.metrics import METRICS
    METRICS.records_parsed.inc()
    print(METRICS.as_dict())
"""

import threading


class Counter:
    """A thread-safe integer counter."""

    __slots__ = ("_value", "_lock")

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def inc(self, amount: int = 1) -> None:
        with self._lock:
            self._value += amount

    def reset(self) -> None:
        with self._lock:
            self._value = 0

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def __repr__(self) -> str:  # pragma: no cover
        return f"Counter({self._value})"


class Metrics:
    """Singleton holding all pipeline counters."""

    def __init__(self) -> None:
        # --- Ingestion thread ---
        self.lines_read: Counter = Counter()
        """Raw lines pulled from the record source."""

        self.records_parsed: Counter = Counter()
        """Lines that produced a valid Record."""

        self.parse_errors: Counter = Counter()
        """Lines skipped because the parser raised ParseError."""

        self.records_enqueued: Counter = Counter()
        """Records successfully pushed onto the bounded queue."""

        self.backpressure_waits: Counter = Counter()
        """Pushes that found the queue full and had to wait."""

        # --- Analysis thread ---
        self.records_consumed: Counter = Counter()
        """Records popped from the queue and fed to the aggregator."""

        self.windows_emitted: Counter = Counter()
        """Completed windows handed to the result sink."""

        self.sink_errors: Counter = Counter()
        """Sink calls that raised; the analysis loop carried on."""

    def as_dict(self) -> dict:
        """Return all counters as a plain dict (safe for JSON serialisation)."""
        return {
            name: attr.value
            for name, attr in vars(self).items()
            if isinstance(attr, Counter)
        }

    def reset_all(self) -> None:
        """Reset every counter to zero (useful in tests)."""
        for attr in vars(self).values():
            if isinstance(attr, Counter):
                attr.reset()


# Module-level singleton: import from here everywhere
METRICS = Metrics()
