"""
backend/metrics.py

Lightweight thread-safe counters for the simulated live feed.
No external dependencies — uses Python's threading.Lock.

Usage:
    metrics = FeedMetrics()
    metrics.logs_generated.inc()
    print(metrics.as_dict())
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


class FeedMetrics:
    """Counters owned by one LiveFeed instance."""

    def __init__(self) -> None:
        self.logs_generated: Counter = Counter()
        """Traffic logs created by the log tick or seeding."""

        self.analyses_created: Counter = Counter()
        """AIAnalysisResult rows written."""

        self.patterns_injected: Counter = Counter()
        """Generated attack patterns injected by the pattern tick."""

        self.anomalies_detected: Counter = Counter()
        """Patterns emitted by the anomaly sweep (rules + remote)."""

        self.tick_failures: Counter = Counter()
        """Timer ticks that raised and were skipped."""

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
