"""Shared test helpers for ec2-metrics tests."""

import threading
from datetime import datetime, timedelta, timezone

from ec2metrics.core.models import RawSample
from ec2metrics.metrics.interface import MetricSource

BASE = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def at(seconds: float) -> datetime:
    """BASE shifted by a number of seconds."""
    return BASE + timedelta(seconds=seconds)


def samples_every(period: int, count: int, start: datetime = BASE, value: float = 10.0) -> list[RawSample]:
    return [RawSample(start + timedelta(seconds=i * period), value + i) for i in range(count)]


class FakeSource(MetricSource):
    """In-memory metric source.

    With ``script`` set, each call pops the next entry: a list of samples to
    return or an exception to raise. Otherwise samples are served from
    ``by_period`` filtered to the requested window.
    """

    def __init__(self, by_period=None, script=None):
        self.by_period = by_period or {}
        self.script = list(script) if script is not None else None
        self.calls: list[tuple[str, datetime, datetime, int]] = []
        self._lock = threading.Lock()

    def fetch_chunk(self, instance_id, start, end, period_seconds):
        with self._lock:
            self.calls.append((instance_id, start, end, period_seconds))
            if self.script is not None:
                item = self.script.pop(0)
                if isinstance(item, Exception):
                    raise item
                return item
        return [
            s for s in self.by_period.get(period_seconds, [])
            if start <= s.timestamp <= end
        ]

    def get_source_name(self) -> str:
        return "fake"

    @property
    def periods(self) -> list[int]:
        return [c[3] for c in self.calls]


class ExplodingSource(MetricSource):
    """Always raises the given exception."""

    def __init__(self, exc: Exception):
        self.exc = exc
        self.calls = 0

    def fetch_chunk(self, instance_id, start, end, period_seconds):
        self.calls += 1
        raise self.exc

    def get_source_name(self) -> str:
        return "exploding"
