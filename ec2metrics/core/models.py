"""Value types passed between the planner, fetcher, scheduler and aggregator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()


@dataclass(frozen=True)
class Chunk:
    """One provider query's window. Chunks of a plan share boundary instants."""
    start: datetime
    end: datetime
    period_seconds: int

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()


@dataclass(frozen=True)
class RawSample:
    timestamp: datetime
    value: float | None


@dataclass(frozen=True)
class DataPoint:
    timestamp: datetime
    value: float
    label: str  # "02:05 PM" in UTC

    @property
    def timestamp_ms(self) -> int:
        return int(round(self.timestamp.timestamp() * 1000))

    def to_dict(self) -> dict:
        """Shape consumed by the dashboard: {time, cpu, timestamp}."""
        return {"time": self.label, "cpu": self.value, "timestamp": self.timestamp_ms}


@dataclass
class QueryResult:
    points: list[DataPoint]
    adjusted_interval: str | None = None
