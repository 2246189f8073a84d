"""Merge raw samples from all chunks into the final sorted point series."""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime, timedelta

from ec2metrics.core.constants import LABEL_FORMAT, RANGE_TOLERANCE_SECONDS
from ec2metrics.core.models import DataPoint, RawSample, TimeRange
from ec2metrics.core.utils import ensure_utc


def round_to_second(ts: datetime) -> int:
    """Epoch seconds rounded to nearest, halves up."""
    return math.floor(ts.timestamp() + 0.5)


def format_label(ts: datetime) -> str:
    return ensure_utc(ts).strftime(LABEL_FORMAT)


def aggregate(samples: Iterable[RawSample], time_range: TimeRange) -> list[DataPoint]:
    """Filter, dedupe and sort samples into DataPoints.

    Samples with no value or outside the range (with one second of slack on
    either side) are dropped. Samples whose timestamps round to the same
    second collapse to the first one seen.
    """
    tolerance = timedelta(seconds=RANGE_TOLERANCE_SECONDS)
    lo = ensure_utc(time_range.start) - tolerance
    hi = ensure_utc(time_range.end) + tolerance

    seen: set[int] = set()
    kept: list[tuple[datetime, float]] = []
    for sample in samples:
        if sample.value is None:
            continue
        ts = ensure_utc(sample.timestamp)
        if ts < lo or ts > hi:
            continue
        key = round_to_second(ts)
        if key in seen:
            continue
        seen.add(key)
        kept.append((ts, float(sample.value)))

    kept.sort(key=lambda pair: pair[0])
    return [DataPoint(timestamp=ts, value=value, label=format_label(ts)) for ts, value in kept]
