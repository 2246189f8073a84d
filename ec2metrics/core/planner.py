"""Range planning: split a time range into queries under the datapoint cap."""

from __future__ import annotations

import logging
import math
from datetime import timedelta

from ec2metrics.core.constants import MAX_DATAPOINTS
from ec2metrics.core.models import Chunk, TimeRange

logger = logging.getLogger(__name__)


def estimate_datapoints(duration_seconds: float, period_seconds: int) -> int:
    return math.ceil(duration_seconds / period_seconds)


def plan_chunks(
    time_range: TimeRange,
    period_seconds: int,
    max_datapoints: int = MAX_DATAPOINTS,
) -> list[Chunk]:
    """Split time_range into contiguous chunks of at most max_datapoints periods.

    Ranges that fit in one query come back as a single chunk equal to the
    range. Otherwise chunks of max_datapoints * period_seconds are laid out
    from the start, and the last one is clamped to the range end. Adjacent
    chunks share their boundary instant.
    """
    estimated = estimate_datapoints(time_range.duration_seconds, period_seconds)
    if estimated <= max_datapoints:
        return [Chunk(time_range.start, time_range.end, period_seconds)]

    step = timedelta(seconds=max_datapoints * period_seconds)
    chunks: list[Chunk] = []
    current = time_range.start
    while current < time_range.end:
        chunk_end = min(current + step, time_range.end)
        chunks.append(Chunk(current, chunk_end, period_seconds))
        current = chunk_end

    logger.debug(
        "Planned %d chunks for %d estimated datapoints (period=%ds)",
        len(chunks), estimated, period_seconds,
    )
    return chunks
