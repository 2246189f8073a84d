"""Resolution fallback for 1-minute requests on basic-monitoring instances."""

from __future__ import annotations

import logging

from ec2metrics.core.constants import COARSE_GAP_SECONDS, FINE_INTERVAL
from ec2metrics.core.models import DataPoint, RawSample

logger = logging.getLogger(__name__)


def applies_to(interval: str) -> bool:
    return interval == FINE_INTERVAL


def needs_refetch(interval: str, chunk_results: list[list[RawSample]]) -> bool:
    """True when a 1m fetch came back with no samples at all."""
    if not applies_to(interval):
        return False
    return not any(chunk_results)


def min_gap_seconds(points: list[DataPoint]) -> float | None:
    """Smallest positive gap between consecutive sorted points, or None."""
    gaps = []
    for prev, cur in zip(points, points[1:]):
        delta = (cur.timestamp - prev.timestamp).total_seconds()
        if delta > 0:
            gaps.append(delta)
    return min(gaps) if gaps else None


def looks_coarse(
    interval: str,
    points: list[DataPoint],
    threshold_seconds: int = COARSE_GAP_SECONDS,
) -> bool:
    """True when 1m data is spaced like 5m basic monitoring."""
    if not applies_to(interval):
        return False
    gap = min_gap_seconds(points)
    if gap is None:
        return False
    if gap >= threshold_seconds:
        logger.info("Smallest gap %.0fs >= %ds, data is basic monitoring", gap, threshold_seconds)
        return True
    return False
