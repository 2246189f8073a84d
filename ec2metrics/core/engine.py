"""Metric retrieval engine: plan, fetch, fall back, aggregate."""

from __future__ import annotations

import itertools
import logging
from datetime import datetime

from ec2metrics.config import MetricsConfig
from ec2metrics.core import fallback
from ec2metrics.core.aggregator import aggregate
from ec2metrics.core.constants import FALLBACK_INTERVAL, period_for
from ec2metrics.core.fetcher import ChunkFetcher
from ec2metrics.core.models import QueryResult, RawSample, TimeRange
from ec2metrics.core.planner import plan_chunks
from ec2metrics.core.scheduler import fetch_all
from ec2metrics.core.stats import SourceStats
from ec2metrics.core.utils import make_deadline
from ec2metrics.metrics.interface import MetricSource

logger = logging.getLogger(__name__)


class MetricsEngine:
    """CPU utilization queries over arbitrary ranges.

    The metric source is injected; the engine holds no per-query state.
    """

    def __init__(
        self,
        source: MetricSource,
        config: MetricsConfig | None = None,
        stats: SourceStats | None = None,
    ):
        self.source = source
        self.config = config or MetricsConfig()
        self.stats = stats
        self.fetcher = ChunkFetcher(
            source,
            max_retries=self.config.max_retries,
            base_backoff_ms=self.config.base_backoff_ms,
            stats=stats,
        )

    def _fetch_period(
        self,
        instance_id: str,
        time_range: TimeRange,
        period_seconds: int,
        deadline: float | None,
    ) -> list[list[RawSample]]:
        chunks = plan_chunks(time_range, period_seconds, self.config.max_datapoints)
        logger.info(
            "Fetching %s %s..%s at %ds in %d chunk(s)",
            instance_id, time_range.start.isoformat(), time_range.end.isoformat(),
            period_seconds, len(chunks),
        )
        return fetch_all(
            self.fetcher, instance_id, chunks,
            max_concurrency=self.config.max_concurrency,
            deadline=deadline,
        )

    def get_cpu_metrics(
        self,
        instance_id: str,
        start: datetime,
        end: datetime,
        interval: str,
        timeout: float | None = None,
    ) -> QueryResult:
        """Fetch the CPU series for instance_id over [start, end].

        Args:
            instance_id: EC2 instance ID.
            start: Range start. Must be before end.
            end: Range end.
            interval: "1m", "5m", "15m" or "1h". Unknown keys use 5m.
            timeout: Seconds before the query gives up. Defaults to the
                configured query_timeout; 0 or None means no deadline.

        Returns:
            QueryResult with points sorted by time. adjusted_interval is "5m"
            when a 1m request was served from 5m data.

        Raises:
            RateLimited: A chunk stayed throttled through every retry.
            UpstreamFailure: Any chunk failed for another reason.
            QueryTimeout: The deadline passed.
        """
        if timeout is None:
            timeout = self.config.query_timeout
        deadline = make_deadline(timeout)
        time_range = TimeRange(start, end)
        period = period_for(interval)
        adjusted_interval: str | None = None

        chunk_results = self._fetch_period(instance_id, time_range, period, deadline)

        if fallback.needs_refetch(interval, chunk_results):
            logger.info(
                "No %s data for %s (detailed monitoring off?), refetching at %s",
                interval, instance_id, FALLBACK_INTERVAL,
            )
            adjusted_interval = FALLBACK_INTERVAL
            chunk_results = self._fetch_period(
                instance_id, time_range, period_for(FALLBACK_INTERVAL), deadline,
            )

        points = aggregate(itertools.chain.from_iterable(chunk_results), time_range)

        if adjusted_interval is None and fallback.looks_coarse(
            interval, points, self.config.coarse_gap_seconds,
        ):
            adjusted_interval = FALLBACK_INTERVAL

        logger.info(
            "%s: %d points (interval=%s%s)",
            instance_id, len(points), interval,
            f", adjusted={adjusted_interval}" if adjusted_interval else "",
        )
        return QueryResult(points=points, adjusted_interval=adjusted_interval)
