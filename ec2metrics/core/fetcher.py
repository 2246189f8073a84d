"""Single-chunk fetch with exponential backoff on provider throttling."""

from __future__ import annotations

import logging
import time

from ec2metrics.core.constants import BASE_BACKOFF_MS, MAX_RETRIES
from ec2metrics.core.models import Chunk, RawSample
from ec2metrics.core.stats import SourceStats
from ec2metrics.core.utils import QueryTimeout
from ec2metrics.metrics.interface import MetricSource, RateLimited

logger = logging.getLogger(__name__)


class ChunkFetcher:
    """Fetch one chunk from a metric source, retrying RateLimited failures.

    A throttled call is re-issued up to ``max_retries`` more times, sleeping
    ``base_backoff_ms * 2**attempt`` before each retry (200, 400, 800 ms with
    the defaults). The last RateLimited is re-raised unchanged. Every other
    failure propagates on the first attempt.
    """

    def __init__(
        self,
        source: MetricSource,
        max_retries: int = MAX_RETRIES,
        base_backoff_ms: int = BASE_BACKOFF_MS,
        stats: SourceStats | None = None,
    ):
        self.source = source
        self.max_retries = max_retries
        self.base_backoff_ms = base_backoff_ms
        self.stats = stats

    def backoff_seconds(self, attempt: int) -> float:
        return self.base_backoff_ms * (2 ** attempt) / 1000

    def fetch(
        self,
        instance_id: str,
        chunk: Chunk,
        deadline: float | None = None,
    ) -> list[RawSample]:
        attempts = self.max_retries + 1
        for attempt in range(attempts):
            try:
                samples = self.source.fetch_chunk(
                    instance_id, chunk.start, chunk.end, chunk.period_seconds,
                )
            except RateLimited as e:
                if self.stats:
                    self.stats.record_throttle()
                if attempt == self.max_retries:
                    logger.warning(
                        "Throttled %d/%d times on %s %s..%s, giving up",
                        attempt + 1, attempts, instance_id,
                        chunk.start.isoformat(), chunk.end.isoformat(),
                    )
                    if self.stats:
                        self.stats.record_error(str(e))
                    raise
                wait = self.backoff_seconds(attempt)
                if deadline is not None and time.monotonic() + wait >= deadline:
                    if self.stats:
                        self.stats.record_error("deadline exceeded while throttled")
                    raise QueryTimeout(
                        f"Deadline exceeded while backing off on {instance_id}"
                    ) from e
                logger.warning(
                    "Throttled (attempt %d/%d): %s. Retrying in %dms...",
                    attempt + 1, attempts, e.code or e, wait * 1000,
                )
                time.sleep(wait)
                continue
            except Exception as e:
                # MetricSourceError and anything a custom source raises
                if self.stats:
                    self.stats.record_error(str(e))
                raise

            if self.stats:
                self.stats.record_call(samples=len(samples))
            return samples

        # Unreachable: the last attempt either returns or raises
        raise RuntimeError("retry loop exited without a result")
