"""Metric source ABC and its closed error taxonomy.

A metric source wraps one telemetry provider client. It fetches the raw
samples for exactly one window at one period and reports failures as either
RateLimited (retried by the fetcher) or UpstreamFailure (never retried).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from ec2metrics.core.models import RawSample


class MetricSourceError(Exception):
    """Base for failures reported by a metric source."""

    def __init__(self, message: str, code: str = ""):
        super().__init__(message)
        self.code = code


class RateLimited(MetricSourceError):
    """The provider throttled the request. Safe to re-issue after a delay."""


class UpstreamFailure(MetricSourceError):
    """Any other provider or transport failure."""


class MetricSource(ABC):
    """Abstract base for metric providers."""

    @abstractmethod
    def fetch_chunk(
        self,
        instance_id: str,
        start: datetime,
        end: datetime,
        period_seconds: int,
    ) -> list[RawSample]:
        """Fetch raw samples for one window.

        Args:
            instance_id: Compute instance the metric is dimensioned by.
            start: Window start (inclusive).
            end: Window end.
            period_seconds: Aggregation period the provider reports at.

        Returns:
            Samples in provider order. An empty list is a valid result.

        Raises:
            RateLimited: The provider throttled this request.
            UpstreamFailure: Any other failure.
        """

    @abstractmethod
    def get_source_name(self) -> str:
        """Return a short identifier for logs and stats."""
