"""Metric source factory with pluggable provider registry.

Built-in providers: cloudwatch (GetMetricData).
Register custom providers via ``register_metric_source(name, factory_fn)``.
"""

from __future__ import annotations

import logging
from typing import Callable

from ec2metrics.config import Config
from ec2metrics.metrics.interface import MetricSource

logger = logging.getLogger(__name__)

# Provider registry: name -> factory function(config) -> MetricSource
_providers: dict[str, Callable[[Config], MetricSource]] = {}


def register_metric_source(
    name: str,
    factory: Callable[[Config], MetricSource],
) -> None:
    """Register a custom metric source.

    Args:
        name: Backend name (matches EC2METRICS_METRIC_BACKEND env var).
        factory: Callable that takes Config and returns a MetricSource.

    Example::

        from ec2metrics.metrics import register_metric_source
        from ec2metrics.metrics.interface import MetricSource

        class PrometheusSource(MetricSource):
            ...

        register_metric_source("prometheus", lambda cfg: PrometheusSource(cfg))
    """
    _providers[name] = factory
    logger.info("Registered metric source: %s", name)


def get_metric_source(config: Config) -> MetricSource:
    """Return the configured metric source.

    Checks the plugin registry first, then falls back to built-in sources.
    """
    backend = config.metrics.backend

    if backend in _providers:
        return _providers[backend](config)

    if backend == "cloudwatch":
        from ec2metrics.metrics.cloudwatch import CloudWatchMetricSource
        return CloudWatchMetricSource(config.aws, config.metrics)
    else:
        available = sorted(set(BUILT_IN_SOURCES + list(_providers.keys())))
        raise ValueError(
            f"Unknown metric backend: {backend!r}. "
            f"Available: {', '.join(available)}"
        )


# For error messages and discovery
BUILT_IN_SOURCES = ["cloudwatch"]
