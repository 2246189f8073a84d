"""Service container and factory. Centralizes component initialization."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ec2metrics.config import Config, load_config
from ec2metrics.core.engine import MetricsEngine
from ec2metrics.core.instances import InstanceDirectory
from ec2metrics.core.stats import SourceStats
from ec2metrics.metrics import get_metric_source
from ec2metrics.metrics.interface import MetricSource

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Holds all initialized components."""

    config: Config
    source: MetricSource
    stats: SourceStats
    engine: MetricsEngine
    instances: InstanceDirectory


def create_services(
    config: Config | None = None,
    source: MetricSource | None = None,
    instances: InstanceDirectory | None = None,
) -> Services:
    """Build all components from config. Tests pass fakes for source/instances."""
    if config is None:
        config = load_config()

    if source is None:
        source = get_metric_source(config)
    stats = SourceStats(source.get_source_name())

    engine = MetricsEngine(source, config.metrics, stats=stats)

    if instances is None:
        instances = InstanceDirectory(config.aws)

    logger.info(
        "Services ready: source=%s region=%s concurrency=%d",
        source.get_source_name(), config.aws.region, config.metrics.max_concurrency,
    )
    return Services(
        config=config,
        source=source,
        stats=stats,
        engine=engine,
        instances=instances,
    )
