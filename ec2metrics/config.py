"""Configuration management. All settings from environment variables with sensible defaults."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AWSConfig:
    region: str = "us-east-1"
    endpoint_url: str = ""  # empty = AWS default endpoint (set for LocalStack etc.)


@dataclass(frozen=True)
class MetricsConfig:
    backend: str = "cloudwatch"  # "cloudwatch" or registered source name
    namespace: str = "AWS/EC2"
    metric_name: str = "CPUUtilization"
    stat: str = "Average"

    max_datapoints: int = 1440     # CloudWatch per-query datapoint cap
    max_concurrency: int = 5       # in-flight chunk fetches per batch
    max_retries: int = 3           # additional attempts after a throttled call
    base_backoff_ms: int = 200     # 200, 400, 800 ...
    coarse_gap_seconds: int = 240  # min gap that marks 1m data as basic monitoring
    query_timeout: float = 0.0     # seconds, 0 = no deadline


@dataclass(frozen=True)
class RetentionConfig:
    fine_days: int = 15               # 1-minute datapoints kept for 15 days
    coarse_days: int = 455            # 1-hour datapoints kept for 455 days
    ingestion_lag_seconds: int = 300  # presets end this far in the past


@dataclass(frozen=True)
class Config:
    aws: AWSConfig = field(default_factory=AWSConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    retention: RetentionConfig = field(default_factory=RetentionConfig)
    http_host: str = "0.0.0.0"
    http_port: int = 3000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


def _parse_cors_origins(raw: str) -> list[str]:
    """Parse comma-separated CORS origins. '*' means allow all."""
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


def config_to_flat(config: Config) -> dict[str, Any]:
    """Serialize config to a flat dict with dot-notation keys."""
    result: dict[str, Any] = {}

    for f in fields(config):
        val = getattr(config, f.name)
        if hasattr(val, "__dataclass_fields__"):
            for sf in fields(val):
                result[f"{f.name}.{sf.name}"] = getattr(val, sf.name)
        else:
            # Skip list fields (cors_origins), not useful in flat form
            if isinstance(val, list):
                continue
            result[f.name] = val

    return result


def load_config() -> Config:
    """Load configuration from environment variables."""
    region = os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or "us-east-1"
    backend = os.getenv("EC2METRICS_METRIC_BACKEND", "cloudwatch").lower().strip()

    max_concurrency = int(os.getenv("EC2METRICS_MAX_CONCURRENCY", "5"))
    if max_concurrency < 1:
        logger.warning("EC2METRICS_MAX_CONCURRENCY=%d is invalid, using 1", max_concurrency)
        max_concurrency = 1

    return Config(
        aws=AWSConfig(
            region=region,
            endpoint_url=os.getenv("EC2METRICS_AWS_ENDPOINT_URL", ""),
        ),
        metrics=MetricsConfig(
            backend=backend,
            namespace=os.getenv("EC2METRICS_NAMESPACE", "AWS/EC2"),
            metric_name=os.getenv("EC2METRICS_METRIC_NAME", "CPUUtilization"),
            stat=os.getenv("EC2METRICS_STAT", "Average"),
            max_datapoints=int(os.getenv("EC2METRICS_MAX_DATAPOINTS", "1440")),
            max_concurrency=max_concurrency,
            max_retries=int(os.getenv("EC2METRICS_MAX_RETRIES", "3")),
            base_backoff_ms=int(os.getenv("EC2METRICS_BASE_BACKOFF_MS", "200")),
            coarse_gap_seconds=int(os.getenv("EC2METRICS_COARSE_GAP_SECONDS", "240")),
            query_timeout=float(os.getenv("EC2METRICS_QUERY_TIMEOUT", "0")),
        ),
        retention=RetentionConfig(
            fine_days=int(os.getenv("EC2METRICS_RETENTION_FINE_DAYS", "15")),
            coarse_days=int(os.getenv("EC2METRICS_RETENTION_COARSE_DAYS", "455")),
            ingestion_lag_seconds=int(os.getenv("EC2METRICS_INGESTION_LAG_SECONDS", "300")),
        ),
        http_host=os.getenv("EC2METRICS_HTTP_HOST", "0.0.0.0"),
        http_port=int(os.getenv("PORT", "3000")),
        cors_origins=_parse_cors_origins(os.getenv("EC2METRICS_CORS_ORIGINS", "*")),
        log_level=os.getenv("EC2METRICS_LOG_LEVEL", "INFO").upper(),
    )
