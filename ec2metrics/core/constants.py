"""Centralized constants for the metric retrieval core."""

from __future__ import annotations


# ============================================================
# Intervals
# ============================================================

# CloudWatch period in seconds for each interval key
PERIOD_MAP: dict[str, int] = {
    "1m": 60,
    "5m": 300,
    "15m": 900,
    "1h": 3600,
}

VALID_INTERVALS = list(PERIOD_MAP)
INTERVAL_DEFAULT = "5m"
DEFAULT_PERIOD = PERIOD_MAP[INTERVAL_DEFAULT]

FINE_INTERVAL = "1m"
FALLBACK_INTERVAL = "5m"


def period_for(interval: str) -> int:
    """Period in seconds for an interval key. Unknown keys map to 5m."""
    return PERIOD_MAP.get(interval, DEFAULT_PERIOD)


# ============================================================
# Provider limits
# ============================================================

MAX_DATAPOINTS = 1440
MAX_CONCURRENT_REQUESTS = 5
MAX_RETRIES = 3
BASE_BACKOFF_MS = 200

# 1m data whose smallest gap is at least this wide is really 5m basic monitoring
COARSE_GAP_SECONDS = 240

# Samples this close outside the requested range are kept
RANGE_TOLERANCE_SECONDS = 1


# ============================================================
# HTTP presets
# ============================================================

# Range length in seconds for each timePeriod preset
TIME_PERIODS: dict[str, int] = {
    "1h": 60 * 60,
    "24h": 24 * 60 * 60,
    "7d": 7 * 24 * 60 * 60,
}

LABEL_FORMAT = "%I:%M %p"
