"""Shared utilities for the metric core. Validation and deadline helpers."""

from __future__ import annotations

import ipaddress
import time
from datetime import datetime, timezone

from ec2metrics.core.constants import TIME_PERIODS, VALID_INTERVALS

MAX_IDENTIFIER_LENGTH = 255  # AWS filter value limit


class ValidationError(Exception):
    """Raised when request input fails validation."""


class QueryTimeout(Exception):
    """Raised when a query runs past its deadline."""


def validate_interval(interval: str) -> None:
    if interval not in VALID_INTERVALS:
        raise ValidationError(f"Invalid interval. Use one of: {', '.join(VALID_INTERVALS)}")


def validate_time_period(time_period: str) -> None:
    if time_period not in TIME_PERIODS:
        raise ValidationError(f"Invalid timePeriod. Use one of: {', '.join(TIME_PERIODS)}")


def validate_private_ip(identifier: str) -> str:
    """Validate a private IP lookup value. Returns the trimmed address."""
    value = identifier.strip()
    if len(value) > MAX_IDENTIFIER_LENGTH:
        raise ValidationError(
            f"IP address too long ({len(value)} characters). "
            f"Maximum length is {MAX_IDENTIFIER_LENGTH} characters."
        )
    try:
        ipaddress.ip_address(value)
    except ValueError:
        raise ValidationError(f"Invalid IP address format: {value}") from None
    return value


def ensure_utc(ts: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def from_epoch_ms(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def make_deadline(timeout: float | None) -> float | None:
    """Monotonic deadline for a timeout in seconds. None or <= 0 means no deadline."""
    if not timeout or timeout <= 0:
        return None
    return time.monotonic() + timeout


def check_deadline(deadline: float | None, what: str) -> None:
    if deadline is not None and time.monotonic() >= deadline:
        raise QueryTimeout(f"Deadline exceeded before {what}")
