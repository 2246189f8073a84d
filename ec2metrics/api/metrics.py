"""CPU metric endpoint."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, HTTPException, Query

from ec2metrics.config import RetentionConfig
from ec2metrics.core.constants import FINE_INTERVAL, INTERVAL_DEFAULT, TIME_PERIODS
from ec2metrics.core.services import Services
from ec2metrics.core.utils import (
    QueryTimeout, ValidationError, from_epoch_ms,
    validate_interval, validate_time_period,
)
from ec2metrics.api.utils import require_identifier, resolve_or_404
from ec2metrics.metrics.interface import MetricSourceError

logger = logging.getLogger(__name__)

NO_DATA_HINT = (
    "No CloudWatch data. Check: instance is running, AWS_REGION matches the instance "
    "region, and try interval 5m or 24h range (basic monitoring = 5 min)."
)


def resolve_window(
    retention: RetentionConfig,
    now: datetime,
    interval: str,
    time_period: str | None = None,
    start_time: str | None = None,
    end_time: str | None = None,
) -> tuple[datetime, datetime, str, str | None]:
    """Work out the query window from request params.

    Returns (start, end, interval, warning). A custom startTime/endTime pair
    wins over a timePeriod preset. The start is clamped to the coarse
    retention window, and 1m requests older than the fine window become 1h.
    """
    if start_time and end_time:
        try:
            start_ms = int(start_time)
            end_ms = int(end_time)
        except ValueError:
            start_ms = end_ms = None
        if start_ms is None or start_ms >= end_ms:
            raise ValidationError(
                "Invalid startTime/endTime: must be valid timestamps in ms, startTime < endTime"
            )
        start = from_epoch_ms(start_ms)
        end = from_epoch_ms(end_ms)
    elif time_period:
        validate_time_period(time_period)
        end = now - timedelta(seconds=retention.ingestion_lag_seconds)
        start = end - timedelta(seconds=TIME_PERIODS[time_period])
    else:
        raise ValidationError(
            "Must provide either timePeriod (preset) or both startTime and endTime (custom range)"
        )

    warning = None
    oldest_allowed = now - timedelta(days=retention.coarse_days)
    if start < oldest_allowed:
        start = oldest_allowed
        warning = (
            f"Requested date was too old. Showing data from {start.date().isoformat()} instead."
        )
    if start < now - timedelta(days=retention.fine_days) and interval == FINE_INTERVAL:
        interval = "1h"

    return start, end, interval, warning


def register_routes(router: APIRouter, svc: Services, **kw):
    config = svc.config

    @router.get("/metrics/cpu")
    def api_cpu_metrics(
        instance_id: str | None = Query(None, alias="instanceId"),
        time_period: str | None = Query(None, alias="timePeriod"),
        start_time: str | None = Query(None, alias="startTime"),
        end_time: str | None = Query(None, alias="endTime"),
        interval: str = Query(INTERVAL_DEFAULT),
    ):
        identifier = require_identifier(instance_id, "query parameter")
        try:
            validate_interval(interval)
            start, end, interval, warning = resolve_window(
                config.retention, datetime.now(timezone.utc), interval,
                time_period, start_time, end_time,
            )
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        instance_id = resolve_or_404(svc, identifier)

        # Details lookup overlaps the metric query
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="instance-details") as pool:
            details_future = pool.submit(svc.instances.get_instance_details, instance_id)
            try:
                result = svc.engine.get_cpu_metrics(instance_id, start, end, interval)
                details = details_future.result()
            except (MetricSourceError, QueryTimeout, ClientError, BotoCoreError) as e:
                logger.warning("CPU metrics failed for %s: %s", instance_id, e)
                raise HTTPException(status_code=502, detail=str(e))
            except Exception as e:
                logger.exception("CPU metrics failed for %s", instance_id)
                raise HTTPException(status_code=500, detail=f"Failed to fetch metrics: {e}")

        metadata = {
            "actualStartTime": int(start.timestamp() * 1000),
            "instanceType": details.instance_type if details else "unknown",
            "state": details.state if details else "unknown",
            "region": config.aws.region,
            "availabilityZone": details.availability_zone if details else "unknown",
        }

        if not result.points:
            return {
                "data": [],
                "metadata": metadata if details else None,
                "hint": NO_DATA_HINT,
            }

        response = {
            "data": [p.to_dict() for p in result.points],
            "metadata": metadata,
        }
        if result.adjusted_interval:
            response["adjustedInterval"] = result.adjusted_interval
            response["hint"] = (
                "1-minute resolution requires detailed monitoring (paid). "
                f"Showing {result.adjusted_interval} data instead."
            )
        if warning:
            response["warning"] = warning
        return response
