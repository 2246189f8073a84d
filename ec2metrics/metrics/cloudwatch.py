"""AWS CloudWatch metric source via the GetMetricData API."""

import logging
from datetime import datetime

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ec2metrics.config import AWSConfig, MetricsConfig
from ec2metrics.core.models import RawSample
from ec2metrics.metrics.interface import MetricSource, RateLimited, UpstreamFailure

logger = logging.getLogger(__name__)

THROTTLING_CODES = {
    "Throttling",
    "ThrottlingException",
    "TooManyRequestsException",
    "RequestLimitExceeded",
}

QUERY_ID = "cpu_avg"


def classify_client_error(e: ClientError) -> RateLimited | UpstreamFailure:
    """Tag a botocore ClientError as throttling or a plain upstream failure."""
    error = e.response.get("Error", {})
    code = error.get("Code", "")
    status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    message = error.get("Message") or str(e)
    if code in THROTTLING_CODES or status == 429:
        return RateLimited(message, code=code or "429")
    return UpstreamFailure(message, code=code)


class CloudWatchMetricSource(MetricSource):
    """Per-instance metric from CloudWatch, one MetricStat query per call."""

    def __init__(self, aws: AWSConfig, metrics: MetricsConfig, client=None):
        self.region = aws.region
        self.namespace = metrics.namespace
        self.metric_name = metrics.metric_name
        self.stat = metrics.stat
        if client is None:
            client = boto3.client(
                "cloudwatch",
                region_name=aws.region,
                endpoint_url=aws.endpoint_url or None,
            )
        self._client = client
        logger.info(
            "CloudWatch source ready: %s/%s %s (region=%s)",
            self.namespace,
            self.metric_name,
            self.stat,
            self.region,
        )

    def _query(self, instance_id: str, period_seconds: int) -> list[dict]:
        return [
            {
                "Id": QUERY_ID,
                "MetricStat": {
                    "Metric": {
                        "Namespace": self.namespace,
                        "MetricName": self.metric_name,
                        "Dimensions": [{"Name": "InstanceId", "Value": instance_id}],
                    },
                    "Period": period_seconds,
                    "Stat": self.stat,
                },
            }
        ]

    def fetch_chunk(
        self,
        instance_id: str,
        start: datetime,
        end: datetime,
        period_seconds: int,
    ) -> list[RawSample]:
        kwargs = {
            "StartTime": start,
            "EndTime": end,
            "MetricDataQueries": self._query(instance_id, period_seconds),
            "ScanBy": "TimestampAscending",
        }

        samples: list[RawSample] = []
        while True:
            try:
                response = self._client.get_metric_data(**kwargs)
            except ClientError as e:
                raise classify_client_error(e) from e
            except BotoCoreError as e:
                raise UpstreamFailure(str(e), code=type(e).__name__) from e

            for result in response.get("MetricDataResults", []):
                if result.get("Id") != QUERY_ID:
                    continue
                timestamps = result.get("Timestamps") or []
                values = result.get("Values") or []
                # Mismatched arrays: only the paired prefix is meaningful
                for ts, value in zip(timestamps, values):
                    samples.append(RawSample(timestamp=ts, value=value))

            next_token = response.get("NextToken")
            if not next_token:
                break
            kwargs["NextToken"] = next_token

        logger.debug(
            "CloudWatch %s %s..%s period=%ds: %d samples",
            instance_id, start.isoformat(), end.isoformat(), period_seconds, len(samples),
        )
        return samples

    def get_source_name(self) -> str:
        return f"cloudwatch:{self.namespace}/{self.metric_name}"
