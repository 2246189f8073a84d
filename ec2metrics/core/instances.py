"""EC2 instance lookups: identifier resolution, details, termination protection."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import boto3
from botocore.exceptions import ClientError

from ec2metrics.config import AWSConfig
from ec2metrics.core.utils import ValidationError, validate_private_ip

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"InvalidInstanceID.NotFound", "InvalidInstanceID.Malformed"}
_ACCESS_DENIED_CODES = {"UnauthorizedOperation", "AccessDenied", "AccessDeniedException"}


@dataclass
class InstanceDetails:
    instance_type: str
    state: str
    availability_zone: str


def is_access_denied(e: ClientError) -> bool:
    """True when an EC2 call was rejected by IAM."""
    code = e.response.get("Error", {}).get("Code", "")
    status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    if code in _ACCESS_DENIED_CODES or status == 403:
        return True
    message = str(e.response.get("Error", {}).get("Message", "")).lower()
    return "not authorized" in message or "access denied" in message


class InstanceDirectory:
    """Thin wrapper over the EC2 API for the lookups the dashboard needs."""

    def __init__(self, aws: AWSConfig, client=None):
        self.region = aws.region
        if client is None:
            client = boto3.client(
                "ec2",
                region_name=aws.region,
                endpoint_url=aws.endpoint_url or None,
            )
        self._client = client

    def resolve_instance_id(self, identifier: str) -> str | None:
        """Map an instance ID or private IP to an instance ID.

        IDs (``i-...``) pass through untouched. IPs are looked up in the
        configured region; returns None when nothing matches.
        """
        trimmed = identifier.strip()
        if trimmed.startswith("i-"):
            return trimmed

        ip = validate_private_ip(trimmed)
        try:
            response = self._client.describe_instances(
                Filters=[{"Name": "private-ip-address", "Values": [ip]}],
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "FilterLimitExceeded":
                raise ValidationError(
                    "IP address value too long for AWS filter "
                    f"(maximum 255 characters). Received: {len(ip)} characters."
                ) from e
            raise

        for reservation in response.get("Reservations", []):
            for instance in reservation.get("Instances", []):
                instance_id = instance.get("InstanceId")
                if instance_id:
                    logger.debug("Resolved %s -> %s", ip, instance_id)
                    return instance_id
        return None

    def get_instance_details(self, instance_id: str) -> InstanceDetails | None:
        try:
            response = self._client.describe_instances(InstanceIds=[instance_id])
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES:
                return None
            raise

        reservations = response.get("Reservations") or [{}]
        instances = reservations[0].get("Instances") or []
        if not instances:
            return None
        instance = instances[0]
        return InstanceDetails(
            instance_type=instance.get("InstanceType", "unknown"),
            state=instance.get("State", {}).get("Name", "unknown"),
            availability_zone=instance.get("Placement", {}).get("AvailabilityZone", "unknown"),
        )

    def get_termination_protection(self, instance_id: str) -> bool:
        """Read DisableApiTermination. True = the instance cannot be terminated via API."""
        response = self._client.describe_instance_attribute(
            InstanceId=instance_id,
            Attribute="disableApiTermination",
        )
        return response.get("DisableApiTermination", {}).get("Value") is True

    def set_termination_protection(self, instance_id: str, enabled: bool) -> None:
        self._client.modify_instance_attribute(
            InstanceId=instance_id,
            DisableApiTermination={"Value": enabled},
        )
        logger.info("Termination protection for %s set to %s", instance_id, enabled)
