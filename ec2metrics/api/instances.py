"""Termination protection endpoints."""

from __future__ import annotations

import logging

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, StrictBool

from ec2metrics.core.instances import is_access_denied
from ec2metrics.core.services import Services
from ec2metrics.api.utils import require_identifier, resolve_or_404

logger = logging.getLogger(__name__)


class TerminationProtectionBody(BaseModel):
    instanceId: str | None = None
    enabled: StrictBool | None = None


def register_routes(router: APIRouter, svc: Services, **kw):

    @router.get("/metrics/termination-protection")
    def api_get_termination_protection(
        instance_id: str | None = Query(None, alias="instanceId"),
    ):
        instance_id = resolve_or_404(svc, require_identifier(instance_id, "query parameter"))
        try:
            enabled = svc.instances.get_termination_protection(instance_id)
        except (ClientError, BotoCoreError) as e:
            raise HTTPException(status_code=502, detail=str(e))
        return {"instanceId": instance_id, "enabled": enabled}

    @router.put("/metrics/termination-protection")
    def api_set_termination_protection(body: TerminationProtectionBody):
        identifier = require_identifier(body.instanceId, "body field")
        if body.enabled is None:
            raise HTTPException(status_code=400, detail="Missing/invalid body field: enabled (boolean)")
        instance_id = resolve_or_404(svc, identifier)

        try:
            svc.instances.set_termination_protection(instance_id, body.enabled)
        except ClientError as e:
            if is_access_denied(e):
                raise HTTPException(status_code=403, detail={
                    "error": "The configured IAM identity does not allow "
                             "ec2:ModifyInstanceAttribute, so termination protection "
                             "cannot be toggled.",
                    "requiredAction": "ec2:ModifyInstanceAttribute",
                    "instanceId": instance_id,
                    "enabledRequested": body.enabled,
                })
            raise HTTPException(status_code=502, detail=str(e))
        except BotoCoreError as e:
            raise HTTPException(status_code=502, detail=str(e))
        return {"instanceId": instance_id, "enabled": body.enabled}
