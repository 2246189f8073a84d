"""Shared utilities for API route modules."""

from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ec2metrics.core.services import Services
from ec2metrics.core.utils import ValidationError

_LOCATIONS = {"body": "body field", "query": "query parameter"}


def require_identifier(value: str | None, where: str) -> str:
    identifier = (value or "").strip()
    if not identifier:
        raise HTTPException(status_code=400, detail=f"Missing {where}: instanceId")
    return identifier


def resolve_or_404(svc: Services, identifier: str) -> str:
    """Resolve an instance ID or private IP, raising 404 when nothing matches."""
    try:
        instance_id = svc.instances.resolve_instance_id(identifier)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (ClientError, BotoCoreError) as e:
        raise HTTPException(status_code=502, detail=str(e))
    if not instance_id:
        raise HTTPException(
            status_code=404,
            detail=f"No EC2 instance found for {identifier} in region {svc.config.aws.region}.",
        )
    return instance_id


def describe_validation_error(err: dict) -> str:
    """One-line message for a single FastAPI request validation error."""
    loc = tuple(err.get("loc", ()))
    if loc == ("body",):
        return "Missing/invalid request body"
    where = _LOCATIONS.get(loc[0], "field") if loc else "field"
    name = ".".join(str(part) for part in loc[1:])
    return f"Missing/invalid {where}: {name} ({err.get('msg', 'invalid')})"


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Error bodies are {"error": message}; dict details are sent as the body."""
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = describe_validation_error(errors[0]) if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})
