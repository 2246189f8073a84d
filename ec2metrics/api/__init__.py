"""REST API for the CPU dashboard.

Split into domain modules under ec2metrics/api/. Each module exports a
register_routes(router, svc) function that adds its endpoints.

Errors are returned as {"error": message} with the status from the raising
route. Request validation failures are 400, not FastAPI's default 422.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from ec2metrics import __version__
from ec2metrics.api.utils import http_error_handler, validation_error_handler
from ec2metrics.core.services import Services

logger = logging.getLogger(__name__)


def create_api(svc: Services) -> FastAPI:
    """Build the REST API as a FastAPI app. All routes live under /api."""
    config = svc.config

    app = FastAPI(
        title="ec2-metrics API",
        version=__version__,
        description="CPU utilization history and instance controls for EC2.",
        docs_url="/api/swagger",
        redoc_url=None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["GET", "PUT"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    router = APIRouter()

    from ec2metrics.api.core import register_routes as reg_core
    from ec2metrics.api.metrics import register_routes as reg_metrics
    from ec2metrics.api.instances import register_routes as reg_instances

    reg_core(router, svc)
    reg_metrics(router, svc)
    reg_instances(router, svc)

    app.include_router(router, prefix="/api")
    return app
