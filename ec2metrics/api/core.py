"""Core endpoints: health and settings."""

from __future__ import annotations

from fastapi import APIRouter

from ec2metrics import __version__
from ec2metrics.config import config_to_flat
from ec2metrics.core.services import Services

_SECRET_SETTINGS = {"aws.endpoint_url"}


def register_routes(router: APIRouter, svc: Services, **kw):
    config = svc.config

    @router.get("/health")
    def api_health():
        return {
            "status": "ok",
            "region": config.aws.region,
            "version": __version__,
            "source": svc.stats.to_dict(),
        }

    @router.get("/settings")
    def api_settings():
        flat = config_to_flat(config)
        for key in _SECRET_SETTINGS:
            if key in flat and flat[key]:
                flat[key] = "••••••••"
        return {"values": flat}
