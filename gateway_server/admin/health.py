"""Admin health endpoint: uptime plus whether the gateway integration can sign."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request

from ..transport.keys import validate_key

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    state = request.app.state
    started = getattr(state, "start_time", None)
    uptime = int((datetime.now(timezone.utc) - started).total_seconds()) if started else 0
    config = state.server_config
    merchant_configured = bool(config.gateway.merchant_id)
    signing_ready = not config.rsa.sign_requests or validate_key(
        config.rsa.private_key_path, "private", password=config.rsa.password
    )
    healthy = merchant_configured and (signing_ready or not config.strict)
    return {
        "status": "healthy" if healthy else "degraded",
        "uptime_seconds": uptime,
        "version": request.app.version,
        "environment": config.environment,
        "gateway_mode": config.gateway.mode,
        "merchant_configured": merchant_configured,
        "signing_ready": signing_ready,
    }
