"""Expose the non-secret part of the loaded server config for debugging."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ..config import ServerConfig
from ..dependencies import get_server_settings

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/config")
async def config(
    request: Request,
    config: ServerConfig = Depends(get_server_settings),
) -> dict:
    gateway = config.gateway
    return {
        "version": request.app.version,
        "environment": config.environment,
        "strict": config.strict,
        "gateway": {
            "mode": gateway.mode,
            "base_url": gateway.base_url,
            "merchant_configured": bool(gateway.merchant_id),
            "timeout_seconds": gateway.timeout_seconds,
            "endpoints": sorted(gateway.endpoints),
        },
        "rsa": {
            "canonical_format": config.rsa.canonical_format.value,
            "sign_requests": config.rsa.sign_requests,
            "verify_response_signature": config.rsa.verify_response_signature,
            "verify_incoming_signatures": config.rsa.verify_incoming_signatures,
            "passphrase_set": bool(config.rsa.private_key_passphrase),
        },
        "ssl": {
            "verify_peer": config.ssl.verify_peer,
            "client_certificate": config.ssl.client_certificate_path is not None,
            "ca_certificate": config.ssl.ca_certificate_path is not None,
        },
    }
