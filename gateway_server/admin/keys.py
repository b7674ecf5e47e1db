"""Report on the configured RSA keys without exposing key material."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ..config import ServerConfig
from ..dependencies import get_server_settings
from ..transport.errors import SignatureError
from ..transport.keys import describe_key

router = APIRouter(prefix="/admin", tags=["admin"])


def key_report(config: ServerConfig) -> dict[str, dict[str, Any]]:
    """Load each configured key and summarise it, or record why it is unusable."""
    rsa = config.rsa
    checks = {
        "merchant_private_key": (rsa.private_key_path, "private", rsa.password),
        "merchant_public_key": (rsa.public_key_path, "public", None),
        "gateway_public_key": (rsa.gateway_public_key_path, "public", None),
    }
    report: dict[str, dict[str, Any]] = {}
    for name, (path, role, password) in checks.items():
        try:
            report[name] = {"valid": True, **describe_key(path, role, password=password)}
        except SignatureError as exc:
            report[name] = {"valid": False, "role": role, "error": exc.kind.value}
    return report


@router.get("/keys")
async def keys(config: ServerConfig = Depends(get_server_settings)) -> dict[str, Any]:
    report = key_report(config)
    return {"valid": all(entry["valid"] for entry in report.values()), "keys": report}
