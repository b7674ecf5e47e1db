"""Mask sensitive fields before payloads reach the logs."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .signatures import signature_preview

SENSITIVE_FIELDS = frozenset(
    {"otp", "api_secret", "private_key", "cnic", "accountNumber", "customerIdNumber"}
)
REDACTED = "***REDACTED***"


def redact(payload: Any) -> Any:
    if isinstance(payload, Mapping):
        cleaned: dict[str, Any] = {}
        for key, value in payload.items():
            if key == "signature":
                cleaned[key] = signature_preview(value)
            elif key in SENSITIVE_FIELDS and value not in (None, ""):
                cleaned[key] = REDACTED
            else:
                cleaned[key] = redact(value)
        return cleaned
    if isinstance(payload, list):
        return [redact(item) for item in payload]
    return payload
