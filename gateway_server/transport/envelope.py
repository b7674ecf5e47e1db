"""Locate the signed portion of gateway message bodies."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .canonical import SIGNATURE_FIELD

ENVELOPE_KEYS = ("request", "response")


def signed_content(body: Any) -> Any:
    """Return the part of ``body`` covered by its signature.

    Disbursement messages wrap their data as ``{"request": ..., "signature": ...}``
    (or ``"response"`` on the way back); the signature covers the wrapped
    object. Flat wallet messages are signed over everything but ``signature``.
    """
    if not isinstance(body, Mapping):
        return body
    for key in ENVELOPE_KEYS:
        envelope = body.get(key)
        if isinstance(envelope, (Mapping, list)) and envelope:
            return envelope
    return {k: v for k, v in body.items() if k != SIGNATURE_FIELD}


def extract_signature(body: Any) -> str | None:
    if not isinstance(body, Mapping):
        return None
    signature = body.get(SIGNATURE_FIELD)
    if isinstance(signature, str) and signature.strip():
        return signature
    return None
