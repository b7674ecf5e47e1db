"""Translate gateway calls into merchant-facing HTTP responses."""

from __future__ import annotations

import logging
from typing import Awaitable

from fastapi import HTTPException
from fastapi.responses import JSONResponse

from ..transport.errors import ErrorKind, SignatureError
from .client import GatewayError, GatewayResponse

logger = logging.getLogger(__name__)

SIGNATURE_STATUS_HEADER = "X-Gateway-Signature"


async def relay(call: Awaitable[GatewayResponse]) -> JSONResponse:
    """Await a gateway call and pass its status and body through unchanged."""
    try:
        response = await call
    except GatewayError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    except SignatureError as exc:
        if exc.kind is ErrorKind.CANONICALIZATION:
            raise HTTPException(status_code=422, detail="request payload cannot be signed") from exc
        logger.error("outbound signing failed kind=%s error=%s", exc.kind.value, exc)
        raise HTTPException(status_code=500, detail="internal error") from exc
    return JSONResponse(
        status_code=response.status_code,
        content=response.payload,
        headers={SIGNATURE_STATUS_HEADER: response.signature_status.value},
    )
