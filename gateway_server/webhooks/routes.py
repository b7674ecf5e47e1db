"""Gateway-facing webhook endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from ..dependencies import get_webhook_service, get_webhook_verifier
from .handler import WebhookKind, WebhookService
from .verifier import InboundVerifier, SignatureRejected

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


async def _receive(
    kind: WebhookKind,
    payload: Any,
    verifier: InboundVerifier,
    service: WebhookService,
) -> dict[str, str]:
    try:
        verifier.check(payload)
    except SignatureRejected as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    try:
        return await service.handle(kind, payload)
    except Exception as exc:
        logger.error("webhook processing failed kind=%s: %s", kind.value, exc, exc_info=True)
        raise HTTPException(status_code=500, detail="Webhook processing failed") from exc


@router.post("/wallet/transaction")
async def wallet_transaction(
    payload: Any = Body(...),
    verifier: InboundVerifier = Depends(get_webhook_verifier),
    service: WebhookService = Depends(get_webhook_service),
) -> dict[str, str]:
    return await _receive(WebhookKind.WALLET_TRANSACTION, payload, verifier, service)


@router.post("/disbursement")
async def disbursement(
    payload: Any = Body(...),
    verifier: InboundVerifier = Depends(get_webhook_verifier),
    service: WebhookService = Depends(get_webhook_service),
) -> dict[str, str]:
    return await _receive(WebhookKind.DISBURSEMENT, payload, verifier, service)


@router.post("/")
async def generic(
    payload: Any = Body(...),
    verifier: InboundVerifier = Depends(get_webhook_verifier),
    service: WebhookService = Depends(get_webhook_service),
) -> dict[str, str]:
    return await _receive(WebhookKind.GENERIC, payload, verifier, service)
