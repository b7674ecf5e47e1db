"""Gateway webhook processing: summarize, log and fan out to merchant callbacks."""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Union

from ..transport.envelope import ENVELOPE_KEYS
from ..transport.redaction import redact

logger = logging.getLogger(__name__)

ACKNOWLEDGEMENT = {"status": "0000", "message": "Webhook received successfully"}

WALLET_FIELDS = (
    "transactionId",
    "userKey",
    "status",
    "message",
    "msisdn",
    "operatorId",
    "merchantId",
    "amount",
    "sourceId",
)
DISBURSEMENT_FIELDS = ("reference", "status", "message", "customerReference", "amount")

WebhookCallback = Callable[[dict[str, Any], Any], Union[Awaitable[None], None]]


class WebhookKind(str, Enum):
    WALLET_TRANSACTION = "wallet_transaction"
    DISBURSEMENT = "disbursement"
    GENERIC = "generic"


def _lookup(body: Mapping[str, Any], field: str) -> Any:
    if body.get(field) is not None:
        return body[field]
    for key in ENVELOPE_KEYS:
        inner = body.get(key)
        if isinstance(inner, Mapping) and inner.get(field) is not None:
            return inner[field]
    return None


def summarize(kind: WebhookKind, body: Any) -> dict[str, Any]:
    """Pull the fields merchants usually act on, wherever the gateway put them."""
    if not isinstance(body, Mapping):
        return {"kind": kind.value, "items": len(body) if isinstance(body, list) else 0}
    summary: dict[str, Any] = {"kind": kind.value}
    if kind is WebhookKind.WALLET_TRANSACTION:
        for field in WALLET_FIELDS:
            summary[field] = _lookup(body, field)
        if summary["transactionId"] is None:
            summary["transactionId"] = _lookup(body, "transaction_id")
    elif kind is WebhookKind.DISBURSEMENT:
        for field in DISBURSEMENT_FIELDS:
            summary[field] = _lookup(body, field)
    else:
        summary["fields"] = sorted(str(key) for key in body)
    return summary


class WebhookService:
    def __init__(self) -> None:
        self._callbacks: dict[WebhookKind, list[WebhookCallback]] = defaultdict(list)

    def on(self, kind: WebhookKind | str) -> Callable[[WebhookCallback], WebhookCallback]:
        """Register ``callback(summary, body)`` for a webhook kind; usable as a decorator."""
        webhook_kind = WebhookKind(kind)

        def register(callback: WebhookCallback) -> WebhookCallback:
            self._callbacks[webhook_kind].append(callback)
            return callback

        return register

    async def handle(self, kind: WebhookKind, body: Any) -> dict[str, str]:
        summary = summarize(kind, body)
        logger.info("gateway webhook kind=%s summary=%s", kind.value, redact(summary))
        logger.debug("gateway webhook kind=%s body=%s", kind.value, redact(body))
        for callback in self._callbacks.get(kind, []):
            result = callback(summary, body)
            if inspect.isawaitable(result):
                await result
        return dict(ACKNOWLEDGEMENT)
