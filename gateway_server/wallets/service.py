"""Mobile-wallet transaction calls forwarded to the gateway."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from ..gateway.client import GatewayClient, GatewayResponse, require_merchant_id

logger = logging.getLogger(__name__)


def build_wallet_payload(data: Mapping[str, Any], merchant_id: str) -> dict[str, Any]:
    """Gateway body for wallet calls: configured merchantId first, nulls and stale signatures dropped."""
    payload: dict[str, Any] = {"merchantId": merchant_id}
    for key, value in data.items():
        if key in {"merchantId", "signature"} or value is None:
            continue
        payload[key] = value
    return payload


@dataclass
class WalletService:
    client: GatewayClient

    async def initiate(self, data: Mapping[str, Any]) -> GatewayResponse:
        """Start a wallet payment; the wallet sends the customer an OTP."""
        return await self._forward("wallet_initiate", data)

    async def verify(self, data: Mapping[str, Any]) -> GatewayResponse:
        return await self._forward("wallet_verify", data)

    async def finalize(self, data: Mapping[str, Any]) -> GatewayResponse:
        """Finalize a tokenized payment (``orderId``) or direct-charge a token (``sourceId``)."""
        mode = "direct_charge" if data.get("sourceId") else "finalize"
        logger.info("wallet finalize mode=%s operator=%s", mode, data.get("operatorId"))
        return await self._forward("wallet_finalize", data)

    async def delink(self, data: Mapping[str, Any]) -> GatewayResponse:
        return await self._forward("wallet_delink", data)

    async def inquire(self, data: Mapping[str, Any]) -> GatewayResponse:
        return await self._forward("wallet_inquire", data)

    async def _forward(self, endpoint: str, data: Mapping[str, Any]) -> GatewayResponse:
        merchant_id = require_merchant_id(self.client.settings)
        return await self.client.post(endpoint, build_wallet_payload(data, merchant_id))
