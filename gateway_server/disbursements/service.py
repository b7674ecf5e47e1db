"""Disbursement customer and payout calls forwarded to the gateway."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from ..gateway.client import GatewayClient, GatewayResponse, require_merchant_id

logger = logging.getLogger(__name__)

REINITIATE_FLAG = "re-initiate"


def is_reinitiate(request: Mapping[str, Any]) -> bool:
    return request.get(REINITIATE_FLAG) == "yes"


def _clean(request: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in request.items() if v is not None}


@dataclass
class DisbursementService:
    client: GatewayClient

    async def register_customer(self, request: Mapping[str, Any]) -> GatewayResponse:
        """Register a beneficiary; later disbursements only need its reference."""
        self._merchant()
        return await self.client.post("customer", _clean(request), envelope=True)

    async def update_customer(self, request: Mapping[str, Any]) -> GatewayResponse:
        self._merchant()
        return await self.client.put("customer", _clean(request), envelope=True)

    async def fetch_customer(self, reference: str) -> GatewayResponse:
        self._merchant()
        return await self.client.get("customer", {"reference": reference})

    async def fetch_banks(self) -> GatewayResponse:
        self._merchant()
        return await self.client.get("banks")

    async def fetch_balance(self) -> GatewayResponse:
        self._merchant()
        return await self.client.get("balance")

    async def fetch_reasons(self) -> GatewayResponse:
        self._merchant()
        return await self.client.get("reasons")

    async def fetch_account(self, request: Mapping[str, Any]) -> GatewayResponse:
        """Look up the account title for ``destinationBank`` / ``customerAccount``."""
        self._merchant()
        return await self.client.post("fetch_account", _clean(request), envelope=True)

    async def initiate(self, request: Mapping[str, Any]) -> GatewayResponse:
        self._merchant()
        return await self.client.post("disbursement", _clean(request), envelope=True)

    async def reinitiate(self, request: Mapping[str, Any]) -> GatewayResponse:
        """Re-run a disbursement that the gateway put on hold."""
        self._merchant()
        body = {"reference": request["reference"], REINITIATE_FLAG: "yes"}
        return await self.client.put("disbursement", body, envelope=True)

    async def update(self, request: Mapping[str, Any]) -> GatewayResponse:
        """Amend a published or in-review disbursement; ``amount`` 0 cancels it."""
        self._merchant()
        return await self.client.put("disbursement", _clean(request), envelope=True)

    async def list(self, request: Mapping[str, Any]) -> GatewayResponse:
        merchant_id = self._merchant()
        body = _clean(request)
        body["merchantId"] = str(body.get("merchantId") or merchant_id)
        logger.info(
            "listing disbursements from=%s to=%s state=%s",
            body.get("fromDate"),
            body.get("toDate"),
            body.get("state"),
        )
        return await self.client.post("disbursement_list", body, envelope=True)

    def _merchant(self) -> str:
        return require_merchant_id(self.client.settings)
