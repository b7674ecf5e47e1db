"""Unit tests for the outbound gateway client, using httpx.MockTransport."""

from __future__ import annotations

import json

import httpx
import pytest

from gateway_server.config import build_server_config
from gateway_server.disbursements.service import DisbursementService
from gateway_server.gateway.client import GatewayClient, GatewayError, MerchantNotConfiguredError
from gateway_server.gateway.signing import RequestSigner
from gateway_server.transport.signatures import sign_payload, verify_payload
from gateway_server.wallets.service import WalletService, build_wallet_payload
from gateway_server.webhooks.verifier import InboundVerifier, VerificationStatus


class RecordingGateway:
    """Stands in for the gateway: records requests and replies with a canned response."""

    def __init__(self, handler=None) -> None:
        self.requests: list[httpx.Request] = []
        self._handler = handler or (lambda request: httpx.Response(200, json={"status": "0000"}))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    @property
    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


def _client(server_config, gateway, *, strict=True) -> GatewayClient:
    """Build a client wired to the test keys and a mock transport."""
    rsa = server_config.rsa
    return GatewayClient(
        server_config.gateway,
        RequestSigner(rsa.private_key_path, strict=strict),
        InboundVerifier(rsa.gateway_public_key_path, strict=strict),
        verify_responses=True,
        strict=strict,
        transport=httpx.MockTransport(gateway),
    )


class TestGatewayClient:
    """Test request signing and response handling in GatewayClient."""

    @pytest.mark.asyncio
    async def test_flat_post_is_signed(self, server_config, merchant_public_pem):
        """Test that a flat POST body carries a valid merchant signature."""
        gateway = RecordingGateway()
        client = _client(server_config, gateway)
        response = await client.post("wallet_initiate", {"merchantId": "1000123", "amount": "10"})
        await client.close()

        body = gateway.last_body
        assert gateway.requests[0].url.path == "/v2/wallets/transaction/initiate"
        assert verify_payload(body, body["signature"], merchant_public_pem)
        assert response.status_code == 200
        assert response.signature_status is VerificationStatus.ABSENT

    @pytest.mark.asyncio
    async def test_envelope_post_uses_merchant_path(self, server_config, merchant_public_pem):
        """Test that enveloped calls go to the merchant-scoped path."""
        gateway = RecordingGateway()
        client = _client(server_config, gateway)
        await client.post("disbursement", {"reference": "R1", "amount": 100}, envelope=True)
        await client.close()

        body = gateway.last_body
        assert gateway.requests[0].url.path == "/merchants/1000123/disbursements/initiate"
        assert verify_payload(body["request"], body["signature"], merchant_public_pem)

    @pytest.mark.asyncio
    async def test_get_signs_query(self, server_config, merchant_public_pem):
        """Test that GET query parameters are signed and nulls dropped."""
        gateway = RecordingGateway()
        client = _client(server_config, gateway)
        await client.get("customer", {"reference": "CUST001", "unused": None})
        await client.close()

        params = dict(gateway.requests[0].url.params)
        assert params["reference"] == "CUST001"
        assert "unused" not in params
        assert verify_payload({"reference": "CUST001"}, params["signature"], merchant_public_pem)

    @pytest.mark.asyncio
    async def test_configured_headers_sent(self, server_config):
        """Test that configured gateway headers are sent."""
        gateway = RecordingGateway()
        client = _client(server_config, gateway)
        await client.get("banks")
        await client.close()
        assert gateway.requests[0].headers["region"] == "PK"

    @pytest.mark.asyncio
    async def test_signed_response_verified(self, server_config, gateway_private_pem):
        """Test that a gateway-signed response is marked verified."""
        inner = {"status": "0000", "message": "Success"}
        reply = {"response": inner, "signature": sign_payload(inner, gateway_private_pem)}
        client = _client(server_config, RecordingGateway(lambda request: httpx.Response(200, json=reply)))
        response = await client.get("balance")
        await client.close()
        assert response.signature_status is VerificationStatus.VERIFIED
        assert response.payload == reply

    @pytest.mark.asyncio
    async def test_forged_response_rejected_when_strict(self, server_config, merchant_private_pem):
        """Test that a forged response becomes 502 in strict mode."""
        inner = {"status": "0000"}
        reply = {"response": inner, "signature": sign_payload(inner, merchant_private_pem)}
        client = _client(server_config, RecordingGateway(lambda request: httpx.Response(200, json=reply)))
        with pytest.raises(GatewayError) as exc_info:
            await client.get("balance")
        await client.close()
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_forged_response_flagged_when_lenient(self, server_config, merchant_private_pem):
        """Test that a forged response is flagged invalid outside strict mode."""
        inner = {"status": "0000"}
        reply = {"response": inner, "signature": sign_payload(inner, merchant_private_pem)}
        gateway = RecordingGateway(lambda request: httpx.Response(200, json=reply))
        client = _client(server_config, gateway, strict=False)
        response = await client.get("balance")
        await client.close()
        assert response.signature_status is VerificationStatus.INVALID

    @pytest.mark.asyncio
    async def test_error_status_relayed(self, server_config):
        """Test that gateway error statuses are returned, not raised."""
        gateway = RecordingGateway(lambda request: httpx.Response(400, json={"status": "1001"}))
        client = _client(server_config, gateway)
        response = await client.post("wallet_verify", {"otp": "1234"})
        await client.close()
        assert response.status_code == 400
        assert not response.ok

    @pytest.mark.asyncio
    async def test_non_json_body_is_gateway_error(self, server_config):
        """Test that a non-JSON reply raises GatewayError."""
        gateway = RecordingGateway(lambda request: httpx.Response(502, text="<html>bad gateway</html>"))
        client = _client(server_config, gateway)
        with pytest.raises(GatewayError):
            await client.get("reasons")
        await client.close()

    @pytest.mark.asyncio
    async def test_network_failure_is_gateway_error(self, server_config):
        """Test that connection failures become 502."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(server_config, RecordingGateway(handler))
        with pytest.raises(GatewayError) as exc_info:
            await client.get("banks")
        await client.close()
        assert exc_info.value.status_code == 502


class TestServices:
    """Test the wallet and disbursement services."""

    def test_wallet_payload_injects_merchant_and_drops_nulls(self):
        """Test that the configured merchant id replaces any supplied one."""
        payload = build_wallet_payload(
            {"merchantId": "spoofed", "amount": "10", "productId": None, "signature": "x"},
            "1000123",
        )
        assert payload == {"merchantId": "1000123", "amount": "10"}

    @pytest.mark.asyncio
    async def test_wallet_service_requires_merchant_id(self, config_data, monkeypatch):
        """Test that nothing is sent without a merchant id."""
        monkeypatch.delenv("SIMPAISA_MERCHANT_ID", raising=False)
        config_data["gateway"]["merchant_id"] = ""
        config = build_server_config(config_data)
        gateway = RecordingGateway()
        service = WalletService(_client(config, gateway))
        with pytest.raises(MerchantNotConfiguredError):
            await service.initiate({"amount": "10"})
        await service.client.close()
        assert gateway.requests == []

    @pytest.mark.asyncio
    async def test_reinitiate_sends_only_reference_and_flag(self, server_config):
        """Test that re-initiation sends only the reference and flag."""
        gateway = RecordingGateway()
        service = DisbursementService(_client(server_config, gateway))
        await service.reinitiate({"reference": "R1", "re-initiate": "yes", "amount": 5})
        await service.client.close()
        assert gateway.requests[0].method == "PUT"
        assert gateway.last_body["request"] == {"reference": "R1", "re-initiate": "yes"}

    @pytest.mark.asyncio
    async def test_list_defaults_merchant_id(self, server_config):
        """Test that listing fills in the configured merchant id."""
        gateway = RecordingGateway()
        service = DisbursementService(_client(server_config, gateway))
        await service.list({"fromDate": "2024-01-01", "toDate": "2024-01-31"})
        await service.client.close()
        assert gateway.requests[0].url.path == "/merchants/1000123/disbursements"
        assert gateway.last_body["request"]["merchantId"] == "1000123"
