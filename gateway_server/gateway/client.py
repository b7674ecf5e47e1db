"""HTTP client for the gateway's REST API."""

from __future__ import annotations

import logging
import ssl
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

from ..config import GatewaySettings, SslSettings
from ..transport.envelope import extract_signature
from ..transport.redaction import redact
from ..webhooks.verifier import InboundVerifier, SignatureRejected, VerificationStatus
from .signing import RequestSigner

logger = logging.getLogger(__name__)


class GatewayError(RuntimeError):
    """Raised when the gateway cannot be reached or its reply cannot be trusted."""

    def __init__(self, message: str, *, status_code: int = 502) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class GatewayResponse:
    status_code: int
    payload: Any
    signature_status: VerificationStatus

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def build_tls_options(settings: SslSettings | None) -> dict[str, Any]:
    """Mutual TLS settings, applied only for files that actually exist."""
    if settings is None:
        return {}
    if not settings.verify_peer:
        return {"verify": False}
    ca_path = settings.ca_certificate_path
    cert_path = settings.client_certificate_path
    key_path = settings.client_private_key_path
    has_ca = ca_path is not None and ca_path.is_file()
    has_cert = cert_path is not None and cert_path.is_file()
    if not has_ca and not has_cert:
        return {}
    context = ssl.create_default_context(cafile=str(ca_path) if has_ca else None)
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    if has_cert:
        keyfile = str(key_path) if key_path is not None and key_path.is_file() else None
        context.load_cert_chain(certfile=str(cert_path), keyfile=keyfile)
    return {"verify": context}


class GatewayClient:
    def __init__(
        self,
        settings: GatewaySettings,
        signer: RequestSigner,
        verifier: InboundVerifier,
        *,
        ssl_settings: SslSettings | None = None,
        verify_responses: bool = True,
        strict: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._signer = signer
        self._verifier = verifier
        self._verify_responses = verify_responses
        self._strict = strict
        self._client = httpx.AsyncClient(
            base_url=settings.base_url,
            headers=dict(settings.headers),
            timeout=settings.timeout_seconds,
            transport=transport,
            **build_tls_options(ssl_settings),
        )

    async def close(self) -> None:
        await self._client.aclose()

    @property
    def settings(self) -> GatewaySettings:
        return self._settings

    async def post(self, endpoint: str, payload: Mapping[str, Any], *, envelope: bool = False) -> GatewayResponse:
        body = self._signer.sign_envelope(payload) if envelope else self._signer.sign_flat(payload)
        return await self._send("POST", endpoint, json=body)

    async def put(self, endpoint: str, payload: Mapping[str, Any], *, envelope: bool = False) -> GatewayResponse:
        body = self._signer.sign_envelope(payload) if envelope else self._signer.sign_flat(payload)
        return await self._send("PUT", endpoint, json=body)

    async def get(self, endpoint: str, params: Mapping[str, Any] | None = None) -> GatewayResponse:
        query = self._signer.sign_flat({k: v for k, v in (params or {}).items() if v is not None})
        return await self._send("GET", endpoint, params=query)

    async def _send(
        self,
        method: str,
        endpoint: str,
        *,
        json: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> GatewayResponse:
        path = self._settings.endpoint(endpoint)
        logger.info(
            "gateway request method=%s endpoint=%s body=%s",
            method,
            path,
            redact(json if json is not None else params),
        )
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as exc:
            logger.error("gateway request failed endpoint=%s error=%s", path, exc)
            raise GatewayError("gateway request failed") from exc
        payload = self._decode(response)
        logger.info(
            "gateway response endpoint=%s status=%s body=%s",
            path,
            response.status_code,
            redact(payload),
        )
        signature_status = self._check_signature(path, payload)
        return GatewayResponse(
            status_code=response.status_code,
            payload=payload,
            signature_status=signature_status,
        )

    def _decode(self, response: httpx.Response) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise GatewayError(f"gateway returned a non-JSON body (status {response.status_code})") from exc

    def _check_signature(self, path: str, payload: Any) -> VerificationStatus:
        if not self._verify_responses:
            return VerificationStatus.SKIPPED
        if extract_signature(payload) is None:
            return VerificationStatus.ABSENT
        try:
            return self._verifier.check(payload)
        except SignatureRejected as exc:
            if self._strict:
                raise GatewayError("gateway response signature rejected") from exc
            logger.warning("gateway response signature rejected endpoint=%s reason=%s", path, exc.message)
            return VerificationStatus.INVALID


class MerchantNotConfiguredError(GatewayError):
    """Raised when no merchant id is configured for outbound calls."""

    def __init__(self) -> None:
        super().__init__("Merchant ID not configured", status_code=500)


def require_merchant_id(settings: GatewaySettings) -> str:
    if not settings.merchant_id:
        raise MerchantNotConfiguredError()
    return settings.merchant_id
