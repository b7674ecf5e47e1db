from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import httpx
from fastapi import Depends, FastAPI

from .admin import config as admin_config
from .admin import health as admin_health
from .admin import keys as admin_keys
from .config import ServerConfig, get_server_config
from .dependencies import get_server_settings
from .disbursements import routes as disbursement_routes
from .disbursements.service import DisbursementService
from .gateway.client import GatewayClient
from .gateway.signing import RequestSigner
from .validation.validator import get_schema_registry
from .wallets import routes as wallet_routes
from .wallets.service import WalletService
from .webhooks import routes as webhook_routes
from .webhooks.handler import WebhookService
from .webhooks.verifier import InboundVerifier

logger = logging.getLogger(__name__)


def build_gateway_client(
    config: ServerConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> GatewayClient:
    rsa = config.rsa
    signer = RequestSigner(
        rsa.private_key_path,
        enabled=rsa.sign_requests,
        strict=config.strict,
        canonical_format=rsa.canonical_format,
        password=rsa.password,
    )
    response_verifier = InboundVerifier(
        rsa.gateway_public_key_path,
        enabled=rsa.verify_response_signature,
        strict=config.strict,
        canonical_format=rsa.canonical_format,
    )
    return GatewayClient(
        config.gateway,
        signer,
        response_verifier,
        ssl_settings=config.ssl,
        verify_responses=rsa.verify_response_signature,
        strict=config.strict,
        transport=transport,
    )


def create_app(
    config: ServerConfig | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    webhook_service: WebhookService | None = None,
) -> FastAPI:
    """Build the application; ``transport`` replaces the network for the gateway client."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        server_config = config or get_server_config()
        logging.getLogger("gateway_server").setLevel(server_config.log_level)
        if not server_config.gateway.merchant_id:
            logger.warning("SIMPAISA_MERCHANT_ID is not set; gateway calls will be refused")
        gateway_client = build_gateway_client(server_config, transport=transport)

        app.state.server_config = server_config
        app.state.schema_registry = get_schema_registry()
        app.state.gateway_client = gateway_client
        app.state.wallet_service = WalletService(gateway_client)
        app.state.disbursement_service = DisbursementService(gateway_client)
        app.state.webhook_service = webhook_service or WebhookService()
        app.state.webhook_verifier = InboundVerifier(
            server_config.rsa.gateway_public_key_path,
            enabled=server_config.rsa.verify_incoming_signatures,
            strict=server_config.strict,
            canonical_format=server_config.rsa.canonical_format,
        )
        app.state.start_time = datetime.now(timezone.utc)

        try:
            yield
        finally:
            await gateway_client.close()

    app = FastAPI(
        title="Simpaisa Gateway Server",
        version="1.0.0",
        docs_url="/docs",
        lifespan=lifespan,
    )

    app.include_router(admin_health.router)
    app.include_router(admin_config.router)
    app.include_router(admin_keys.router)
    app.include_router(wallet_routes.router)
    app.include_router(disbursement_routes.router)
    app.include_router(webhook_routes.router)

    @app.get("/", tags=["meta"])
    async def root(settings: ServerConfig = Depends(get_server_settings)) -> dict[str, Any]:
        return {
            "service": "simpaisa-gateway-server",
            "version": app.version,
            "environment": settings.environment,
            "gateway": {
                "mode": settings.gateway.mode,
                "base_url": settings.gateway.base_url,
            },
            "signing": {
                "canonical_format": settings.rsa.canonical_format.value,
                "sign_requests": settings.rsa.sign_requests,
            },
        }

    @app.get("/ping", tags=["meta"])
    async def ping() -> dict[str, Any]:
        return {"status": "ok", "version": app.version}

    return app


app = create_app()
