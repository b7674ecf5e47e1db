"""FastAPI dependency helpers reading the services built at startup."""

from __future__ import annotations

from fastapi import Request

from .config import ServerConfig
from .disbursements.service import DisbursementService
from .validation.validator import SchemaRegistry
from .wallets.service import WalletService
from .webhooks.handler import WebhookService
from .webhooks.verifier import InboundVerifier


def get_server_settings(request: Request) -> ServerConfig:
    return request.app.state.server_config


def get_schema_service(request: Request) -> SchemaRegistry:
    return request.app.state.schema_registry


def get_wallet_service(request: Request) -> WalletService:
    return request.app.state.wallet_service


def get_disbursement_service(request: Request) -> DisbursementService:
    return request.app.state.disbursement_service


def get_webhook_service(request: Request) -> WebhookService:
    return request.app.state.webhook_service


def get_webhook_verifier(request: Request) -> InboundVerifier:
    return request.app.state.webhook_verifier
