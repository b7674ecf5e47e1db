"""Merchant-facing wallet transaction endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse

from ..dependencies import get_schema_service, get_wallet_service
from ..gateway.relay import relay
from ..validation.validator import RequestValidationError, SchemaRegistry
from .service import WalletService

router = APIRouter(tags=["wallets"])


def _validate(schemas: SchemaRegistry, name: str, payload: dict[str, Any]) -> None:
    try:
        schemas.validate(name, payload)
    except RequestValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.as_detail()) from exc


@router.post("/v2/wallets/transaction/initiate")
async def initiate(
    payload: dict[str, Any] = Body(...),
    service: WalletService = Depends(get_wallet_service),
    schemas: SchemaRegistry = Depends(get_schema_service),
) -> JSONResponse:
    _validate(schemas, "wallet_initiate", payload)
    return await relay(service.initiate(payload))


@router.post("/v2/wallets/transaction/verify")
async def verify(
    payload: dict[str, Any] = Body(...),
    service: WalletService = Depends(get_wallet_service),
    schemas: SchemaRegistry = Depends(get_schema_service),
) -> JSONResponse:
    _validate(schemas, "wallet_verify", payload)
    return await relay(service.verify(payload))


@router.post("/v2/wallets/transaction/finalize")
async def finalize(
    payload: dict[str, Any] = Body(...),
    service: WalletService = Depends(get_wallet_service),
    schemas: SchemaRegistry = Depends(get_schema_service),
) -> JSONResponse:
    _validate(schemas, "wallet_finalize", payload)
    return await relay(service.finalize(payload))


@router.post("/v2/wallets/transaction/delink")
async def delink(
    payload: dict[str, Any] = Body(...),
    service: WalletService = Depends(get_wallet_service),
    schemas: SchemaRegistry = Depends(get_schema_service),
) -> JSONResponse:
    _validate(schemas, "wallet_delink", payload)
    return await relay(service.delink(payload))


@router.post("/v2/inquire/wallet/transaction/inquire")
async def inquire(
    payload: dict[str, Any] = Body(...),
    service: WalletService = Depends(get_wallet_service),
    schemas: SchemaRegistry = Depends(get_schema_service),
) -> JSONResponse:
    _validate(schemas, "wallet_inquire", payload)
    return await relay(service.inquire(payload))
