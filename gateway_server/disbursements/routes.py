"""Merchant-facing disbursement endpoints.

Bodies use the gateway's ``{"request": {...}, "signature": "..."}`` envelope.
Any signature sent by the caller is discarded; the request object is
re-signed with the merchant key before it is forwarded.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from ..dependencies import get_disbursement_service, get_schema_service
from ..gateway.relay import relay
from ..validation.validator import RequestValidationError, SchemaRegistry, check_date_range
from .service import DisbursementService, is_reinitiate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/disbursements", tags=["disbursements"])


def _validated_request(schemas: SchemaRegistry, name: str, payload: dict[str, Any]) -> dict[str, Any]:
    try:
        schemas.validate(name, payload)
    except RequestValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.as_detail()) from exc
    if payload.get("signature") is not None:
        logger.debug("discarding caller-supplied signature on %s request", name)
    return payload["request"]


@router.get("/register-customer")
async def fetch_customer(
    reference: str = Query(..., min_length=1, max_length=45),
    service: DisbursementService = Depends(get_disbursement_service),
) -> JSONResponse:
    return await relay(service.fetch_customer(reference))


@router.post("/register-customer")
async def register_customer(
    payload: dict[str, Any] = Body(...),
    service: DisbursementService = Depends(get_disbursement_service),
    schemas: SchemaRegistry = Depends(get_schema_service),
) -> JSONResponse:
    request = _validated_request(schemas, "customer_register", payload)
    return await relay(service.register_customer(request))


@router.put("/register-customer")
async def update_customer(
    payload: dict[str, Any] = Body(...),
    service: DisbursementService = Depends(get_disbursement_service),
    schemas: SchemaRegistry = Depends(get_schema_service),
) -> JSONResponse:
    request = _validated_request(schemas, "customer_update", payload)
    return await relay(service.update_customer(request))


@router.get("/banks")
async def banks(service: DisbursementService = Depends(get_disbursement_service)) -> JSONResponse:
    return await relay(service.fetch_banks())


@router.get("/balance-data")
async def balance(service: DisbursementService = Depends(get_disbursement_service)) -> JSONResponse:
    return await relay(service.fetch_balance())


@router.get("/reasons")
async def reasons(service: DisbursementService = Depends(get_disbursement_service)) -> JSONResponse:
    return await relay(service.fetch_reasons())


@router.post("/fetch-account")
async def fetch_account(
    payload: dict[str, Any] = Body(...),
    service: DisbursementService = Depends(get_disbursement_service),
    schemas: SchemaRegistry = Depends(get_schema_service),
) -> JSONResponse:
    request = _validated_request(schemas, "fetch_account", payload)
    return await relay(service.fetch_account(request))


@router.post("/initiate")
async def initiate(
    payload: dict[str, Any] = Body(...),
    service: DisbursementService = Depends(get_disbursement_service),
    schemas: SchemaRegistry = Depends(get_schema_service),
) -> JSONResponse:
    request = _validated_request(schemas, "disbursement_initiate", payload)
    return await relay(service.initiate(request))


@router.put("/initiate")
async def update_or_reinitiate(
    payload: dict[str, Any] = Body(...),
    service: DisbursementService = Depends(get_disbursement_service),
    schemas: SchemaRegistry = Depends(get_schema_service),
) -> JSONResponse:
    """``re-initiate: "yes"`` re-runs an on-hold disbursement; anything else is an update."""
    inner = payload.get("request")
    if isinstance(inner, dict) and is_reinitiate(inner):
        request = _validated_request(schemas, "disbursement_reinitiate", payload)
        return await relay(service.reinitiate(request))
    request = _validated_request(schemas, "disbursement_update", payload)
    return await relay(service.update(request))


@router.post("")
async def list_disbursements(
    payload: dict[str, Any] = Body(...),
    service: DisbursementService = Depends(get_disbursement_service),
    schemas: SchemaRegistry = Depends(get_schema_service),
) -> JSONResponse:
    # Listing is sent flat by merchants; an enveloped body is accepted too.
    query = payload["request"] if isinstance(payload.get("request"), dict) else payload
    try:
        schemas.validate("disbursement_list", query)
        check_date_range(query.get("fromDate"), query.get("toDate"))
    except RequestValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.as_detail()) from exc
    body = {k: v for k, v in query.items() if k != "signature"}
    return await relay(service.list(body))
