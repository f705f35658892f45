"""API routes for the Order service.

Order creation resolves the catalog dependency through the configured
resolver before writing. The catalog is located but item ids are not checked
against it yet; an unresolvable catalog still blocks the write.
"""
from __future__ import annotations

from logging import getLogger
from typing import Dict

from fastapi import APIRouter, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import Counter
from pydantic import ValidationError

from discovery.errors import ResolutionError
from discovery.resolver import Resolver
from order_service.models.schemas import Order, OrderIn
from order_service.services.store import OrderStore

log = getLogger("Order.API")
router = APIRouter()

ORDERS_CREATED = Counter("orders_created_total", "Orders accepted")
ORDER_REJECTIONS = Counter("order_rejections_total", "Orders rejected", ["reason"])


def _get_store_and_resolver(request: Request) -> tuple[OrderStore, Resolver]:
    """Return the app-scoped OrderStore and Resolver set up by create_app."""
    return request.app.state.store, request.app.state.resolver


def _describe_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid input")
        cause = (err.get("ctx") or {}).get("error")
        parts.append(f"{loc}: {msg}" + (f" ({cause})" if cause else ""))
    return "; ".join(parts) or "invalid request body"


async def decode_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed client input is a 400 that carries the decode error."""
    ORDER_REJECTIONS.labels(reason="decode").inc()
    detail = _describe_errors(exc)
    log.info("Rejected %s %s: %s", request.method, request.url.path, detail)
    return JSONResponse(status_code=400, content={"detail": detail})


@router.get("/health", response_class=PlainTextResponse)
async def health_check():
    """Health check endpoint polled by the registry."""
    return "OK"


async def _decode_order(request: Request) -> OrderIn:
    """Decode the body as JSON whatever Content-Type the client declared."""
    try:
        return OrderIn.model_validate_json(await request.body())
    except ValidationError as e:
        errors = [{**err, "loc": ("body", *err["loc"])} for err in e.errors(include_url=False)]
        raise RequestValidationError(errors) from e


@router.post(
    "/orders",
    response_model=Order,
    status_code=201,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": OrderIn.model_json_schema()}},
        }
    },
)
async def create_order(request: Request):
    body = await _decode_order(request)
    store, resolver = _get_store_and_resolver(request)
    catalog_name = request.app.state.settings.catalog_service_name

    try:
        catalog_addr = await resolver.resolve(catalog_name)
    except ResolutionError as e:
        ORDER_REJECTIONS.labels(reason="dependency").inc()
        log.error("Error finding catalog service: %s", e)
        raise HTTPException(status_code=500, detail="Food catalog service not available")
    log.info("Found %s at: %s. Would validate items here.", catalog_name, catalog_addr)

    order = store.create(body.item_ids)
    ORDERS_CREATED.inc()
    log.info("Order %s received with %d item(s)", order.id, len(order.item_ids))
    return order


@router.get("/orders", response_model=Dict[str, Order])
async def list_orders(request: Request):
    store, _ = _get_store_and_resolver(request)
    return store.snapshot()
