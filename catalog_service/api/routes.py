"""API routes for the Catalog service."""
from __future__ import annotations

from logging import getLogger
from typing import List

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse
from prometheus_client import Counter

from catalog_service.models.schemas import CatalogItem
from catalog_service.services.catalog import Catalog

log = getLogger("Catalog.API")
router = APIRouter()

ITEM_REQUESTS = Counter("catalog_item_requests_total", "Total GET /items requests")


def _get_catalog(request: Request) -> Catalog:
    return request.app.state.catalog


@router.get("/health", response_class=PlainTextResponse)
async def health_check():
    """Health check endpoint polled by the registry."""
    return "OK"


@router.get("/items", response_model=List[CatalogItem])
async def list_items(request: Request):
    """Return every catalog item, in catalog order."""
    ITEM_REQUESTS.inc()
    items = _get_catalog(request).list_items()
    log.info("Serving %d catalog items", len(items))
    return items
