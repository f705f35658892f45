"""Catalog FastAPI application.

Creates the catalog service, wires routes, configures logging, starts the
best-effort registry registration and exposes Prometheus metrics.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from catalog_service.api.routes import router
from catalog_service.core.config import Settings, settings as default_settings
from catalog_service.core.logging import setup_logging
from catalog_service.services.catalog import Catalog
from discovery.registry_client import RegistryClient
from discovery.schemas import ServiceRegistration

log = logging.getLogger("Catalog")


def build_registration(cfg: Settings) -> ServiceRegistration:
    return ServiceRegistration.for_http_service(
        cfg.service_name,
        cfg.service_address,
        cfg.port,
        interval=cfg.check_interval,
        timeout=cfg.check_timeout,
    )


def create_app(cfg: Optional[Settings] = None, catalog: Optional[Catalog] = None) -> FastAPI:
    cfg = cfg or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan.

        Spawns registration as a detached task so binding is never delayed by
        the registry; its outcome is only logged. The task reference is kept
        solely to cancel it on shutdown.
        """
        setup_logging()
        async with httpx.AsyncClient(timeout=cfg.registry_timeout_s) as client:
            task = None
            if cfg.registration_enabled:
                rc = RegistryClient(client, str(cfg.registry_url))
                task = asyncio.create_task(rc.register_best_effort(build_registration(cfg)))
            app.state.registration = task
            log.info("Food Catalog Service starting on port %d...", cfg.port)
            try:
                yield
            finally:
                if task is not None and not task.done():
                    task.cancel()

    app = FastAPI(title="Food Catalog", version="0.1.0", lifespan=lifespan)
    app.state.settings = cfg
    app.state.catalog = catalog or Catalog()
    app.include_router(router)

    @app.get("/metrics")
    async def metrics(_: Request):
        """Prometheus exposition endpoint for catalog process metrics."""
        data = generate_latest()
        return PlainTextResponse(data.decode("utf-8"), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve on all interfaces at the configured port."""
    setup_logging()
    uvicorn.run(app, host="0.0.0.0", port=default_settings.port)


if __name__ == "__main__":
    run()
