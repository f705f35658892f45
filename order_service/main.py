"""Order FastAPI application.

Creates the order service, wires routes and CORS handling, configures logging,
starts the best-effort registry registration and exposes Prometheus metrics.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from discovery.registry_client import RegistryClient
from discovery.resolver import Resolver, build_resolver
from discovery.schemas import ServiceRegistration
from order_service.api.middleware import cors_middleware
from order_service.api.routes import decode_error_handler, router
from order_service.core.config import Settings, settings as default_settings
from order_service.core.logging import setup_logging
from order_service.services.store import OrderStore

log = logging.getLogger("Order")


def build_registration(cfg: Settings) -> ServiceRegistration:
    return ServiceRegistration.for_http_service(
        cfg.service_name,
        cfg.service_address,
        cfg.port,
        interval=cfg.check_interval,
        timeout=cfg.check_timeout,
    )


def resolver_from_settings(cfg: Settings, client: Optional[httpx.AsyncClient] = None) -> Resolver:
    return build_resolver(
        cfg.discovery_mode,
        static_table=cfg.static_services,
        registry_url=str(cfg.registry_url),
        timeout_s=cfg.discovery_timeout_s,
        policy=cfg.discovery_policy,
        client=client,
    )


def create_app(
    cfg: Optional[Settings] = None,
    store: Optional[OrderStore] = None,
    resolver: Optional[Resolver] = None,
) -> FastAPI:
    cfg = cfg or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan.

        Spawns registration as a detached task so binding is never delayed by
        the registry; its outcome is only logged. The task reference is kept
        solely to cancel it on shutdown. Unless one was injected, the resolver
        is rebuilt here on the app-scoped HTTP pool.
        """
        setup_logging()
        async with httpx.AsyncClient(timeout=cfg.registry_timeout_s) as client:
            if resolver is None:
                app.state.resolver = resolver_from_settings(cfg, client)
            task = None
            if cfg.registration_enabled:
                rc = RegistryClient(client, str(cfg.registry_url))
                task = asyncio.create_task(rc.register_best_effort(build_registration(cfg)))
            app.state.registration = task
            log.info("Order Service starting on port %d (discovery: %s)...", cfg.port, cfg.discovery_mode)
            try:
                yield
            finally:
                if task is not None and not task.done():
                    task.cancel()

    app = FastAPI(title="Orders", version="0.1.0", lifespan=lifespan)
    app.state.settings = cfg
    app.state.store = store if store is not None else OrderStore()
    # Outside the lifespan (scripts, in-process tests) lookups open short-lived clients
    app.state.resolver = resolver if resolver is not None else resolver_from_settings(cfg)
    app.middleware("http")(cors_middleware)
    app.add_exception_handler(RequestValidationError, decode_error_handler)
    app.include_router(router)

    @app.get("/metrics")
    async def metrics(_: Request):
        """Prometheus exposition endpoint for order process metrics."""
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
