"""HTTP client wrapper for the service registry's write API.

Announces this process to a Consul-compatible agent together with an HTTP
health check. Registration is best-effort: failures are logged and swallowed so
a service stays operable without any registry present.
"""

from __future__ import annotations

import logging

import httpx
from prometheus_client import Counter

from discovery.errors import RegistrationError
from discovery.schemas import ServiceRegistration

log = logging.getLogger("discovery.registry")

REGISTRATIONS = Counter("service_registrations_total", "Registry registration attempts", ["status"])

REGISTER_PATH = "/v1/agent/service/register"


class RegistryClient:
    """
    Tiny HTTP client for the registry agent API.

    Holds an httpx.AsyncClient for connection pooling; the caller owns its
    lifetime (and therefore its timeout).
    """

    def __init__(self, client: httpx.AsyncClient, base_url: str):
        self._client = client
        self._base = base_url.rstrip("/")

    @property
    def register_url(self) -> str:
        return f"{self._base}{REGISTER_PATH}"

    async def register(self, registration: ServiceRegistration) -> None:
        """Submit ``registration`` once. Raises RegistrationError on any failure."""
        try:
            resp = await self._client.put(self.register_url, json=registration.to_payload())
        except httpx.HTTPError as e:
            REGISTRATIONS.labels(status="error").inc()
            raise RegistrationError(f"could not reach registry at {self._base}: {e!r}") from e

        if resp.status_code >= 300:
            REGISTRATIONS.labels(status=str(resp.status_code)).inc()
            raise RegistrationError(
                f"registry rejected registration: status={resp.status_code} body={resp.text}"
            )
        REGISTRATIONS.labels(status=str(resp.status_code)).inc()

    async def register_best_effort(self, registration: ServiceRegistration) -> bool:
        """Register once, logging the outcome. Never raises RegistrationError."""
        try:
            await self.register(registration)
        except RegistrationError as e:
            log.warning("Registration of %s (%s) failed: %s", registration.name, registration.id, e)
            return False
        log.info(
            "Successfully registered service with registry: %s at %s:%d",
            registration.name, registration.address, registration.port,
        )
        return True
