"""Discovery resolvers: turn a logical service name into a base URL.

Two interchangeable variants sit behind the ``Resolver`` protocol:

  - ``StaticResolver`` for fixed topologies (e.g. docker compose), backed by a
    name -> URL table.
  - ``ConsulResolver`` which asks the registry for instances currently passing
    their health checks and hands the list to a selection policy.

``build_resolver`` picks one from configuration so request handlers only ever
depend on the protocol.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Mapping, Optional, Protocol

import httpx
from prometheus_client import Counter, Histogram
from pydantic import TypeAdapter, ValidationError

from discovery.errors import DependencyUnavailableError, UnknownServiceError
from discovery.schemas import HealthEntry
from discovery.selection import BasePolicy, RoundRobinPolicy, make_policy

log = logging.getLogger("discovery.resolver")

LOOKUPS = Counter("discovery_lookups_total", "Service discovery lookups", ["mode", "status"])
LOOKUP_LATENCY = Histogram("discovery_lookup_latency_seconds", "Registry lookup latency seconds")

_HEALTH_ENTRIES = TypeAdapter(List[HealthEntry])


class Resolver(Protocol):
    """Anything that can resolve a service name to a base address."""

    async def resolve(self, service_name: str) -> str:
        ...


class StaticResolver:
    """Resolve from a fixed name -> base URL table."""

    mode = "static"

    def __init__(self, table: Mapping[str, str]):
        self._table = {name: url.rstrip("/") for name, url in table.items()}

    async def resolve(self, service_name: str) -> str:
        try:
            addr = self._table[service_name]
        except KeyError:
            LOOKUPS.labels(mode=self.mode, status="unknown").inc()
            raise UnknownServiceError(service_name) from None
        LOOKUPS.labels(mode=self.mode, status="ok").inc()
        return addr


class ConsulResolver:
    """
    Resolve through the registry's health API.

    Only instances the registry reports as passing are considered; entries with
    any non-passing check are dropped again on our side. Every lookup is bounded
    by ``timeout_s`` so a slow registry cannot stall a request indefinitely.
    """

    mode = "consul"

    def __init__(
        self,
        base_url: str,
        timeout_s: float = 2.0,
        policy: Optional[BasePolicy] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._base = base_url.rstrip("/")
        self._timeout = timeout_s
        self._policy = policy or RoundRobinPolicy()
        self._client = client

    @property
    def client(self) -> Optional[httpx.AsyncClient]:
        """Shared connection pool, or None when each lookup opens its own."""
        return self._client

    def _health_url(self, service_name: str) -> str:
        return f"{self._base}/v1/health/service/{service_name}"

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        # Use the shared pool when one was handed in, else a short-lived client
        if self._client is not None:
            yield self._client
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                yield client

    async def healthy_instances(self, service_name: str) -> list[str]:
        """Return base URLs of all passing instances of ``service_name``."""
        url = self._health_url(service_name)
        try:
            async with self._http() as client:
                with LOOKUP_LATENCY.time():
                    resp = await client.get(url, params={"passing": "true"}, timeout=self._timeout)
        except httpx.HTTPError as e:
            LOOKUPS.labels(mode=self.mode, status="error").inc()
            raise DependencyUnavailableError(service_name, f"registry lookup failed: {e!r}") from e

        if resp.status_code != 200:
            LOOKUPS.labels(mode=self.mode, status=str(resp.status_code)).inc()
            raise DependencyUnavailableError(service_name, f"registry returned {resp.status_code}")

        try:
            entries = _HEALTH_ENTRIES.validate_json(resp.content)
        except ValidationError as e:
            LOOKUPS.labels(mode=self.mode, status="malformed").inc()
            raise DependencyUnavailableError(service_name, f"malformed registry reply: {e}") from e

        return [e.base_url for e in entries if e.passing]

    async def resolve(self, service_name: str) -> str:
        instances = await self.healthy_instances(service_name)
        chosen = self._policy.pick(instances)
        if chosen is None:
            LOOKUPS.labels(mode=self.mode, status="unknown").inc()
            raise UnknownServiceError(service_name, "no healthy instances registered")
        LOOKUPS.labels(mode=self.mode, status="ok").inc()
        log.debug("resolved %s -> %s (%s of %d)", service_name, chosen, self._policy.name, len(instances))
        return chosen


def build_resolver(
    mode: str,
    *,
    static_table: Optional[Mapping[str, str]] = None,
    registry_url: Optional[str] = None,
    timeout_s: float = 2.0,
    policy: str = "round_robin",
    client: Optional[httpx.AsyncClient] = None,
) -> Resolver:
    """Construct the resolver variant named by ``mode`` ("static" or "consul")."""
    if mode == "static":
        return StaticResolver(static_table or {})
    if mode == "consul":
        if not registry_url:
            raise ValueError("consul discovery requires a registry URL")
        return ConsulResolver(registry_url, timeout_s, make_policy(policy), client)
    raise ValueError(f"unknown discovery mode: {mode!r}")
