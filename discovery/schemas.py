"""Pydantic models for registry payloads.

Field aliases follow the Consul agent API so that ``model_dump(by_alias=True)``
produces the exact JSON the registry expects.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class HealthCheck(BaseModel):
    """HTTP health check the registry polls on our behalf."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    http: str = Field(alias="HTTP")
    interval: str = Field(default="10s", alias="Interval")
    timeout: str = Field(default="1s", alias="Timeout")


class ServiceRegistration(BaseModel):
    """One service instance as announced to the registry. Never mutated."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(alias="ID")
    name: str = Field(alias="Name")
    address: str = Field(alias="Address")
    port: int = Field(alias="Port", gt=0, lt=65536)
    check: HealthCheck = Field(alias="Check")

    @classmethod
    def for_http_service(
        cls,
        name: str,
        address: str,
        port: int,
        *,
        instance_id: Optional[str] = None,
        health_path: str = "/health",
        interval: str = "10s",
        timeout: str = "1s",
    ) -> "ServiceRegistration":
        """Build a registration whose health check hits ``http://address:port/health``."""
        path = health_path if health_path.startswith("/") else f"/{health_path}"
        return cls(
            id=instance_id or name,
            name=name,
            address=address,
            port=port,
            check=HealthCheck(http=f"http://{address}:{port}{path}", interval=interval, timeout=timeout),
        )

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class CheckStatus(BaseModel):
    status: str = Field(alias="Status")


class NodeInfo(BaseModel):
    address: str = Field(default="", alias="Address")


class ServiceInfo(BaseModel):
    address: str = Field(default="", alias="Address")
    port: int = Field(alias="Port")


class HealthEntry(BaseModel):
    """One element of ``GET /v1/health/service/<name>``."""

    node: NodeInfo = Field(default_factory=NodeInfo, alias="Node")
    service: ServiceInfo = Field(alias="Service")
    checks: List[CheckStatus] = Field(default_factory=list, alias="Checks")

    @property
    def passing(self) -> bool:
        return all(c.status == "passing" for c in self.checks)

    @property
    def base_url(self) -> str:
        host = self.service.address or self.node.address
        return f"http://{host}:{self.service.port}"
