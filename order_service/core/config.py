"""Configuration for the Order service.

Provides strongly-typed settings using Pydantic and a loader from environment
variables with defaults matching the compose deployment.
"""

from __future__ import annotations

import os
from typing import Dict, Literal, cast

from pydantic import AnyUrl, BaseModel, Field, ValidationError


class Settings(BaseModel):
    """Pydantic settings for the Order service."""
    service_name: str = "order-service"
    service_address: str = "order-service"
    port: int = Field(default=8081, gt=0, lt=65536)
    registry_url: AnyUrl
    registry_timeout_s: float = 2.0
    registration_enabled: bool = True
    check_interval: str = "10s"
    check_timeout: str = "1s"

    # Discovery of the catalog dependency
    discovery_mode: Literal["static", "consul"] = "static"
    discovery_timeout_s: float = Field(default=2.0, gt=0)
    discovery_policy: Literal["first", "round_robin"] = "round_robin"
    catalog_service_name: str = "food-catalog-service"
    catalog_service_url: str = "http://food-catalog-service:8080"

    @property
    def static_services(self) -> Dict[str, str]:
        return {self.catalog_service_name: self.catalog_service_url}


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def load_settings() -> Settings:
    """Load settings from environment variables and return a Settings object."""
    try:
        return Settings(
            service_name=os.getenv("SERVICE_NAME", "order-service"),
            service_address=os.getenv("SERVICE_ADDRESS", "order-service"),
            port=int(os.getenv("PORT", "8081")),
            registry_url=cast(AnyUrl, os.getenv("REGISTRY_URL", "http://consul:8500")),
            registry_timeout_s=float(os.getenv("REGISTRY_TIMEOUT_S", "2.0")),
            registration_enabled=_env_bool("REGISTRATION_ENABLED", "true"),
            check_interval=os.getenv("CHECK_INTERVAL", "10s"),
            check_timeout=os.getenv("CHECK_TIMEOUT", "1s"),
            discovery_mode=os.getenv("DISCOVERY_MODE", "static"),
            discovery_timeout_s=float(os.getenv("DISCOVERY_TIMEOUT_S", "2.0")),
            discovery_policy=os.getenv("DISCOVERY_POLICY", "round_robin"),
            catalog_service_name=os.getenv("CATALOG_SERVICE_NAME", "food-catalog-service"),
            catalog_service_url=os.getenv("CATALOG_SERVICE_URL", "http://food-catalog-service:8080"),
        )
    except (ValidationError, ValueError) as e:
        raise RuntimeError(f"Invalid configuration: {e}") from e


settings = load_settings()
