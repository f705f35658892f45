"""Configuration for the Catalog service.

Provides strongly-typed settings using Pydantic and a loader from environment
variables with defaults matching the compose deployment.
"""

from __future__ import annotations

import os
from pydantic import BaseModel, AnyUrl, Field, ValidationError
from typing import cast


class Settings(BaseModel):
    """Pydantic settings for the Catalog service."""
    service_name: str = "food-catalog-service"
    # Hostname the registry (and other services) use to reach this instance
    service_address: str = "food-catalog-service"
    port: int = Field(default=8080, gt=0, lt=65536)
    registry_url: AnyUrl
    registry_timeout_s: float = 2.0
    registration_enabled: bool = True
    check_interval: str = "10s"
    check_timeout: str = "1s"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def load_settings() -> Settings:
    """Load settings from environment variables and return a Settings object."""
    try:
        return Settings(
            service_name=os.getenv("SERVICE_NAME", "food-catalog-service"),
            service_address=os.getenv("SERVICE_ADDRESS", "food-catalog-service"),
            port=int(os.getenv("PORT", "8080")),
            registry_url=cast(AnyUrl, os.getenv("REGISTRY_URL", "http://consul:8500")),
            registry_timeout_s=float(os.getenv("REGISTRY_TIMEOUT_S", "2.0")),
            registration_enabled=_env_bool("REGISTRATION_ENABLED", "true"),
            check_interval=os.getenv("CHECK_INTERVAL", "10s"),
            check_timeout=os.getenv("CHECK_TIMEOUT", "1s"),
        )
    except (ValidationError, ValueError) as e:
        raise RuntimeError(f"Invalid configuration: {e}") from e


settings = load_settings()
