"""Pydantic models used by the Catalog service."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CatalogItem(BaseModel):
    """A food item on offer. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: float = Field(ge=0)
