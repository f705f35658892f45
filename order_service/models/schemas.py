"""Pydantic models for the Order service."""
from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class OrderStatus(str, Enum):
    """Lifecycle status of an order. Only RECEIVED is produced today."""
    RECEIVED = "received"
    PROCESSING = "processing"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


class OrderIn(BaseModel):
    """Order submission. Client-sent ``id``/``status`` are ignored."""
    item_ids: List[str] = Field(min_length=1)


class Order(BaseModel):
    """A stored order."""
    id: str
    item_ids: List[str]
    status: OrderStatus = OrderStatus.RECEIVED
