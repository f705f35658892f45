"""In-memory order table owned by the Order service."""
from __future__ import annotations

import uuid
from threading import Lock
from typing import Dict, Iterable

from order_service.models.schemas import Order, OrderStatus


class OrderStore:
    """Process-lifetime order table. Thread-safe; every call is one atomic step."""

    def __init__(self):
        self._orders: Dict[str, Order] = {}
        self._lock = Lock()

    def create(self, item_ids: Iterable[str]) -> Order:
        """Assign a fresh unique id, mark the order received and insert it."""
        with self._lock:
            order_id = str(uuid.uuid4())
            while order_id in self._orders:
                order_id = str(uuid.uuid4())
            order = Order(id=order_id, item_ids=list(item_ids), status=OrderStatus.RECEIVED)
            self._orders[order_id] = order
            return order.model_copy(deep=True)

    def snapshot(self) -> Dict[str, Order]:
        """Copy of the whole table, keyed by order id."""
        with self._lock:
            return {k: v.model_copy(deep=True) for k, v in self._orders.items()}

    def __len__(self) -> int:
        with self._lock:
            return len(self._orders)
