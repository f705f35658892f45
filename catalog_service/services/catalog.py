"""Read-only item catalog."""
from __future__ import annotations

from typing import Iterable, List

from catalog_service.models.schemas import CatalogItem

SEED_ITEMS = (
    CatalogItem(id="1", name="Coffee", price=2.50),
    CatalogItem(id="2", name="Sandwich", price=5.00),
    CatalogItem(id="3", name="Muffin", price=3.25),
)


class Catalog:
    """Fixed, ordered set of items with unique identifiers."""

    def __init__(self, items: Iterable[CatalogItem] = SEED_ITEMS):
        self._items = tuple(items)
        seen: set[str] = set()
        for item in self._items:
            if item.id in seen:
                raise ValueError(f"duplicate catalog item id: {item.id}")
            seen.add(item.id)

    def list_items(self) -> List[CatalogItem]:
        return list(self._items)
