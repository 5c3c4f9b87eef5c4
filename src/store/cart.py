# session cart: product id -> quantity, resolved against the live catalog
from __future__ import annotations

from typing import Dict, List, Tuple

from store.catalog import CatalogStore
from store.errors import NotFoundError, ValidationError
from store.models import Product


class Cart:
    def __init__(self) -> None:
        self._items: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._items

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def total_items(self) -> int:
        return sum(self._items.values())

    def quantity(self, product_id: str) -> int:
        return self._items.get(product_id, 0)

    def add(self, product: Product, qty: int = 1) -> int:
        """Add qty of product; returns the new quantity in cart."""
        if not product.is_orderable:
            raise ValidationError("product", product.brand_name, "out of stock")
        if qty < 1:
            raise ValidationError("quantity", qty, "must be at least 1")
        self._items[product.id] = self._items.get(product.id, 0) + qty
        return self._items[product.id]

    def change_quantity(self, product_id: str, delta: int) -> int:
        """Step the quantity up or down, never below 1."""
        if product_id not in self._items:
            raise NotFoundError("Cart item", product_id)
        self._items[product_id] = max(1, self._items[product_id] + delta)
        return self._items[product_id]

    def set_quantity(self, product_id: str, qty: int) -> None:
        """Set the quantity; 0 removes the item."""
        if qty < 0:
            raise ValidationError("quantity", qty, "cannot be negative")
        if product_id not in self._items:
            raise NotFoundError("Cart item", product_id)
        if qty == 0:
            self.remove(product_id)
        else:
            self._items[product_id] = qty

    def remove(self, product_id: str) -> None:
        self._items.pop(product_id, None)

    def clear(self) -> None:
        self._items.clear()

    def lines(self, catalog: CatalogStore) -> List[Tuple[Product, int]]:
        """Current (product, qty) pairs; products gone from the catalog are skipped."""
        result = []
        for pid, qty in self._items.items():
            product = catalog.find(pid)
            if product is not None:
                result.append((product, qty))
        return result

    def total_value(self, catalog: CatalogStore) -> float:
        return sum(p.mrp * qty for p, qty in self.lines(catalog))
