# ordered product id sets for the wishlist and the comparison table
from __future__ import annotations

from typing import List, Optional

from store.catalog import CatalogStore
from store.errors import ValidationError
from store.models import Product


class Shortlist:
    def __init__(self, name: str, limit: Optional[int] = None) -> None:
        self.name = name
        self.limit = limit
        self._ids: List[str] = []

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def ids(self) -> List[str]:
        return list(self._ids)

    def toggle(self, product_id: str) -> bool:
        """Add or remove the id; returns True if it is now on the list."""
        if product_id in self._ids:
            self._ids.remove(product_id)
            return False
        if self.limit is not None and len(self._ids) >= self.limit:
            raise ValidationError(
                self.name, product_id, f"You can {self.name} up to {self.limit} products at a time."
            )
        self._ids.append(product_id)
        return True

    def remove(self, product_id: str) -> None:
        if product_id in self._ids:
            self._ids.remove(product_id)

    def clear(self) -> None:
        self._ids.clear()

    def products(self, catalog: CatalogStore) -> List[Product]:
        return [p for p in (catalog.find(pid) for pid in self._ids) if p is not None]


class Slideshow:
    """
    Walks a presentation one product at a time for a doctor visit.
    Next/previous wrap around; each new slide starts on the visual aid.
    """

    def __init__(self, products: List[Product]) -> None:
        self._products = list(products)
        self.index = 0
        self.show_visual_aid = True

    def __len__(self) -> int:
        return len(self._products)

    @property
    def current(self) -> Optional[Product]:
        if not self._products:
            return None
        return self._products[self.index]

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    @property
    def display_url(self) -> Optional[str]:
        """Visual aid when shown and present, else the pack shot."""
        product = self.current
        if product is None:
            return None
        if self.show_visual_aid and product.visual_aid_url:
            return product.visual_aid_url
        return product.image_url or None

    def next(self) -> Optional[Product]:
        if self._products:
            self.index = (self.index + 1) % len(self._products)
        self.show_visual_aid = True
        return self.current

    def previous(self) -> Optional[Product]:
        if self._products:
            self.index = (self.index - 1) % len(self._products)
        self.show_visual_aid = True
        return self.current

    def toggle_view(self) -> bool:
        self.show_visual_aid = not self.show_visual_aid
        return self.show_visual_aid

    def remove(self, product_id: str) -> None:
        """Drop a product; the cursor stays on the slide that follows it."""
        for idx, p in enumerate(self._products):
            if p.id == product_id:
                del self._products[idx]
                if idx < self.index:
                    self.index -= 1
                elif self.index >= len(self._products):
                    self.index = 0
                break
