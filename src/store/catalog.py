# catalog store: filtered views and administrative mutators over products
from __future__ import annotations

import dataclasses
import random
import string
from datetime import date
from typing import Iterable, List, Optional

from store.errors import MissingRequiredField, NotFoundError, ValidationError
from store.models import ALL_DIVISIONS, MARKETING_INPUTS, Product, StockStatus, User
from store.users import Permission, RoleGate
from utils.logger import get_logger

_logger = get_logger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


class CatalogStore:
    """
    Holds the product set of one session.

    Products are immutable records; an update swaps the whole record so
    orders that snapshotted the old one are never affected.
    """

    def __init__(
        self, products: Iterable[Product] = (), divisions: Iterable[str] = ()
    ) -> None:
        self._products: List[Product] = list(products)
        self._divisions: List[str] = [ALL_DIVISIONS]
        for div in list(divisions) + [MARKETING_INPUTS]:
            if div and div not in self._divisions:
                self._divisions.append(div)

    # ---------------------------
    # Read side
    # ---------------------------

    @property
    def divisions(self) -> List[str]:
        return list(self._divisions)

    def all(self) -> List[Product]:
        return list(self._products)

    def list(self, query: str = "", division: str = ALL_DIVISIONS) -> List[Product]:
        """
        Case-insensitive search over brand name, composition and tags,
        restricted to a division unless division is "All".
        Keeps catalog order; never mutates the store.
        """
        q = (query or "").strip().lower()

        def matches_query(p: Product) -> bool:
            if not q:
                return True
            if q in p.brand_name.lower():
                return True
            if p.composition and q in p.composition.lower():
                return True
            return any(q in tag.lower() for tag in p.tags)

        return [
            p
            for p in self._products
            if (division == ALL_DIVISIONS or p.division == division)
            and matches_query(p)
        ]

    def find(self, product_id: str) -> Optional[Product]:
        for p in self._products:
            if p.id == product_id:
                return p
        return None

    def get(self, product_id: str) -> Product:
        prod = self.find(product_id)
        if prod is None:
            raise NotFoundError("Product", product_id)
        return prod

    def new_launches(self, today: date, window_days: int = 60) -> List[Product]:
        """Products launched within the window, newest launch first."""
        launches = [p for p in self._products if p.is_new_launch(today, window_days)]
        launches.sort(key=lambda p: p.launch_date, reverse=True)
        return launches

    def trending(self) -> List[Product]:
        return [p for p in self._products if p.is_trending]

    def substitutes(self, product: Product) -> List[Product]:
        """Other orderable products with the same composition."""
        if not product.composition:
            return []
        comp = product.composition.strip().lower()
        return [
            p
            for p in self._products
            if p.id != product.id
            and p.is_orderable
            and p.composition
            and p.composition.strip().lower() == comp
        ]

    # ---------------------------
    # Administrative mutators
    # ---------------------------

    def _generate_id(self) -> str:
        while True:
            cand = "".join(random.choices(_ID_ALPHABET, k=9))
            if self.find(cand) is None:
                return cand

    def add(self, actor: Optional[User], brand_name: str, **fields) -> Product:
        """
        Create a product and put it at the front of the catalog.
        Only brand_name is required; other fields fall back to Product defaults.
        """
        RoleGate.require(actor, Permission.MANAGE_CATALOG)
        if not brand_name or not brand_name.strip():
            raise MissingRequiredField("brand_name")
        self._check_fields(fields)
        if "id" in fields:
            raise ValidationError("id", fields["id"], "ids are generated")

        product = Product(id=self._generate_id(), brand_name=brand_name.strip(), **fields)
        self._check_division(product)
        self._products.insert(0, product)
        _logger.info(f"Product {product.id} '{product.brand_name}' added by {actor.id}")
        return product

    def update(self, actor: Optional[User], product_id: str, **changes) -> Product:
        RoleGate.require(actor, Permission.MANAGE_CATALOG)
        current = self.get(product_id)
        self._check_fields(changes)
        if "id" in changes:
            raise ValidationError("id", changes["id"], "ids cannot change")
        if "brand_name" in changes:
            if not changes["brand_name"] or not str(changes["brand_name"]).strip():
                raise MissingRequiredField("brand_name")
            changes["brand_name"] = str(changes["brand_name"]).strip()

        # replace() re-runs __post_init__, so the promotional rule holds here too
        updated = dataclasses.replace(current, **changes)
        self._check_division(updated)
        self._products = [updated if p.id == product_id else p for p in self._products]
        _logger.info(f"Product {product_id} updated by {actor.id}: {sorted(changes)}")
        return updated

    def set_trending(self, actor: Optional[User], product_id: str, flag: bool) -> Product:
        return self.update(actor, product_id, is_trending=bool(flag))

    def add_division(self, actor: Optional[User], name: str) -> List[str]:
        RoleGate.require(actor, Permission.MANAGE_CATALOG)
        if not name or not name.strip():
            raise MissingRequiredField("division")
        name = name.strip()
        if name.lower() in (d.lower() for d in self._divisions):
            raise ValidationError("division", name, "already exists")
        self._divisions.append(name)
        _logger.info(f"Division '{name}' added by {actor.id}")
        return self.divisions

    @staticmethod
    def _check_fields(fields: dict) -> None:
        allowed = {f.name for f in dataclasses.fields(Product)}
        unknown = set(fields) - allowed
        if unknown:
            raise ValidationError(
                ", ".join(sorted(unknown)), None, "unknown product field"
            )
        if "stock_status" in fields:
            try:
                StockStatus(fields["stock_status"])
            except ValueError:
                raise ValidationError("stock_status", fields["stock_status"]) from None

    def _check_division(self, product: Product) -> None:
        if product.division == ALL_DIVISIONS:
            raise ValidationError("division", product.division, "reserved filter name")
        if product.division not in self._divisions:
            raise ValidationError("division", product.division, "unknown division")
