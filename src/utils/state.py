from __future__ import annotations

import asyncio
import json
import mimetypes
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

from services.ai import AIAssistant
from services.notify import NotificationEmitter, format_order, format_product, format_status_update
from store import seed
from store.cart import Cart
from store.catalog import CatalogStore
from store.content import ContentStore
from store.errors import MissingRequiredField, ValidationError
from store.ledger import OrderLedger
from store.models import ALL_DIVISIONS, Order, OrderStatus, Product, Role, User
from store.restock import CombinedHistory, LedgerHistory, RestockAdvisor, StaticHistory
from store.shortlist import Shortlist, Slideshow
from store.users import Permission, RoleGate, UserDirectory
from utils.config import Config
from utils.logger import get_logger

_logger = get_logger(__name__)


class Page(StrEnum):
    """Screens of the app; the values double as textual mode names."""

    DASHBOARD = "dashboard"
    CATALOG = "catalog"
    CART = "cart"
    ORDERS = "orders"
    SHORTLIST = "shortlist"
    ADMIN = "admin"


PAGE_TITLES: Dict[Page, str] = {
    Page.DASHBOARD: "Dashboard",
    Page.CATALOG: "Product Library",
    Page.CART: "Cart",
    Page.ORDERS: "My Orders",
    Page.SHORTLIST: "Wishlist & Compare",
    Page.ADMIN: "Admin Panel",
}

ROLE_PAGES: Dict[Role, List[Page]] = {
    Role.CUSTOMER: [Page.DASHBOARD, Page.CATALOG, Page.CART, Page.ORDERS, Page.SHORTLIST],
    Role.STAFF: [Page.DASHBOARD, Page.CATALOG, Page.ORDERS],
    Role.ADMIN: [Page.DASHBOARD, Page.CATALOG, Page.ORDERS, Page.ADMIN],
}


def page_title(page: Page, role: Optional[Role]) -> str:
    if page == Page.ORDERS and role not in (None, Role.CUSTOMER):
        return "Manage Orders"
    return PAGE_TITLES[page]


@dataclass(frozen=True)
class CatalogPreset:
    """Filter the catalog screen opens with (banner links, substitutes)."""

    division: str = ALL_DIVISIONS
    query: str = ""


@dataclass
class PortalState:
    """
    Everything one portal session works on, built once at start-up and
    handed to screens through the app.

    Fields:
      - catalog / ledger / users / content: the in-memory stores
      - restock: reorder suggestions for the logged-in customer
      - ai / emitter: the two external collaborators
      - user: the logged-in user, None before login
      - cart, wishlist, compare, presentation: per-login selections,
        cleared on logout
    """

    config: Config
    catalog: CatalogStore
    ledger: OrderLedger
    users: UserDirectory
    content: ContentStore
    restock: RestockAdvisor
    ai: AIAssistant
    emitter: NotificationEmitter
    clock: Callable[[], datetime] = datetime.now

    user: Optional[User] = None
    cart: Cart = field(default_factory=Cart)
    wishlist: Shortlist = field(default_factory=lambda: Shortlist("wishlist"))
    compare: Shortlist = field(default_factory=lambda: Shortlist("compare", limit=4))
    presentation: Shortlist = field(default_factory=lambda: Shortlist("presentation"))
    catalog_preset: CatalogPreset = field(default_factory=CatalogPreset)

    _outbox: Set[asyncio.Task] = field(default_factory=set, repr=False)

    def __post_init__(self):
        self.compare.limit = self.config.compare_limit
        self.ledger.subscribe(self.notify_status)

    @classmethod
    def create(
        cls,
        config: Optional[Config] = None,
        clock: Callable[[], datetime] = datetime.now,
        ai: Optional[AIAssistant] = None,
        emitter: Optional[NotificationEmitter] = None,
    ) -> "PortalState":
        """Build a session over the demo data."""
        config = config or Config.from_env()
        now = clock()
        products = seed.initial_products(now.date())
        catalog = CatalogStore(products, seed.INITIAL_DIVISIONS)
        ledger = OrderLedger(seed.initial_orders(now, products), clock=clock)
        history = CombinedHistory(
            StaticHistory(seed.prior_history(now)), LedgerHistory(ledger)
        )
        return cls(
            config=config,
            catalog=catalog,
            ledger=ledger,
            users=UserDirectory(seed.initial_users()),
            content=ContentStore(
                seed.INITIAL_SETTINGS, seed.INITIAL_BANNERS, seed.INITIAL_NEWS
            ),
            restock=RestockAdvisor(history, catalog, clock=clock),
            ai=ai or AIAssistant.from_config(config),
            emitter=emitter or NotificationEmitter(enabled=config.notify),
            clock=clock,
        )

    # ---------------------------
    # Login
    # ---------------------------

    @property
    def role(self) -> Optional[Role]:
        return self.user.role if self.user else None

    def can(self, permission: Permission) -> bool:
        return RoleGate.allows(self.user, permission)

    def login(self, username: str, password: str) -> Optional[User]:
        """Log in; None on bad credentials, AccountBlocked for blocked users."""
        user = self.users.authenticate(username.strip(), password)
        if user is None:
            return None
        self.reset_selections()
        self.user = user
        _logger.info(f"User {user.id} ({user.role}) logged in")
        return user

    def logout(self) -> None:
        if self.user:
            _logger.info(f"User {self.user.id} logged out")
        self.user = None
        self.reset_selections()

    def reset_selections(self) -> None:
        self.cart.clear()
        self.wishlist.clear()
        self.compare.clear()
        self.presentation.clear()
        self.catalog_preset = CatalogPreset()

    # ---------------------------
    # Customer flow
    # ---------------------------

    def add_to_cart(self, product_id: str, qty: int = 1) -> int:
        RoleGate.require(self.user, Permission.PLACE_ORDER)
        return self.cart.add(self.catalog.get(product_id), qty)

    def checkout(self) -> Order:
        """Turn the cart into a PENDING order; the cart empties only on success."""
        order = self.ledger.create(self.user, self.cart.lines(self.catalog))
        self.cart.clear()
        return order

    def restock_suggestions(self) -> List[Product]:
        if self.role != Role.CUSTOMER:
            return []
        return self.restock.suggestions(self.user.id)

    def visible_orders(self) -> List[Order]:
        return self.ledger.visible_to(self.user)

    def show_substitutes(self, product: Product) -> CatalogPreset:
        """Point the catalog at products sharing the composition."""
        self.catalog_preset = CatalogPreset(query=product.composition or "")
        return self.catalog_preset

    def start_presentation(self) -> Slideshow:
        return Slideshow(self.presentation.products(self.catalog))

    def drop_from_presentation(self, slideshow: Slideshow, product_id: str) -> None:
        self.presentation.remove(product_id)
        slideshow.remove(product_id)

    # ---------------------------
    # Notifications
    # ---------------------------

    def notify_status(self, order: Order) -> None:
        if order.status == OrderStatus.PENDING and len(order.events) == 1:
            text, phone = format_order(order), self.content.settings.whatsapp_number
        else:
            text, phone = format_status_update(order), None
        self._send(text, phone)

    def _send(self, text: str, phone: Optional[str]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _logger.debug("No running event loop, message not handed off")
            return
        task = loop.create_task(self.emitter.dispatch(text, phone))
        self._outbox.add(task)
        task.add_done_callback(self._outbox.discard)

    async def drain_notifications(self) -> None:
        """Wait for messages still being handed off."""
        if self._outbox:
            await asyncio.gather(*list(self._outbox))

    async def share_product(self, product: Product, caption: str = "") -> bool:
        text = format_product(product)
        if caption:
            text = f"{caption}\n\n{text}"
        return await self.emitter.dispatch(text)

    # ---------------------------
    # AI helpers
    # ---------------------------

    async def search_help(self, query: str) -> str:
        if not query or not query.strip():
            raise MissingRequiredField("query")
        return await self.ai.summarize_query(query.strip(), self.catalog.all())

    async def identify_image(self, path: str | Path) -> str:
        path = Path(path).expanduser()
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise ValidationError("image", str(path), e.strerror or str(e)) from e
        mime_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
        return await self.ai.identify_from_image(data, self.catalog.all(), mime_type)

    async def caption(self, product: Product) -> str:
        return await self.ai.caption(product)

    async def ask_admin(self, query: str) -> str:
        RoleGate.require(self.user, Permission.MANAGE_CATALOG)
        context = json.dumps(
            [
                {"name": p.brand_name, "stock": str(p.stock_status), "price": p.mrp}
                for p in self.catalog.all()
            ]
        )
        return await self.ai.ask_admin(query, context)

    async def add_product(self, brand_name: str, **fields) -> Product:
        """Add a product, asking the AI for search tags when none were given."""
        RoleGate.require(self.user, Permission.MANAGE_CATALOG)
        if not brand_name or not brand_name.strip():
            raise MissingRequiredField("brand_name")
        if not fields.get("tags"):
            fields["tags"] = await self.ai.tags_for(brand_name, fields.get("composition"))
        return self.catalog.add(self.user, brand_name, **fields)

    async def update_product(self, product_id: str, **changes) -> Product:
        RoleGate.require(self.user, Permission.MANAGE_CATALOG)
        if "tags" in changes and not changes["tags"]:
            current = self.catalog.get(product_id)
            changes["tags"] = await self.ai.tags_for(
                changes.get("brand_name") or current.brand_name,
                changes.get("composition", current.composition),
            )
        return self.catalog.update(self.user, product_id, **changes)
