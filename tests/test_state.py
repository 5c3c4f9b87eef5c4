import os
import sys
import tempfile
import unittest
from datetime import datetime
from types import SimpleNamespace
from urllib.parse import unquote

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from services.ai import AIAssistant  # noqa: E402
from services.notify import NotificationEmitter  # noqa: E402
from store.errors import (  # noqa: E402
    AccountBlocked,
    MissingRequiredField,
    Unauthorized,
    ValidationError,
)
from store.models import OrderStatus, Role  # noqa: E402
from utils.config import Config  # noqa: E402
from utils.state import ROLE_PAGES, CatalogPreset, Page, PortalState, page_title  # noqa: E402

NOW = datetime(2025, 6, 1, 10, 0)


class FakeModels:
    def __init__(self, text):
        self.text = text
        self.calls = 0

    async def generate_content(self, model, contents):
        self.calls += 1
        return SimpleNamespace(text=self.text)


class StateTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.opened = []
        self.models = FakeModels("Heart, Statin")
        self.state = PortalState.create(
            config=Config(compare_limit=3),
            clock=lambda: NOW,
            ai=AIAssistant(client=SimpleNamespace(aio=SimpleNamespace(models=self.models))),
            emitter=NotificationEmitter(opener=self.opened.append),
        )

    def login(self, username="distributor", password="user123"):
        return self.state.login(username, password)

    # ---------- Session ----------

    def test_login_and_logout(self):
        self.assertIsNone(self.login(password="wrong"))
        self.assertIsNone(self.state.user)

        user = self.login()
        self.assertEqual(user.role, Role.CUSTOMER)
        self.state.add_to_cart("1", 3)
        self.state.wishlist.toggle("2")
        self.state.presentation.toggle("3")
        self.state.catalog_preset = CatalogPreset(division="Derma")

        self.state.logout()
        self.assertIsNone(self.state.user)
        self.assertTrue(self.state.cart.is_empty)
        self.assertEqual(len(self.state.wishlist), 0)
        self.assertEqual(len(self.state.presentation), 0)
        self.assertEqual(self.state.catalog_preset, CatalogPreset())

    def test_blocked_login(self):
        self.login("admin", "admin123")
        self.state.users.toggle_block(self.state.user, "3")
        self.state.logout()
        with self.assertRaises(AccountBlocked):
            self.login()

    def test_compare_limit_from_config(self):
        self.login()
        for pid in ("1", "2", "3"):
            self.state.compare.toggle(pid)
        with self.assertRaises(ValidationError):
            self.state.compare.toggle("5")

    def test_pages_per_role(self):
        self.assertEqual(ROLE_PAGES[Role.CUSTOMER][0], Page.DASHBOARD)
        self.assertNotIn(Page.CART, ROLE_PAGES[Role.STAFF])
        self.assertIn(Page.ADMIN, ROLE_PAGES[Role.ADMIN])
        self.assertEqual(page_title(Page.ORDERS, Role.CUSTOMER), "My Orders")
        self.assertEqual(page_title(Page.ORDERS, Role.STAFF), "Manage Orders")

    # ---------- Cart & checkout ----------

    async def test_checkout_places_order_and_notifies(self):
        self.login()
        self.state.add_to_cart("1", 10)
        self.state.add_to_cart("promo-3", 2)

        order = self.state.checkout()
        await self.state.drain_notifications()

        self.assertEqual(order.id, "ORD-1003")
        self.assertEqual(order.total_items, 12)
        self.assertEqual(order.total_inquiry_value, 1200)
        self.assertTrue(self.state.cart.is_empty)
        self.assertIn(order, self.state.visible_orders())

        (link,) = self.opened
        self.assertTrue(link.startswith("https://wa.me/919876543210?text="))
        self.assertIn("*NEW ORDER INQUIRY*", unquote(link))
        self.assertIn("ORD-1003", unquote(link))

    async def test_status_changes_notify_without_phone(self):
        self.login("staff", "staff123")
        self.state.ledger.dispatch(self.state.user, "ORD-1002", "DOC-9")
        await self.state.drain_notifications()
        (link,) = self.opened
        self.assertTrue(link.startswith("https://wa.me/?text="))
        self.assertIn("Docket Number: DOC-9", unquote(link))

    async def test_empty_cart_checkout_fails_and_sends_nothing(self):
        self.login()
        with self.assertRaises(ValidationError):
            self.state.checkout()
        await self.state.drain_notifications()
        self.assertEqual(self.opened, [])

    def test_staff_cannot_use_cart(self):
        self.login("staff", "staff123")
        with self.assertRaises(Unauthorized):
            self.state.add_to_cart("1")

    def test_checkout_without_event_loop_still_places_order(self):
        self.login()
        self.state.add_to_cart("1")
        order = self.state.checkout()
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(self.opened, [])

    # ---------- Presentation ----------

    def test_presentation_steps_through_selected_products(self):
        self.login("staff", "staff123")
        for pid in ("1", "gone", "3"):
            self.state.presentation.toggle(pid)

        show = self.state.start_presentation()
        self.assertEqual([p.id for p in show.products], ["1", "3"])
        self.assertEqual(show.display_url, "#")

        self.state.drop_from_presentation(show, "1")
        self.assertEqual(show.current.id, "3")
        self.assertNotIn("1", self.state.presentation)
        self.assertEqual(self.state.presentation.ids, ["gone", "3"])

    # ---------- Dashboard data ----------

    def test_restock_suggestions_only_for_customers(self):
        self.login()
        self.assertEqual([p.id for p in self.state.restock_suggestions()], ["promo-3"])
        self.state.logout()
        self.login("staff", "staff123")
        self.assertEqual(self.state.restock_suggestions(), [])

    def test_show_substitutes_sets_preset(self):
        product = self.state.catalog.get("4")
        preset = self.state.show_substitutes(product)
        self.assertEqual(preset.query, "Ceftriaxone 1g Injection")
        self.assertEqual(self.state.catalog_preset, preset)

    # ---------- Admin ----------

    async def test_add_product_fills_tags_from_ai(self):
        self.login("admin", "admin123")
        product = await self.state.add_product(
            "LipoCut 20", composition="Rosuvastatin 20mg", division="Cardiac"
        )
        self.assertEqual(product.tags, ("Heart", "Statin"))
        self.assertEqual(self.state.catalog.all()[0], product)

        given = await self.state.add_product("Pen", tags=("Gift",), is_promotional=True)
        self.assertEqual(given.tags, ("Gift",))
        self.assertEqual(self.models.calls, 1)

    async def test_add_product_checks_role_before_ai(self):
        self.login()
        with self.assertRaises(Unauthorized):
            await self.state.add_product("X")
        self.assertEqual(self.models.calls, 0)

    async def test_add_product_requires_name(self):
        self.login("admin", "admin123")
        with self.assertRaises(MissingRequiredField):
            await self.state.add_product("  ")

    async def test_update_product_regenerates_blank_tags(self):
        self.login("admin", "admin123")
        updated = await self.state.update_product("3", tags=(), mrp=99)
        self.assertEqual(updated.tags, ("Heart", "Statin"))
        self.assertEqual(updated.mrp, 99)

    async def test_ask_admin_is_admin_only(self):
        self.login("staff", "staff123")
        with self.assertRaises(Unauthorized):
            await self.state.ask_admin("what is low on stock?")

    # ---------- AI helpers ----------

    async def test_search_help_requires_query(self):
        with self.assertRaises(MissingRequiredField):
            await self.state.search_help("   ")
        self.assertEqual(await self.state.search_help("cholesterol"), "Heart, Statin")

    async def test_identify_image_reads_file(self):
        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as fh:
            fh.write(b"\x89PNG\r\n")
            path = fh.name
        try:
            self.assertEqual(await self.state.identify_image(path), "Heart, Statin")
        finally:
            os.unlink(path)

        with self.assertRaises(ValidationError):
            await self.state.identify_image(os.path.join(tempfile.gettempdir(), "missing-photo.jpg"))


if __name__ == "__main__":
    unittest.main()
