import os
import sys
import unittest
from datetime import date

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from store import seed  # noqa: E402
from store.catalog import CatalogStore  # noqa: E402
from store.errors import (  # noqa: E402
    MissingRequiredField,
    NotFoundError,
    Unauthorized,
    ValidationError,
)
from store.models import MARKETING_INPUTS, Product, StockStatus  # noqa: E402

TODAY = date(2025, 6, 1)


class CatalogTestCase(unittest.TestCase):
    def setUp(self):
        self.catalog = CatalogStore(seed.initial_products(TODAY), seed.INITIAL_DIVISIONS)
        users = {u.username: u for u in seed.initial_users()}
        self.admin = users["admin"]
        self.staff = users["staff"]
        self.customer = users["distributor"]

    # ---------- Search ----------

    def test_list_without_filters_returns_everything_in_order(self):
        self.assertEqual(
            [p.id for p in self.catalog.list()],
            ["1", "2", "3", "4", "5", "promo-1", "promo-2", "promo-3"],
        )

    def test_search_matches_brand_composition_and_tags(self):
        self.assertEqual([p.id for p in self.catalog.list("cardio")], ["1"])
        self.assertEqual([p.id for p in self.catalog.list("ketoconazole")], ["2"])
        self.assertEqual([p.id for p in self.catalog.list("joint pain")], ["3"])
        self.assertEqual([p.id for p in self.catalog.list("  SYRUP ")], ["5"])

    def test_search_with_division(self):
        self.assertEqual([p.id for p in self.catalog.list("", "Derma")], ["2"])
        self.assertEqual(self.catalog.list("cardio", "Derma"), [])
        self.assertEqual(
            [p.id for p in self.catalog.list("", MARKETING_INPUTS)],
            ["promo-1", "promo-2", "promo-3"],
        )

    def test_search_is_idempotent_and_read_only(self):
        before = self.catalog.all()
        first = self.catalog.list("gel")
        second = self.catalog.list("gel")
        self.assertEqual(first, second)
        self.assertEqual(self.catalog.all(), before)

    def test_divisions_start_with_all_and_include_marketing_inputs(self):
        divisions = self.catalog.divisions
        self.assertEqual(divisions[0], "All")
        self.assertIn(MARKETING_INPUTS, divisions)
        self.assertEqual(len(divisions), len(set(divisions)))

    def test_get_unknown_product(self):
        self.assertIsNone(self.catalog.find("nope"))
        with self.assertRaises(NotFoundError):
            self.catalog.get("nope")

    # ---------- Derived lists ----------

    def test_new_launches_within_window(self):
        launches = self.catalog.new_launches(TODAY, 60)
        self.assertEqual({p.id for p in launches}, {"2", "5"})
        # everything seeded 91 days back falls in a wider window
        self.assertEqual(len(self.catalog.new_launches(TODAY, 120)), 5)

    def test_trending(self):
        self.assertEqual([p.id for p in self.catalog.trending()], ["1", "2"])

    def test_substitutes_share_composition_and_are_orderable(self):
        out_of_stock = self.catalog.get("4")
        self.assertEqual(self.catalog.substitutes(out_of_stock), [])

        twin = self.catalog.add(
            self.admin,
            "CeftriOne 1g",
            composition="ceftriaxone 1g injection",
            division="Critical Care",
            mrp=70,
        )
        self.catalog.add(
            self.admin,
            "CeftriNone",
            composition="Ceftriaxone 1g Injection",
            division="Critical Care",
            stock_status=StockStatus.OUT_OF_STOCK,
        )
        self.assertEqual(self.catalog.substitutes(out_of_stock), [twin])

    # ---------- Promotional items ----------

    def test_promotional_products_live_in_marketing_inputs(self):
        p = Product(id="x", brand_name="Pen", division="Cardiac", composition="Ink", is_promotional=True)
        self.assertEqual(p.division, MARKETING_INPUTS)
        self.assertIsNone(p.composition)

        updated = self.catalog.update(self.admin, "1", is_promotional=True)
        self.assertEqual(updated.division, MARKETING_INPUTS)
        self.assertIsNone(updated.composition)

    def test_negative_mrp_rejected(self):
        with self.assertRaises(ValidationError):
            Product(id="x", brand_name="Bad", mrp=-1)

    def test_complimentary(self):
        self.assertTrue(self.catalog.get("promo-1").is_complimentary)
        self.assertFalse(self.catalog.get("promo-2").is_complimentary)

    # ---------- Admin mutators ----------

    def test_add_product_goes_first_with_generated_id(self):
        p = self.catalog.add(
            self.admin, "  NeoVit  ", division="General", tags=["Vitamin", "vitamin", " "]
        )
        self.assertEqual(p.brand_name, "NeoVit")
        self.assertEqual(len(p.id), 9)
        self.assertEqual(p.tags, ("Vitamin",))
        self.assertEqual(self.catalog.all()[0], p)

    def test_add_product_validation(self):
        with self.assertRaises(MissingRequiredField):
            self.catalog.add(self.admin, "   ")
        with self.assertRaises(ValidationError):
            self.catalog.add(self.admin, "X", division="Nowhere")
        with self.assertRaises(ValidationError):
            self.catalog.add(self.admin, "X", division="All")
        with self.assertRaises(ValidationError):
            self.catalog.add(self.admin, "X", colour="red")
        with self.assertRaises(ValidationError):
            self.catalog.add(self.admin, "X", stock_status="Plenty")
        with self.assertRaises(ValidationError):
            self.catalog.add(self.admin, "X", id="abc")
        self.assertEqual(len(self.catalog.all()), 8)

    def test_mutators_require_admin(self):
        for actor in (None, self.staff, self.customer):
            with self.assertRaises(Unauthorized):
                self.catalog.add(actor, "X")
            with self.assertRaises(Unauthorized):
                self.catalog.update(actor, "1", mrp=1)
            with self.assertRaises(Unauthorized):
                self.catalog.add_division(actor, "Neuro")
        self.assertEqual(self.catalog.get("1").mrp, 120)

    def test_update_swaps_record(self):
        before = self.catalog.get("3")
        after = self.catalog.update(self.admin, "3", mrp=115, stock_status="Low Stock")
        self.assertEqual(before.mrp, 110)
        self.assertEqual(after.mrp, 115)
        self.assertEqual(after.stock_status, StockStatus.LOW_STOCK)
        self.assertIs(self.catalog.get("3"), after)

    def test_set_trending_and_add_division(self):
        self.catalog.set_trending(self.admin, "3", True)
        self.assertIn("3", [p.id for p in self.catalog.trending()])

        divisions = self.catalog.add_division(self.admin, " Neuro ")
        self.assertEqual(divisions[-1], "Neuro")
        with self.assertRaises(ValidationError):
            self.catalog.add_division(self.admin, "neuro")
        p = self.catalog.add(self.admin, "NeuroMax", division="Neuro")
        self.assertEqual(p.division, "Neuro")


if __name__ == "__main__":
    unittest.main()
