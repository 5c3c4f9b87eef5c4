import os
import sys
import unittest
from datetime import datetime, timedelta

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from store import seed  # noqa: E402
from store.catalog import CatalogStore  # noqa: E402
from store.ledger import OrderLedger  # noqa: E402
from store.models import OrderHistoryItem  # noqa: E402
from store.restock import (  # noqa: E402
    CombinedHistory,
    LedgerHistory,
    RestockAdvisor,
    StaticHistory,
)

NOW = datetime(2025, 6, 1, 10, 0)


def ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


class RestockTestCase(unittest.TestCase):
    def setUp(self):
        self.now = NOW
        self.products = seed.initial_products(NOW.date())
        self.catalog = CatalogStore(self.products, seed.INITIAL_DIVISIONS)

    def advisor(self, items):
        history = StaticHistory({"3": items})
        return RestockAdvisor(history, self.catalog, clock=lambda: self.now)

    def test_needs_two_distinct_order_times(self):
        advisor = self.advisor(
            [OrderHistoryItem(ago(90), "1", 5), OrderHistoryItem(ago(90), "1", 5)]
        )
        self.assertEqual(advisor.due_in("3"), [])
        self.assertEqual(advisor.suggestions("3"), [])

    def test_threshold_is_strict(self):
        # gap of 30 days, last order exactly 30 days ago: not yet due
        items = [OrderHistoryItem(ago(60), "1", 5), OrderHistoryItem(ago(30), "1", 5)]
        advisor = self.advisor(items)
        (due,) = advisor.due_in("3")
        self.assertEqual(due.mean_gap, timedelta(days=30))
        self.assertEqual(due.remaining, timedelta())
        self.assertEqual(advisor.suggestions("3"), [])

        # one minute later it is
        self.now = NOW + timedelta(minutes=1)
        self.assertEqual([p.id for p in advisor.suggestions("3")], ["1"])

    def test_mean_gap_over_several_orders(self):
        items = [
            OrderHistoryItem(ago(50), "3", 1),
            OrderHistoryItem(ago(40), "3", 1),
            OrderHistoryItem(ago(10), "3", 1),
        ]
        (due,) = self.advisor(items).due_in("3")
        self.assertEqual(due.mean_gap, timedelta(days=20))
        self.assertEqual(due.remaining, timedelta(days=10))

    def test_other_customers_unaffected(self):
        items = [OrderHistoryItem(ago(100), "1", 5), OrderHistoryItem(ago(90), "1", 5)]
        advisor = self.advisor(items)
        self.assertEqual([p.id for p in advisor.suggestions("3")], ["1"])
        self.assertEqual(advisor.suggestions("1"), [])

    def test_products_missing_from_catalog_are_ignored(self):
        items = [OrderHistoryItem(ago(100), "gone", 5), OrderHistoryItem(ago(90), "gone", 5)]
        self.assertEqual(self.advisor(items).suggestions("3"), [])

    def test_seeded_history(self):
        ledger = OrderLedger(seed.initial_orders(NOW, self.products), clock=lambda: NOW)
        history = CombinedHistory(
            StaticHistory(seed.prior_history(NOW)), LedgerHistory(ledger)
        )
        advisor = RestockAdvisor(history, self.catalog, clock=lambda: NOW)
        self.assertEqual([p.id for p in advisor.suggestions("3")], ["promo-3"])
        remaining = {d.product_id: d.remaining for d in advisor.due_in("3")}
        self.assertEqual(remaining["1"], timedelta(days=25))


if __name__ == "__main__":
    unittest.main()
