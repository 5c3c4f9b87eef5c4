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
from store.errors import (  # noqa: E402
    InvalidTransition,
    MissingRequiredField,
    NotFoundError,
    Unauthorized,
    ValidationError,
)
from store.ledger import OrderLedger  # noqa: E402
from store.models import OrderStatus, Product, Role, User  # noqa: E402

NOW = datetime(2025, 6, 1, 10, 0)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class LedgerTestCase(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock(NOW)
        products = seed.initial_products(NOW.date())
        self.catalog = CatalogStore(products, seed.INITIAL_DIVISIONS)
        self.ledger = OrderLedger(seed.initial_orders(NOW, products), clock=self.clock)
        users = {u.username: u for u in seed.initial_users()}
        self.admin = users["admin"]
        self.staff = users["staff"]
        self.customer = users["distributor"]
        self.other = User("9", "other", "pw", Role.CUSTOMER, "Other Pharma")

        self.seen = []
        self.ledger.subscribe(self.seen.append)

    def place(self, actor=None, lines=None):
        actor = actor or self.customer
        lines = lines or [(self.catalog.get("1"), 10)]
        return self.ledger.create(actor, lines)

    # ---------- Creation ----------

    def test_seeded_orders(self):
        self.assertEqual([o.id for o in self.ledger.all()], ["ORD-1002", "ORD-1001"])
        dispatched = self.ledger.get("ORD-1001")
        self.assertEqual(dispatched.total_inquiry_value, 120 * 50 + 110 * 20)
        self.assertEqual(dispatched.docket_number, "DTDC-99887766")

    def test_create_order(self):
        order = self.place(lines=[(self.catalog.get("1"), 10), (self.catalog.get("3"), 2)])
        self.assertEqual(order.id, "ORD-1003")
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.user_id, "3")
        self.assertEqual(order.user_name, "MediCare Pharma")
        self.assertEqual(order.created_at, NOW)
        self.assertEqual(order.total_items, 12)
        self.assertEqual(order.total_inquiry_value, 120 * 10 + 110 * 2)
        self.assertEqual(len(order.events), 1)
        self.assertEqual(self.ledger.all()[0], order)
        self.assertEqual(self.seen, [order])
        self.assertEqual(self.place().id, "ORD-1004")

    def test_create_rejects_bad_lines(self):
        with self.assertRaises(ValidationError):
            self.place(lines=[])
        with self.assertRaises(ValidationError):
            self.place(lines=[(self.catalog.get("1"), 0)])
        with self.assertRaises(ValidationError):
            self.place(lines=[(self.catalog.get("1"), 2.5)])
        with self.assertRaises(ValidationError):
            self.place(lines=[(self.catalog.get("1"), True)])
        self.assertEqual(len(self.ledger.all()), 2)
        self.assertEqual(self.seen, [])

    def test_only_customers_place_orders(self):
        for actor in (None, self.staff, self.admin):
            with self.assertRaises(Unauthorized):
                self.place(actor=actor)

    def test_inquiry_value_is_frozen(self):
        order = self.place()
        self.catalog.update(self.admin, "1", mrp=999)
        self.assertEqual(self.ledger.get(order.id).total_inquiry_value, 1200)
        self.assertEqual(self.ledger.get(order.id).lines[0].product.mrp, 120)

    # ---------- Visibility ----------

    def test_visibility(self):
        mine = self.place()
        theirs = self.place(actor=self.other)
        self.assertEqual(len(self.ledger.visible_to(self.staff)), 4)
        self.assertEqual(len(self.ledger.visible_to(self.admin)), 4)
        self.assertNotIn(theirs, self.ledger.visible_to(self.customer))
        self.assertIn(mine, self.ledger.visible_to(self.customer))
        self.assertEqual(self.ledger.visible_to(self.other), [theirs])
        self.assertEqual(self.ledger.visible_to(None), [])

    def test_history_skips_cancelled_orders(self):
        order = self.place()
        self.ledger.cancel(self.customer, order.id)
        history = self.ledger.history_for("3")
        self.assertEqual(
            sorted(item.product_id for item in history), ["1", "2", "3"]
        )

    # ---------- Transitions ----------

    def test_end_to_end(self):
        order = self.place(lines=[(Product("x", "Mixed Lot", mrp=100), 10)])
        self.assertEqual(order.total_inquiry_value, 1000)

        self.clock.advance(hours=1)
        order = self.ledger.request_payment(self.staff, order.id, 950, "X")
        self.assertEqual(order.status, OrderStatus.PAYMENT_REQUESTED)
        self.assertEqual(order.final_payable_amount, 950)
        self.assertEqual(order.invoice_url, "X")

        order = self.ledger.submit_proof(self.customer, order.id, "receipt.jpg")
        self.assertEqual(order.status, OrderStatus.PAYMENT_SUBMITTED)

        order = self.ledger.dispatch(self.staff, order.id, "ABC-1", " Blue Dart ")
        self.assertEqual(order.status, OrderStatus.DISPATCHED)
        self.assertEqual(order.docket_number, "ABC-1")
        self.assertEqual(order.transport_details, "Blue Dart")
        self.assertEqual(order.total_inquiry_value, 1000)
        self.assertEqual(
            [e.status for e in order.events],
            [
                OrderStatus.PENDING,
                OrderStatus.PAYMENT_REQUESTED,
                OrderStatus.PAYMENT_SUBMITTED,
                OrderStatus.DISPATCHED,
            ],
        )
        self.assertEqual(order.events[1].at, NOW + timedelta(hours=1))
        self.assertEqual([o.status for o in self.seen][-1], OrderStatus.DISPATCHED)
        self.assertTrue(order.is_terminal)

    def test_start_processing_then_request_payment(self):
        order = self.place()
        order = self.ledger.start_processing(self.staff, order.id)
        self.assertEqual(order.status, OrderStatus.PROCESSING)
        with self.assertRaises(InvalidTransition):
            self.ledger.start_processing(self.staff, order.id)
        order = self.ledger.request_payment(self.admin, order.id, "1100", "inv.pdf")
        self.assertEqual(order.final_payable_amount, 1100.0)

    def test_dispatch_straight_from_payment_requested(self):
        order = self.ledger.dispatch(self.staff, "ORD-1002", "DOC-1")
        self.assertEqual(order.status, OrderStatus.DISPATCHED)
        self.assertIsNone(order.transport_details)

    def test_rejected_calls_leave_order_unchanged(self):
        order = self.place()
        attempts = [
            lambda: self.ledger.request_payment(self.customer, order.id, 10, "X"),
            lambda: self.ledger.request_payment(self.staff, order.id, None, "X"),
            lambda: self.ledger.request_payment(self.staff, order.id, -1, "X"),
            lambda: self.ledger.request_payment(self.staff, order.id, "lots", "X"),
            lambda: self.ledger.request_payment(self.staff, order.id, 10, "  "),
            lambda: self.ledger.submit_proof(self.customer, order.id, "r.jpg"),
            lambda: self.ledger.dispatch(self.staff, order.id, "D-1"),
            lambda: self.ledger.cancel(self.other, order.id),
        ]
        for attempt in attempts:
            with self.assertRaises((ValidationError, Unauthorized, InvalidTransition)):
                attempt()
            self.assertEqual(self.ledger.get(order.id), order)
        self.assertEqual(self.seen, [order])

    def order_in(self, status):
        """A customer-owned order brought to `status`."""
        if status == OrderStatus.PAYMENT_REQUESTED:
            return self.ledger.get("ORD-1002")
        if status == OrderStatus.DISPATCHED:
            return self.ledger.get("ORD-1001")
        order = self.place()
        if status == OrderStatus.PROCESSING:
            order = self.ledger.start_processing(self.staff, order.id)
        elif status == OrderStatus.PAYMENT_SUBMITTED:
            self.ledger.request_payment(self.staff, order.id, 900, "inv.pdf")
            order = self.ledger.submit_proof(self.customer, order.id, "r.jpg")
        elif status == OrderStatus.CANCELLED:
            order = self.ledger.cancel(self.staff, order.id)
        return order

    def test_every_disallowed_transition_leaves_order_unchanged(self):
        staff_allowed = {
            OrderStatus.PENDING: {"start_processing", "request_payment", "cancel"},
            OrderStatus.PROCESSING: {"request_payment", "cancel"},
            OrderStatus.PAYMENT_REQUESTED: {"dispatch", "cancel"},
            OrderStatus.PAYMENT_SUBMITTED: {"dispatch", "cancel"},
        }
        owner_allowed = {
            OrderStatus.PENDING: {"cancel"},
            OrderStatus.PAYMENT_REQUESTED: {"submit_proof"},
        }
        calls = {
            "start_processing": lambda actor, oid: self.ledger.start_processing(actor, oid),
            "request_payment": lambda actor, oid: self.ledger.request_payment(
                actor, oid, 500, "inv.pdf"
            ),
            "submit_proof": lambda actor, oid: self.ledger.submit_proof(actor, oid, "r.jpg"),
            "dispatch": lambda actor, oid: self.ledger.dispatch(actor, oid, "D-1"),
            "cancel": lambda actor, oid: self.ledger.cancel(actor, oid, "no"),
        }

        checked = 0
        for status in OrderStatus:
            for actor, allowed in (
                (self.staff, staff_allowed),
                (self.admin, staff_allowed),
                (self.customer, owner_allowed),
                (self.other, {}),
            ):
                for op, call in calls.items():
                    if op in allowed.get(status, set()):
                        continue
                    order = self.order_in(status)
                    self.assertEqual(order.status, status)
                    with self.subTest(status=status, actor=actor.username, op=op):
                        with self.assertRaises((Unauthorized, InvalidTransition)):
                            call(actor, order.id)
                        self.assertEqual(self.ledger.get(order.id), order)
                    checked += 1
        self.assertGreater(checked, 60)

    def test_missing_fields(self):
        order = self.place()
        with self.assertRaises(MissingRequiredField):
            self.ledger.request_payment(self.staff, order.id, None, "X")
        order = self.ledger.request_payment(self.staff, order.id, 100, "X")
        with self.assertRaises(MissingRequiredField):
            self.ledger.submit_proof(self.customer, order.id, "")
        with self.assertRaises(MissingRequiredField):
            self.ledger.dispatch(self.staff, order.id, None)

    def test_guard_precedence(self):
        # role before status: a customer touching a dispatched order is unauthorized
        with self.assertRaises(Unauthorized):
            self.ledger.dispatch(self.customer, "ORD-1001", "D")
        # ownership before status
        with self.assertRaises(Unauthorized):
            self.ledger.submit_proof(self.other, "ORD-1001", "r.jpg")
        with self.assertRaises(InvalidTransition):
            self.ledger.submit_proof(self.customer, "ORD-1001", "r.jpg")
        with self.assertRaises(NotFoundError):
            self.ledger.dispatch(self.staff, "ORD-9999", "D")

    def test_proof_only_by_owner(self):
        with self.assertRaises(Unauthorized):
            self.ledger.submit_proof(self.other, "ORD-1002", "r.jpg")
        with self.assertRaises(Unauthorized):
            self.ledger.submit_proof(self.staff, "ORD-1002", "r.jpg")
        order = self.ledger.submit_proof(self.customer, "ORD-1002", "r.jpg")
        self.assertEqual(order.payment_proof_url, "r.jpg")

    # ---------- Cancellation ----------

    def test_customer_cancels_own_pending_order(self):
        order = self.place()
        cancelled = self.ledger.cancel(self.customer, order.id, "  ordered twice ")
        self.assertEqual(cancelled.status, OrderStatus.CANCELLED)
        self.assertEqual(cancelled.cancel_reason, "ordered twice")
        with self.assertRaises(InvalidTransition):
            self.ledger.cancel(self.customer, order.id)

    def test_customer_cannot_cancel_after_pending(self):
        with self.assertRaises(InvalidTransition):
            self.ledger.cancel(self.customer, "ORD-1002")

    def test_staff_cancel_any_open_order(self):
        order = self.ledger.cancel(self.staff, "ORD-1002")
        self.assertEqual(order.status, OrderStatus.CANCELLED)
        self.assertIsNone(order.cancel_reason)
        with self.assertRaises(InvalidTransition):
            self.ledger.cancel(self.staff, "ORD-1001")

    # ---------- Allowed operations ----------

    def test_allowed_operations(self):
        order = self.place()
        self.assertEqual(
            self.ledger.allowed_operations(self.staff, order.id),
            ["start_processing", "request_payment", "cancel"],
        )
        self.assertEqual(self.ledger.allowed_operations(self.customer, order.id), ["cancel"])
        self.assertEqual(self.ledger.allowed_operations(self.other, order.id), [])
        self.assertEqual(
            self.ledger.allowed_operations(self.customer, "ORD-1002"), ["submit_proof"]
        )
        self.assertEqual(
            self.ledger.allowed_operations(self.staff, "ORD-1002"), ["dispatch", "cancel"]
        )
        self.assertEqual(self.ledger.allowed_operations(self.admin, "ORD-1001"), [])


if __name__ == "__main__":
    unittest.main()
