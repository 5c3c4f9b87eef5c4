# order ledger: order creation and the status state machine
from __future__ import annotations

import dataclasses
import re
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple

from store.errors import (
    InvalidTransition,
    MissingRequiredField,
    NotFoundError,
    Unauthorized,
    ValidationError,
)
from store.models import (
    Order,
    OrderEvent,
    OrderHistoryItem,
    OrderLine,
    OrderStatus,
    Product,
    User,
)
from store.users import Permission, RoleGate
from utils.logger import get_logger

_logger = get_logger(__name__)

OrderListener = Callable[[Order], None]

_ORDER_ID_RE = re.compile(r"^ORD-(\d+)$")

OPERATIONS = ("start_processing", "request_payment", "submit_proof", "dispatch", "cancel")

# operation -> (permission, statuses it may start from, owner only)
# customers cancelling their own order are handled in OrderLedger._rule
_RULES = {
    "start_processing": (Permission.PROCESS_ORDER, (OrderStatus.PENDING,), False),
    "request_payment": (
        Permission.PROCESS_ORDER,
        (OrderStatus.PENDING, OrderStatus.PROCESSING),
        False,
    ),
    "submit_proof": (
        Permission.SUBMIT_PAYMENT_PROOF,
        (OrderStatus.PAYMENT_REQUESTED,),
        True,
    ),
    "dispatch": (
        Permission.PROCESS_ORDER,
        (OrderStatus.PAYMENT_REQUESTED, OrderStatus.PAYMENT_SUBMITTED),
        False,
    ),
    "cancel": (
        Permission.PROCESS_ORDER,
        tuple(s for s in OrderStatus if not s.is_terminal),
        False,
    ),
}


def _required_text(field: str, value) -> str:
    if value is None or not str(value).strip():
        raise MissingRequiredField(field)
    return str(value).strip()


class OrderLedger:
    """
    Holds all orders of the session.

    Orders are created once by a customer and only change through the
    transition methods below. Each transition checks role, ownership, status
    and required fields (in that order) before swapping the record, so a
    rejected call never leaves a partially updated order behind.

    Allowed transitions:
      PENDING                                 -> PROCESSING        (staff)
      PENDING | PROCESSING                    -> PAYMENT_REQUESTED (staff)
      PAYMENT_REQUESTED                       -> PAYMENT_SUBMITTED (owning customer)
      PAYMENT_REQUESTED | PAYMENT_SUBMITTED   -> DISPATCHED        (staff)
      any non-terminal                        -> CANCELLED         (staff, or owner while PENDING)
    """

    def __init__(
        self,
        orders: Iterable[Order] = (),
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._orders: List[Order] = list(orders)
        self._clock = clock
        self._listeners: List[OrderListener] = []

        seeded = [
            int(m.group(1))
            for m in (_ORDER_ID_RE.match(o.id) for o in self._orders)
            if m
        ]
        self._next_no = max(seeded, default=1000) + 1

    # ---------------------------
    # Listeners
    # ---------------------------

    def subscribe(self, listener: OrderListener) -> None:
        """Call listener(order) after every accepted create/transition."""
        self._listeners.append(listener)

    def _emit(self, order: Order) -> None:
        for listener in self._listeners:
            listener(order)

    # ---------------------------
    # Read side
    # ---------------------------

    def find(self, order_id: str) -> Optional[Order]:
        for order in self._orders:
            if order.id == order_id:
                return order
        return None

    def get(self, order_id: str) -> Order:
        order = self.find(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def all(self) -> List[Order]:
        """All orders, newest first."""
        return sorted(self._orders, key=lambda o: o.created_at, reverse=True)

    def visible_to(self, actor: Optional[User]) -> List[Order]:
        """Customers see their own orders; staff and admins see everything."""
        if actor is None or actor.is_blocked:
            return []
        if RoleGate.allows(actor, Permission.VIEW_ALL_ORDERS):
            return self.all()
        return [o for o in self.all() if o.user_id == actor.id]

    def history_for(self, user_id: str) -> List[OrderHistoryItem]:
        """Per-line history of a customer's orders, cancelled ones excluded."""
        return [
            OrderHistoryItem(
                order_date=order.created_at,
                product_id=line.product.id,
                quantity=line.quantity,
            )
            for order in self._orders
            if order.user_id == user_id and order.status != OrderStatus.CANCELLED
            for line in order.lines
        ]

    # ---------------------------
    # Creation
    # ---------------------------

    def create(
        self, actor: Optional[User], lines: Iterable[Tuple[Product, int]]
    ) -> Order:
        """
        Place a new order in PENDING from (product, quantity) pairs.
        The products are kept as snapshots and the inquiry value is frozen here.
        """
        RoleGate.require(actor, Permission.PLACE_ORDER)

        order_lines: List[OrderLine] = []
        for product, qty in lines:
            if not isinstance(qty, int) or isinstance(qty, bool) or qty < 1:
                raise ValidationError("quantity", qty, "must be at least 1")
            order_lines.append(OrderLine(product=product, quantity=qty))
        if not order_lines:
            raise ValidationError("lines", [], "cart is empty")

        now = self._clock()
        order = Order(
            id=f"ORD-{self._next_no}",
            user_id=actor.id,
            user_name=actor.name,
            created_at=now,
            lines=tuple(order_lines),
            status=OrderStatus.PENDING,
            total_inquiry_value=sum(line.line_value for line in order_lines),
            events=(OrderEvent(OrderStatus.PENDING, now, actor.id, "Order placed"),),
        )
        self._next_no += 1
        self._orders.insert(0, order)
        _logger.info(
            f"Order {order.id} placed by {actor.id}: "
            f"{order.total_items} items, value {order.total_inquiry_value:.2f}"
        )
        self._emit(order)
        return order

    # ---------------------------
    # Transitions
    # ---------------------------

    def _rule(
        self, actor: Optional[User], operation: str
    ) -> Tuple[Permission, Tuple[OrderStatus, ...], bool]:
        """(permission, statuses it may start from, owner only) for operation."""
        if operation == "cancel" and not RoleGate.allows(actor, Permission.PROCESS_ORDER):
            return Permission.CANCEL_OWN_ORDER, (OrderStatus.PENDING,), True
        return _RULES[operation]

    def _guard(self, actor: Optional[User], order_id: str, operation: str) -> Order:
        permission, allowed_from, owner_only = self._rule(actor, operation)
        RoleGate.require(actor, permission)
        order = self.get(order_id)
        if owner_only and order.user_id != actor.id:
            raise Unauthorized(operation, actor.id, "order belongs to another customer")
        if order.status not in allowed_from:
            _logger.debug(f"Rejected {operation} on {order_id} in {order.status}")
            raise InvalidTransition(order_id, order.status, operation)
        return order

    def allowed_operations(self, actor: Optional[User], order_id: str) -> List[str]:
        """Operations the actor may run on the order right now, in workflow order."""
        allowed = []
        for operation in OPERATIONS:
            try:
                self._guard(actor, order_id, operation)
            except (Unauthorized, InvalidTransition):
                continue
            allowed.append(operation)
        return allowed

    def _commit(
        self,
        order: Order,
        actor: User,
        status: OrderStatus,
        note: Optional[str] = None,
        **fields,
    ) -> Order:
        event = OrderEvent(status=status, at=self._clock(), actor_id=actor.id, note=note)
        updated = dataclasses.replace(
            order, status=status, events=order.events + (event,), **fields
        )
        self._orders = [updated if o.id == order.id else o for o in self._orders]
        _logger.info(f"Order {order.id}: {order.status} -> {status} by {actor.id}")
        self._emit(updated)
        return updated

    def start_processing(self, actor: Optional[User], order_id: str) -> Order:
        order = self._guard(actor, order_id, "start_processing")
        return self._commit(order, actor, OrderStatus.PROCESSING)

    def request_payment(
        self,
        actor: Optional[User],
        order_id: str,
        final_amount: Optional[float],
        invoice_url: Optional[str],
    ) -> Order:
        order = self._guard(actor, order_id, "request_payment")
        if final_amount is None:
            raise MissingRequiredField("final_amount")
        try:
            amount = float(final_amount)
        except (TypeError, ValueError):
            raise ValidationError("final_amount", final_amount) from None
        if amount < 0:
            raise ValidationError("final_amount", final_amount, "must not be negative")
        invoice = _required_text("invoice_url", invoice_url)

        return self._commit(
            order,
            actor,
            OrderStatus.PAYMENT_REQUESTED,
            note=f"Payable {amount:.2f}",
            final_payable_amount=amount,
            invoice_url=invoice,
        )

    def submit_proof(
        self, actor: Optional[User], order_id: str, proof_url: Optional[str]
    ) -> Order:
        order = self._guard(actor, order_id, "submit_proof")
        proof = _required_text("proof_url", proof_url)
        return self._commit(
            order, actor, OrderStatus.PAYMENT_SUBMITTED, payment_proof_url=proof
        )

    def dispatch(
        self,
        actor: Optional[User],
        order_id: str,
        docket_number: Optional[str],
        transport_details: Optional[str] = None,
    ) -> Order:
        """
        Dispatch also accepts PAYMENT_REQUESTED: staff may confirm payment
        out of band before the customer uploads a proof.
        """
        order = self._guard(actor, order_id, "dispatch")
        docket = _required_text("docket_number", docket_number)
        transport = transport_details.strip() if transport_details else None
        return self._commit(
            order,
            actor,
            OrderStatus.DISPATCHED,
            note=f"Docket {docket}",
            docket_number=docket,
            transport_details=transport or None,
        )

    def cancel(
        self, actor: Optional[User], order_id: str, reason: Optional[str] = None
    ) -> Order:
        order = self._guard(actor, order_id, "cancel")
        reason = reason.strip() if reason else None
        return self._commit(
            order,
            actor,
            OrderStatus.CANCELLED,
            note=reason,
            cancel_reason=reason or None,
        )
