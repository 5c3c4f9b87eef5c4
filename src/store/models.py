# provide dataclass models for the in-memory portal stores

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import StrEnum

from store.errors import ValidationError

MARKETING_INPUTS = "Marketing Inputs"
ALL_DIVISIONS = "All"


class Role(StrEnum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    CUSTOMER = "CUSTOMER"


class StockStatus(StrEnum):
    AVAILABLE = "Available"
    LOW_STOCK = "Low Stock"
    COMING_SOON = "Coming Soon"
    OUT_OF_STOCK = "Out of Stock"


class OrderStatus(StrEnum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    PAYMENT_REQUESTED = "Payment Requested"
    PAYMENT_SUBMITTED = "Payment Submitted"
    DISPATCHED = "Dispatched"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DISPATCHED, OrderStatus.CANCELLED)


def normalize_tags(tags) -> tuple[str, ...]:
    """Strip blanks and drop case-insensitive duplicates, keeping first spelling."""
    seen: set[str] = set()
    result: list[str] = []
    for tag in tags or ():
        tag = str(tag).strip()
        if not tag or tag.lower() in seen:
            continue
        seen.add(tag.lower())
        result.append(tag)
    return tuple(result)


@dataclass(frozen=True)
class Product:
    id: str
    brand_name: str
    packing: str = ""
    mrp: float = 0.0  # 0 means complimentary
    division: str = "General"
    composition: str | None = None
    stock_status: StockStatus = StockStatus.AVAILABLE
    image_url: str = ""
    visual_aid_url: str | None = None
    video_url: str | None = None
    landing_cost: float | None = None  # internal, staff/admin only
    launch_date: date | None = None
    is_trending: bool = False
    tags: tuple[str, ...] = ()
    is_promotional: bool = False

    def __post_init__(self):
        if self.mrp < 0:
            raise ValidationError("mrp", self.mrp, "must not be negative")
        # frozen, so normalisation goes through object.__setattr__
        object.__setattr__(self, "stock_status", StockStatus(self.stock_status))
        object.__setattr__(self, "tags", normalize_tags(self.tags))
        if self.is_promotional:
            object.__setattr__(self, "division", MARKETING_INPUTS)
            object.__setattr__(self, "composition", None)

    @property
    def is_complimentary(self) -> bool:
        return self.mrp == 0

    @property
    def is_orderable(self) -> bool:
        return self.stock_status != StockStatus.OUT_OF_STOCK

    def is_new_launch(self, today: date, window_days: int = 60) -> bool:
        if self.launch_date is None:
            return False
        return abs((today - self.launch_date).days) <= window_days


@dataclass(frozen=True)
class OrderLine:
    product: Product  # snapshot taken when the order was placed
    quantity: int

    @property
    def line_value(self) -> float:
        return self.product.mrp * self.quantity


@dataclass(frozen=True)
class OrderEvent:
    status: OrderStatus
    at: datetime
    actor_id: str
    note: str | None = None


@dataclass(frozen=True)
class Order:
    id: str
    user_id: str
    user_name: str
    created_at: datetime
    lines: tuple[OrderLine, ...]
    status: OrderStatus
    total_inquiry_value: float
    final_payable_amount: float | None = None
    invoice_url: str | None = None
    payment_proof_url: str | None = None
    docket_number: str | None = None
    transport_details: str | None = None
    cancel_reason: str | None = None
    events: tuple[OrderEvent, ...] = field(default=())

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


@dataclass(frozen=True)
class User:
    id: str
    username: str
    password: str
    role: Role
    name: str
    is_blocked: bool = False


@dataclass(frozen=True)
class OrderHistoryItem:
    order_date: datetime
    product_id: str
    quantity: int


@dataclass(frozen=True)
class CompanySettings:
    name: str
    address: str
    phone: str
    whatsapp_number: str
    logo_url: str = ""
    facebook_url: str | None = None
    instagram_url: str | None = None


@dataclass(frozen=True)
class Banner:
    id: str
    headline: str
    subheadline: str
    image_url: str = ""
    button_text: str | None = None
    link_division: str | None = None  # catalog division the banner opens


@dataclass(frozen=True)
class RestockDue:
    """Time left before a product is due for reorder; negative when overdue."""

    product_id: str
    mean_gap: timedelta
    remaining: timedelta
