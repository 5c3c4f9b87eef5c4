# order/product messages handed to a messaging client through a wa.me link
from __future__ import annotations

import asyncio
import webbrowser
from typing import Callable, Optional
from urllib.parse import quote

from store.models import CompanySettings, Order, OrderStatus, Product
from utils.logger import get_logger
from utils.pure import format_money, format_mrp

_logger = get_logger(__name__)

SEPARATOR = "------------------"


def format_order(order: Order) -> str:
    """Text block for a freshly placed order."""
    parts = [
        "*NEW ORDER INQUIRY*",
        f"*Order ID:* {order.id}",
        f"*Customer:* {order.user_name}",
        SEPARATOR,
    ]
    for idx, line in enumerate(order.lines, start=1):
        parts.append(
            f"{idx}. {line.product.brand_name} ({line.product.packing}) x {line.quantity}"
        )
    parts.append("")
    parts.append(f"Total Items: {order.total_items}")
    parts.append(f"Inquiry Value: {format_money(order.total_inquiry_value)}")
    parts.append("Order placed via App. Please process immediately.")
    return "\n".join(parts)


def format_status_update(order: Order) -> str:
    """Short notice sent after a status change."""
    parts = [
        "*ORDER UPDATE*",
        f"*Order ID:* {order.id}",
        f"*Customer:* {order.user_name}",
        f"*Status:* {order.status}",
    ]
    if order.status == OrderStatus.PAYMENT_REQUESTED:
        parts.append(f"Payable Amount: {format_money(order.final_payable_amount)}")
        parts.append("Please upload the payment proof in My Orders.")
    elif order.status == OrderStatus.PAYMENT_SUBMITTED:
        parts.append("Payment proof received, awaiting dispatch.")
    elif order.status == OrderStatus.DISPATCHED:
        parts.append(f"Docket Number: {order.docket_number}")
        if order.transport_details:
            parts.append(f"Transport: {order.transport_details}")
    elif order.status == OrderStatus.CANCELLED and order.cancel_reason:
        parts.append(f"Reason: {order.cancel_reason}")
    return "\n".join(parts)


def format_product(product: Product) -> str:
    """Share text for one product."""
    parts = ["Check out this product:", f"*{product.brand_name}*"]
    if product.composition:
        parts.append(f"Composition: {product.composition}")
    parts.append(f"MRP: {format_mrp(product.mrp)}")
    parts.append(f"Packing: {product.packing}")
    return "\n".join(parts)


def build_link(text: str, phone: Optional[str] = None) -> str:
    """wa.me deep link; without a phone the messaging client asks for a contact."""
    return f"https://wa.me/{phone or ''}?text={quote(text)}"


def password_help_link(settings: CompanySettings) -> str:
    return build_link("Help recovering password", settings.whatsapp_number)


class NotificationEmitter:
    """
    Hands formatted text to the messaging client.
    Delivery is best effort: failures are logged and never raised.
    """

    def __init__(
        self,
        opener: Callable[[str], object] = webbrowser.open,
        timeout: float = 5.0,
        enabled: bool = True,
    ) -> None:
        self._opener = opener
        self._timeout = timeout
        self.enabled = enabled

    async def dispatch(self, text: str, phone: Optional[str] = None) -> bool:
        """Hand `text` off; False when disabled or the hand-off failed."""
        if not self.enabled:
            _logger.debug("Notifications disabled, dropping message")
            return False
        return await self.open_link(build_link(text, phone))

    async def open_link(self, url: str) -> bool:
        try:
            await asyncio.wait_for(asyncio.to_thread(self._opener, url), self._timeout)
        except TimeoutError:
            _logger.warning("Timed out handing message to the messaging client")
            return False
        except Exception as e:  # webbrowser may raise anything platform specific
            _logger.warning(f"Could not hand message to the messaging client: {e}")
            return False
        _logger.debug(f"Link handed off ({len(url)} chars)")
        return True
