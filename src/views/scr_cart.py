from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Label, Rule

from store.errors import PortalError
from store.models import Product
from utils.messages import CartChangedMessage, ModeSwitchedMessage
from utils.pure import format_money, format_mrp
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import DialogModal


class CartItemActionMessage(Message):
    bubble = True

    def __init__(self, product_id: str, action: str) -> None:
        super().__init__()
        self.product_id = product_id
        self.action = action


class CartItemActionLabel(Label):
    def __init__(self, product_id: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.product_id = product_id

    def action_more(self):
        self.post_message(CartItemActionMessage(self.product_id, "more"))

    def action_less(self):
        self.post_message(CartItemActionMessage(self.product_id, "less"))

    def action_remove(self):
        self.post_message(CartItemActionMessage(self.product_id, "remove"))


class CartItemWidget(HorizontalGroup):
    def __init__(self, product: Product, qty: int):
        super().__init__()
        self.product = product
        self.qty = qty

    def compose(self):
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(
                    f"{self.product.brand_name} ({self.product.packing})",
                    id="label-item-name",
                )
                yield Label(f"x {self.qty}", id="label-item-qty")
                yield Label(format_mrp(self.product.mrp), id="label-item-price")
            with Container(id="div-actions"):
                for action, text in (("less", "-1"), ("more", "+1"), ("remove", "Remove")):
                    yield CartItemActionLabel(
                        self.product.id,
                        content=f"[@click={action}()]{text}[/]",
                        id=f"link-item-{action}",
                    )


class CartScreen(BaseScreen):
    """
    Review the cart, adjust quantities and place the order inquiry.
    """

    def __init__(self) -> None:
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("Total Inquiry Value: -", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    async def on_mount(self):
        self.handle_cart_change()

    @on(CartChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @work(exclusive=True)  # exclusive, else two reloads may mount duplicates
    async def handle_cart_change(self):
        state = self.app.state
        lines = state.cart.lines(state.catalog)

        content = self.query_one("#vertscroll-content")
        await content.remove_children()
        await content.mount_all([CartItemWidget(p, qty) for p, qty in lines])

        if not lines:
            content.add_class("no-items")
        else:
            content.remove_class("no-items")

        self.query_one("#label-cart-total", Label).update(
            f"Total Items: {state.cart.total_items}    "
            f"Total Inquiry Value: {format_money(state.cart.total_value(state.catalog))}"
        )

    @on(CartItemActionMessage)
    @work()
    async def handle_item_action(self, message: CartItemActionMessage):
        cart = self.app.state.cart
        try:
            if message.action == "more":
                cart.change_quantity(message.product_id, 1)
            elif message.action == "less":
                cart.change_quantity(message.product_id, -1)
            else:
                if not await self.app.push_screen_wait(
                    DialogModal(
                        "Do you really want to remove this item from cart?",
                        primary_text="Yes",
                        secondary_text="No",
                        tone="warning",
                    )
                ):
                    return
                cart.remove(message.product_id)
                self.notify("Item removed from cart.")
        except PortalError as e:
            self.notify(str(e), severity="error")
            return
        self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        if self.app.state.cart.is_empty:
            self.app.notify("Cart is empty.", severity="warning")
            return

        if await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove all items from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        ):
            self.app.state.cart.clear()
            self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        if self.app.state.cart.is_empty:
            self.app.notify("Cart is empty.", severity="warning")
            return

        await self.app.push_screen_wait(CheckoutModal())
        self.post_message(CartChangedMessage())
