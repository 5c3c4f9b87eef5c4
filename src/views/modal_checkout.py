from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, MarkdownViewer

from store.errors import PortalError
from utils.messages import OrdersChangedMessage
from utils.pure import format_money, format_mrp, generate_markdown_table
from views.modal_dialog import DialogModal


class CheckoutModal(ModalScreen[Optional[str]]):
    """
    Order summary and confirmation.
    Returns the new order id, or None when nothing was placed.
    """

    def __init__(self):
        super().__init__()

    def compose(self) -> ComposeResult:
        with Vertical():
            yield MarkdownViewer("", show_table_of_contents=False)
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        state = self.app.state
        lines = state.cart.lines(state.catalog)
        headers = ["Product", "Packing", "MRP", "Quantity", "Value"]
        rows = [
            [p.brand_name, p.packing, format_mrp(p.mrp), qty, format_money(p.mrp * qty)]
            for p, qty in lines
        ]
        md = "### Order Summary\n\n" + generate_markdown_table(
            headers, rows, ["l", "l", "r", "c", "r"]
        )
        md += (
            f"\n\n**Total Items:** {state.cart.total_items}  \n"
            f"**Inquiry Value:** {format_money(state.cart.total_value(state.catalog))}\n\n"
            "_Final payable amount is confirmed by our team after review._"
        )
        await self.query_one(MarkdownViewer).document.update(md)
        self.query_one("#btn-submit").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Place order inquiry? This cannot be undone.",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        try:
            order = self.app.state.checkout()
        except PortalError as e:
            self.notify(str(e), severity="error")
            return

        self.notify(f"Order placed. Your order number is {order.id}.")
        self.app.post_message(OrdersChangedMessage(order.id))
        self.dismiss(order.id)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)
