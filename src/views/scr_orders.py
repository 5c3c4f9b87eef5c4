from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, MarkdownViewer

from store.errors import PortalError
from store.models import Order
from utils.messages import ModeSwitchedMessage, OrdersChangedMessage
from utils.pure import format_money, format_mrp, format_timestamp, generate_markdown_table, parse_amount
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal
from views.modal_order_action import OrderActionModal

# operation -> (button label, variant)
ACTION_BUTTONS = {
    "start_processing": ("Start Processing", "primary"),
    "request_payment": ("Request Payment", "primary"),
    "submit_proof": ("Upload Payment Proof", "success"),
    "dispatch": ("Dispatch", "success"),
    "cancel": ("Cancel Order", "error"),
}


class OrdersScreen(BaseScreen):
    """
    Customers track their own orders; staff and admins work the whole queue.

    Layout:
    - Markdown detail of the highlighted order at the top.
    - Orders table below, newest first.
    - Action buttons for whatever the ledger allows on the highlighted order.
    """

    BINDINGS = [
        Binding("r", "reload", "Refresh", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-order-actions"):
            for op, (label, variant) in ACTION_BUTTONS.items():
                yield Button(label, id=f"btn-{op}", variant=variant, classes="btn-action")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order ID", "Date", "Customer", "Items", "Inquiry", "Payable", "Status")
        self.action_reload()

    @on(OrdersChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    def action_reload(self) -> None:
        table = self.query_one(DataTable)
        selected = self._selected_order()
        table.clear()
        self._orders = self.app.state.visible_orders()
        for o in self._orders:
            table.add_row(
                o.id,
                format_timestamp(o.created_at),
                o.user_name,
                o.total_items,
                format_money(o.total_inquiry_value),
                format_money(o.final_payable_amount),
                o.status,
                key=o.id,
            )

        if selected:
            for idx, o in enumerate(self._orders):
                if o.id == selected.id:
                    table.move_cursor(row=idx)
                    break
        self._render_selected()

    def _selected_order(self) -> Optional[Order]:
        table = self.query_one(DataTable)
        if table.row_count == 0 or table.cursor_row is None:
            return None
        if table.cursor_row >= len(self._orders):
            return None
        return self._orders[table.cursor_row]

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self) -> None:
        self._render_selected()

    @work(exclusive=True, group="detail")
    async def _render_selected(self) -> None:
        order = self._selected_order()
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        for button in self.query(".btn-action"):
            button.display = False

        if order is None:
            await viewer.document.update("### No orders yet.")
            return

        for op in self.app.state.ledger.allowed_operations(self.app.state.user, order.id):
            self.query_one(f"#btn-{op}").display = True
        await viewer.document.update(self._order_markdown(order))

    @staticmethod
    def _order_markdown(order: Order) -> str:
        header = (
            f"### Order {order.id} ({order.status})\n\n"
            f"Customer: {order.user_name}  \n"
            f"Placed: {format_timestamp(order.created_at)}\n\n"
        )
        rows = [
            [
                line.product.brand_name,
                line.product.packing,
                format_mrp(line.product.mrp),
                line.quantity,
                format_money(line.line_value),
            ]
            for line in order.lines
        ]
        items = generate_markdown_table(
            ["Product", "Packing", "MRP", "Qty", "Value"], rows, ["l", "l", "r", "c", "r"]
        )

        facts = [
            f"**Inquiry Value:** {format_money(order.total_inquiry_value)}",
            f"**Payable Amount:** {format_money(order.final_payable_amount)}",
        ]
        if order.invoice_url:
            facts.append(f"**Invoice:** {order.invoice_url}")
        if order.payment_proof_url:
            facts.append(f"**Payment Proof:** {order.payment_proof_url}")
        if order.docket_number:
            facts.append(f"**Docket:** {order.docket_number}")
        if order.transport_details:
            facts.append(f"**Transport:** {order.transport_details}")
        if order.cancel_reason:
            facts.append(f"**Cancel Reason:** {order.cancel_reason}")

        timeline = "\n".join(
            f"- {format_timestamp(e.at)}: {e.status}" + (f" ({e.note})" if e.note else "")
            for e in order.events
        )
        return (
            header
            + items
            + "\n\n"
            + "  \n".join(facts)
            + "\n\n#### Timeline\n\n"
            + timeline
        )

    @on(Button.Pressed, ".btn-action")
    @work(exclusive=True, group="action")
    async def handle_action(self, event: Button.Pressed) -> None:
        order = self._selected_order()
        if order is None:
            return
        operation = event.button.id.removeprefix("btn-")
        state = self.app.state
        ledger = state.ledger

        if operation == "start_processing":
            if not await self.app.push_screen_wait(
                DialogModal(f"Start processing {order.id}?", "Yes", "No", "positive")
            ):
                return
            run = lambda: ledger.start_processing(state.user, order.id)
        else:
            prefill = {}
            if operation == "request_payment":
                prefill["final_amount"] = f"{order.total_inquiry_value:.2f}"
            values = await self.app.push_screen_wait(
                OrderActionModal(order.id, operation, prefill)
            )
            if values is None:
                return

            if operation == "request_payment":
                amount = parse_amount(values["final_amount"])
                if amount is None:
                    self.notify("Final amount must be a number.", severity="error")
                    return
                run = lambda: ledger.request_payment(
                    state.user, order.id, amount, values["invoice_url"]
                )
            elif operation == "submit_proof":
                run = lambda: ledger.submit_proof(state.user, order.id, values["proof_url"])
            elif operation == "dispatch":
                run = lambda: ledger.dispatch(
                    state.user,
                    order.id,
                    values["docket_number"],
                    values["transport_details"],
                )
            else:
                run = lambda: ledger.cancel(state.user, order.id, values["reason"])

        try:
            updated = run()
        except PortalError as e:
            self.notify(str(e), severity="error")
            return

        self.notify(f"Order {updated.id} is now {updated.status}.")
        self.post_message(OrdersChangedMessage(updated.id))
