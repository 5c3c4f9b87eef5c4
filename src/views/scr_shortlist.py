from typing import List

from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, MarkdownViewer

from store.errors import PortalError
from store.models import Product
from utils.messages import CartChangedMessage, ModeSwitchedMessage
from utils.pure import format_mrp, generate_markdown_table
from views.base_screen import BaseScreen


def comparison_markdown(products: List[Product]) -> str:
    """Side-by-side table, one column per product."""
    if not products:
        return "### Compare\n\nAdd up to four products from the library to compare them."
    headers = ["", *(p.brand_name for p in products)]
    rows = [
        ["Composition", *(p.composition or "-" for p in products)],
        ["Division", *(p.division for p in products)],
        ["Packing", *(p.packing or "-" for p in products)],
        ["MRP", *(format_mrp(p.mrp) for p in products)],
        ["Stock", *(p.stock_status for p in products)],
    ]
    aligns = ["l"] + ["c"] * len(products)
    return "### Compare\n\n" + generate_markdown_table(headers, rows, aligns)


class ShortlistScreen(BaseScreen):
    """
    Wishlist table with quick add-to-cart, and the comparison table.
    """

    def __init__(self) -> None:
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Label("Wishlist", id="label-wishlist")
            yield DataTable(id="table-wishlist")
            with Horizontal(id="hort-wishlist-actions"):
                yield Button("Remove", id="btn-wish-remove")
                yield Button("Add to Cart", id="btn-wish-cart", variant="primary")
                yield Button("Compare", id="btn-wish-compare")
            yield MarkdownViewer(id="md-compare", show_table_of_contents=False)
            with Horizontal(id="hort-compare-actions"):
                yield Button("Clear Compare", id="btn-compare-clear", variant="warning")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Brand", "Composition", "MRP", "Stock")
        self.handle_reload()

    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    def handle_reload(self) -> None:
        state = self.app.state
        table = self.query_one(DataTable)
        table.clear()
        for p in state.wishlist.products(state.catalog):
            table.add_row(p.id, p.brand_name, p.composition or "-", format_mrp(p.mrp), p.stock_status)
        self.query_one("#md-compare", MarkdownViewer).document.update(
            comparison_markdown(state.compare.products(state.catalog))
        )

    def _selected_id(self) -> str | None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        return table.get_row_at(table.cursor_row)[0]

    @on(Button.Pressed, "#btn-wish-remove")
    def handle_remove(self) -> None:
        product_id = self._selected_id()
        if product_id:
            self.app.state.wishlist.remove(product_id)
            self.handle_reload()

    @on(Button.Pressed, "#btn-wish-cart")
    def handle_add_to_cart(self) -> None:
        product_id = self._selected_id()
        if not product_id:
            return
        try:
            self.app.state.add_to_cart(product_id)
        except PortalError as e:
            self.notify(str(e), severity="error")
            return
        self.notify("Item added to cart successfully.")
        self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-wish-compare")
    def handle_compare(self) -> None:
        product_id = self._selected_id()
        if not product_id:
            return
        try:
            self.app.state.compare.toggle(product_id)
        except PortalError as e:
            self.notify(str(e), severity="warning")
            return
        self.handle_reload()

    @on(Button.Pressed, "#btn-compare-clear")
    def handle_compare_clear(self) -> None:
        self.app.state.compare.clear()
        self.handle_reload()
