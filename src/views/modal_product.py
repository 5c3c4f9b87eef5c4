from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer

from services.ai import CAPTION_UNAVAILABLE
from store.errors import PortalError
from store.models import Product
from store.users import Permission
from utils.messages import CartChangedMessage
from utils.pure import format_money, format_mrp, generate_markdown_table


class ProductDetailModal(ModalScreen[str]):
    """
    Product detail, plus ordering, shortlists and sharing.

    Dismisses with:
      - "cart" when the cart changed
      - "substitutes" when the catalog should switch to substitutes
      - "" otherwise
    """

    order_qty = reactive(1)

    def __init__(self, product_id: str) -> None:
        super().__init__()

        self._product_id = product_id
        self._prod: Product = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical(id="div-prod-actions"):
                with Vertical(id="div-order"):
                    yield Label("Order Quantity")
                    with Horizontal():
                        yield Button("-", id="btn-sub-qty")
                        yield Input(
                            value="1",
                            id="input-order-qty",
                            type="integer",
                            validators=[Number(minimum=1)],
                        )
                        yield Button("+", id="btn-add-qty")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")
                    yield Button("Wishlist", id="btn-wishlist")
                    yield Button("Compare", id="btn-compare")
                yield Button("Show Substitutes", id="btn-substitutes", variant="warning")
                yield Button("Add to Presentation", id="btn-presentation")
                yield Button("Share", id="btn-share", variant="success")
                yield Button("Go Back", id="btn-quit")

    async def on_mount(self):
        state = self.app.state
        self._prod = state.catalog.get(self._product_id)
        await self.render_product()

        # ordering controls only make sense for customers
        if not state.can(Permission.PLACE_ORDER):
            self.query_one("#div-order").display = False
        elif not self._prod.is_orderable:
            order_btn = self.query_one("#btn-addcart", Button)
            order_btn.label = "Out of Stock"
            order_btn.disabled = True
            order_btn.variant = "warning"
        elif self._prod.id in state.cart:
            self.order_qty = state.cart.quantity(self._prod.id)
            self.query_one("#btn-addcart", Button).label = "Update Cart"

        self.query_one("#btn-substitutes").display = bool(
            self._prod.composition and state.catalog.substitutes(self._prod)
        )
        self._refresh_shortlist_labels()
        self.query_one("#btn-quit").focus()

    async def render_product(self) -> None:
        prod = self._prod
        rows = [
            ["ID", prod.id],
            ["Brand", prod.brand_name],
            ["Composition", prod.composition or "-"],
            ["Division", prod.division],
            ["Packing", prod.packing or "-"],
            ["MRP", format_mrp(prod.mrp)],
            ["Stock", prod.stock_status],
            ["Tags", ", ".join(prod.tags) or "-"],
        ]
        if self.app.state.can(Permission.VIEW_INTERNAL_PRICING):
            rows.append(["Landing Cost", format_money(prod.landing_cost)])
        if prod.launch_date:
            rows.append(["Launched", prod.launch_date.strftime("%d %b %Y")])
        for label, url in (
            ("Image", prod.image_url),
            ("Visual Aid", prod.visual_aid_url),
            ("Video", prod.video_url),
        ):
            if url:
                rows.append([label, url])

        md = f"### {prod.brand_name}\n\n" + generate_markdown_table(
            ["Attribute", "Value"], rows, ["l", "l"]
        )
        if not prod.is_orderable:
            subs = self.app.state.catalog.substitutes(prod)
            if subs:
                md += "\n\n#### Available Substitutes\n\n" + "\n".join(
                    f"- {s.brand_name} ({s.packing}) {format_mrp(s.mrp)}" for s in subs
                )
        await self.query_one(MarkdownViewer).document.update(md)

    def _refresh_shortlist_labels(self) -> None:
        state = self.app.state
        wishlisted = self._prod.id in state.wishlist
        compared = self._prod.id in state.compare
        self.query_one("#btn-wishlist", Button).label = (
            "Remove from Wishlist" if wishlisted else "Add to Wishlist"
        )
        self.query_one("#btn-compare", Button).label = (
            "Remove from Compare" if compared else "Add to Compare"
        )
        self.query_one("#btn-presentation", Button).label = (
            "Remove from Presentation"
            if self._prod.id in state.presentation
            else "Add to Presentation"
        )

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss("")

    async def on_input_changed(self, message: Input.Changed) -> None:
        if (
            message.input.id == "input-order-qty"
            and message.input.is_valid
            and self.focused == message.input
        ):
            self.order_qty = int(message.value)

    def watch_order_qty(self, qty: int):
        self.query_one("#btn-sub-qty").disabled = qty <= 1
        self.query_one("#input-order-qty", Input).value = str(qty)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.order_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        self.order_qty = max(1, self.order_qty - 1)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss("")

    @on(Button.Pressed, "#btn-addcart")
    def handle_addcart(self):
        state = self.app.state
        try:
            if self._prod.id in state.cart:
                state.cart.set_quantity(self._prod.id, self.order_qty)
                self.app.notify("Updated cart item quantity.")
            else:
                state.add_to_cart(self._prod.id, self.order_qty)
                self.app.notify("Item added to cart successfully.")
        except PortalError as e:
            self.notify(str(e), severity="error")
            return

        self.app.post_message(CartChangedMessage())
        self.dismiss("cart")

    @on(Button.Pressed, "#btn-wishlist")
    def handle_wishlist(self):
        added = self.app.state.wishlist.toggle(self._prod.id)
        self.notify("Added to wishlist." if added else "Removed from wishlist.")
        self._refresh_shortlist_labels()

    @on(Button.Pressed, "#btn-compare")
    def handle_compare(self):
        try:
            added = self.app.state.compare.toggle(self._prod.id)
        except PortalError as e:
            self.notify(str(e), severity="warning")
            return
        self.notify("Added to compare." if added else "Removed from compare.")
        self._refresh_shortlist_labels()

    @on(Button.Pressed, "#btn-presentation")
    def handle_presentation(self):
        added = self.app.state.presentation.toggle(self._prod.id)
        self.notify("Added to presentation." if added else "Removed from presentation.")
        self._refresh_shortlist_labels()

    @on(Button.Pressed, "#btn-substitutes")
    def handle_substitutes(self):
        self.app.state.show_substitutes(self._prod)
        self.dismiss("substitutes")

    @on(Button.Pressed, "#btn-share")
    @work(exclusive=True)
    async def handle_share(self):
        state = self.app.state
        caption = ""
        if state.ai.available:
            self.notify("Writing a caption...")
            caption = await state.caption(self._prod)
            if caption == CAPTION_UNAVAILABLE:
                caption = ""
        if await state.share_product(self._prod, caption):
            self.notify("Share link opened.")
        else:
            self.notify("Could not open the share link.", severity="warning")
