from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, MarkdownViewer

from store.errors import PortalError
from store.models import Product, Role
from utils.messages import (
    CartChangedMessage,
    CatalogChangedMessage,
    ModeSwitchedMessage,
    OrdersChangedMessage,
)
from utils.pure import format_duration, format_mrp, generate_markdown_table
from utils.state import CatalogPreset, Page
from views.base_screen import BaseScreen


def _product_rows(products: List[Product]) -> List[List[str]]:
    return [
        [p.brand_name, p.composition or "-", p.division, format_mrp(p.mrp), p.stock_status]
        for p in products
    ]


class DashboardScreen(BaseScreen):
    """
    Landing page: banners, news ticker, restock reminders (customers),
    new launches and trending products.
    """

    def __init__(self) -> None:
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-dashboard", show_table_of_contents=False)
            with Horizontal(id="hort-banner-links"):
                yield Button("Restock All", id="btn-restock", variant="success")

    def on_mount(self) -> None:
        self.handle_reload()

    @on(OrdersChangedMessage)
    @on(CatalogChangedMessage)
    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        state = self.app.state
        today = state.clock().date()
        sections = []

        for banner in state.content.banners:
            sections.append(f"## {banner.headline}\n\n{banner.subheadline}")

        if state.content.news:
            sections.append(
                "### Latest Updates\n\n"
                + "\n".join(f"- {item}" for item in state.content.news)
            )

        restock_btn = self.query_one("#btn-restock", Button)
        restock_btn.display = False
        if state.role == Role.CUSTOMER:
            due = {d.product_id: d for d in state.restock.due_in(state.user.id)}
            suggested = state.restock_suggestions()
            if suggested:
                rows = [
                    [p.brand_name, p.packing, format_duration(due[p.id].remaining)]
                    for p in suggested
                ]
                sections.append(
                    "### Time to Restock?\n\n"
                    "Based on your usual order cycle:\n\n"
                    + generate_markdown_table(
                        ["Product", "Packing", "Due"], rows, ["l", "l", "r"]
                    )
                )
                restock_btn.display = True

        headers = ["Brand", "Composition", "Division", "MRP", "Stock"]
        aligns = ["l", "l", "l", "r", "c"]
        launches = state.catalog.new_launches(today, state.config.new_launch_days)
        if launches:
            sections.append(
                "### New Launches\n\n"
                + generate_markdown_table(headers, _product_rows(launches), aligns)
            )
        trending = state.catalog.trending()
        if trending:
            sections.append(
                "### Trending Products\n\n"
                + generate_markdown_table(headers, _product_rows(trending), aligns)
            )

        await self.query_one("#md-dashboard", MarkdownViewer).document.update(
            "\n\n".join(sections)
        )
        await self._mount_banner_links()

    async def _mount_banner_links(self) -> None:
        container = self.query_one("#hort-banner-links")
        await container.remove_children(".btn-banner")
        buttons = [
            Button(banner.button_text, id=f"btn-banner-{banner.id}", classes="btn-banner")
            for banner in self.app.state.content.banners
            if banner.button_text and banner.link_division
        ]
        if buttons:
            await container.mount_all(buttons)

    @on(Button.Pressed, ".btn-banner")
    async def handle_banner_link(self, event: Button.Pressed) -> None:
        banner_id = event.button.id.removeprefix("btn-banner-")
        for banner in self.app.state.content.banners:
            if banner.id == banner_id:
                self.app.state.catalog_preset = CatalogPreset(division=banner.link_division)
                self.post_message(ModeSwitchedMessage(self.app.current_mode, Page.CATALOG))
                await self.app.switch_mode(Page.CATALOG)
                return

    @on(Button.Pressed, "#btn-restock")
    def handle_restock_all(self) -> None:
        state = self.app.state
        added = 0
        for product in state.restock_suggestions():
            try:
                state.add_to_cart(product.id)
            except PortalError as e:
                self.notify(str(e), severity="warning")
                continue
            added += 1
        if added:
            self.notify(f"Added {added} product(s) to cart.")
            self.post_message(CartChangedMessage())
