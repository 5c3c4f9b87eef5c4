from textual import events, on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Markdown, Select

from store.errors import PortalError
from store.models import ALL_DIVISIONS
from store.users import Permission
from utils.messages import CatalogChangedMessage, ModeSwitchedMessage
from utils.pure import format_money, format_mrp
from utils.state import CatalogPreset
from views.base_screen import BaseScreen
from views.modal_dialog import PromptModal
from views.modal_product import ProductDetailModal


class CatalogScreen(BaseScreen):
    """
    Product library: free-text search, division filter, AI search help
    and visual search from a product photo.
    """

    # footer hints only
    BINDINGS = [
        Binding("fn+shift+1", "noop", "View Product", show=True, key_display="⏎"),
    ]

    def __init__(self):
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            with Horizontal(id="hort-search"):
                yield Input(
                    id="input-search",
                    placeholder="Search brand, composition or symptom...",
                )
                yield Select(
                    [(d, d) for d in self.app.state.catalog.divisions],
                    value=ALL_DIVISIONS,
                    allow_blank=False,
                    id="select-division",
                )
            with Horizontal(id="hort-ai"):
                yield Button("Ask AI", id="btn-ask-ai")
                yield Button("Visual Search", id="btn-visual")
                yield Button("Clear", id="btn-clear")
            yield Markdown("", id="md-ai-answer")
            yield DataTable(id="table-search-result")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True

        self.query_one("#md-ai-answer").display = False
        self.handle_catalog_changed()
        self.query_one("#input-search").focus()

    @on(CatalogChangedMessage)
    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    def handle_catalog_changed(self) -> None:
        state = self.app.state
        select = self.query_one("#select-division", Select)
        current = select.value
        select.set_options([(d, d) for d in state.catalog.divisions])

        # banner links and "show substitutes" leave a preset behind
        preset = state.catalog_preset
        if preset != CatalogPreset():
            state.catalog_preset = CatalogPreset()
            self.query_one("#input-search", Input).value = preset.query
            select.value = preset.division
        elif current in state.catalog.divisions:
            select.value = current
        self.update_search_result()

    @on(Input.Changed, "#input-search")
    @on(Select.Changed, "#select-division")
    def handle_filter_changed(self) -> None:
        self.update_search_result()

    def update_search_result(self) -> None:
        state = self.app.state
        query = self.query_one("#input-search", Input).value
        division = self.query_one("#select-division", Select).value
        if division is Select.BLANK:
            division = ALL_DIVISIONS

        show_landing = state.can(Permission.VIEW_INTERNAL_PRICING)
        # landing cost column depends on who is logged in
        columns = ["ID", "Brand", "Composition", "Division", "Packing", "MRP", "Stock"]
        if show_landing:
            columns.append("Landing")
        columns.append("")
        table = self.query_one(DataTable)
        table.clear(columns=True)
        table.add_columns(*columns)
        for p in state.catalog.list(query, division):
            row = [
                p.id,
                p.brand_name,
                p.composition or "-",
                p.division,
                p.packing,
                format_mrp(p.mrp),
                p.stock_status,
            ]
            if show_landing:
                row.append(format_money(p.landing_cost))
            marks = ""
            if p.id in state.wishlist:
                marks += "♥"
            if p.id in state.compare:
                marks += "⚖"
            if p.id in state.presentation:
                marks += "▶"
            row.append(marks)
            table.add_row(*row, key=p.id)

    async def on_key(self, event: events.Key) -> None:
        table = self.query_one(DataTable)
        if event.key == "enter" and self.focused == table and table.row_count:
            self.open_product(table.get_row_at(table.cursor_row)[0])

    @work()
    async def open_product(self, product_id: str) -> None:
        result = await self.app.push_screen_wait(ProductDetailModal(product_id))
        if result == "substitutes":
            self.handle_catalog_changed()
        else:
            self.update_search_result()

    @on(Button.Pressed, "#btn-clear")
    def handle_clear(self) -> None:
        self.query_one("#input-search", Input).value = ""
        self.query_one("#select-division", Select).value = ALL_DIVISIONS
        self.query_one("#md-ai-answer").display = False

    @on(Button.Pressed, "#btn-ask-ai")
    @work(exclusive=True, group="ai")
    async def handle_ask_ai(self) -> None:
        query = self.query_one("#input-search", Input).value.strip()
        if not query:
            self.notify("Type a question or symptom first.", severity="warning")
            return

        answer = self.query_one("#md-ai-answer", Markdown)
        answer.display = True
        await answer.update("_Thinking..._")
        await answer.update(await self.app.state.search_help(query))

    @on(Button.Pressed, "#btn-visual")
    @work(exclusive=True, group="ai")
    async def handle_visual_search(self) -> None:
        path = await self.app.push_screen_wait(
            PromptModal(
                "Path to a photo of the product package",
                placeholder="~/Pictures/strip.jpg",
                primary_text="Identify",
            )
        )
        if not path:
            return

        self.notify("Identifying product...")
        try:
            found = await self.app.state.identify_image(path)
        except PortalError as e:
            self.notify(str(e), severity="error")
            return

        if not found:
            self.notify("Could not identify the product.", severity="warning")
            return
        self.query_one("#input-search", Input).value = found
        self.notify(f"Identified: {found}")
