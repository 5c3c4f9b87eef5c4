from textual import events, on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, MarkdownViewer

from utils.pure import format_mrp


class PresentationModal(ModalScreen[None]):
    """
    Presentation for a doctor visit.

    Opens on the running order of the selected products (with remove),
    then steps through them one slide at a time.
    """

    BINDINGS = [
        Binding("left", "previous", "Previous", show=True),
        Binding("right", "next", "Next", show=True),
        Binding("v", "toggle_view", "Pack / Visual Aid", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.slideshow = None
        self.presenting = False

    def compose(self) -> ComposeResult:
        with Vertical(id="div-presentation"):
            yield MarkdownViewer("", show_table_of_contents=False, id="md-slide")
            yield DataTable(id="table-slides")
            with Horizontal(id="hort-slide-select"):
                yield Button("Close", id="btn-quit")
                yield Button("Remove", id="btn-slide-remove-row", variant="error")
                yield Button("Start Presentation", id="btn-slide-start", variant="primary")
            with Horizontal(id="hort-slide-controls"):
                yield Button("<", id="btn-slide-prev")
                yield Button("Show Pack", id="btn-slide-view")
                yield Button("Open", id="btn-slide-open", variant="success")
                yield Button("Remove", id="btn-slide-remove", variant="error")
                yield Button("List", id="btn-slide-list")
                yield Button(">", id="btn-slide-next")

    async def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("#", "Product", "Composition", "Division")
        self.slideshow = self.app.state.start_presentation()
        await self.render_view()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    async def render_view(self) -> None:
        show = self.slideshow
        if not len(show):
            self.presenting = False

        self.query_one("#hort-slide-select").display = not self.presenting
        self.query_one("#hort-slide-controls").display = self.presenting
        self.query_one("#btn-slide-start").disabled = not len(show)
        self.query_one("#btn-slide-remove-row").disabled = not len(show)

        if self.presenting:
            md = self._slide_markdown()
            self.query_one("#btn-slide-view", Button).label = (
                "Show Pack" if show.show_visual_aid else "Show Visual Aid"
            )
            self.query_one("#btn-slide-open").disabled = not show.display_url
        else:
            md = self._selection_markdown()
            table = self.query_one(DataTable)
            table.clear()
            for idx, p in enumerate(show.products, start=1):
                table.add_row(idx, p.brand_name, p.composition or "-", p.division, key=p.id)
        self.query_one(DataTable).display = not self.presenting and bool(len(show))
        await self.query_one(MarkdownViewer).document.update(md)

    def _selection_markdown(self) -> str:
        if not len(self.slideshow):
            return (
                "## Prepare Presentation\n\n"
                "No products selected for presentation.  \n"
                "Open a product in the library and choose *Add to Presentation*."
            )
        return "## Prepare Presentation\n\nRunning order for the doctor visit:"

    def _slide_markdown(self) -> str:
        show = self.slideshow
        p = show.current
        url = show.display_url
        if show.show_visual_aid and not p.visual_aid_url:
            media = "_No Visual Aid Available_"
        elif url:
            media = f"{'Visual Aid' if show.show_visual_aid else 'Pack Shot'}: {url}"
        else:
            media = "_No image available_"
        progress = f"{show.index + 1} / {len(show)}"
        return (
            f"# {p.brand_name}\n\n"
            + (f"## {p.composition}\n\n" if p.composition else "")
            + f"**{p.division}** | {p.packing or '-'} | {format_mrp(p.mrp)}\n\n"
            f"{media}\n\n"
            + (f"Video: {p.video_url}\n\n" if p.video_url else "")
            + f"---\n\nSlide {progress}"
        )

    async def action_next(self) -> None:
        if self.presenting:
            self.slideshow.next()
            await self.render_view()

    async def action_previous(self) -> None:
        if self.presenting:
            self.slideshow.previous()
            await self.render_view()

    async def action_toggle_view(self) -> None:
        if self.presenting:
            self.slideshow.toggle_view()
            await self.render_view()

    @on(Button.Pressed, "#btn-slide-next")
    async def handle_next(self) -> None:
        await self.action_next()

    @on(Button.Pressed, "#btn-slide-prev")
    async def handle_prev(self) -> None:
        await self.action_previous()

    @on(Button.Pressed, "#btn-slide-view")
    async def handle_view(self) -> None:
        await self.action_toggle_view()

    @on(Button.Pressed, "#btn-slide-start")
    async def handle_start(self) -> None:
        self.slideshow.index = 0
        self.slideshow.show_visual_aid = True
        self.presenting = True
        await self.render_view()

    @on(Button.Pressed, "#btn-slide-list")
    async def handle_list(self) -> None:
        self.presenting = False
        await self.render_view()

    @on(Button.Pressed, "#btn-slide-remove")
    async def handle_remove(self) -> None:
        current = self.slideshow.current
        if current is not None:
            self.app.state.drop_from_presentation(self.slideshow, current.id)
            self.notify(f"{current.brand_name} removed from presentation.")
        await self.render_view()

    @on(Button.Pressed, "#btn-slide-remove-row")
    async def handle_remove_row(self) -> None:
        table = self.query_one(DataTable)
        products = self.slideshow.products
        if table.row_count and table.cursor_row < len(products):
            product = products[table.cursor_row]
            self.app.state.drop_from_presentation(self.slideshow, product.id)
            self.notify(f"{product.brand_name} removed from presentation.")
        await self.render_view()

    @on(Button.Pressed, "#btn-slide-open")
    @work(exclusive=True)
    async def handle_open(self) -> None:
        url = self.slideshow.display_url
        if url and not await self.app.state.emitter.open_link(url):
            self.notify("Could not open the link.", severity="warning")

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self) -> None:
        self.dismiss(None)
