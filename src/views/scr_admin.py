from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import (
    Button,
    DataTable,
    Input,
    Label,
    Markdown,
    Select,
    TabbedContent,
    TabPane,
    TextArea,
)

from store.errors import PortalError
from store.models import Role
from utils.messages import CatalogChangedMessage, ModeSwitchedMessage
from utils.pure import format_money, format_mrp
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal
from views.modal_product_form import ProductFormModal


class AdminScreen(BaseScreen):
    """
    Catalog, divisions, users, company content and the admin AI assistant.
    """

    def __init__(self) -> None:
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-admin"):
            with TabPane("Products", id="tab-products"):
                yield DataTable(id="table-products")
                with Horizontal(classes="hort-admin-actions"):
                    yield Button("Add Product", id="btn-prod-add", variant="primary")
                    yield Button("Edit", id="btn-prod-edit")
                    yield Button("Toggle Trending", id="btn-prod-trending")

            with TabPane("Divisions", id="tab-divisions"):
                yield Markdown("", id="md-divisions")
                with Horizontal(classes="hort-admin-actions"):
                    yield Input(placeholder="New division name", id="input-division")
                    yield Button("Add Division", id="btn-division-add", variant="primary")

            with TabPane("Users", id="tab-users"):
                yield DataTable(id="table-users")
                with Horizontal(classes="hort-admin-actions"):
                    yield Input(placeholder="username", id="input-user-username")
                    yield Input(placeholder="password", password=True, id="input-user-pwd")
                    yield Input(placeholder="display name", id="input-user-name")
                    yield Select(
                        [(r.value.title(), r.value) for r in Role],
                        value=Role.CUSTOMER.value,
                        allow_blank=False,
                        id="select-user-role",
                    )
                    yield Button("Add User", id="btn-user-add", variant="primary")
                    yield Button("Block / Unblock", id="btn-user-block", variant="warning")

            with TabPane("Content", id="tab-content"):
                with Vertical():
                    yield Label("Company Name")
                    yield Input(id="input-company-name")
                    yield Label("Address")
                    yield Input(id="input-company-address")
                    yield Label("Phone")
                    yield Input(id="input-company-phone")
                    yield Label("Orders Messaging Number")
                    yield Input(id="input-company-whatsapp")
                    yield Label("News Ticker (one item per line)")
                    yield TextArea(id="textarea-news")
                    with Horizontal(classes="hort-admin-actions"):
                        yield Button("Save Content", id="btn-content-save", variant="primary")

            with TabPane("AI Assistant", id="tab-ai"):
                with Vertical():
                    yield Input(
                        placeholder="e.g. Which products are out of stock? Draft a promo for Derma.",
                        id="input-ai-query",
                    )
                    yield Button("Ask", id="btn-ai-ask", variant="primary")
                    yield Markdown("", id="md-ai-answer")

    def on_mount(self) -> None:
        products = self.query_one("#table-products", DataTable)
        products.cursor_type = "row"
        products.zebra_stripes = True
        products.add_columns("ID", "Brand", "Division", "MRP", "Landing", "Stock", "Trending", "Tags")

        users = self.query_one("#table-users", DataTable)
        users.cursor_type = "row"
        users.zebra_stripes = True
        users.add_columns("ID", "Username", "Name", "Role", "Blocked")

        self.handle_reload()
        self._load_content()

    @on(CatalogChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    def handle_reload(self) -> None:
        state = self.app.state

        products = self.query_one("#table-products", DataTable)
        products.clear()
        for p in state.catalog.all():
            products.add_row(
                p.id,
                p.brand_name,
                p.division,
                format_mrp(p.mrp),
                format_money(p.landing_cost),
                p.stock_status,
                "yes" if p.is_trending else "",
                ", ".join(p.tags),
                key=p.id,
            )

        users = self.query_one("#table-users", DataTable)
        users.clear()
        for u in state.users.all():
            users.add_row(u.id, u.username, u.name, u.role, "yes" if u.is_blocked else "", key=u.id)

        self.query_one("#md-divisions", Markdown).update(
            "\n".join(f"- {d}" for d in state.catalog.divisions[1:])
        )

    def _load_content(self) -> None:
        settings = self.app.state.content.settings
        self.query_one("#input-company-name", Input).value = settings.name
        self.query_one("#input-company-address", Input).value = settings.address
        self.query_one("#input-company-phone", Input).value = settings.phone
        self.query_one("#input-company-whatsapp", Input).value = settings.whatsapp_number
        self.query_one("#textarea-news", TextArea).text = "\n".join(self.app.state.content.news)

    @staticmethod
    def _selected_key(table: DataTable) -> str | None:
        if table.row_count == 0:
            return None
        return table.get_row_at(table.cursor_row)[0]

    # ---------------------------
    # Products
    # ---------------------------

    @on(Button.Pressed, "#btn-prod-add")
    @work(exclusive=True, group="product")
    async def handle_product_add(self) -> None:
        state = self.app.state
        fields = await self.app.push_screen_wait(ProductFormModal(state.catalog.divisions))
        if fields is None:
            return
        if not fields["tags"] and state.ai.available:
            self.notify("Generating search tags...")
        try:
            product = await state.add_product(**fields)
        except PortalError as e:
            self.notify(str(e), severity="error")
            return
        self.notify(f"Product {product.brand_name} added.")
        self.post_message(CatalogChangedMessage())

    @on(Button.Pressed, "#btn-prod-edit")
    @work(exclusive=True, group="product")
    async def handle_product_edit(self) -> None:
        state = self.app.state
        product_id = self._selected_key(self.query_one("#table-products", DataTable))
        if not product_id:
            return
        fields = await self.app.push_screen_wait(
            ProductFormModal(state.catalog.divisions, state.catalog.get(product_id))
        )
        if fields is None:
            return
        try:
            product = await state.update_product(product_id, **fields)
        except PortalError as e:
            self.notify(str(e), severity="error")
            return
        self.notify(f"Product {product.brand_name} updated.")
        self.post_message(CatalogChangedMessage())

    @on(Button.Pressed, "#btn-prod-trending")
    def handle_product_trending(self) -> None:
        state = self.app.state
        product_id = self._selected_key(self.query_one("#table-products", DataTable))
        if not product_id:
            return
        try:
            product = state.catalog.get(product_id)
            state.catalog.set_trending(state.user, product_id, not product.is_trending)
        except PortalError as e:
            self.notify(str(e), severity="error")
            return
        self.post_message(CatalogChangedMessage())

    # ---------------------------
    # Divisions
    # ---------------------------

    @on(Input.Submitted, "#input-division")
    @on(Button.Pressed, "#btn-division-add")
    def handle_division_add(self) -> None:
        name_input = self.query_one("#input-division", Input)
        try:
            self.app.state.catalog.add_division(self.app.state.user, name_input.value)
        except PortalError as e:
            self.notify(str(e), severity="error")
            return
        self.notify(f"Division {name_input.value.strip()} added.")
        name_input.value = ""
        self.post_message(CatalogChangedMessage())

    # ---------------------------
    # Users
    # ---------------------------

    @on(Button.Pressed, "#btn-user-add")
    def handle_user_add(self) -> None:
        state = self.app.state
        try:
            user = state.users.add(
                state.user,
                self.query_one("#input-user-username", Input).value,
                self.query_one("#input-user-pwd", Input).value,
                self.query_one("#input-user-name", Input).value,
                Role(self.query_one("#select-user-role", Select).value),
            )
        except PortalError as e:
            self.notify(str(e), severity="error")
            return
        for widget_id in ("#input-user-username", "#input-user-pwd", "#input-user-name"):
            self.query_one(widget_id, Input).value = ""
        self.notify(f"User {user.username} added with id {user.id}.")
        self.handle_reload()

    @on(Button.Pressed, "#btn-user-block")
    @work(exclusive=True, group="users")
    async def handle_user_block(self) -> None:
        state = self.app.state
        user_id = self._selected_key(self.query_one("#table-users", DataTable))
        if not user_id:
            return
        target = state.users.get(user_id)
        verb = "Unblock" if target.is_blocked else "Block"
        if not await self.app.push_screen_wait(
            DialogModal(f"{verb} {target.username}?", "Yes", "No", "warning")
        ):
            return
        try:
            state.users.toggle_block(state.user, user_id)
        except PortalError as e:
            self.notify(str(e), severity="error")
            return
        self.handle_reload()

    # ---------------------------
    # Content
    # ---------------------------

    @on(Button.Pressed, "#btn-content-save")
    def handle_content_save(self) -> None:
        state = self.app.state
        try:
            state.content.update_settings(
                state.user,
                name=self.query_one("#input-company-name", Input).value.strip(),
                address=self.query_one("#input-company-address", Input).value.strip(),
                phone=self.query_one("#input-company-phone", Input).value.strip(),
                whatsapp_number=self.query_one("#input-company-whatsapp", Input).value.strip(),
            )
            state.content.update_news(
                state.user, self.query_one("#textarea-news", TextArea).text.splitlines()
            )
        except PortalError as e:
            self.notify(str(e), severity="error")
            return
        self.app.title = state.content.settings.name
        self._load_content()
        self.notify("Content saved.")

    # ---------------------------
    # AI assistant
    # ---------------------------

    @on(Input.Submitted, "#input-ai-query")
    @on(Button.Pressed, "#btn-ai-ask")
    @work(exclusive=True, group="ai")
    async def handle_ai_ask(self) -> None:
        query = self.query_one("#input-ai-query", Input).value.strip()
        if not query:
            self.notify("Ask something first.", severity="warning")
            return
        answer = self.query_one("#md-ai-answer", Markdown)
        await answer.update("_Thinking..._")
        try:
            text = await self.app.state.ask_admin(query)
        except PortalError as e:
            self.notify(str(e), severity="error")
            return
        await answer.update(text)
