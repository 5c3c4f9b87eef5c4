from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import Resize, ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from store.models import Role
from utils.messages import (
    CartChangedMessage,
    ModeSwitchedMessage,
    UserLoginMessage,
    UserLogoutMessage,
)
from utils.pure import generate_markdown_table
from utils.state import ROLE_PAGES, page_title
from views.modal_dialog import DialogModal, QuitDialogModal, ResizeScreenPromptModal
from views.modal_presentation import PresentationModal

ROLE_LABELS = {
    Role.ADMIN: "Administrator",
    Role.STAFF: "Staff",
    Role.CUSTOMER: "Distributor",
}


class Sidebar(Container):
    init_mode = ""

    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Button("Presentation", id="btn-presentation")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        self.init_mode = self.app.current_mode
        await self.reload()

    async def reload(self):
        state = self.app.state
        if not state.user:
            return

        table_rows = [
            ["User ID", state.user.id],
            ["Name", state.user.name],
            ["Role", ROLE_LABELS[state.user.role]],
        ]
        md_table_str = generate_markdown_table(None, table_rows, ["l", "l"])
        await self.query_one(Markdown).update(md_table_str)

        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        await list_menu.extend(
            [
                ListItem(Label(self._menu_label(page)), id="list-menu-item-" + page)
                for page in ROLE_PAGES[state.user.role]
            ]
        )
        count = len(state.presentation)
        self.query_one("#btn-presentation", Button).label = (
            f"Presentation ({count})" if count else "Presentation"
        )
        self.highlight_item(self.init_mode)

    def _menu_label(self, page) -> str:
        title = page_title(page, self.app.state.role)
        if page == "cart" and self.app.state.cart.total_items:
            return f"{title} ({self.app.state.cart.total_items})"
        return title

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.init_mode)
        if self.app.current_mode != selected_mode:
            self.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-presentation")
    @work
    async def handle_presentation(self):
        await self.app.push_screen_wait(PresentationModal())
        await self.reload()

    @on(Button.Pressed, "#btn-logout")
    @work
    async def handle_logout(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to log out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        self.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = item.id == "list-menu-item-" + mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "",
        show_sidebar: bool = True,
    ) -> None:
        """
        configure behavior of the base screen
        """
        self.app.title = self.app.state.content.settings.name
        self.sub_title = header_sub_title
        for page, screen_cls in self.app.MODES.items():
            if isinstance(self, screen_cls):
                self.sub_title = page_title(page, self.app.state.role)

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    async def on_resize(self, event: Resize) -> None:
        min_width = 60
        min_height = 20
        if event.size.width < min_width or event.size.height < min_height:
            self.app.push_screen(ResizeScreenPromptModal(min_width, min_height))

    @on(UserLoginMessage)
    def handle_user_login(self):
        self.refresh()

    # cart counter in the menu
    @on(CartChangedMessage)
    @on(ScreenResume)
    async def handle_sidebar_reload(self):
        if self._show_sidebar:
            await self.query_one(Sidebar).reload()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
