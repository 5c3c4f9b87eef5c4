from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from utils.logger import get_logger
from utils.messages import ModeSwitchedMessage, QuitRequestedMessage, UserLogoutMessage
from utils.state import ROLE_PAGES, Page, PortalState
from views.scr_admin import AdminScreen
from views.scr_cart import CartScreen
from views.scr_catalog import CatalogScreen
from views.scr_dashboard import DashboardScreen
from views.scr_login import LoginScreen
from views.scr_orders import OrdersScreen
from views.scr_shortlist import ShortlistScreen

_logger = get_logger(__name__)


class PortalApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        Page.DASHBOARD: DashboardScreen,
        Page.CATALOG: CatalogScreen,
        Page.CART: CartScreen,
        Page.ORDERS: OrdersScreen,
        Page.SHORTLIST: ShortlistScreen,
        Page.ADMIN: AdminScreen,
    }

    CSS_PATH = "styles/portal.tcss"

    state: PortalState

    def __init__(self, state: PortalState | None = None):
        super().__init__()
        self.state = state or PortalState.create()

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        self.state.logout()
        self.notify("Logout successful.")
        self.main_flow()

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        self.state.logout()
        await self.state.drain_notifications()
        self.exit()

    @work
    async def main_flow(self):
        await self.push_screen_wait(LoginScreen())

        start = ROLE_PAGES[self.state.role][0]
        _logger.debug(f"Starting {self.state.role} session on {start}")
        self.post_message(ModeSwitchedMessage(self.current_mode, start))
        await self.switch_mode(start)


def main() -> None:
    PortalApp().run()


if __name__ == "__main__":
    main()
