from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, Markdown

from services.notify import password_help_link
from store.errors import AccountBlocked
from utils.messages import UserLoginMessage
from views.base_screen import BaseScreen
from views.modal_dialog import QuitDialogModal


class LoginScreen(BaseScreen):
    """
    Dismissed once a user has logged in; app.state.user is set by then.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Login", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-login"):
            yield Markdown(self._welcome(), id="md-welcome")
            yield Label("Username")
            yield Input(placeholder="distributor", id="input-login-username")
            yield Label("Password")
            yield Input(placeholder="*********", password=True, id="input-login-pwd")
            with Horizontal(id="div-login-btns"):
                yield Button("Quit", id="btn-quit")
                yield Button("Forgot Password?", id="btn-forgot")
                yield Button("Login", id="btn-login", variant="primary")

    def _welcome(self) -> str:
        settings = self.app.state.content.settings
        return f"## {settings.name}\n\n{settings.address}  \nPhone: {settings.phone}"

    def on_mount(self):
        self.query_one("#input-login-username").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        username = self.query_one("#input-login-username", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value

        if not username or not pwd:
            self.notify("Username or password cannot be empty!", severity="error")
            return

        try:
            user = self.app.state.login(username, pwd)
        except AccountBlocked:
            self.notify(
                "Your account has been blocked. Please contact the admin.",
                severity="error",
            )
            return

        if user:
            self.notify(f"Welcome, {user.name}!")
            self.app.post_message(UserLoginMessage())
            self.dismiss()
        else:
            self.notify("Invalid username or password.", severity="error")
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")

    @on(Button.Pressed, "#btn-forgot")
    @work(exclusive=True)
    async def handle_forgot_password(self) -> None:
        settings = self.app.state.content.settings
        self.notify(f"Opening chat with {settings.phone} for password help.")
        await self.app.state.emitter.open_link(password_help_link(settings))

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
