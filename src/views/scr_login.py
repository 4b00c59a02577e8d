from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

from utils.messages import SessionChangedMessage
from views.base_screen import BaseScreen
from views.modal_dialog import QuitModal


class LoginScreen(BaseScreen):
    """
    Sign in or sign up. Dismisses once the session manager reports an
    authenticated session (backed or offline demo).
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Sign in", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Login", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Username")
                    yield Input(placeholder="admin", id="input-login-user")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-login-pwd"
                    )
                    with Horizontal(id="div-login-btns"):
                        yield Button("Quit", id="btn-quit")
                        yield Button("Login", id="btn-login", variant="primary")

            with TabPane("Sign up", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("Username")
                    yield Input(placeholder="jane", id="input-reg-user")
                    yield Label("Email")
                    yield Input(
                        placeholder="user@example.com", id="input-reg-email"
                    )
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-reg-pwd"
                    )
                    with Container(id="div-reg-btns"):
                        yield Button("Register", id="btn-reg", variant="primary")
        yield Label("", id="label-auth-error")

    def on_mount(self):
        self.query_one("#input-login-user").focus()
        self.render_error()

    def on_key(self, event: Key) -> None:
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()
        if event.key == "enter" and self.focused == self.query_one("#input-reg-pwd"):
            self.handle_registration_submit()

    @on(SessionChangedMessage)
    def render_error(self) -> None:
        error = self.app.state.session.error
        label = self.query_one("#label-auth-error", Label)
        label.update(error or "")
        label.set_class(bool(error), "-visible")

    @on(TabbedContent.TabActivated)
    def handle_tab_switch(self) -> None:
        self.app.state.session.clear_error()

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        username = self.query_one("#input-login-user", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value.strip()

        if not username or not pwd:
            self.notify("Username or password cannot be empty!", severity="error")
            return

        session = self.app.state.session
        if await session.login(username, pwd):
            self._finish()
        else:
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        username = self.query_one("#input-reg-user", Input).value.strip()
        email = self.query_one("#input-reg-email", Input).value.strip()
        pwd = self.query_one("#input-reg-pwd", Input).value.strip()

        if not username or not email or not pwd:
            self.notify("Make sure all inputs are filled.", severity="error")
            return

        if await self.app.state.session.register(username, pwd, email):
            self.notify("Registration successful.")
            self._finish()

    def _finish(self) -> None:
        session = self.app.state.session
        if session.is_demo:
            self.notify(
                "Backend unreachable, running in offline demo mode.",
                severity="warning",
            )
        self.notify(f"Hello {session.current_user}!")
        self.dismiss()

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitModal())
