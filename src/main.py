from typing import Optional, Type

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.widgets import LoadingIndicator

from utils.config import Settings
from utils.logger import get_logger
from utils.messages import (
    CartChangedMessage,
    QuitRequestedMessage,
    SessionChangedMessage,
    SessionExpiredMessage,
    UserLogoutMessage,
)
from utils.state import GlobalState
from views.scr_admin_products import AdminProductsScreen
from views.scr_cart import CartScreen
from views.scr_login import LoginScreen
from views.scr_past_orders import PastOrdersScreen
from views.scr_prod_search import ProdSearchScreen

_logger = get_logger(__name__)


class ShopClientApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "prod_search": ProdSearchScreen,
        "cart": CartScreen,
        "past_orders": PastOrdersScreen,
        "admin": AdminProductsScreen,
    }

    CUSTOMER_MODES = {
        "prod_search": "Browse Products",
        "cart": "Cart",
        "past_orders": "Orders",
    }
    ADMIN_MODES = {"admin": "Manage Products"}

    CSS_PATH = [
        "styles/index.tcss",
        "styles/login.tcss",
        "styles/search_prod.tcss",
        "styles/cart.tcss",
        "styles/checkout.tcss",
        "styles/past_orders.tcss",
        "styles/admin.tcss",
    ]

    state: GlobalState

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__()
        self.state = GlobalState.build(
            settings or Settings.from_env(),
            on_unauthorized=lambda: self.post_message(SessionExpiredMessage()),
        )
        self.state.session.subscribe(lambda: self.broadcast(SessionChangedMessage))
        self.state.cart.subscribe(lambda: self.broadcast(CartChangedMessage))

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        await self.state.load()
        if self.state.store.degraded:
            self.notify(
                "Local storage unavailable; cart and login will not survive a restart.",
                severity="warning",
            )
        self.main_flow()

    def broadcast(self, message_cls: Type[Message]) -> None:
        """Deliver a fresh message to every screen on the stack."""
        for screen in self.screen_stack:
            screen.post_message(message_cls())

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self.state.session.logout()
        self.notify("Logout successful.")
        self.main_flow()

    @on(SessionExpiredMessage)
    @work(exclusive=True, group="session-expired")
    async def handle_session_expired(self):
        if not self.state.session.is_authenticated:
            return
        await self.state.session.logout()
        self.notify(
            "Your session has expired. Please sign in again.", severity="warning"
        )
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.exit()

    @work(exclusive=True, group="main-flow")
    async def main_flow(self):
        if not self.state.session.is_authenticated:
            if isinstance(self.screen, LoginScreen):
                return
            await self.push_screen_wait(LoginScreen())
        _logger.info(f"Entering shop as {self.state.session.current_user}.")
        await self.switch_mode("prod_search")


def main() -> None:
    app = ShopClientApp()
    app.run()


if __name__ == "__main__":
    main()
