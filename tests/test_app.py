import os
import tempfile
import unittest
from unittest import mock

from textual import on
from textual.app import App

from db import database as db_database
from db.models import DemoSession, Role
from db.store import Store
from main import ShopClientApp
from state.session import TOKEN_KEY, SessionManager, make_demo_token
from utils.config import Settings
from utils.messages import QuitRequestedMessage, SessionExpiredMessage
from views.modal_dialog import (
    CLEAR_CART,
    PLACE_ORDER,
    ConfirmModal,
    QuitModal,
    delete_product,
)
from views.scr_login import LoginScreen
from views.scr_prod_search import ProdSearchScreen


async def _settle(pilot, until, attempts: int = 60) -> None:
    for _ in range(attempts):
        if until():
            return
        await pilot.pause(0.05)


class _DialogHost(App):
    def __init__(self, modal: ConfirmModal):
        super().__init__()
        self.modal = modal
        self.results = []
        self.quit_requested = False

    def on_mount(self) -> None:
        self.push_screen(self.modal, self.results.append)

    @on(QuitRequestedMessage)
    def handle_quit(self) -> None:
        self.quit_requested = True


class ConfirmModalTestCase(unittest.IsolatedAsyncioTestCase):
    def test_presets(self):
        confirmation = delete_product("Quantum Drive")
        self.assertIn("Quantum Drive", confirmation.caption)
        self.assertEqual(confirmation.confirm_text, "Delete")
        self.assertTrue(confirmation.safe_default)
        self.assertTrue(CLEAR_CART.safe_default)
        self.assertFalse(PLACE_ORDER.safe_default)

    async def test_escape_cancels_destructive_flow(self):
        app = _DialogHost(ConfirmModal(delete_product("Quantum Drive")))
        async with app.run_test() as pilot:
            await pilot.pause()
            self.assertEqual(app.focused.id, "btn-cancel")
            await pilot.press("escape")
            await pilot.pause()
        self.assertEqual(app.results, [False])

    async def test_enter_confirms_place_order(self):
        app = _DialogHost(ConfirmModal(PLACE_ORDER))
        async with app.run_test() as pilot:
            await pilot.pause()
            self.assertEqual(app.focused.id, "btn-confirm")
            await pilot.press("enter")
            await pilot.pause()
        self.assertEqual(app.results, [True])

    async def test_quit_posts_quit_request(self):
        app = _DialogHost(QuitModal())
        async with app.run_test() as pilot:
            await pilot.pause()
            await pilot.click("#btn-confirm")
            await pilot.pause()
        self.assertEqual(app.results, [True])
        self.assertTrue(app.quit_requested)


class ShopClientAppTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "client.sqlite")

    def tearDown(self):
        db_database._initialized.discard(self.db_path)
        self.temp_dir.cleanup()

    async def _seed_session(self) -> None:
        session = SessionManager(Store(self.db_path), mock.Mock())
        token = make_demo_token("amy", Role.USER)
        await session._set_session(DemoSession("amy", Role.USER, token))

    def _app(self) -> ShopClientApp:
        app = ShopClientApp(
            Settings(api_url="http://shop.test", timeout=1.0, db_path=self.db_path)
        )
        app.state.gateway.list_products = mock.AsyncMock(return_value=[])
        app.state.gateway.list_orders = mock.AsyncMock(return_value=[])
        return app

    async def test_expired_session_returns_to_login(self):
        await self._seed_session()
        app = self._app()
        async with app.run_test() as pilot:
            await _settle(pilot, lambda: isinstance(app.screen, ProdSearchScreen))
            self.assertTrue(app.state.session.is_authenticated)

            app.post_message(SessionExpiredMessage())
            await _settle(pilot, lambda: isinstance(app.screen, LoginScreen))

            self.assertFalse(app.state.session.is_authenticated)
            self.assertIsInstance(app.screen, LoginScreen)

        self.assertIsNone(await Store(self.db_path).get(TOKEN_KEY))

    async def test_expired_while_anonymous_is_ignored(self):
        app = self._app()
        async with app.run_test() as pilot:
            await _settle(pilot, lambda: isinstance(app.screen, LoginScreen))

            app.post_message(SessionExpiredMessage())
            await pilot.pause(0.1)

            self.assertIsInstance(app.screen, LoginScreen)
            logins = [s for s in app.screen_stack if isinstance(s, LoginScreen)]
            self.assertEqual(len(logins), 1)


if __name__ == "__main__":
    unittest.main()
