import base64
import json
import os
import tempfile
import unittest
from unittest import mock

from api.errors import RejectedError, TransportError
from db import database as db_database
from db.models import BackedSession, DemoSession, Role
from db.store import Store
from state.session import (
    TOKEN_KEY,
    USER_KEY,
    SessionManager,
    SessionStatus,
    derive_role,
    make_demo_token,
)


def _token(payload: dict) -> str:
    def seg(d):
        raw = json.dumps(d).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

    return f"{seg({'alg': 'HS256'})}.{seg(payload)}.signature"


class SessionTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "client.sqlite")
        self.store = Store(self.db_path)
        self.gateway = mock.Mock()
        self.gateway.login = mock.AsyncMock()
        self.gateway.register = mock.AsyncMock()
        self.session = SessionManager(self.store, self.gateway)

    def tearDown(self):
        db_database._initialized.discard(self.db_path)
        self.temp_dir.cleanup()

    # ---------- Role derivation ----------

    def test_derive_role(self):
        self.assertEqual(derive_role(_token({"role": "ADMIN"})), Role.ADMIN)
        self.assertEqual(derive_role(_token({"role": "admin"})), Role.ADMIN)
        self.assertEqual(derive_role(_token({"roles": ["ADMIN", "USER"]})), Role.ADMIN)
        # role wins over roles
        self.assertEqual(
            derive_role(_token({"role": "USER", "roles": ["ADMIN"]})), Role.USER
        )
        self.assertEqual(derive_role(_token({"sub": "bob"})), Role.USER)
        self.assertEqual(derive_role("not-a-token"), Role.USER)
        self.assertEqual(derive_role("a.%%%.c"), Role.USER)
        self.assertEqual(derive_role(None), Role.USER)

    def test_demo_token_shape(self):
        token = make_demo_token("admin", Role.ADMIN)
        header, payload, suffix = token.split(".")
        self.assertEqual(suffix, "demo")
        self.assertEqual(
            json.loads(base64.b64decode(header)), {"alg": "none", "typ": "JWT"}
        )
        claims = json.loads(base64.b64decode(payload))
        self.assertEqual(claims["sub"], "admin")
        self.assertEqual(claims["role"], "ADMIN")
        self.assertIsInstance(claims["iat"], int)
        self.assertEqual(derive_role(token), Role.ADMIN)

    # ---------- Login ----------

    async def test_login_with_backend_token(self):
        token = _token({"sub": "bob", "role": "ADMIN"})
        self.gateway.login.return_value = {"token": token}

        self.assertTrue(await self.session.login("bob", "pw"))
        self.gateway.login.assert_awaited_once_with("bob", "pw")
        self.assertIsInstance(self.session.session, BackedSession)
        self.assertEqual(self.session.token, token)
        self.assertEqual(self.session.current_user, "bob")
        self.assertTrue(self.session.is_admin)
        self.assertFalse(self.session.is_demo)
        self.assertEqual(self.session.status, SessionStatus.AUTHENTICATED)
        self.assertEqual(await self.store.get(TOKEN_KEY), token)
        self.assertEqual(
            json.loads(await self.store.get(USER_KEY)),
            {"username": "bob", "role": "ADMIN", "demo": False},
        )

    async def test_login_accepts_plain_string_token(self):
        self.gateway.login.return_value = _token({"sub": "amy"})
        self.assertTrue(await self.session.login("amy", "pw"))
        self.assertEqual(self.session.role, Role.USER)
        self.assertFalse(self.session.is_admin)

    async def test_login_without_token_fails(self):
        self.gateway.login.return_value = {}
        self.assertFalse(await self.session.login("amy", "pw"))
        self.assertEqual(self.session.error, "No token received")
        self.assertFalse(self.session.is_authenticated)
        self.assertFalse(self.session.loading)

    async def test_login_rejected_sets_error_until_cleared(self):
        self.gateway.login.side_effect = RejectedError(
            "/auth/token", 401, "Invalid credentials"
        )
        self.assertFalse(await self.session.login("amy", "bad"))
        self.assertEqual(self.session.error, "Invalid credentials")
        self.assertFalse(self.session.is_authenticated)
        self.assertIsNone(await self.store.get(TOKEN_KEY))

        self.session.clear_error()
        self.assertIsNone(self.session.error)

    async def test_login_unreachable_starts_demo_session(self):
        self.gateway.login.side_effect = TransportError("/auth/token", "refused")

        self.assertTrue(await self.session.login("admin", "admin"))
        self.assertIsInstance(self.session.session, DemoSession)
        self.assertTrue(self.session.is_demo)
        self.assertEqual(self.session.role, Role.ADMIN)
        self.assertTrue(self.session.is_admin)
        self.assertTrue(self.session.token.endswith(".demo"))
        self.assertIsNone(self.session.error)

        await self.session.logout()
        self.assertTrue(await self.session.login("Alice", "whatever"))
        self.assertEqual(self.session.role, Role.USER)
        self.assertFalse(self.session.is_admin)

    async def test_admin_username_is_admin_even_with_user_role(self):
        self.gateway.login.return_value = {"token": _token({"role": "USER"})}
        await self.session.login("admin", "pw")
        self.assertEqual(self.session.role, Role.USER)
        self.assertTrue(self.session.is_admin)

    async def test_loading_and_notifications(self):
        seen = []
        self.gateway.login.return_value = {"token": _token({})}

        def record():
            seen.append(self.session.status)

        unsubscribe = self.session.subscribe(record)
        await self.session.login("amy", "pw")
        self.assertEqual(
            seen, [SessionStatus.AUTHENTICATING, SessionStatus.AUTHENTICATED]
        )

        unsubscribe()
        await self.session.logout()
        self.assertEqual(len(seen), 2)

    # ---------- Register ----------

    async def test_register_logs_in_afterwards(self):
        self.gateway.login.return_value = {"access_token": _token({})}
        self.assertTrue(await self.session.register("amy", "pw", "amy@example.com"))
        self.gateway.register.assert_awaited_once_with("amy", "pw", "amy@example.com")
        self.gateway.login.assert_awaited_once_with("amy", "pw")
        self.assertEqual(self.session.current_user, "amy")

    async def test_register_unreachable_starts_demo_user(self):
        self.gateway.register.side_effect = TransportError("/auth/register", "down")
        self.assertTrue(await self.session.register("carol", "pw", "c@example.com"))
        self.assertTrue(self.session.is_demo)
        self.assertEqual(self.session.role, Role.USER)
        self.gateway.login.assert_not_awaited()

    async def test_register_rejected(self):
        self.gateway.register.side_effect = RejectedError(
            "/auth/register", 409, "Username taken", detail="Username taken"
        )
        self.assertFalse(await self.session.register("amy", "pw", "a@example.com"))
        self.assertEqual(self.session.error, "Username taken")

        self.gateway.register.side_effect = RejectedError(
            "/auth/register", 500, "Internal Server Error"
        )
        self.assertFalse(await self.session.register("amy", "pw", "a@example.com"))
        self.assertEqual(self.session.error, "Registration failed")
        self.assertFalse(self.session.loading)

    # ---------- Persistence ----------

    async def test_restore_reproduces_session_variant(self):
        token = _token({"role": "USER"})
        self.gateway.login.return_value = token
        await self.session.login("amy", "pw")

        restored = SessionManager(Store(self.db_path), self.gateway)
        session = await restored.restore()
        self.assertEqual(session, BackedSession("amy", Role.USER, token))

        self.gateway.login.side_effect = TransportError("/auth/token", "down")
        await self.session.login("admin", "admin")
        restored = SessionManager(Store(self.db_path), self.gateway)
        session = await restored.restore()
        self.assertIsInstance(session, DemoSession)
        self.assertTrue(restored.is_admin)

    async def test_restore_without_user_record_clears_token(self):
        await self.store.set(TOKEN_KEY, "orphan")
        self.assertIsNone(await self.session.restore())
        self.assertFalse(self.session.is_authenticated)
        self.assertIsNone(await self.store.get(TOKEN_KEY))

    async def test_restore_with_nothing_persisted(self):
        self.assertIsNone(await self.session.restore())
        self.assertEqual(self.session.status, SessionStatus.ANONYMOUS)

    async def test_logout_removes_persisted_keys(self):
        self.gateway.login.return_value = _token({})
        await self.session.login("amy", "pw")
        await self.session.logout()
        self.assertIsNone(self.session.session)
        self.assertIsNone(await self.store.get(TOKEN_KEY))
        self.assertIsNone(await self.store.get(USER_KEY))


if __name__ == "__main__":
    unittest.main()
