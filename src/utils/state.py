from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from api.gateway import Gateway
from db.store import Store
from state.cart import CartLedger
from state.session import SessionManager
from utils.config import Settings


@dataclass
class GlobalState:
    """
    Application state handed to screens through the app.

    Fields:
      - settings: runtime configuration
      - store: shared durable key/value store
      - gateway: client for the remote backend
      - session: who is logged in (owns the token/user keys)
      - cart: the cart ledger (owns the cart key)
    """

    settings: Settings
    store: Store
    gateway: Gateway
    session: SessionManager
    cart: CartLedger

    @classmethod
    def build(
        cls,
        settings: Settings,
        on_unauthorized: Optional[Callable[[], None]] = None,
    ) -> "GlobalState":
        store = Store(settings.db_path)
        gateway = Gateway(settings.api_url, timeout=settings.timeout)
        session = SessionManager(store, gateway)
        cart = CartLedger(store)

        gateway.token_provider = lambda: session.token
        gateway.on_unauthorized = on_unauthorized
        return cls(settings, store, gateway, session, cart)

    async def load(self) -> None:
        """Bring back whatever the previous run persisted."""
        await self.session.restore()
        await self.cart.load()
