from __future__ import annotations

import dataclasses
import json
from decimal import Decimal
from typing import Callable, List, Optional

from db.models import CartEntry, Product
from db.store import Store
from utils.logger import get_logger

_logger = get_logger(__name__)

CART_KEY = "cf_cart"


class CartLedger:
    """
    Ordered list of cart entries, one per product id.

    Every mutation writes the full snapshot to the store before returning.
    The ledger does not know about stock; callers cap quantities themselves.
    """

    def __init__(self, store: Store):
        self._store = store
        self._items: List[CartEntry] = []
        self._listeners: List[Callable[[], None]] = []

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register callback for every cart change; returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    # ---------------------------
    # Derived
    # ---------------------------

    @property
    def items(self) -> List[CartEntry]:
        return list(self._items)

    @property
    def cart_count(self) -> int:
        return sum(i.quantity for i in self._items)

    @property
    def cart_total(self) -> Decimal:
        return sum((i.line_total for i in self._items), Decimal("0"))

    def is_empty(self) -> bool:
        return not self._items

    def get(self, product_id: int) -> Optional[CartEntry]:
        for item in self._items:
            if item.product_id == product_id:
                return item
        return None

    # ---------------------------
    # Persistence
    # ---------------------------

    async def load(self) -> List[CartEntry]:
        """Replace in-memory entries with the persisted snapshot."""
        raw = await self._store.get(CART_KEY)
        items: List[CartEntry] = []
        if raw:
            try:
                items = [CartEntry.from_json(d) for d in json.loads(raw)]
            except (TypeError, ValueError, KeyError, ArithmeticError):
                _logger.warning("Persisted cart is unreadable, starting empty.")
                items = []
        self._items = [i for i in items if i.quantity > 0]
        self._notify()
        return self.items

    async def _commit(self, items: List[CartEntry]) -> None:
        self._items = items
        await self._store.set(CART_KEY, json.dumps([i.to_json() for i in items]))
        self._notify()

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    # ---------------------------
    # Mutations
    # ---------------------------

    async def add_item(self, product: Product, quantity: int = 1) -> None:
        existing = self.get(product.id)
        if existing:
            items = [
                dataclasses.replace(i, quantity=i.quantity + quantity)
                if i.product_id == product.id
                else i
                for i in self._items
            ]
        else:
            items = self._items + [CartEntry.from_product(product, quantity)]
        # a merge can bring the sum to zero or below
        await self._commit([i for i in items if i.quantity > 0])
        _logger.debug(f"Added {quantity} x {product.name} to cart.")

    async def remove_item(self, product_id: int) -> None:
        if self.get(product_id) is None:
            return
        await self._commit([i for i in self._items if i.product_id != product_id])

    async def update_quantity(self, product_id: int, quantity: int) -> None:
        if quantity <= 0:
            await self.remove_item(product_id)
            return
        if self.get(product_id) is None:
            return
        await self._commit(
            [
                dataclasses.replace(i, quantity=quantity)
                if i.product_id == product_id
                else i
                for i in self._items
            ]
        )

    async def clear_cart(self) -> None:
        await self._commit([])
