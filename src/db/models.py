# provide dataclass models

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional, Union


def to_decimal(val) -> Decimal:
    try:
        return Decimal(str(val))
    except (InvalidOperation, TypeError, ValueError):
        return Decimal("0")


def _to_int(val, default: int = 0) -> int:
    try:
        return int(val)
    except (TypeError, ValueError):
        return default


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"

    @classmethod
    def parse(cls, value) -> "Role":
        """Map a claim value to a Role, anything unknown is USER."""
        if isinstance(value, str) and value.upper() == cls.ADMIN.value:
            return cls.ADMIN
        return cls.USER


@dataclass(frozen=True)
class BackedSession:
    """Session whose token was issued by the backend."""

    username: str
    role: Role
    token: str


@dataclass(frozen=True)
class DemoSession:
    """Session fabricated locally while the backend was unreachable."""

    username: str
    role: Role
    token: str


Session = Union[BackedSession, DemoSession]


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    description: str
    price: Decimal
    stock_quantity: int
    category: str
    image: str = ""

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Product":
        return cls(
            id=_to_int(data.get("id")),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            price=to_decimal(data.get("price", 0)),
            stock_quantity=_to_int(data.get("stockQuantity")),
            category=str(data.get("category") or ""),
            image=str(data.get("image") or ""),
        )

    def to_json(self) -> Dict[str, Any]:
        """Product fields as the backend expects them (no id)."""
        return {
            "name": self.name,
            "description": self.description,
            "price": float(self.price),
            "stockQuantity": self.stock_quantity,
            "category": self.category,
            "image": self.image,
        }


@dataclass(frozen=True)
class CartEntry:
    product_id: int
    name: str
    price: Decimal
    category: str
    image: str
    quantity: int  # always >= 1 inside the ledger

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    @classmethod
    def from_product(cls, product: Product, quantity: int) -> "CartEntry":
        return cls(
            product_id=product.id,
            name=product.name,
            price=product.price,
            category=product.category,
            image=product.image,
            quantity=quantity,
        )

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "CartEntry":
        return cls(
            product_id=int(data["productId"]),
            name=str(data.get("name") or ""),
            price=Decimal(str(data["price"])),
            category=str(data.get("category") or ""),
            image=str(data.get("image") or ""),
            quantity=int(data["quantity"]),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "name": self.name,
            "price": str(self.price),
            "category": self.category,
            "image": self.image,
            "quantity": self.quantity,
        }


@dataclass
class ShippingInfo:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    zip: str = ""

    @property
    def customer_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass
class PaymentInfo:
    card_number: str = ""
    expiry: str = ""
    cvv: str = ""
    name_on_card: str = ""


@dataclass
class CheckoutDraft:
    step: int = 1
    shipping: ShippingInfo = field(default_factory=ShippingInfo)
    payment: PaymentInfo = field(default_factory=PaymentInfo)


@dataclass(frozen=True)
class OrderSubmission:
    product_id: int
    quantity: int
    customer_name: str

    def to_json(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "quantity": self.quantity,
            "customerName": self.customer_name,
        }


@dataclass(frozen=True)
class OrderLineOutcome:
    submission: OrderSubmission
    ok: bool
    order_id: Optional[int] = None
    error: Optional[str] = None


@dataclass
class OrderOutcome:
    lines: List[OrderLineOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> List[OrderLineOutcome]:
        return [line for line in self.lines if line.ok]

    @property
    def failed(self) -> List[OrderLineOutcome]:
        return [line for line in self.lines if not line.ok]


@dataclass(frozen=True)
class Order:
    id: int
    product_id: int
    product_name: str
    quantity: int
    customer_name: str
    status: str
    total_price: Decimal
    created_at: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Order":
        return cls(
            id=_to_int(data.get("id")),
            product_id=_to_int(data.get("productId")),
            product_name=str(data.get("productName") or ""),
            quantity=_to_int(data.get("quantity")),
            customer_name=str(data.get("customerName") or ""),
            status=str(data.get("status") or "PENDING"),
            total_price=to_decimal(data.get("totalPrice", 0)),
            created_at=str(data.get("createdAt") or ""),
        )
