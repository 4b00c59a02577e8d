from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from api.errors import GatewayError
from api.gateway import Gateway
from db.models import (
    CartEntry,
    CheckoutDraft,
    OrderLineOutcome,
    OrderOutcome,
    OrderSubmission,
    ShippingInfo,
)
from state.cart import CartLedger
from utils import pure
from utils.logger import get_logger

_logger = get_logger(__name__)


class CheckoutPhase(str, Enum):
    EMPTY = "empty"
    SHIPPING = "shipping"
    PAYMENT = "payment"
    REVIEW = "review"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    ABANDONED = "abandoned"


STEP_PHASES = {
    1: CheckoutPhase.SHIPPING,
    2: CheckoutPhase.PAYMENT,
    3: CheckoutPhase.REVIEW,
}


class CheckoutStateError(Exception):
    """An action was requested in a phase that does not allow it."""


@dataclass(frozen=True)
class OrderReview:
    shipping: ShippingInfo
    lines: List[CartEntry]
    subtotal: Decimal
    tax: Decimal
    total: Decimal


class CheckoutOrchestrator:
    """
    Three step checkout: shipping -> payment -> review -> placed.

    The draft lives only in this object. Field updates are normalised the way
    the form fields format input as it is typed; validation happens when a
    step is submitted and leaves the wizard on the same step if it fails.

    Placing the order sends one order per cart entry, in cart order, each on
    its own. Failed lines are logged and kept on `outcome`; the cart is
    cleared and the wizard confirmed no matter how many lines failed.
    """

    def __init__(self, cart: CartLedger, gateway: Gateway):
        self._cart = cart
        self._gateway = gateway
        self.errors: Dict[str, str] = {}
        self.outcome: Optional[OrderOutcome] = None
        self.receipt: Optional[OrderReview] = None

        if cart.is_empty():
            self.draft: Optional[CheckoutDraft] = None
            self.phase = CheckoutPhase.EMPTY
        else:
            self.draft = CheckoutDraft()
            self.phase = CheckoutPhase.SHIPPING

    @property
    def step(self) -> Optional[int]:
        return self.draft.step if self.draft else None

    def _require(self, *phases: CheckoutPhase) -> None:
        if self.phase not in phases:
            raise CheckoutStateError(
                f"Not allowed while checkout is {self.phase.value}."
            )

    def _go(self, step: int) -> None:
        self.draft.step = step
        self.phase = STEP_PHASES[step]
        self.errors = {}

    # ---------------------------
    # Step 1: shipping
    # ---------------------------

    def update_shipping(self, **values: str) -> None:
        self._require(CheckoutPhase.SHIPPING)
        shipping = self.draft.shipping
        for name, value in values.items():
            if not hasattr(shipping, name):
                raise AttributeError(f"Unknown shipping field {name!r}")
            if name == "city":
                value = pure.format_city(value)
            elif name == "zip":
                value = pure.format_zip(value)
            setattr(shipping, name, value)

    def submit_shipping(self) -> bool:
        self._require(CheckoutPhase.SHIPPING)
        s = self.draft.shipping
        self.errors = pure.validate_shipping(
            s.first_name, s.last_name, s.email, s.address, s.city, s.zip
        )
        if self.errors:
            return False
        self._go(2)
        return True

    # ---------------------------
    # Step 2: payment
    # ---------------------------

    def update_payment(self, **values: str) -> None:
        self._require(CheckoutPhase.PAYMENT)
        payment = self.draft.payment
        formatters = {
            "card_number": pure.format_card_number,
            "expiry": pure.format_expiry,
            "cvv": pure.format_cvv,
        }
        for name, value in values.items():
            if not hasattr(payment, name):
                raise AttributeError(f"Unknown payment field {name!r}")
            fmt = formatters.get(name)
            setattr(payment, name, fmt(value) if fmt else value)

    def submit_payment(self) -> bool:
        self._require(CheckoutPhase.PAYMENT)
        p = self.draft.payment
        self.errors = pure.validate_payment(
            p.card_number, p.expiry, p.cvv, p.name_on_card
        )
        if self.errors:
            return False
        self._go(3)
        return True

    def back(self) -> None:
        """Previous step; entered data is kept."""
        self._require(CheckoutPhase.PAYMENT, CheckoutPhase.REVIEW)
        self._go(self.draft.step - 1)

    # ---------------------------
    # Step 3: review and placement
    # ---------------------------

    def review(self) -> OrderReview:
        self._require(CheckoutPhase.REVIEW, CheckoutPhase.SUBMITTING)
        subtotal = self._cart.cart_total
        return OrderReview(
            shipping=self.draft.shipping,
            lines=self._cart.items,
            subtotal=pure.to_cents(subtotal),
            tax=pure.compute_tax(subtotal),
            total=pure.compute_total(subtotal),
        )

    async def place_order(self) -> OrderOutcome:
        self._require(CheckoutPhase.REVIEW)
        self.phase = CheckoutPhase.SUBMITTING
        receipt = self.review()
        customer_name = self.draft.shipping.customer_name

        outcome = OrderOutcome()
        for entry in receipt.lines:
            submission = OrderSubmission(
                entry.product_id, entry.quantity, customer_name
            )
            try:
                body = await self._gateway.create_order(submission)
            except GatewayError as exc:
                _logger.warning(
                    f"Order line for product {entry.product_id} not recorded: {exc}"
                )
                outcome.lines.append(
                    OrderLineOutcome(submission, False, error=str(exc))
                )
                continue
            except Exception as exc:
                _logger.exception(
                    f"Unexpected failure sending order line for {entry.product_id}"
                )
                outcome.lines.append(
                    OrderLineOutcome(submission, False, error=repr(exc))
                )
                continue
            order_id = body.get("id") if isinstance(body, dict) else None
            outcome.lines.append(OrderLineOutcome(submission, True, order_id=order_id))

        if outcome.failed:
            _logger.warning(
                f"{len(outcome.failed)} of {len(outcome.lines)} order lines failed; "
                "order confirmed locally."
            )
        else:
            _logger.info(f"Placed {len(outcome.lines)} order lines.")

        await self._cart.clear_cart()
        self.receipt = receipt
        self.outcome = outcome
        self.draft = None
        self.phase = CheckoutPhase.CONFIRMED
        return outcome

    def abandon(self) -> None:
        """Drop the draft; the cart is left as it is."""
        if self.phase in (CheckoutPhase.CONFIRMED, CheckoutPhase.EMPTY):
            return
        self.draft = None
        self.errors = {}
        self.phase = CheckoutPhase.ABANDONED
