from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, ContentSwitcher, Input, Label, MarkdownViewer

from state.checkout import CheckoutOrchestrator, CheckoutPhase, OrderReview
from utils.pure import format_money, generate_markdown_table
from views.modal_dialog import PLACE_ORDER, ConfirmModal

SHIPPING_FIELDS = [
    ("first_name", "First Name", "Jane"),
    ("last_name", "Last Name", "Doe"),
    ("email", "Email", "jane@example.com"),
    ("address", "Address", "123 Main St"),
    ("city", "City", "Springfield"),
    ("zip", "ZIP", "12345"),
]
PAYMENT_FIELDS = [
    ("name_on_card", "Name on Card", "Jane Doe"),
    ("card_number", "Card Number", "4242 4242 4242 4242"),
    ("expiry", "Expiry (MM/YY)", "12/25"),
    ("cvv", "CVV", "123"),
]


def review_markdown(review: OrderReview) -> str:
    headers = ["Product Name", "Unit Price", "Quantity", "Total Price"]
    rows = [
        [e.name, format_money(e.price), e.quantity, format_money(e.line_total)]
        for e in review.lines
    ]
    s = review.shipping
    md = "### Order Summary\n\n"
    md += generate_markdown_table(headers, rows, ["l", "r", "c", "r"])
    md += f"\n\n**Subtotal:** {format_money(review.subtotal)}  \n"
    md += f"**Tax (8%):** {format_money(review.tax)}  \n"
    md += f"**Total:** {format_money(review.total)}\n\n"
    md += f"**Ship To:** {s.customer_name}, {s.address}, {s.city} {s.zip}  \n"
    md += f"**Email:** {s.email}"
    return md


class CheckoutModal(ModalScreen[bool]):
    """
    Three step checkout wizard over a CheckoutOrchestrator.
    Return True once the order was placed, False if abandoned.
    """

    def __init__(self):
        super().__init__()
        self._checkout: CheckoutOrchestrator = None

    def compose(self) -> ComposeResult:
        with Vertical(id="div-checkout"):
            yield Label("", id="label-checkout-step")
            with ContentSwitcher(id="switcher-checkout"):
                with Vertical(id="pane-empty"):
                    yield Label("Your cart is empty. Add a product before checking out.")
                with VerticalScroll(id="pane-shipping"):
                    yield from self._compose_fields("ship", SHIPPING_FIELDS)
                with VerticalScroll(id="pane-payment"):
                    yield from self._compose_fields("pay", PAYMENT_FIELDS)
                with Vertical(id="pane-review"):
                    yield MarkdownViewer(
                        "", id="md-review", show_table_of_contents=False
                    )
                with Vertical(id="pane-confirmed"):
                    yield MarkdownViewer(
                        "", id="md-confirmed", show_table_of_contents=False
                    )
            with Horizontal(id="hort-checkout-btns"):
                yield Button("Cancel", id="btn-quit")
                yield Button("Back", id="btn-back")
                yield Button("Continue", id="btn-next", variant="primary")

    @staticmethod
    def _compose_fields(prefix: str, fields):
        for name, caption, placeholder in fields:
            yield Label(caption)
            yield Input(placeholder=placeholder, id=f"input-{prefix}-{name}")
            yield Label("", id=f"label-err-{name}", classes="field-error")

    def on_mount(self):
        state = self.app.state
        self._checkout = CheckoutOrchestrator(state.cart, state.gateway)
        self.render_phase()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.handle_quit()

    @on(Input.Changed)
    def handle_field_changed(self, message: Input.Changed) -> None:
        """Push the typed value into the draft and write back its formatted form."""
        checkout = self._checkout
        _, prefix, name = message.input.id.split("-", 2)
        if prefix == "ship" and checkout.phase == CheckoutPhase.SHIPPING:
            checkout.update_shipping(**{name: message.value})
            formatted = getattr(checkout.draft.shipping, name)
        elif prefix == "pay" and checkout.phase == CheckoutPhase.PAYMENT:
            checkout.update_payment(**{name: message.value})
            formatted = getattr(checkout.draft.payment, name)
        else:
            return
        if formatted != message.value:
            message.input.value = formatted
            message.input.cursor_position = len(formatted)

    def render_phase(self) -> None:
        checkout = self._checkout
        phase = checkout.phase
        switcher = self.query_one(ContentSwitcher)
        btn_back = self.query_one("#btn-back", Button)
        btn_next = self.query_one("#btn-next", Button)
        btn_quit = self.query_one("#btn-quit", Button)
        step_label = self.query_one("#label-checkout-step", Label)

        btn_back.display = phase in (CheckoutPhase.PAYMENT, CheckoutPhase.REVIEW)
        btn_next.display = phase != CheckoutPhase.EMPTY
        btn_quit.label = "Close" if phase == CheckoutPhase.CONFIRMED else "Cancel"

        if phase == CheckoutPhase.EMPTY:
            switcher.current = "pane-empty"
            step_label.update("Checkout")
        elif phase == CheckoutPhase.SHIPPING:
            switcher.current = "pane-shipping"
            step_label.update("Step 1 of 3: Shipping")
            btn_next.label = "Continue to Payment"
            self.query_one("#input-ship-first_name").focus()
        elif phase == CheckoutPhase.PAYMENT:
            switcher.current = "pane-payment"
            step_label.update("Step 2 of 3: Payment")
            btn_next.label = "Review Order"
            self.query_one("#input-pay-name_on_card").focus()
        elif phase == CheckoutPhase.REVIEW:
            switcher.current = "pane-review"
            step_label.update("Step 3 of 3: Review")
            btn_next.label = "Place Order"
            self.query_one("#md-review", MarkdownViewer).document.update(
                review_markdown(checkout.review())
            )
        elif phase == CheckoutPhase.CONFIRMED:
            switcher.current = "pane-confirmed"
            step_label.update("Order Confirmed")
            btn_next.label = "Done"
            self.query_one("#md-confirmed", MarkdownViewer).document.update(
                self._confirmation_markdown()
            )
        self.render_errors()

    def render_errors(self) -> None:
        errors = self._checkout.errors
        for name, _, _ in SHIPPING_FIELDS + PAYMENT_FIELDS:
            label = self.query_one(f"#label-err-{name}", Label)
            label.update(errors.get(name, ""))
            label.set_class(name in errors, "-visible")
        for field_input in self.query(Input):
            name = field_input.id.split("-", 2)[2]
            field_input.set_class(name in errors, "-invalid")

    def _confirmation_markdown(self) -> str:
        checkout = self._checkout
        md = "### Thank you, your order is confirmed.\n\n"
        md += f"**Total:** {format_money(checkout.receipt.total)}  \n"
        md += f"**Items:** {len(checkout.receipt.lines)}\n"
        return md

    @on(Button.Pressed, "#btn-next")
    @work(exclusive=True)
    async def handle_next(self) -> None:
        checkout = self._checkout
        phase = checkout.phase

        if phase == CheckoutPhase.SHIPPING:
            if not checkout.submit_shipping():
                self.notify("Please fix the shipping details.", severity="error")
        elif phase == CheckoutPhase.PAYMENT:
            if not checkout.submit_payment():
                self.notify("Please fix the payment details.", severity="error")
        elif phase == CheckoutPhase.REVIEW:
            if not await self.app.push_screen_wait(ConfirmModal(PLACE_ORDER)):
                return
            self.query_one("#btn-next", Button).disabled = True
            await checkout.place_order()
            self.query_one("#btn-next", Button).disabled = False
            self.notify("Order placed.")
        elif phase == CheckoutPhase.CONFIRMED:
            self.dismiss(True)
            return
        self.render_phase()

    @on(Button.Pressed, "#btn-back")
    def handle_back(self) -> None:
        self._checkout.back()
        self.render_phase()

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self) -> None:
        if self._checkout.phase == CheckoutPhase.SUBMITTING:
            return
        placed = self._checkout.phase == CheckoutPhase.CONFIRMED
        self._checkout.abandon()
        self.dismiss(placed)
