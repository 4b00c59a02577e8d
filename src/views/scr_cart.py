from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.widgets import Button, Label, Rule

from db.models import CartEntry
from utils.messages import CartChangedMessage, NewOrderMessage
from utils.pure import format_money
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import CLEAR_CART, ConfirmModal


class CartItemWidget(HorizontalGroup):
    def __init__(self, item: CartEntry):
        super().__init__(id=f"cart-item-{item.product_id}")
        self.item = item

    def compose(self):
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(self.item.name, id="label-item-name")
                yield Label(format_money(self.item.price), id="label-item-price")
                yield Label(
                    format_money(self.item.line_total), id="label-item-line-total"
                )
            with Horizontal(id="div-actions"):
                yield Button("-", id="btn-item-sub")
                yield Label(str(self.item.quantity), id="label-item-qty")
                yield Button("+", id="btn-item-add")
                yield Button("Remove", id="btn-item-remove", variant="error")

    @on(Button.Pressed, "#btn-item-sub")
    async def handle_sub(self):
        # dropping to 0 removes the line
        await self.app.state.cart.update_quantity(
            self.item.product_id, self.item.quantity - 1
        )

    @on(Button.Pressed, "#btn-item-add")
    async def handle_add(self):
        await self.app.state.cart.update_quantity(
            self.item.product_id, self.item.quantity + 1
        )

    @on(Button.Pressed, "#btn-item-remove")
    async def handle_remove_item(self):
        await self.app.state.cart.remove_item(self.item.product_id)
        self.notify(f"{self.item.name} removed from cart.", severity="information")


class CartScreen(BaseScreen):
    """
    Cart contents with per-line quantity controls, total and checkout.
    """

    def __init__(self) -> None:
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("Total Cart Value: $0.00", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    async def on_mount(self):
        self.render_cart()

    @on(CartChangedMessage)
    @work(exclusive=True, group="cart-render")  # overlapping renders duplicate ids
    async def render_cart(self):
        cart = self.app.state.cart
        items = cart.items

        content = self.query_one("#vertscroll-content")
        await content.remove_children()
        await content.mount_all([CartItemWidget(item) for item in items])
        content.set_class(not items, "no-items")

        self.query_one("#label-cart-total", Label).update(
            f"Total Cart Value: {format_money(cart.cart_total)}"
        )
        self.query_one("#btn-checkout", Button).disabled = not items

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        if self.app.state.cart.is_empty():
            self.app.notify("Cart is empty.", severity="warning")
            return

        remove_confirmed = await self.app.push_screen_wait(ConfirmModal(CLEAR_CART))
        if remove_confirmed:
            await self.app.state.cart.clear_cart()

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        if self.app.state.cart.is_empty():
            self.app.notify("Cart is empty.", severity="warning")
            return

        if await self.app.push_screen_wait(CheckoutModal()):
            self.app.broadcast(NewOrderMessage)
