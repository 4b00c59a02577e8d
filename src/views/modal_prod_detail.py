from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer

from db.models import CartEntry, Product
from utils.pure import format_money, generate_markdown_table, stock_label


class ProdDetailModal(ModalScreen[bool]):
    """
    prod detail, plus adding to cart
    Will return true if cart changed, false if not

    The quantity is kept within 1..stock here; the cart itself accepts any
    positive quantity.
    """

    CSS = """
    #input-order-qty {
        width: 10;
    }
    #btn-sub-qty {
        min-width: 4
    }
    #btn-add-qty {
        min-width: 4
    }
    """

    order_qty = reactive(1)

    def __init__(self, product: Product) -> None:
        super().__init__()

        self._prod = product
        self._existing_cart_item: CartEntry = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical():
                yield Label("Order Quantity")
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(value="1", id="input-order-qty", type="integer")
                    yield Button("+", id="btn-add-qty")
                yield Label("", id="label-line-total")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    async def on_mount(self):
        prod = self._prod
        table_rows = [
            ["Name", prod.name],
            ["Category", prod.category],
            ["Price", format_money(prod.price)],
            ["Availability", stock_label(prod.stock_quantity)],
        ]
        md_table_str = generate_markdown_table(
            ["Attribute", "Value"], table_rows, ["l", "l"]
        )
        header_md = f"### {prod.name}\n\n{prod.description}\n\n"
        await self.query_one(MarkdownViewer).document.update(header_md + md_table_str)

        stock_cnt = prod.stock_quantity
        if stock_cnt < 1:
            order_btn = self.query_one("#btn-addcart", Button)
            order_btn.label = "Out of Stock"
            order_btn.disabled = True
            order_btn.variant = "warning"

        self.query_one("#input-order-qty", Input).validators = [
            Number(minimum=1, maximum=max(stock_cnt, 1))
        ]

        self._existing_cart_item = self.app.state.cart.get(prod.id)
        if self._existing_cart_item and stock_cnt >= 1:
            self.order_qty = min(self._existing_cart_item.quantity, max(stock_cnt, 1))
            self.query_one("#btn-addcart", Button).label = "Update Cart"

        self.watch_order_qty(self.order_qty)
        self.query_one("#input-order-qty").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    async def on_input_changed(self, message: Input.Changed) -> None:
        if (
            message.input.id == "input-order-qty"
            and message.input.is_valid
            and self.focused == message.input
        ):
            self.order_qty = int(message.value)

    def validate_order_qty(self, qty: int) -> int:
        return max(1, min(qty, max(self._prod.stock_quantity, 1)))

    def watch_order_qty(self, qty: int):
        if not self.is_mounted:
            return
        btn_sub_qty = self.query_one("#btn-sub-qty", Button)
        btn_add_qty = self.query_one("#btn-add-qty", Button)

        btn_sub_qty.disabled = qty <= 1
        btn_add_qty.disabled = qty >= self._prod.stock_quantity

        input_order_qty = self.query_one("#input-order-qty", Input)
        input_order_qty.value = str(qty)
        self.query_one("#label-line-total", Label).update(
            f"Line total: {format_money(self._prod.price * qty)}"
        )

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.order_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        self.order_qty -= 1

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_addcart(self):
        cart = self.app.state.cart
        if not self._existing_cart_item:
            await cart.add_item(self._prod, self.order_qty)
            self.app.notify("Item added to cart successfully.")
        else:
            await cart.update_quantity(self._prod.id, self.order_qty)
            self.app.notify("Updated cart item quantity.")

        self.dismiss(True)
