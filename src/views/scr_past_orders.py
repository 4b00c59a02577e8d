from math import ceil
from typing import Dict, List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label, MarkdownViewer

from api.errors import GatewayError
from db.demo_data import demo_orders
from db.models import Order
from utils.logger import get_logger
from utils.messages import NewOrderMessage
from utils.pure import format_money, generate_markdown_table
from views.base_screen import BaseScreen

_logger = get_logger(__name__)

PAGE_SIZE = 5


class PastOrdersScreen(BaseScreen):
    """
    Customers can browse their past orders with pagination and view details.

    Layout:
    - Markdown detail view at the top, showing selected order details.
    - Orders table below (newest first), 5 per page with Prev/Next.

    Shows sample orders when the backend cannot be reached.
    """

    # Show some hints in footer
    BINDINGS = [
        Binding("enter", "noop", "View Order Detail", show=True, key_display="⏎"),
    ]

    page_idx = reactive(1)
    page_cnt = reactive(1)

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []
        self._by_id: Dict[int, Order] = {}
        self._offline = False

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("<", id="btn-prev")
            yield Input("1", id="input-page", type="integer")
            yield Label(" / 1", id="label-total-page-cnt")
            yield Button(">", id="btn-next")
            yield Label("", id="label-orders-source")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Date", "Product", "Qty", "Status", "Total")

    def action_noop(self) -> None:
        pass

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    @on(NewOrderMessage)
    @work(exclusive=True, group="orders")
    async def load_orders(self) -> None:
        try:
            orders = await self.app.state.gateway.list_orders()
            self._offline = False
        except GatewayError as exc:
            _logger.warning(f"Order history unavailable, showing demo orders: {exc}")
            orders = demo_orders()
            self._offline = True

        orders.sort(key=lambda o: (o.created_at, o.id), reverse=True)
        self._orders = orders
        self._by_id = {o.id: o for o in orders}
        self.page_cnt = max(ceil(len(orders) / PAGE_SIZE), 1)
        self.query_one("#label-total-page-cnt", Label).update(f" / {self.page_cnt}")
        self.query_one("#label-orders-source", Label).update(
            "Offline demo orders" if self._offline else f"{len(orders)} order(s)"
        )
        self.page_idx = min(self.page_idx, self.page_cnt)
        self.render_page()

    def watch_page_idx(self, old: int, new: int) -> None:
        # sync page input and enable/disable buttons
        self.query_one("#input-page", Input).value = str(new)
        self.render_page()

    def _refresh_buttons(self) -> None:
        btn_prev = self.query_one("#btn-prev", Button)
        btn_next = self.query_one("#btn-next", Button)
        btn_prev.disabled = self.page_idx <= 1
        btn_next.disabled = self.page_idx >= self.page_cnt
        self.query_one("#input-page", Input).validators = [
            Number(minimum=1, maximum=self.page_cnt)
        ]

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.page_idx > 1:
            self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.page_idx < self.page_cnt:
            self.page_idx += 1

    @on(Input.Changed, "#input-page")
    def handle_page_input(self, ev: Input.Changed) -> None:
        if ev.value and ev.value.isdigit():
            new_idx = max(1, min(int(ev.value), self.page_cnt))
            if new_idx != self.page_idx:
                self.page_idx = new_idx

    def render_page(self) -> None:
        start = (self.page_idx - 1) * PAGE_SIZE
        page = self._orders[start : start + PAGE_SIZE]

        table = self.query_one(DataTable)
        table.clear()
        for o in page:
            table.add_row(
                o.id,
                o.created_at[:10],
                o.product_name,
                o.quantity,
                o.status,
                format_money(o.total_price),
                key=str(o.id),
            )
        self._refresh_buttons()
        if page:
            table.cursor_coordinate = (0, 0)
            self.load_detail(page[0].id)
        else:
            self._render_detail(None)

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is None or event.row_key.value is None:
            return
        self.load_detail(int(event.row_key.value))

    @work(exclusive=True, group="order-detail")
    async def load_detail(self, order_id: int) -> None:
        order = self._by_id.get(order_id)
        if not self._offline:
            try:
                order = await self.app.state.gateway.get_order(order_id)
            except GatewayError as exc:
                _logger.debug(f"Order {order_id} detail unavailable: {exc}")
        self._render_detail(order)

    def _render_detail(self, order: Optional[Order]) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if not order:
            viewer.document.update("### Select an order to view its details.")
            return

        header = (
            f"### Order #{order.id}\n"
            f"Date: {order.created_at}  \n"
            f"Customer: {order.customer_name}  \n"
            f"Status: {order.status}\n\n"
        )
        rows = [
            [
                order.product_name or f"Product {order.product_id}",
                order.quantity,
                format_money(order.total_price),
            ]
        ]
        table = generate_markdown_table(
            ["Product", "Qty", "Line Total"], rows, ["l", "r", "r"]
        )
        footer = f"\n\n**Grand Total:** {format_money(order.total_price)}"
        viewer.document.update(header + table + footer)
