from typing import Dict, List

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label, Select

from api.errors import GatewayError
from db.demo_data import demo_products
from db.models import Product
from utils.logger import get_logger
from utils.pure import format_money, stock_label
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal

_logger = get_logger(__name__)

ALL_CATEGORIES = "All"
SORTS = {
    "name-asc": ("Name A-Z", lambda p: p.name.lower(), False),
    "name-desc": ("Name Z-A", lambda p: p.name.lower(), True),
    "price-asc": ("Price low-high", lambda p: p.price, False),
    "price-desc": ("Price high-low", lambda p: p.price, True),
}


def filter_products(
    products: List[Product], query: str, category: str, sort: str
) -> List[Product]:
    """
    Case-insensitive substring match over name, description and category,
    optional category filter, then sort.
    """
    phrase = (query or "").strip().lower()
    result = [
        p
        for p in products
        if (category == ALL_CATEGORIES or p.category == category)
        and (
            not phrase
            or phrase in p.name.lower()
            or phrase in p.description.lower()
            or phrase in p.category.lower()
        )
    ]
    _, key, reverse = SORTS.get(sort, SORTS["name-asc"])
    return sorted(result, key=key, reverse=reverse)


class ProdSearchScreen(BaseScreen):
    """
    Product catalog with search, category filter and sort.
    Falls back to the demo catalog when the backend cannot serve it.
    """

    BINDINGS = [
        Binding("enter", "noop", "View Product", show=True, key_display="⏎"),
    ]

    def __init__(self):
        super().__init__()
        self._products: Dict[int, Product] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-search"):
            yield Input(
                id="input-search", placeholder="Start typing to search products..."
            )
            yield Select(
                [(ALL_CATEGORIES, ALL_CATEGORIES)],
                value=ALL_CATEGORIES,
                allow_blank=False,
                id="select-category",
            )
            yield Select(
                [(label, k) for k, (label, _, _) in SORTS.items()],
                value="name-asc",
                allow_blank=False,
                id="select-sort",
            )
        yield DataTable(id="table-search-result")
        with Horizontal(id="hort-catalog-status"):
            yield Label("", id="label-catalog-source")
            yield Button("Refresh", id="btn-refresh")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Category", "Price", "Stock")

        self.query_one("#input-search").focus()
        self.load_products()

    def action_noop(self) -> None:
        pass

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    @work(exclusive=True, group="catalog")
    async def load_products(self) -> None:
        source = "Live catalog"
        try:
            products = await self.app.state.gateway.list_products()
        except GatewayError as exc:
            _logger.warning(f"Catalog unavailable, showing demo products: {exc}")
            products = demo_products()
            source = "Offline demo catalog"

        self._products = {p.id: p for p in products}
        self.query_one("#label-catalog-source", Label).update(
            f"{source}: {len(products)} product(s)"
        )

        categories = sorted({p.category for p in products if p.category})
        select = self.query_one("#select-category", Select)
        current = select.value
        select.set_options(
            [(ALL_CATEGORIES, ALL_CATEGORIES)] + [(c, c) for c in categories]
        )
        select.value = current if current in categories else ALL_CATEGORIES
        self.render_table()

    @on(Input.Changed, "#input-search")
    @on(Select.Changed)
    def render_table(self) -> None:
        query = self.query_one("#input-search", Input).value
        category = self.query_one("#select-category", Select).value
        sort = self.query_one("#select-sort", Select).value

        table = self.query_one(DataTable)
        table.clear()
        for p in filter_products(list(self._products.values()), query, category, sort):
            table.add_row(
                p.id,
                p.name,
                p.category,
                format_money(p.price),
                stock_label(p.stock_quantity),
                key=str(p.id),
            )

    @on(DataTable.RowSelected)
    @work()
    async def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        product = self._products.get(int(event.row_key.value))
        if product is None:
            return
        await self.app.push_screen_wait(ProdDetailModal(product))
