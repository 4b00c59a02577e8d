from __future__ import annotations

import dataclasses
from decimal import Decimal
from typing import Dict, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label

from api.errors import GatewayError
from db.demo_data import demo_products
from db.models import Product
from utils.logger import get_logger
from utils.pure import format_money, to_cents
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmModal, delete_product

_logger = get_logger(__name__)


class AdminProductsScreen(BaseScreen):
    """
    Admins create, edit and delete products.

    When the backend refuses or cannot be reached, the change is only applied
    to the list shown here and a warning is raised.
    """

    current_id: Optional[int] = None

    def __init__(self) -> None:
        super().__init__()
        self._products: Dict[int, Product] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield DataTable(id="table-admin-prods")
            yield Label("New product", id="label-form-title")
            with Horizontal(id="div-new-inputs"):
                with Vertical():
                    yield Label("Name:")
                    yield Input(id="input-name")
                with Vertical():
                    yield Label("Category:")
                    yield Input(id="input-category")
                with Vertical():
                    yield Label("Price ($):")
                    yield Input(
                        id="input-price",
                        type="number",
                        validators=[Number(minimum=0.0)],
                    )
                with Vertical():
                    yield Label("Stock:")
                    yield Input(
                        id="input-stock",
                        type="integer",
                        validators=[Number(minimum=0)],
                    )
            yield Label("Description:")
            yield Input(id="input-description")
            with Horizontal(id="hort-controls"):
                yield Button("Reload", id="btn-reload")
                yield Button("New", id="btn-new")
                yield Button("Delete", id="btn-delete", variant="error")
                yield Button("Save", id="btn-save", variant="success")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Category", "Price", "Stock")
        self.reset_form()

    @on(ScreenResume)
    async def handle_resume(self) -> None:
        if not self.app.state.session.is_admin:
            self.notify("Administrator access required.", severity="error")
            await self.app.switch_mode("prod_search")
            return
        if not self._products:
            # keep local-only edits across dialogs
            self.load_products()

    @on(Button.Pressed, "#btn-reload")
    @work(exclusive=True, group="admin-products")
    async def load_products(self) -> None:
        try:
            products = await self.app.state.gateway.list_products()
        except GatewayError as exc:
            _logger.warning(f"Catalog unavailable, editing demo products: {exc}")
            self.notify(
                "Backend unreachable, changes will only be kept on this screen.",
                severity="warning",
            )
            products = demo_products()
        self._products = {p.id: p for p in products}
        self.render_table()

    def render_table(self) -> None:
        table = self.query_one(DataTable)
        table.clear()
        for p in sorted(self._products.values(), key=lambda p: p.id):
            table.add_row(
                p.id,
                p.name,
                p.category,
                format_money(p.price),
                p.stock_quantity,
                key=str(p.id),
            )

    @on(DataTable.RowSelected)
    def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        prod = self._products.get(int(event.row_key.value))
        if prod is None:
            return
        self.current_id = prod.id
        self.query_one("#label-form-title", Label).update(f"Editing #{prod.id}")
        self.query_one("#input-name", Input).value = prod.name
        self.query_one("#input-category", Input).value = prod.category
        self.query_one("#input-price", Input).value = f"{prod.price:.2f}"
        self.query_one("#input-stock", Input).value = str(prod.stock_quantity)
        self.query_one("#input-description", Input).value = prod.description
        self.query_one("#btn-delete", Button).disabled = False

    @on(Button.Pressed, "#btn-new")
    def reset_form(self) -> None:
        self.current_id = None
        self.query_one("#label-form-title", Label).update("New product")
        for field_input in self.query(Input):
            field_input.value = ""
            field_input.remove_class("-invalid")
        self.query_one("#btn-delete", Button).disabled = True
        self.query_one("#input-name").focus()

    def _read_form(self) -> Optional[Product]:
        name_input = self.query_one("#input-name", Input)
        price_input = self.query_one("#input-price", Input)
        stock_input = self.query_one("#input-stock", Input)

        for field_input in (name_input, price_input, stock_input):
            if not field_input.value.strip() or not field_input.is_valid:
                field_input.focus()
                field_input.add_class("-invalid")
                return None
            field_input.remove_class("-invalid")

        return Product(
            id=self.current_id or 0,
            name=name_input.value.strip(),
            description=self.query_one("#input-description", Input).value.strip(),
            price=to_cents(Decimal(price_input.value)),
            stock_quantity=int(stock_input.value),
            category=self.query_one("#input-category", Input).value.strip(),
        )

    def _next_local_id(self) -> int:
        return max(self._products, default=0) + 1

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True)
    async def handle_save(self) -> None:
        prod = self._read_form()
        if prod is None:
            self.notify("Name, price and stock are required.", severity="error")
            return

        gateway = self.app.state.gateway
        try:
            if self.current_id is None:
                prod = await gateway.create_product(prod)
                self.notify(f"Product {prod.name} created.")
            else:
                await gateway.update_product(prod.id, prod)
                self.notify(f"Product {prod.name} updated.")
        except GatewayError as exc:
            _logger.warning(f"Product save not accepted by backend: {exc}")
            if self.current_id is None:
                prod = dataclasses.replace(prod, id=self._next_local_id())
            self.notify(
                "Backend did not accept the change; updated locally only.",
                severity="warning",
            )

        self._products[prod.id] = prod
        self.render_table()
        self.reset_form()

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True)
    async def handle_delete(self) -> None:
        if self.current_id is None:
            return
        prod = self._products.get(self.current_id)
        confirmation = delete_product(prod.name)
        if not await self.app.push_screen_wait(ConfirmModal(confirmation)):
            return

        try:
            await self.app.state.gateway.delete_product(prod.id)
            self.notify(f"Product {prod.name} deleted.")
        except GatewayError as exc:
            _logger.warning(f"Product delete not accepted by backend: {exc}")
            self.notify(
                "Backend did not accept the change; removed locally only.",
                severity="warning",
            )

        self._products.pop(prod.id, None)
        self.render_table()
        self.reset_form()
