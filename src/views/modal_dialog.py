from dataclasses import dataclass

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Label
from textual.widgets.button import ButtonVariant

from utils.messages import QuitRequestedMessage


@dataclass(frozen=True)
class Confirmation:
    """
    What a confirm dialog asks and how its buttons read.
    safe_default puts focus on the cancel button, for flows that lose data.
    """

    caption: str
    confirm_text: str = "Yes"
    cancel_text: str = "No"
    variant: ButtonVariant = "primary"
    safe_default: bool = False


LOG_OUT = Confirmation(
    "Log out? Your cart stays on this device.", "Log out", "Stay", "warning"
)
QUIT = Confirmation("Quit Cloud.Flow?", "Quit", "Stay", "error", safe_default=True)
CLEAR_CART = Confirmation(
    "Remove every item from your cart?",
    "Clear cart",
    "Keep items",
    "error",
    safe_default=True,
)
PLACE_ORDER = Confirmation(
    "Place this order? It cannot be undone.", "Place order", "Not yet", "success"
)


def delete_product(name: str) -> Confirmation:
    return Confirmation(
        f"Delete {name}? Shoppers will no longer see it.",
        "Delete",
        "Cancel",
        "error",
        safe_default=True,
    )


class ConfirmModal(ModalScreen[bool]):
    """
    Asks one question; dismisses with True when confirmed, False on cancel
    or escape.
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel", show=False)]

    def __init__(self, confirmation: Confirmation):
        super().__init__()
        self.confirmation = confirmation

    def compose(self) -> ComposeResult:
        c = self.confirmation
        with Container(id="div-dialog"):
            yield Label(c.caption, id="caption")
            with Horizontal(id="dialog"):
                yield Button(c.cancel_text, id="btn-cancel")
                yield Button(c.confirm_text, variant=c.variant, id="btn-confirm")

    def on_mount(self):
        if self.confirmation.safe_default:
            self.query_one("#btn-cancel").focus()
        else:
            self.query_one("#btn-confirm").focus()

    def confirm(self) -> None:
        self.dismiss(True)

    @on(Button.Pressed, "#btn-confirm")
    def handle_confirm(self) -> None:
        self.confirm()

    @on(Button.Pressed, "#btn-cancel")
    def action_cancel(self) -> None:
        self.dismiss(False)


class QuitModal(ConfirmModal):
    def __init__(self):
        super().__init__(QUIT)

    def confirm(self) -> None:
        self.post_message(QuitRequestedMessage())
        super().confirm()
