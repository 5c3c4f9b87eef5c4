from dataclasses import dataclass
from typing import Dict, List, Optional

from textual import events, on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label


@dataclass(frozen=True)
class FormField:
    key: str
    label: str
    placeholder: str = ""
    value: str = ""
    required: bool = True


# per operation: (title, fields)
ORDER_FORMS: Dict[str, tuple] = {
    "request_payment": (
        "Request Payment",
        [
            FormField("final_amount", "Final Payable Amount (₹)", "e.g. 7900"),
            FormField("invoice_url", "Invoice (link or file path)", "invoice.pdf"),
        ],
    ),
    "submit_proof": (
        "Upload Payment Proof",
        [FormField("proof_url", "Payment Proof (link or file path)", "receipt.jpg")],
    ),
    "dispatch": (
        "Dispatch Order",
        [
            FormField("docket_number", "Docket / LR Number", "DTDC-99887766"),
            FormField(
                "transport_details",
                "Transport Details",
                "Courier name, vehicle no.",
                required=False,
            ),
        ],
    ),
    "cancel": (
        "Cancel Order",
        [FormField("reason", "Reason", "optional", required=False)],
    ),
}


class OrderActionModal(ModalScreen[Optional[Dict[str, str]]]):
    """
    Collects the inputs of one order operation.
    Returns {field key: stripped text}, or None when cancelled.
    Only presence is checked here; the ledger validates values.
    """

    def __init__(self, order_id: str, operation: str, prefill: Optional[Dict[str, str]] = None):
        super().__init__()
        self.order_id = order_id
        self.title_text, fields = ORDER_FORMS[operation]
        prefill = prefill or {}
        self.fields: List[FormField] = [
            FormField(f.key, f.label, f.placeholder, prefill.get(f.key, f.value), f.required)
            for f in fields
        ]

    def compose(self) -> ComposeResult:
        with Vertical(id="div-order-action"):
            yield Label(f"{self.title_text}: {self.order_id}", id="caption")
            for f in self.fields:
                yield Label(f.label + ("" if f.required else " (optional)"))
                yield Input(f.value, placeholder=f.placeholder, id=f"input-{f.key}")
            with Horizontal(id="dialog"):
                yield Button("Go Back", id="btn-quit")
                yield Button("Submit", id="btn-submit", variant="primary")

    def on_mount(self):
        self.query_one(f"#input-{self.fields[0].key}").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    @on(Button.Pressed, "#btn-submit")
    def handle_submit(self):
        values = {}
        for f in self.fields:
            widget = self.query_one(f"#input-{f.key}", Input)
            text = widget.value.strip()
            if f.required and not text:
                widget.add_class("-invalid")
                widget.focus()
                self.notify(f"{f.label} is required.", severity="error")
                return
            values[f.key] = text
        self.dismiss(values)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)
