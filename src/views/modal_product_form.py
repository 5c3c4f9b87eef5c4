from datetime import date
from typing import Any, Dict, List, Optional

from textual import events, on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Checkbox, Input, Label, Select

from store.models import ALL_DIVISIONS, Product, StockStatus
from utils.pure import parse_amount

# (field, label, placeholder)
TEXT_FIELDS = [
    ("brand_name", "Brand Name", "CardioPlus 50"),
    ("composition", "Composition", "leave blank for marketing items"),
    ("packing", "Packing", "10x10 Tabs"),
    ("mrp", "MRP (₹)", "0 for complimentary items"),
    ("landing_cost", "Landing Cost (₹)", "internal, optional"),
    ("launch_date", "Launch Date", "YYYY-MM-DD, optional"),
    ("tags", "Search Tags", "comma separated, blank to let AI suggest"),
    ("image_url", "Image URL", "optional"),
    ("visual_aid_url", "Visual Aid URL", "optional"),
    ("video_url", "Video URL", "optional"),
]


class ProductFormModal(ModalScreen[Optional[Dict[str, Any]]]):
    """
    Create or edit a product.
    Returns the parsed fields (ready for the catalog), or None when cancelled.
    Blank tags come back as an empty tuple so the caller can ask the AI.
    """

    def __init__(self, divisions: List[str], product: Optional[Product] = None):
        super().__init__()
        self.divisions = [d for d in divisions if d != ALL_DIVISIONS]
        self.product = product

    def compose(self) -> ComposeResult:
        p = self.product
        with Vertical(id="div-product-form"):
            yield Label("Edit Product" if p else "Add Product", id="caption")
            with VerticalScroll():
                for key, label, placeholder in TEXT_FIELDS:
                    yield Label(label)
                    yield Input(self._initial(key), placeholder=placeholder, id=f"input-{key}")
                yield Label("Division")
                yield Select(
                    [(d, d) for d in self.divisions],
                    value=p.division if p else self.divisions[0],
                    allow_blank=False,
                    id="select-division",
                )
                yield Label("Stock Status")
                yield Select(
                    [(s.value, s.value) for s in StockStatus],
                    value=p.stock_status.value if p else StockStatus.AVAILABLE.value,
                    allow_blank=False,
                    id="select-stock",
                )
                yield Checkbox("Marketing input (gift, bag, visual aid)", p.is_promotional if p else False, id="chk-promo")
                yield Checkbox("Trending", p.is_trending if p else False, id="chk-trending")
            with Horizontal(id="dialog"):
                yield Button("Go Back", id="btn-quit")
                yield Button("Save", id="btn-submit", variant="primary")

    def _initial(self, key: str) -> str:
        p = self.product
        if p is None:
            return ""
        value = getattr(p, key)
        if value is None:
            return ""
        if key == "tags":
            return ", ".join(value)
        if key == "launch_date":
            return value.isoformat()
        if key in ("mrp", "landing_cost"):
            return f"{value:.2f}"
        return str(value)

    def on_mount(self):
        self.query_one("#input-brand_name").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    def _invalid(self, key: str, message: str) -> None:
        widget = self.query_one(f"#input-{key}", Input)
        widget.add_class("-invalid")
        widget.focus()
        self.notify(message, severity="error")

    @on(Button.Pressed, "#btn-submit")
    def handle_submit(self):
        text = {key: self.query_one(f"#input-{key}", Input).value.strip() for key, _, _ in TEXT_FIELDS}

        if not text["brand_name"]:
            self._invalid("brand_name", "Brand name is required.")
            return

        mrp = parse_amount(text["mrp"]) if text["mrp"] else 0.0
        if mrp is None or mrp < 0:
            self._invalid("mrp", "MRP must be a non-negative number.")
            return

        landing_cost = None
        if text["landing_cost"]:
            landing_cost = parse_amount(text["landing_cost"])
            if landing_cost is None:
                self._invalid("landing_cost", "Landing cost must be a number.")
                return

        launch_date = None
        if text["launch_date"]:
            try:
                launch_date = date.fromisoformat(text["launch_date"])
            except ValueError:
                self._invalid("launch_date", "Launch date must look like 2025-01-31.")
                return

        self.dismiss(
            {
                "brand_name": text["brand_name"],
                "composition": text["composition"] or None,
                "packing": text["packing"],
                "mrp": mrp,
                "landing_cost": landing_cost,
                "launch_date": launch_date,
                "tags": tuple(t for t in text["tags"].split(",") if t.strip()),
                "image_url": text["image_url"],
                "visual_aid_url": text["visual_aid_url"] or None,
                "video_url": text["video_url"] or None,
                "division": self.query_one("#select-division", Select).value,
                "stock_status": StockStatus(self.query_one("#select-stock", Select).value),
                "is_promotional": self.query_one("#chk-promo", Checkbox).value,
                "is_trending": self.query_one("#chk-trending", Checkbox).value,
            }
        )

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)
