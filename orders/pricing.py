"""Cart parsing and order totals.

Client payloads are untrusted: every line is re-validated and all totals are
computed here, never taken from the request.
"""

from dataclasses import dataclass, field, asdict

from django.conf import settings

from .exceptions import ValidationError
from .money import normalize_to_minor_units, to_minor_units, UNITS

MAX_QUANTITY = 1000


@dataclass(frozen=True)
class LineItem:
    product_id: str
    title: str
    price: int
    supplier_cost: int
    quantity: int
    sku: str = ""

    @property
    def line_total(self) -> int:
        return self.price * self.quantity

    @property
    def supplier_total(self) -> int:
        return self.supplier_cost * self.quantity

    def as_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "LineItem":
        return cls(
            product_id=str(data.get("product_id", "")),
            title=str(data.get("title", "")),
            price=int(data.get("price", 0)),
            supplier_cost=int(data.get("supplier_cost", 0)),
            quantity=int(data.get("quantity", 1)),
            sku=str(data.get("sku", "")),
        )


@dataclass(frozen=True)
class Customer:
    name: str = ""
    email: str = ""
    shipping_address: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {"name": self.name, "email": self.email, "address": self.shipping_address}


@dataclass(frozen=True)
class Totals:
    total: int
    supplier_share: int

    @property
    def profit(self) -> int:
        return self.total - self.supplier_share


def _amount(raw, unit, label):
    if raw is None or raw == "":
        return 0
    if unit is None:
        if getattr(settings, "DROPSHIP_LEGACY_PRICE_HEURISTIC", False):
            return normalize_to_minor_units(raw)
        unit = "minor"
    try:
        amount = to_minor_units(raw, unit)
    except ValueError:
        raise ValidationError(f"Invalid {label}")
    if amount < 0:
        raise ValidationError(f"Invalid {label}")
    return amount


def _quantity(raw) -> int:
    if raw is None or raw == "":
        return 1
    try:
        qty = int(str(raw).strip())
    except (TypeError, ValueError):
        raise ValidationError("Invalid quantity")
    if qty < 1 or qty > MAX_QUANTITY:
        raise ValidationError("Invalid quantity")
    return qty


def parse_line_item(raw: dict, default_unit=None) -> LineItem:
    if not isinstance(raw, dict):
        raise ValidationError("Each cart item must be an object")
    unit = raw.get("unit", default_unit)
    if unit is not None and unit not in UNITS:
        raise ValidationError("unit must be 'minor' or 'major'")
    if raw.get("price") is None:
        raise ValidationError("Each cart item needs a price")
    supplier_cost = raw.get("supplierCost", raw.get("supplier_cost"))
    return LineItem(
        product_id=str(raw.get("id") or raw.get("productId") or ""),
        title=str(raw.get("title") or raw.get("name") or ""),
        price=_amount(raw.get("price"), unit, "price"),
        supplier_cost=_amount(supplier_cost, unit, "supplierCost"),
        quantity=_quantity(raw.get("quantity")),
        sku=str(raw.get("supplier_sku") or raw.get("sku") or ""),
    )


def parse_cart(raw_items, default_unit=None) -> list[LineItem]:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("cartItems required")
    return [parse_line_item(it, default_unit) for it in raw_items]


def parse_customer(raw) -> Customer:
    if raw is None:
        return Customer()
    if not isinstance(raw, dict):
        raise ValidationError("customer must be an object")
    address = raw.get("address") or raw.get("shippingAddress") or {}
    if isinstance(address, str):
        address = {"line1": address}
    if not isinstance(address, dict):
        raise ValidationError("Invalid shipping address")
    return Customer(
        name=str(raw.get("name") or "").strip(),
        email=str(raw.get("email") or "").strip(),
        shipping_address=address,
    )


def compute_totals(items: list[LineItem]) -> Totals:
    totals = Totals(
        total=sum(it.line_total for it in items),
        supplier_share=sum(it.supplier_total for it in items),
    )
    if totals.profit < 0:
        raise ValidationError("supplier cost > price")
    return totals
