"""
Ledger Catalog Engine — Value Objects
=======================================
Products, cart lines, pending order options, and derived cart totals.

All money is Decimal. Cart lines carry a snapshot of the product as it
was when the line was first added, so later catalog changes never
reprice an open cart or a committed transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Tuple

from core.config.rules import TaxRule


ORDER_TYPE_DINE_IN = "dine-in"
ORDER_TYPE_TAKEOUT = "takeout"
ORDER_TYPE_DELIVERY = "delivery"

VALID_ORDER_TYPES = frozenset({
    ORDER_TYPE_DINE_IN,
    ORDER_TYPE_TAKEOUT,
    ORDER_TYPE_DELIVERY,
})

PAYMENT_CASH = "cash"
PAYMENT_CARD = "card"
PAYMENT_MOBILE = "mobile"

VALID_PAYMENT_METHODS = frozenset({
    PAYMENT_CASH,
    PAYMENT_CARD,
    PAYMENT_MOBILE,
})


def _as_money(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


# ══════════════════════════════════════════════════════════════
# PRODUCT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Product:
    product_id: str
    name: str
    category: str
    unit_price: Decimal
    is_available: bool = True
    preparation_minutes: int = 0
    description: Optional[str] = None

    def __post_init__(self):
        if not self.product_id:
            raise ValueError("product_id must be non-empty.")
        if not self.name:
            raise ValueError("name must be non-empty.")
        if not self.category:
            raise ValueError("category must be non-empty.")
        object.__setattr__(self, "unit_price", _as_money(self.unit_price))
        if self.unit_price < 0:
            raise ValueError("unit_price must be non-negative.")
        if self.preparation_minutes < 0:
            raise ValueError("preparation_minutes must be non-negative.")

    def matches(self, search_text: str) -> bool:
        """Case-insensitive substring match on name or description."""
        needle = search_text.lower()
        if needle in self.name.lower():
            return True
        return bool(self.description) and needle in self.description.lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "category": self.category,
            "unit_price": self.unit_price,
            "is_available": self.is_available,
            "preparation_minutes": self.preparation_minutes,
            "description": self.description,
        }


# ══════════════════════════════════════════════════════════════
# CART ITEM
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CartItem:
    """One cart line. `product` is the price snapshot of the first add."""

    product: Product
    quantity: int
    note: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.product, Product):
            raise ValueError("product must be a Product.")
        if not isinstance(self.quantity, int) or self.quantity < 1:
            raise ValueError("quantity must be an integer >= 1.")

    @property
    def product_id(self) -> str:
        return self.product.product_id

    @property
    def subtotal(self) -> Decimal:
        return self.product.unit_price * self.quantity

    def with_quantity(self, quantity: int) -> CartItem:
        return replace(self, quantity=quantity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product.product_id,
            "name": self.product.name,
            "unit_price": self.product.unit_price,
            "quantity": self.quantity,
            "subtotal": self.subtotal,
            "note": self.note,
        }


# ══════════════════════════════════════════════════════════════
# ORDER CONFIG
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OrderConfig:
    """Options for the order being built. Reset when the cart is cleared."""

    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    order_type: str = ORDER_TYPE_TAKEOUT
    payment_method: str = PAYMENT_CASH
    notes: Optional[str] = None
    tip: Decimal = Decimal(0)

    def __post_init__(self):
        if self.order_type not in VALID_ORDER_TYPES:
            raise ValueError(
                f"order_type '{self.order_type}' not valid. "
                f"Must be one of: {sorted(VALID_ORDER_TYPES)}"
            )
        if self.payment_method not in VALID_PAYMENT_METHODS:
            raise ValueError(
                f"payment_method '{self.payment_method}' not valid. "
                f"Must be one of: {sorted(VALID_PAYMENT_METHODS)}"
            )
        object.__setattr__(self, "tip", _as_money(self.tip))
        if self.tip < 0:
            raise ValueError("tip must be non-negative.")


# ══════════════════════════════════════════════════════════════
# CART TOTALS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    tax: Decimal
    tip: Decimal
    total: Decimal
    item_count: int

    @classmethod
    def compute(
        cls, items: Iterable[CartItem], tip: Decimal, tax_rule: TaxRule,
    ) -> CartTotals:
        items = tuple(items)
        subtotal = sum((item.subtotal for item in items), Decimal(0))
        tax = tax_rule.compute_tax(subtotal)
        return cls(
            subtotal=subtotal,
            tax=tax,
            tip=tip,
            total=subtotal + tax + tip,
            item_count=sum(item.quantity for item in items),
        )


@dataclass(frozen=True)
class CartSnapshot:
    """Point-in-time copy of a branch cart, taken under the branch lock."""

    items: Tuple[CartItem, ...]
    order: OrderConfig
    totals: CartTotals = field(compare=False)

    @property
    def is_empty(self) -> bool:
        return not self.items
