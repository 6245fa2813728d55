"""
Ledger Catalog Engine — Application Service
=============================================
Per-branch product catalog, shopping cart, and pending order options.

Every branch gets its own CartState partition, seeded from the
CatalogSource the first time the branch is touched. Mutations run under
the branch partition lock; the sales engine takes the same lock when it
snapshots and clears the cart at commit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple

from core.config.rules import LedgerConfig
from core.context.operation_context import BranchKey, OperationContext
from core.partitions import BranchPartitionStore, Partition
from engines.catalog.errors import InvalidQuantity
from engines.catalog.models import (
    CartItem,
    CartSnapshot,
    CartTotals,
    OrderConfig,
    Product,
)

logger = logging.getLogger("ledger.catalog")

ORDER_FIELDS = frozenset({
    "customer_name",
    "customer_phone",
    "order_type",
    "payment_method",
    "notes",
    "tip",
})


# ══════════════════════════════════════════════════════════════
# CATALOG SOURCE
# ══════════════════════════════════════════════════════════════

class CatalogSource(Protocol):
    def products_for(self, branch_key: BranchKey) -> Iterable[Product]:
        """Seed products for a branch, in display order."""
        ...  # pragma: no cover


DEFAULT_PRODUCTS: Tuple[Product, ...] = (
    Product("1", "Cappuccino", "coffee", Decimal("4.50"),
            preparation_minutes=3,
            description="Espresso with steamed milk and foam"),
    Product("2", "Americano", "coffee", Decimal("3.50"),
            preparation_minutes=2, description="Espresso with hot water"),
    Product("3", "Latte", "coffee", Decimal("4.75"),
            preparation_minutes=4, description="Espresso with steamed milk"),
    Product("4", "Croissant", "pastry", Decimal("3.50"),
            preparation_minutes=1,
            description="Freshly baked buttery croissant"),
    Product("5", "Blueberry Muffin", "pastry", Decimal("4.25"),
            preparation_minutes=1,
            description="Homemade muffin with fresh blueberries"),
    Product("6", "Espresso", "coffee", Decimal("2.50"),
            preparation_minutes=1, description="Strong concentrated coffee"),
    Product("7", "Orange Juice", "beverage", Decimal("3.75"),
            preparation_minutes=1, description="Fresh squeezed orange juice"),
    Product("8", "Club Sandwich", "food", Decimal("8.50"),
            preparation_minutes=8,
            description="Triple-layer sandwich with turkey, bacon, and vegetables"),
)


class StaticCatalogSource:
    """
    Same product list for every branch unless a branch has its own.

    StaticCatalogSource() seeds DEFAULT_PRODUCTS everywhere.
    """

    def __init__(
        self,
        products: Iterable[Product] = DEFAULT_PRODUCTS,
        per_branch: Optional[Dict[BranchKey, Iterable[Product]]] = None,
    ):
        self._products = tuple(products)
        self._per_branch = {
            key: tuple(items) for key, items in (per_branch or {}).items()
        }

    def products_for(self, branch_key: BranchKey) -> Tuple[Product, ...]:
        return self._per_branch.get(branch_key, self._products)


# ══════════════════════════════════════════════════════════════
# BRANCH STATE
# ══════════════════════════════════════════════════════════════

@dataclass
class CartState:
    products: Tuple[Product, ...]
    items: List[CartItem] = field(default_factory=list)
    order: OrderConfig = field(default_factory=OrderConfig)

    def find_line(self, product_id: str) -> Optional[int]:
        for index, item in enumerate(self.items):
            if item.product_id == product_id:
                return index
        return None


# ══════════════════════════════════════════════════════════════
# SERVICE
# ══════════════════════════════════════════════════════════════

class CatalogCartService:
    """
    Catalog browsing and cart editing for the branch in the context.

    Every call needs context.branch_key; none needs an operator.
    """

    def __init__(self, config: LedgerConfig, catalog_source: CatalogSource):
        self._config = config
        self._catalog_source = catalog_source
        self._store: BranchPartitionStore[CartState] = BranchPartitionStore(
            "catalog", seed=self._seed,
        )

    def _seed(self, branch_key: BranchKey) -> CartState:
        return CartState(products=tuple(self._catalog_source.products_for(branch_key)))

    def partition(self, branch_key: Optional[BranchKey]) -> Partition[CartState]:
        return self._store.get(branch_key)

    def _partition(self, context: OperationContext) -> Partition[CartState]:
        return self._store.get(context.require_branch())

    # ── catalog ───────────────────────────────────────────────

    def products(self, context: OperationContext) -> Tuple[Product, ...]:
        return self._partition(context).state.products

    def list_available(
        self,
        context: OperationContext,
        category: Optional[str] = None,
        search_text: Optional[str] = None,
    ) -> Tuple[Product, ...]:
        result = []
        for product in self._partition(context).state.products:
            if not product.is_available:
                continue
            if category and product.category != category:
                continue
            if search_text and not product.matches(search_text):
                continue
            result.append(product)
        return tuple(result)

    # ── cart ──────────────────────────────────────────────────

    def add_to_cart(
        self,
        context: OperationContext,
        product: Product,
        quantity: int = 1,
        note: Optional[str] = None,
    ) -> CartItem:
        if not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantity(quantity)
        partition = self._partition(context)
        with partition.lock:
            state = partition.state
            index = state.find_line(product.product_id)
            if index is None:
                line = CartItem(product=product, quantity=quantity, note=note)
                state.items.append(line)
            else:
                current = state.items[index]
                line = current.with_quantity(current.quantity + quantity)
                state.items[index] = line
        logger.debug(
            f"Cart add: branch={partition.key} product={product.product_id} "
            f"quantity={line.quantity}"
        )
        return line

    def set_quantity(
        self, context: OperationContext, product_id: str, quantity: int,
    ) -> Optional[CartItem]:
        """Set a line's quantity. quantity <= 0 removes the line."""
        if quantity <= 0:
            self.remove_from_cart(context, product_id)
            return None
        partition = self._partition(context)
        with partition.lock:
            state = partition.state
            index = state.find_line(product_id)
            if index is None:
                return None
            line = state.items[index].with_quantity(quantity)
            state.items[index] = line
            return line

    def remove_from_cart(self, context: OperationContext, product_id: str) -> bool:
        partition = self._partition(context)
        with partition.lock:
            state = partition.state
            index = state.find_line(product_id)
            if index is None:
                return False
            del state.items[index]
            return True

    def clear_cart(self, context: OperationContext) -> None:
        """Empty the cart and reset the order options."""
        partition = self._partition(context)
        with partition.lock:
            partition.state.items.clear()
            partition.state.order = OrderConfig()

    def update_order(self, context: OperationContext, **changes: Any) -> OrderConfig:
        unknown = sorted(set(changes) - ORDER_FIELDS)
        if unknown:
            raise ValueError(f"Unknown order fields: {', '.join(unknown)}.")
        partition = self._partition(context)
        with partition.lock:
            order = replace(partition.state.order, **changes)
            partition.state.order = order
        return order

    # ── views ─────────────────────────────────────────────────

    def cart(self, context: OperationContext) -> Tuple[CartItem, ...]:
        partition = self._partition(context)
        with partition.lock:
            return tuple(partition.state.items)

    def order(self, context: OperationContext) -> OrderConfig:
        return self._partition(context).state.order

    def totals(self, context: OperationContext) -> CartTotals:
        return self.snapshot(context).totals

    def snapshot(self, context: OperationContext) -> CartSnapshot:
        partition = self._partition(context)
        with partition.lock:
            items = tuple(partition.state.items)
            order = partition.state.order
        return CartSnapshot(
            items=items,
            order=order,
            totals=CartTotals.compute(items, order.tip, self._config.tax),
        )
