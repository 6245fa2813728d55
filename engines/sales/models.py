"""
Ledger Sales Engine — Transaction Model
=========================================
A Transaction is an immutable snapshot of a committed cart. Only its
status changes, and a status change produces a new Transaction value
that replaces the old one in the branch log.

Status lifecycle:
    pending → preparing → ready → completed
    any non-terminal status → cancelled
    completed, cancelled: terminal
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional, Tuple

from engines.catalog.models import CartItem, VALID_ORDER_TYPES, VALID_PAYMENT_METHODS


STATUS_PENDING = "pending"
STATUS_PREPARING = "preparing"
STATUS_READY = "ready"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"

STATUS_SEQUENCE = (
    STATUS_PENDING,
    STATUS_PREPARING,
    STATUS_READY,
    STATUS_COMPLETED,
)

VALID_STATUSES = frozenset(STATUS_SEQUENCE) | {STATUS_CANCELLED}
TERMINAL_STATUSES = frozenset({STATUS_COMPLETED, STATUS_CANCELLED})

CENT = Decimal("0.01")


def can_transition(current: str, requested: str) -> bool:
    if current in TERMINAL_STATUSES:
        return False
    if requested == STATUS_CANCELLED:
        return True
    if requested not in STATUS_SEQUENCE:
        return False
    return STATUS_SEQUENCE.index(requested) > STATUS_SEQUENCE.index(current)


# ══════════════════════════════════════════════════════════════
# TRANSACTION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Transaction:
    transaction_id: str
    branch_key: str
    receipt_number: str
    items: Tuple[CartItem, ...]
    subtotal: Decimal
    tax: Decimal
    tip: Decimal
    total: Decimal
    payment_method: str
    order_type: str
    cashier_id: str
    cashier_name: str
    created_at: datetime
    status: str = STATUS_PENDING
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self):
        if not self.items:
            raise ValueError("Transaction must contain at least one item.")
        if self.status not in VALID_STATUSES:
            raise ValueError(f"status '{self.status}' not valid.")
        if self.payment_method not in VALID_PAYMENT_METHODS:
            raise ValueError(f"payment_method '{self.payment_method}' not valid.")
        if self.order_type not in VALID_ORDER_TYPES:
            raise ValueError(f"order_type '{self.order_type}' not valid.")
        if self.total != self.subtotal + self.tax + self.tip:
            raise ValueError("total must equal subtotal + tax + tip.")
        if self.created_at.tzinfo is None:
            raise ValueError("created_at must be timezone-aware.")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def with_status(self, status: str) -> Transaction:
        return replace(self, status=status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transaction_id": self.transaction_id,
            "branch_key": self.branch_key,
            "receipt_number": self.receipt_number,
            "items": [item.to_dict() for item in self.items],
            "subtotal": self.subtotal,
            "tax": self.tax,
            "tip": self.tip,
            "total": self.total,
            "payment_method": self.payment_method,
            "order_type": self.order_type,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "notes": self.notes,
            "cashier_id": self.cashier_id,
            "cashier_name": self.cashier_name,
            "status": self.status,
            "created_at": self.created_at,
        }


# ══════════════════════════════════════════════════════════════
# SALES SUMMARY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SalesSummary:
    """Completed-sales figures for one branch and business day."""

    transaction_count: int = 0
    total_revenue: Decimal = Decimal(0)
    cash_sales: Decimal = Decimal(0)
    card_sales: Decimal = Decimal(0)
    mobile_sales: Decimal = Decimal(0)

    @property
    def average_transaction(self) -> Decimal:
        if not self.transaction_count:
            return Decimal(0)
        return (self.total_revenue / self.transaction_count).quantize(
            CENT, rounding=ROUND_HALF_UP,
        )

    @classmethod
    def from_transactions(cls, transactions) -> SalesSummary:
        by_method = {"cash": Decimal(0), "card": Decimal(0), "mobile": Decimal(0)}
        count = 0
        revenue = Decimal(0)
        for txn in transactions:
            count += 1
            revenue += txn.total
            by_method[txn.payment_method] += txn.total
        return cls(
            transaction_count=count,
            total_revenue=revenue,
            cash_sales=by_method["cash"],
            card_sales=by_method["card"],
            mobile_sales=by_method["mobile"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transaction_count": self.transaction_count,
            "total_revenue": self.total_revenue,
            "average_transaction": self.average_transaction,
            "cash_sales": self.cash_sales,
            "card_sales": self.card_sales,
            "mobile_sales": self.mobile_sales,
        }
