"""
Ledger End-of-Day — Value Objects
===================================
Stock check lines and sessions, petty cash entries, cash drawer
breakdown, cash reconciliation, and the consolidated day report.

Invariants:
- StockCheckItem.difference == actual_count − expected_count
- StockCheckItem.variance == difference × unit_cost
- CashReconciliation.expected_cash ==
      opening_cash + cash_sales + petty_cash_in − petty_cash_out
- CashReconciliation.variance == actual_cash − expected_cash
- CashBreakdown.total is rounded to cents
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from engines.hr.models import LaborSummary
from engines.sales.models import SalesSummary

ZERO = Decimal(0)
CENT = Decimal("0.01")

PHASE_IDLE = "idle"
PHASE_STOCK_CHECK_IN_PROGRESS = "stock_check_in_progress"
PHASE_STOCK_CHECK_COMPLETED = "stock_check_completed"
PHASE_CASH_PENDING = "cash_reconciliation_pending"
PHASE_CASH_FINALIZED = "cash_reconciliation_finalized"
PHASE_REPORT_GENERATED = "report_generated"

# Closing order within one cycle; a branch never moves back along it.
PHASE_ORDER: Tuple[str, ...] = (
    PHASE_IDLE,
    PHASE_STOCK_CHECK_IN_PROGRESS,
    PHASE_STOCK_CHECK_COMPLETED,
    PHASE_CASH_PENDING,
    PHASE_CASH_FINALIZED,
    PHASE_REPORT_GENERATED,
)

RECONCILIATION_PENDING = "pending"
RECONCILIATION_VERIFIED = "verified"
RECONCILIATION_DISCREPANCY = "discrepancy"

REPORT_COMPLETED = "completed"
REPORT_REQUIRES_ATTENTION = "requires-attention"

PETTY_INCOME = "income"
PETTY_EXPENSE = "expense"
VALID_PETTY_KINDS = frozenset({PETTY_INCOME, PETTY_EXPENSE})
VALID_PETTY_CATEGORIES = frozenset({"supplies", "maintenance", "utilities", "other"})

# Denomination name → face value, largest first.
DENOMINATIONS: Dict[str, Decimal] = {
    "hundreds": Decimal("100"),
    "fifties": Decimal("50"),
    "twenties": Decimal("20"),
    "tens": Decimal("10"),
    "fives": Decimal("5"),
    "ones": Decimal("1"),
    "quarters": Decimal("0.25"),
    "dimes": Decimal("0.10"),
    "nickels": Decimal("0.05"),
    "pennies": Decimal("0.01"),
}


def _as_money(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# ══════════════════════════════════════════════════════════════
# STOCK CHECK
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StockCheckItem:
    item_id: str
    name: str
    unit: str
    unit_cost: Decimal
    expected_count: int
    actual_count: int
    notes: Optional[str] = None

    def __post_init__(self):
        if self.actual_count < 0:
            raise ValueError("actual_count must be non-negative.")

    @property
    def difference(self) -> int:
        return self.actual_count - self.expected_count

    @property
    def variance(self) -> Decimal:
        return self.difference * self.unit_cost

    def with_count(self, actual_count: int, notes: Optional[str] = None) -> StockCheckItem:
        return replace(
            self,
            actual_count=actual_count,
            notes=notes if notes is not None else self.notes,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "name": self.name,
            "unit": self.unit,
            "unit_cost": self.unit_cost,
            "expected_count": self.expected_count,
            "actual_count": self.actual_count,
            "difference": self.difference,
            "variance": self.variance,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class StockCheckSummary:
    total_items: int = 0
    items_with_variance: int = 0
    total_stock_variance: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_items": self.total_items,
            "items_with_variance": self.items_with_variance,
            "total_stock_variance": self.total_stock_variance,
        }


@dataclass(frozen=True)
class StockCheckSession:
    """One count of a branch's stock; evolved by replacement, never in place."""

    session_id: str
    branch_key: str
    started_at: datetime
    items: Mapping[str, StockCheckItem] = field(default_factory=dict)
    completed_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "items", MappingProxyType(dict(self.items)))

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def with_line(self, line: StockCheckItem) -> StockCheckSession:
        return replace(self, items={**self.items, line.item_id: line})

    def completed(self, completed_at: datetime) -> StockCheckSession:
        return replace(self, completed_at=completed_at)

    def lines(self) -> Tuple[StockCheckItem, ...]:
        return tuple(self.items.values())

    def summary(self) -> StockCheckSummary:
        lines = self.lines()
        return StockCheckSummary(
            total_items=len(lines),
            items_with_variance=sum(1 for line in lines if line.difference != 0),
            total_stock_variance=sum((line.variance for line in lines), ZERO),
        )

    def variances(self) -> Tuple[StockCheckItem, ...]:
        return tuple(line for line in self.lines() if line.difference != 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "branch_key": self.branch_key,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "items": [line.to_dict() for line in self.lines()],
            "summary": self.summary().to_dict(),
        }


# ══════════════════════════════════════════════════════════════
# PETTY CASH
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PettyCashEntry:
    entry_id: str
    created_at: datetime
    description: str
    amount: Decimal
    kind: str
    category: str
    created_by: str
    receipt_reference: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self):
        if not self.description:
            raise ValueError("description must be non-empty.")
        object.__setattr__(self, "amount", _as_money(self.amount))
        if self.amount <= 0:
            raise ValueError("amount must be positive.")
        if self.kind not in VALID_PETTY_KINDS:
            raise ValueError(
                f"kind '{self.kind}' not valid. "
                f"Must be one of: {sorted(VALID_PETTY_KINDS)}"
            )
        if self.category not in VALID_PETTY_CATEGORIES:
            raise ValueError(
                f"category '{self.category}' not valid. "
                f"Must be one of: {sorted(VALID_PETTY_CATEGORIES)}"
            )


@dataclass(frozen=True)
class PettyCashSummary:
    total_in: Decimal = ZERO
    total_out: Decimal = ZERO

    @property
    def net_change(self) -> Decimal:
        return self.total_in - self.total_out

    @classmethod
    def from_entries(cls, entries) -> PettyCashSummary:
        total_in = ZERO
        total_out = ZERO
        for entry in entries:
            if entry.kind == PETTY_INCOME:
                total_in += entry.amount
            else:
                total_out += entry.amount
        return cls(total_in=total_in, total_out=total_out)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_in": self.total_in,
            "total_out": self.total_out,
            "net_change": self.net_change,
        }


# ══════════════════════════════════════════════════════════════
# CASH BREAKDOWN
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CashBreakdown:
    """
    Counted drawer contents per denomination.

    CashBreakdown.of(twenties=20, fives=5); unnamed denominations are 0.
    """

    counts: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self):
        unknown = sorted(set(self.counts) - set(DENOMINATIONS))
        if unknown:
            raise ValueError(f"Unknown denominations: {', '.join(unknown)}.")
        for name, count in self.counts.items():
            if not isinstance(count, int) or count < 0:
                raise ValueError(f"Count for '{name}' must be a non-negative integer.")
        object.__setattr__(
            self, "counts",
            MappingProxyType(
                {name: int(self.counts.get(name, 0)) for name in DENOMINATIONS}
            ),
        )

    @classmethod
    def of(cls, **counts: int) -> CashBreakdown:
        return cls(counts=counts)

    @property
    def total(self) -> Decimal:
        raw = sum(
            (value * self.counts[name] for name, value in DENOMINATIONS.items()),
            ZERO,
        )
        return raw.quantize(CENT, rounding=ROUND_HALF_UP)

    def to_dict(self) -> Dict[str, Any]:
        return {**self.counts, "total": self.total}


# ══════════════════════════════════════════════════════════════
# CASH RECONCILIATION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CashReconciliation:
    reconciliation_id: str
    branch_key: str
    business_date: date
    opening_cash: Decimal
    cash_sales: Decimal
    card_sales: Decimal
    mobile_sales: Decimal
    petty_cash_in: Decimal
    petty_cash_out: Decimal
    performed_by: str
    actual_cash: Decimal = ZERO
    breakdown: Optional[CashBreakdown] = None
    notes: Optional[str] = None
    status: str = RECONCILIATION_PENDING
    finalized_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "opening_cash", _as_money(self.opening_cash))
        if self.opening_cash < 0:
            raise ValueError("opening_cash must be non-negative.")

    @property
    def expected_cash(self) -> Decimal:
        return (
            self.opening_cash + self.cash_sales
            + self.petty_cash_in - self.petty_cash_out
        )

    @property
    def variance(self) -> Decimal:
        return self.actual_cash - self.expected_cash

    @property
    def is_finalized(self) -> bool:
        return self.status != RECONCILIATION_PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reconciliation_id": self.reconciliation_id,
            "branch_key": self.branch_key,
            "business_date": self.business_date,
            "opening_cash": self.opening_cash,
            "cash_sales": self.cash_sales,
            "card_sales": self.card_sales,
            "mobile_sales": self.mobile_sales,
            "petty_cash_in": self.petty_cash_in,
            "petty_cash_out": self.petty_cash_out,
            "expected_cash": self.expected_cash,
            "actual_cash": self.actual_cash,
            "variance": self.variance,
            "breakdown": None if self.breakdown is None else self.breakdown.to_dict(),
            "notes": self.notes,
            "performed_by": self.performed_by,
            "status": self.status,
            "finalized_at": self.finalized_at,
        }


# ══════════════════════════════════════════════════════════════
# END-OF-DAY REPORT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class EndOfDayReport:
    report_id: str
    branch_key: str
    business_date: date
    stock_check: StockCheckSummary
    cash_reconciliation: CashReconciliation
    petty_cash: PettyCashSummary
    sales: SalesSummary
    labor: LaborSummary
    status: str
    completed_by: str
    completed_at: datetime

    @property
    def requires_attention(self) -> bool:
        return self.status == REPORT_REQUIRES_ATTENTION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report_id": self.report_id,
            "branch_key": self.branch_key,
            "business_date": self.business_date,
            "stock_check": self.stock_check.to_dict(),
            "cash_reconciliation": self.cash_reconciliation.to_dict(),
            "petty_cash": self.petty_cash.to_dict(),
            "sales": self.sales.to_dict(),
            "labor": self.labor.to_dict(),
            "status": self.status,
            "completed_by": self.completed_by,
            "completed_at": self.completed_at,
        }
