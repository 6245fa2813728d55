"""
Ledger Core Config — Operational Rules
========================================
Tax rate, payroll rules, cash tolerance, and operational knobs come
from configuration data, not from engine code.

LedgerConfig.from_mapping() builds the rule set from plain data
(e.g. the LEDGER dict in Django settings). All rates are Decimal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def _as_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# ══════════════════════════════════════════════════════════════
# TAX RULE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TaxRule:
    """
    Single flat sales-tax rate.

    rate = Decimal("0.08") means 8%.
    """

    rate: Decimal = Decimal("0.08")

    def __post_init__(self) -> None:
        object.__setattr__(self, "rate", _as_decimal(self.rate))
        if not Decimal(0) <= self.rate <= Decimal(1):
            raise ValueError(f"Tax rate must be between 0 and 1, got {self.rate}.")

    def compute_tax(self, amount: Decimal) -> Decimal:
        """Tax for a base amount. Not rounded: tax == amount * rate exactly."""
        return _as_decimal(amount) * self.rate


# ══════════════════════════════════════════════════════════════
# PAYROLL RULE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PayrollRule:
    """Per-shift overtime threshold, overtime multiplier, flat payroll tax."""

    regular_hours_limit: Decimal = Decimal(8)
    overtime_multiplier: Decimal = Decimal("1.5")
    tax_rate: Decimal = Decimal("0.25")

    def __post_init__(self) -> None:
        for name in ("regular_hours_limit", "overtime_multiplier", "tax_rate"):
            object.__setattr__(self, name, _as_decimal(getattr(self, name)))
        if self.regular_hours_limit <= 0:
            raise ValueError("regular_hours_limit must be positive.")
        if self.overtime_multiplier < 1:
            raise ValueError("overtime_multiplier must be >= 1.")
        if not Decimal(0) <= self.tax_rate <= Decimal(1):
            raise ValueError(
                f"Payroll tax rate must be between 0 and 1, got {self.tax_rate}."
            )

    def split_hours(self, total_hours: Decimal) -> tuple[Decimal, Decimal]:
        """Return (regular, overtime) for one shift."""
        regular = min(total_hours, self.regular_hours_limit)
        overtime = max(total_hours - self.regular_hours_limit, Decimal(0))
        return regular, overtime


# ══════════════════════════════════════════════════════════════
# CASH RULE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CashRule:
    """Drawer variance tolerance in currency units."""

    tolerance: Decimal = Decimal("0.50")

    def __post_init__(self) -> None:
        object.__setattr__(self, "tolerance", _as_decimal(self.tolerance))
        if self.tolerance < 0:
            raise ValueError("tolerance must be non-negative.")

    def is_discrepancy(self, variance: Decimal) -> bool:
        return abs(variance) > self.tolerance


# ══════════════════════════════════════════════════════════════
# LEDGER CONFIG (bundle)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LedgerConfig:
    tax: TaxRule = field(default_factory=TaxRule)
    payroll: PayrollRule = field(default_factory=PayrollRule)
    cash: CashRule = field(default_factory=CashRule)
    fulfillment_delay_seconds: float = 1.0
    receipt_prefix: str = ""
    recent_transactions_limit: int = 10
    business_timezone: str = "UTC"

    def __post_init__(self) -> None:
        if self.fulfillment_delay_seconds < 0:
            raise ValueError("fulfillment_delay_seconds must be non-negative.")
        if self.recent_transactions_limit <= 0:
            raise ValueError("recent_transactions_limit must be positive.")
        try:
            ZoneInfo(self.business_timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(
                f"Unknown business_timezone '{self.business_timezone}'."
            ) from exc

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> LedgerConfig:
        """
        Build config from plain data. Unknown keys are rejected so a typo
        in settings fails loudly instead of silently using a default.
        """
        data = dict(data or {})
        known = {
            "TAX_RATE", "OVERTIME_THRESHOLD_HOURS", "OVERTIME_MULTIPLIER",
            "PAYROLL_TAX_RATE", "CASH_TOLERANCE", "FULFILLMENT_DELAY_SECONDS",
            "RECEIPT_PREFIX", "RECENT_TRANSACTIONS_LIMIT", "BUSINESS_TIMEZONE",
        }
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown ledger settings: {', '.join(unknown)}.")

        defaults = PayrollRule()
        return cls(
            tax=TaxRule(rate=data.get("TAX_RATE", TaxRule().rate)),
            payroll=PayrollRule(
                regular_hours_limit=data.get(
                    "OVERTIME_THRESHOLD_HOURS", defaults.regular_hours_limit
                ),
                overtime_multiplier=data.get(
                    "OVERTIME_MULTIPLIER", defaults.overtime_multiplier
                ),
                tax_rate=data.get("PAYROLL_TAX_RATE", defaults.tax_rate),
            ),
            cash=CashRule(tolerance=data.get("CASH_TOLERANCE", CashRule().tolerance)),
            fulfillment_delay_seconds=float(
                data.get("FULFILLMENT_DELAY_SECONDS", 1.0)
            ),
            receipt_prefix=str(data.get("RECEIPT_PREFIX", "")),
            recent_transactions_limit=int(data.get("RECENT_TRANSACTIONS_LIMIT", 10)),
            business_timezone=str(data.get("BUSINESS_TIMEZONE", "UTC")),
        )


def load_ledger_config() -> LedgerConfig:
    """Read the LEDGER dict from Django settings (defaults if absent)."""
    from django.conf import settings

    return LedgerConfig.from_mapping(getattr(settings, "LEDGER", None))
