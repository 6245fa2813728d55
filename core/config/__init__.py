"""
Ledger Core Config — Public API
=================================
Configurable rules (tax, payroll, cash tolerance).
No hardcoded rates in engine logic.
"""

from core.config.rules import (
    CashRule,
    LedgerConfig,
    PayrollRule,
    TaxRule,
    load_ledger_config,
)

__all__ = [
    "TaxRule",
    "PayrollRule",
    "CashRule",
    "LedgerConfig",
    "load_ledger_config",
]
