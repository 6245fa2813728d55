"""
Branch ledger composition root.
"""

from adapters.ledger.wiring import BranchLedger, build_ledger, create_ledger

__all__ = [
    "BranchLedger",
    "build_ledger",
    "create_ledger",
]
