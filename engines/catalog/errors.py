"""
Ledger Catalog Engine — Errors
"""

from core.errors import LedgerError


class InvalidQuantity(LedgerError):
    code = "INVALID_QUANTITY"

    def __init__(self, quantity):
        super().__init__(f"Quantity must be at least 1, got {quantity}.")
        self.quantity = quantity
