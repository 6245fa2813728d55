"""
Ledger Sales Engine — Errors
"""

from core.errors import LedgerError


class EmptyCart(LedgerError):
    code = "EMPTY_CART"

    def __init__(self, branch_key: str):
        super().__init__(f"Cart for branch '{branch_key}' is empty.")
        self.branch_key = branch_key


class TransactionNotFound(LedgerError):
    code = "TRANSACTION_NOT_FOUND"

    def __init__(self, transaction_id: str, branch_key: str):
        super().__init__(
            f"Transaction '{transaction_id}' not found in branch '{branch_key}'."
        )
        self.transaction_id = transaction_id
        self.branch_key = branch_key


class InvalidStatusTransition(LedgerError):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot move transaction from '{current}' to '{requested}'."
        )
        self.current = current
        self.requested = requested
