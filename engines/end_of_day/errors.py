"""
Ledger End-of-Day — Errors
"""

from core.errors import LedgerError


class AlreadyInProgress(LedgerError):
    code = "ALREADY_IN_PROGRESS"

    def __init__(self, branch_key: str):
        super().__init__(f"A stock check is already in progress for branch '{branch_key}'.")


class NoActiveSession(LedgerError):
    code = "NO_ACTIVE_SESSION"

    def __init__(self, branch_key: str):
        super().__init__(f"No stock check in progress for branch '{branch_key}'.")


class ItemNotFound(LedgerError):
    code = "ITEM_NOT_FOUND"

    def __init__(self, item_id: str):
        super().__init__(f"Item '{item_id}' is not part of the stock check.")
        self.item_id = item_id


class NotInitialized(LedgerError):
    code = "NOT_INITIALIZED"

    def __init__(self, branch_key: str):
        super().__init__(
            f"Cash reconciliation has not been started for branch '{branch_key}'."
        )


class ReconciliationRequired(LedgerError):
    code = "RECONCILIATION_REQUIRED"

    def __init__(self, branch_key: str):
        super().__init__(
            f"Finalize today's cash reconciliation for branch '{branch_key}' "
            f"before generating the report."
        )
