"""
Ledger Core — Error Taxonomy
==============================
Base error for every precondition failure raised by the ledger.

Rules:
- Errors are raised synchronously to the caller
- The ledger never retries and never swallows a violation
- Every error carries a machine-readable code (SCREAMING_SNAKE_CASE)

Engine-specific errors live beside their engine (engines/<name>/errors.py)
and subclass LedgerError.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base error for all ledger precondition failures."""

    code = "LEDGER_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class NoActiveBranch(LedgerError):
    """An operation was attempted without a selected branch."""

    code = "NO_ACTIVE_BRANCH"

    def __init__(self, message: str = None):
        super().__init__(
            message or "No branch selected. Select a branch before "
            "operating on branch-scoped data."
        )


class NoOperator(LedgerError):
    """An operation that needs an authenticated operator had none."""

    code = "NO_OPERATOR"

    def __init__(self, message: str = None):
        super().__init__(message or "No operator is signed in.")
