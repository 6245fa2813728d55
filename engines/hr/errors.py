"""
Ledger HR Engine — Errors
"""

from core.errors import LedgerError


class UnknownEmployee(LedgerError):
    code = "UNKNOWN_EMPLOYEE"

    def __init__(self, employee_id: str, branch_key: str):
        super().__init__(
            f"Employee '{employee_id}' is not on the roster of branch '{branch_key}'."
        )
        self.employee_id = employee_id


class AlreadyClockedIn(LedgerError):
    code = "ALREADY_CLOCKED_IN"

    def __init__(self, employee_id: str):
        super().__init__(f"Employee '{employee_id}' already has an open shift.")
        self.employee_id = employee_id


class NotClockedIn(LedgerError):
    code = "NOT_CLOCKED_IN"

    def __init__(self, employee_id: str, detail: str = ""):
        message = f"Employee '{employee_id}' is not clocked in"
        super().__init__(f"{message} ({detail})." if detail else f"{message}.")
        self.employee_id = employee_id
