"""
Ledger Sales Engine — Record Types and Payload Builders
=========================================================
Sales owns the transaction lifecycle: commit → (preparing → ready) →
completed, or cancelled. Each committed fact is appended to the
persistence sink as a LedgerRecord.
"""

from __future__ import annotations

from engines.sales.models import Transaction


# ══════════════════════════════════════════════════════════════
# RECORD TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

SALES_TRANSACTION_COMMITTED_V1 = "sales.transaction.committed.v1"
SALES_TRANSACTION_STATUS_CHANGED_V1 = "sales.transaction.status_changed.v1"

SALES_RECORD_TYPES = (
    SALES_TRANSACTION_COMMITTED_V1,
    SALES_TRANSACTION_STATUS_CHANGED_V1,
)


# ══════════════════════════════════════════════════════════════
# PAYLOAD BUILDERS
# ══════════════════════════════════════════════════════════════

def build_transaction_committed_payload(transaction: Transaction) -> dict:
    return transaction.to_dict()


def build_status_changed_payload(
    transaction: Transaction, previous_status: str, changed_by: str,
) -> dict:
    return {
        "transaction_id": transaction.transaction_id,
        "receipt_number": transaction.receipt_number,
        "previous_status": previous_status,
        "status": transaction.status,
        "changed_by": changed_by,
    }
