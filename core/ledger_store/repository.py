"""
Ledger Store - Repository
=========================
Low-level ORM helpers used by the Django persistence sink.
"""

from __future__ import annotations

from typing import Optional

from core.ledger_store.models import LedgerRecordRow


def save_record(row_data: dict, using: str = "default") -> LedgerRecordRow:
    """Insert one row. The caller owns transactional guards."""
    return LedgerRecordRow.objects.using(using).create(**row_data)


def load_records_for_branch(
    branch_key: str,
    record_type: Optional[str] = None,
) -> tuple[dict, ...]:
    """
    Load rows for one branch in append order.

    Ordering rule:
        recorded_at ASC, received_at ASC
    """
    query = LedgerRecordRow.objects.filter(branch_key=branch_key)
    if record_type is not None:
        query = query.filter(record_type=record_type)
    rows = query.order_by("recorded_at", "received_at").values(
        "record_id",
        "record_type",
        "source_engine",
        "branch_key",
        "actor_id",
        "payload",
        "recorded_at",
    )
    return tuple(dict(row) for row in rows)
