"""
Ledger Store — Django Persistence Sink
========================================
PersistenceSink implementation backed by the Django ORM.

Write flow:
    1. Convert LedgerRecord to a row dict
    2. Atomic insert
    3. Propagate any database error to the caller (no retry, no swallow)
"""

from __future__ import annotations

import logging

from django.db import transaction

from core.ledger_store.repository import save_record
from core.persistence.records import LedgerRecord

logger = logging.getLogger("ledger.persistence")


class DjangoPersistenceSink:
    def __init__(self, using: str = "default"):
        self._using = using

    def append(self, record: LedgerRecord) -> None:
        with transaction.atomic(using=self._using):
            save_record({
                "record_id": record.record_id,
                "record_type": record.record_type,
                "source_engine": record.source_engine,
                "branch_key": record.branch_key,
                "actor_id": record.actor_id,
                "payload": record.payload,
                "recorded_at": record.recorded_at,
            }, using=self._using)
        logger.info(
            f"Ledger record persisted: {record.record_type} "
            f"({record.record_id}) branch={record.branch_key}"
        )
