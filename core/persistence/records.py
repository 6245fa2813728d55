"""
Ledger Persistence — Records and Sink Protocol
================================================
Append-only write path for committed ledger facts: transactions,
closed time entries, payroll periods, finalized cash reconciliations,
completed stock checks, end-of-day reports.

The core does not mandate storage technology. Engines hand a
LedgerRecord to whatever PersistenceSink they were built with:
- InMemoryPersistenceSink: tests and bootstrap
- DjangoPersistenceSink (core.ledger_store): ORM-backed

Rules:
- Records are immutable once created
- Sinks never update or delete
- Record types follow engine.domain.action.vN format
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Protocol, Tuple

logger = logging.getLogger("ledger.persistence")


def validate_record_type(record_type: str) -> None:
    """Validate engine.domain.action format (at least three segments)."""
    if not record_type or not isinstance(record_type, str):
        raise ValueError("record_type must be a non-empty string.")
    if len(record_type.strip().split(".")) < 3:
        raise ValueError(
            f"record_type '{record_type}' does not follow "
            f"engine.domain.action format."
        )


@dataclass(frozen=True)
class LedgerRecord:
    """One append-only fact written by an engine."""

    record_type: str
    branch_key: str
    recorded_at: datetime
    payload: Dict[str, Any]
    actor_id: Optional[str] = None
    record_id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self):
        validate_record_type(self.record_type)
        if not self.branch_key:
            raise ValueError("branch_key must be non-empty.")
        if self.recorded_at.tzinfo is None:
            raise ValueError("recorded_at must be timezone-aware.")

    @property
    def source_engine(self) -> str:
        return self.record_type.split(".")[0]


class PersistenceSink(Protocol):
    def append(self, record: LedgerRecord) -> None:
        """Durably append one record. Raise on failure."""
        ...  # pragma: no cover


class InMemoryPersistenceSink:
    """Thread-safe in-memory sink."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: list[LedgerRecord] = []

    def append(self, record: LedgerRecord) -> None:
        with self._lock:
            self._records.append(record)
        logger.debug(f"Record appended: {record.record_type} ({record.record_id})")

    def records(
        self, record_type: Optional[str] = None, branch_key: Optional[str] = None,
    ) -> Tuple[LedgerRecord, ...]:
        with self._lock:
            return tuple(
                r for r in self._records
                if (record_type is None or r.record_type == record_type)
                and (branch_key is None or r.branch_key == branch_key)
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
