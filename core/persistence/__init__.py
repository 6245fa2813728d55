"""
Ledger Persistence — Public API
=================================
"""

from core.persistence.records import (
    InMemoryPersistenceSink,
    LedgerRecord,
    PersistenceSink,
    validate_record_type,
)

__all__ = [
    "LedgerRecord",
    "PersistenceSink",
    "InMemoryPersistenceSink",
    "validate_record_type",
]
