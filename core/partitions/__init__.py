"""
Ledger Partitions — Public API
================================
Lazily seeded, lock-guarded per-branch state shared by every engine.
"""

from core.partitions.store import BranchPartitionStore, Partition

__all__ = [
    "BranchPartitionStore",
    "Partition",
]
