"""
Ledger Partitions — Branch Partition Store
============================================
Generic keyed container giving every engine isolated, lazily
initialized per-branch state.

Rules:
- A partition is created on first get() using the store's seed function
- A partition is never re-seeded while it exists
- A partition is never shared across keys
- No partition is ever created for an unset/empty key (NoActiveBranch)
- Seed functions are pure: they only build the new state object

Concurrency:
- Creation is guarded by the store lock (one seed per key, ever)
- Each partition owns a re-entrant lock; engines run every mutation on a
  branch inside `with partition.lock:` so mutations on one branch never
  interleave, while different branches proceed independently.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Generic, Iterator, Optional, Tuple, TypeVar

from core.context.operation_context import BranchKey, require_branch_key

logger = logging.getLogger("ledger.partitions")

T = TypeVar("T")


class Partition(Generic[T]):
    """One branch's state bundle plus its mutation lock."""

    __slots__ = ("_key", "_state", "_lock")

    def __init__(self, key: BranchKey, state: T):
        self._key = key
        self._state = state
        self._lock = threading.RLock()

    @property
    def key(self) -> BranchKey:
        return self._key

    @property
    def state(self) -> T:
        return self._state

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def __repr__(self) -> str:
        return f"Partition(key={self._key!r})"


class BranchPartitionStore(Generic[T]):
    """
    Arena of partitions keyed by BranchKey.

    Usage:
        store = BranchPartitionStore("sales", seed=SalesState.seed)
        partition = store.get("branch-1")
        with partition.lock:
            partition.state.cart.append(...)
    """

    def __init__(self, name: str, seed: Callable[[BranchKey], T]):
        if not name:
            raise ValueError("name must be non-empty.")
        if not callable(seed):
            raise ValueError("seed must be callable.")
        self._name = name
        self._seed = seed
        self._partitions: Dict[BranchKey, Partition[T]] = {}
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    def get(self, key: Optional[BranchKey]) -> Partition[T]:
        """Return the partition for key, seeding it on first access."""
        key = require_branch_key(key)
        partition = self._partitions.get(key)
        if partition is not None:
            return partition

        with self._lock:
            partition = self._partitions.get(key)
            if partition is None:
                partition = Partition(key, self._seed(key))
                self._partitions[key] = partition
                logger.info(f"Seeded '{self._name}' partition for branch '{key}'.")
        return partition

    def has(self, key: Optional[BranchKey]) -> bool:
        """Non-creating existence check."""
        if not key:
            return False
        with self._lock:
            return key in self._partitions

    def keys(self) -> Tuple[BranchKey, ...]:
        with self._lock:
            return tuple(self._partitions)

    def partitions(self) -> Tuple[Partition[T], ...]:
        with self._lock:
            return tuple(self._partitions.values())

    def __iter__(self) -> Iterator[Partition[T]]:
        return iter(self.partitions())

    def __len__(self) -> int:
        with self._lock:
            return len(self._partitions)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)
