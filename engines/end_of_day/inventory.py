"""
Ledger End-of-Day — Inventory Collaborator
============================================
Stock levels live outside the ledger. The reconciler reads them when a
stock check begins and writes counted levels back when it finishes.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Dict, Iterable, Optional, Protocol, Tuple

from core.context.operation_context import BranchKey, require_branch_key

logger = logging.getLogger("ledger.end_of_day")


@dataclass(frozen=True)
class InventoryItem:
    item_id: str
    name: str
    unit: str
    unit_cost: Decimal
    current_stock: int = 0

    def __post_init__(self):
        if not self.item_id:
            raise ValueError("item_id must be non-empty.")
        if not isinstance(self.unit_cost, Decimal):
            object.__setattr__(self, "unit_cost", Decimal(str(self.unit_cost)))
        if self.unit_cost < 0:
            raise ValueError("unit_cost must be non-negative.")
        if self.current_stock < 0:
            raise ValueError("current_stock must be non-negative.")


class InventoryStore(Protocol):
    def list_items(self, branch_key: BranchKey) -> Iterable[InventoryItem]:
        ...  # pragma: no cover

    def read_stock_level(self, branch_key: BranchKey, item_id: str) -> int:
        ...  # pragma: no cover

    def write_stock_level(self, branch_key: BranchKey, item_id: str, level: int) -> None:
        ...  # pragma: no cover


class InMemoryInventoryStore:
    """
    Thread-safe in-memory inventory, one item table per branch.

    Branches without their own table start from a copy of `default_items`.
    """

    def __init__(
        self,
        default_items: Iterable[InventoryItem] = (),
        per_branch: Optional[Dict[BranchKey, Iterable[InventoryItem]]] = None,
    ):
        self._lock = threading.Lock()
        self._default = tuple(default_items)
        self._tables: Dict[BranchKey, Dict[str, InventoryItem]] = {
            key: {item.item_id: item for item in items}
            for key, items in (per_branch or {}).items()
        }

    def _table(self, branch_key: BranchKey) -> Dict[str, InventoryItem]:
        branch_key = require_branch_key(branch_key)
        table = self._tables.get(branch_key)
        if table is None:
            table = {item.item_id: item for item in self._default}
            self._tables[branch_key] = table
        return table

    def list_items(self, branch_key: BranchKey) -> Tuple[InventoryItem, ...]:
        with self._lock:
            return tuple(self._table(branch_key).values())

    def read_stock_level(self, branch_key: BranchKey, item_id: str) -> int:
        with self._lock:
            item = self._table(branch_key).get(item_id)
            if item is None:
                raise KeyError(item_id)
            return item.current_stock

    def write_stock_level(self, branch_key: BranchKey, item_id: str, level: int) -> None:
        if level < 0:
            raise ValueError("level must be non-negative.")
        with self._lock:
            table = self._table(branch_key)
            item = table.get(item_id)
            if item is None:
                raise KeyError(item_id)
            table[item_id] = replace(item, current_stock=level)
        logger.debug(f"Stock level written: branch={branch_key} {item_id}={level}")
