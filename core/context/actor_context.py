"""
Ledger Context - ActorContext
=============================
Immutable identity of the operator performing an operation
(cashier, shift manager, closing supervisor).
"""

from __future__ import annotations

from dataclasses import dataclass

VALID_ACTOR_TYPES = frozenset({"HUMAN", "SYSTEM", "DEVICE"})


@dataclass(frozen=True)
class ActorContext:
    """
    Canonical operator identity.

    actor_id is the stable identifier recorded on transactions;
    display_name is what receipts and reports show.
    """

    actor_id: str
    display_name: str
    actor_type: str = "HUMAN"

    def __post_init__(self):
        if not self.actor_id or not isinstance(self.actor_id, str):
            raise ValueError("actor_id must be a non-empty string.")

        if not self.display_name or not isinstance(self.display_name, str):
            raise ValueError("display_name must be a non-empty string.")

        if self.actor_type not in VALID_ACTOR_TYPES:
            raise ValueError(f"actor_type '{self.actor_type}' not valid.")
