"""
Ledger Context — OperationContext
==================================
Explicit, immutable context passed by the caller into every engine
operation. There is no module-level "current branch": an engine only
ever sees the branch and operator it is handed.

branch_key may be None (nothing selected) and actor may be None
(nobody signed in); the require_* helpers turn those into loud
NoActiveBranch / NoOperator failures.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.context.actor_context import ActorContext
from core.errors import NoActiveBranch, NoOperator

BranchKey = str


def require_branch_key(branch_key: Optional[BranchKey]) -> BranchKey:
    """Return branch_key or raise NoActiveBranch if unset/empty."""
    if branch_key is None:
        raise NoActiveBranch()
    if not isinstance(branch_key, str) or not branch_key.strip():
        raise NoActiveBranch()
    return branch_key


@dataclass(frozen=True)
class OperationContext:
    """Branch + operator for one call."""

    branch_key: Optional[BranchKey] = None
    actor: Optional[ActorContext] = None

    def __post_init__(self):
        if self.actor is not None and not isinstance(self.actor, ActorContext):
            raise ValueError("actor must be ActorContext or None.")

    def require_branch(self) -> BranchKey:
        return require_branch_key(self.branch_key)

    def require_actor(self) -> ActorContext:
        if self.actor is None:
            raise NoOperator()
        return self.actor

    @property
    def actor_display_name(self) -> str:
        if self.actor is None:
            return "Unknown User"
        return self.actor.display_name

    def for_branch(self, branch_key: BranchKey) -> OperationContext:
        return OperationContext(branch_key=branch_key, actor=self.actor)
