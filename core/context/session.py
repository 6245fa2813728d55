"""
Ledger Context — Session Provider
===================================
Identity/Session collaborator: who is signed in and which branch is
selected for one terminal session.

The provider is a dependency injection point (testable, swappable).
It never feeds engines implicitly: callers take a context() snapshot
and pass it into each operation.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional, Protocol

from core.context.actor_context import ActorContext
from core.context.operation_context import BranchKey, OperationContext

logger = logging.getLogger("ledger.session")


class SessionProvider(Protocol):
    def context(self) -> OperationContext:
        """Snapshot of the current operator and selected branch."""
        ...  # pragma: no cover


class InMemorySessionProvider:
    """
    Thread-safe in-memory session.

    known_branches, when given, restricts select_branch to those keys.
    """

    def __init__(self, known_branches: Iterable[BranchKey] = ()):
        self._lock = threading.Lock()
        self._known_branches = frozenset(known_branches)
        self._actor: Optional[ActorContext] = None
        self._branch_key: Optional[BranchKey] = None

    def sign_in(self, actor: ActorContext) -> None:
        with self._lock:
            self._actor = actor
        logger.info(f"Operator signed in: {actor.actor_id}")

    def sign_out(self) -> None:
        with self._lock:
            self._actor = None

    def select_branch(self, branch_key: BranchKey) -> bool:
        """Select a branch. Returns False for unknown branches."""
        if not branch_key:
            return False
        if self._known_branches and branch_key not in self._known_branches:
            logger.warning(f"Rejected selection of unknown branch '{branch_key}'.")
            return False
        with self._lock:
            self._branch_key = branch_key
        return True

    def clear_branch(self) -> None:
        with self._lock:
            self._branch_key = None

    def context(self) -> OperationContext:
        with self._lock:
            return OperationContext(branch_key=self._branch_key, actor=self._actor)
