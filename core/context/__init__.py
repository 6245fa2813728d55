"""
Ledger Context — Public API
=============================
Operator identity, per-call operation context, and session provider.
"""

from core.context.actor_context import ActorContext
from core.context.operation_context import (
    BranchKey,
    OperationContext,
    require_branch_key,
)
from core.context.session import InMemorySessionProvider, SessionProvider

__all__ = [
    "ActorContext",
    "BranchKey",
    "OperationContext",
    "require_branch_key",
    "SessionProvider",
    "InMemorySessionProvider",
]
