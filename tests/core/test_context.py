"""
Tests for core.context — operator identity, operation context, session.
"""

import pytest

from core.context import (
    ActorContext,
    InMemorySessionProvider,
    OperationContext,
    require_branch_key,
)
from core.errors import LedgerError, NoActiveBranch, NoOperator


CASHIER = ActorContext(actor_id="emp-1", display_name="Ana Cashier")


# ══════════════════════════════════════════════════════════════
# ActorContext
# ══════════════════════════════════════════════════════════════

class TestActorContext:
    def test_valid(self):
        assert CASHIER.actor_type == "HUMAN"

    def test_rejects_empty_id(self):
        with pytest.raises(ValueError, match="actor_id"):
            ActorContext(actor_id="", display_name="X")

    def test_rejects_unknown_type(self):
        with pytest.raises(ValueError, match="actor_type"):
            ActorContext(actor_id="a", display_name="X", actor_type="ROBOT")


# ══════════════════════════════════════════════════════════════
# OperationContext
# ══════════════════════════════════════════════════════════════

class TestOperationContext:
    def test_require_branch(self):
        assert OperationContext(branch_key="b-1").require_branch() == "b-1"

    @pytest.mark.parametrize("key", [None, "", "   "])
    def test_require_branch_rejects_unset(self, key):
        with pytest.raises(NoActiveBranch):
            OperationContext(branch_key=key).require_branch()

    def test_require_actor(self):
        ctx = OperationContext(branch_key="b-1", actor=CASHIER)
        assert ctx.require_actor() is CASHIER

    def test_require_actor_missing(self):
        with pytest.raises(NoOperator):
            OperationContext(branch_key="b-1").require_actor()

    def test_display_name_fallback(self):
        assert OperationContext().actor_display_name == "Unknown User"
        assert OperationContext(actor=CASHIER).actor_display_name == "Ana Cashier"

    def test_for_branch_keeps_actor(self):
        ctx = OperationContext(branch_key="b-1", actor=CASHIER).for_branch("b-2")
        assert ctx.branch_key == "b-2"
        assert ctx.actor is CASHIER

    def test_errors_carry_codes(self):
        with pytest.raises(LedgerError) as exc_info:
            require_branch_key(None)
        assert exc_info.value.code == "NO_ACTIVE_BRANCH"
        assert exc_info.value.to_dict()["code"] == "NO_ACTIVE_BRANCH"


# ══════════════════════════════════════════════════════════════
# InMemorySessionProvider
# ══════════════════════════════════════════════════════════════

class TestInMemorySessionProvider:
    def test_empty_session(self):
        ctx = InMemorySessionProvider().context()
        assert ctx.branch_key is None
        assert ctx.actor is None

    def test_sign_in_and_select(self):
        session = InMemorySessionProvider(known_branches=("b-1", "b-2"))
        session.sign_in(CASHIER)
        assert session.select_branch("b-2") is True
        ctx = session.context()
        assert ctx.branch_key == "b-2"
        assert ctx.actor == CASHIER

    def test_unknown_branch_rejected(self):
        session = InMemorySessionProvider(known_branches=("b-1",))
        assert session.select_branch("b-9") is False
        assert session.context().branch_key is None

    def test_clear_and_sign_out(self):
        session = InMemorySessionProvider()
        session.sign_in(CASHIER)
        session.select_branch("b-1")
        session.clear_branch()
        session.sign_out()
        ctx = session.context()
        assert ctx.branch_key is None
        assert ctx.actor is None

    def test_context_is_a_snapshot(self):
        session = InMemorySessionProvider()
        session.select_branch("b-1")
        ctx = session.context()
        session.select_branch("b-2")
        assert ctx.branch_key == "b-1"
