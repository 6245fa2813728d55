"""
Ledger Sales Engine Tests
===========================
Commit preconditions, transaction snapshot, receipt numbering,
fulfillment scheduling, status advancement, and daily figures.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from adapters.ledger import create_ledger
from core.context import ActorContext, OperationContext
from core.errors import NoActiveBranch, NoOperator
from core.persistence import InMemoryPersistenceSink
from core.scheduling import TASK_CANCELLED, TASK_PENDING, ManualScheduler
from core.time import FixedClock
from engines.catalog.models import Product
from engines.sales.errors import EmptyCart, InvalidStatusTransition, TransactionNotFound
from engines.sales.events import (
    SALES_TRANSACTION_COMMITTED_V1,
    SALES_TRANSACTION_STATUS_CHANGED_V1,
)
from engines.sales.models import SalesSummary, can_transition
from engines.sales.numbering import (
    ReceiptSequence,
    format_receipt_number,
    receipt_sequence_of,
)

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
DAY = date(2026, 3, 2)

CASHIER = ActorContext(actor_id="emp-1", display_name="Ana Cashier")
BRANCH_A = OperationContext(branch_key="branch-a", actor=CASHIER)
BRANCH_B = OperationContext(branch_key="branch-b", actor=CASHIER)

LATTE = Product("p-latte", "Latte", "coffee", Decimal("4.75"))
MUFFIN = Product("p-muffin", "Blueberry Muffin", "pastry", Decimal("4.25"))


def _ledger(**config_overrides):
    from core.config import LedgerConfig

    clock = FixedClock(T0)
    return create_ledger(
        config=LedgerConfig(**config_overrides),
        clock=clock,
        scheduler=ManualScheduler(clock),
        persistence=InMemoryPersistenceSink(),
    )


def _sell(ledger, context=BRANCH_A, product=LATTE, quantity=1, **order):
    ledger.catalog.add_to_cart(context, product, quantity)
    if order:
        ledger.catalog.update_order(context, **order)
    return ledger.sales.commit(context)


def _fulfill(ledger):
    ledger.clock.advance(ledger.config.fulfillment_delay_seconds)
    return ledger.scheduler.run_due()


# ══════════════════════════════════════════════════════════════
# RECEIPT NUMBERING
# ══════════════════════════════════════════════════════════════

class TestReceiptNumbering:
    def test_format(self):
        assert format_receipt_number("JC", DAY, 42) == "JC260302000042"

    def test_sequence_increases_within_day(self):
        sequence = ReceiptSequence()
        assert sequence.next_number(DAY) == "260302000001"
        assert sequence.next_number(DAY) == "260302000002"

    def test_sequence_continues_on_new_day(self):
        sequence = ReceiptSequence("R")
        sequence.next_number(DAY)
        assert sequence.next_number(date(2026, 3, 3)) == "R260303000002"

    def test_earlier_day_keeps_counting(self):
        sequence = ReceiptSequence()
        sequence.next_number(DAY)
        assert sequence.next_number(date(2026, 3, 1)) == "260301000002"

    def test_sequence_of(self):
        assert receipt_sequence_of("JC260302000042") == 42

    def test_rejects_overflow(self):
        with pytest.raises(ValueError, match="digits"):
            format_receipt_number("", DAY, 1_000_000)


# ══════════════════════════════════════════════════════════════
# COMMIT
# ══════════════════════════════════════════════════════════════

class TestCommit:
    def test_commit_snapshots_cart(self):
        ledger = _ledger()
        ledger.catalog.add_to_cart(BRANCH_A, LATTE, 2)
        ledger.catalog.add_to_cart(BRANCH_A, MUFFIN)
        ledger.catalog.update_order(
            BRANCH_A, tip=Decimal("1.00"), payment_method="card",
            customer_name="Sam", order_type="dine-in",
        )
        txn = ledger.sales.commit(BRANCH_A)

        assert txn.status == "pending"
        assert txn.subtotal == Decimal("13.75")
        assert txn.tax == Decimal("1.10")
        assert txn.tip == Decimal("1.00")
        assert txn.total == Decimal("15.85")
        assert txn.payment_method == "card"
        assert txn.order_type == "dine-in"
        assert txn.customer_name == "Sam"
        assert txn.cashier_id == "emp-1"
        assert txn.cashier_name == "Ana Cashier"
        assert txn.branch_key == "branch-a"
        assert txn.created_at == T0
        assert [i.quantity for i in txn.items] == [2, 1]

    def test_commit_clears_cart_and_resets_order(self):
        ledger = _ledger()
        _sell(ledger, tip=Decimal("2"))
        assert ledger.catalog.cart(BRANCH_A) == ()
        assert ledger.catalog.order(BRANCH_A).tip == Decimal(0)

    def test_receipt_numbers_are_unique_and_increasing(self):
        ledger = _ledger(receipt_prefix="JC")
        receipts = [_sell(ledger).receipt_number for _ in range(3)]
        assert receipts == ["JC260302000001", "JC260302000002", "JC260302000003"]

    def test_receipt_sequence_is_per_branch(self):
        ledger = _ledger()
        _sell(ledger, BRANCH_A)
        _sell(ledger, BRANCH_A)
        assert _sell(ledger, BRANCH_B).receipt_number == "260302000001"

    def test_receipt_suffix_keeps_increasing_past_midnight(self):
        ledger = _ledger()
        ledger.clock.set(datetime(2026, 3, 2, 23, 0, tzinfo=timezone.utc))
        first = _sell(ledger).receipt_number
        ledger.clock.advance(hours=2)
        second = _sell(ledger).receipt_number
        assert first == "260302000001"
        assert second == "260303000002"
        assert receipt_sequence_of(second) > receipt_sequence_of(first)

    def test_clock_step_back_still_commits(self):
        ledger = _ledger()
        ledger.clock.set(datetime(2026, 3, 3, 0, 5, tzinfo=timezone.utc))
        first = _sell(ledger).receipt_number
        ledger.clock.set(datetime(2026, 3, 2, 23, 59, tzinfo=timezone.utc))
        second = _sell(ledger).receipt_number
        assert second == "260302000002"
        assert receipt_sequence_of(second) > receipt_sequence_of(first)

    def test_writes_committed_record(self):
        ledger = _ledger()
        txn = _sell(ledger)
        records = ledger.persistence.records(SALES_TRANSACTION_COMMITTED_V1)
        assert len(records) == 1
        assert records[0].payload["transaction_id"] == txn.transaction_id
        assert records[0].payload["total"] == txn.total
        assert records[0].actor_id == "emp-1"

    def test_empty_cart(self):
        ledger = _ledger()
        with pytest.raises(EmptyCart):
            ledger.sales.commit(BRANCH_A)
        assert ledger.sales.transactions("branch-a") == ()

    def test_no_operator(self):
        ledger = _ledger()
        anonymous = OperationContext(branch_key="branch-a")
        ledger.catalog.add_to_cart(anonymous, LATTE)
        with pytest.raises(NoOperator):
            ledger.sales.commit(anonymous)
        assert len(ledger.catalog.cart(anonymous)) == 1

    def test_branch_checked_before_operator(self):
        ledger = _ledger()
        with pytest.raises(NoActiveBranch):
            ledger.sales.commit(OperationContext())

    def test_sink_failure_leaves_cart_and_log_untouched(self):
        class FailingSink:
            def append(self, record):
                raise OSError("disk full")

        clock = FixedClock(T0)
        ledger = create_ledger(
            clock=clock, scheduler=ManualScheduler(clock), persistence=FailingSink(),
        )
        ledger.catalog.add_to_cart(BRANCH_A, LATTE)
        with pytest.raises(OSError, match="disk full"):
            ledger.sales.commit(BRANCH_A)
        assert len(ledger.catalog.cart(BRANCH_A)) == 1
        assert ledger.sales.transactions("branch-a") == ()
        assert ledger.scheduler.pending_count == 0


# ══════════════════════════════════════════════════════════════
# FULFILLMENT
# ══════════════════════════════════════════════════════════════

class TestFulfillment:
    def test_completes_after_delay(self):
        ledger = _ledger()
        txn = _sell(ledger)
        assert ledger.scheduler.run_due() == 0
        assert _fulfill(ledger) == 1
        assert ledger.sales.get_transaction("branch-a", txn.transaction_id).status == "completed"

    def test_completes_exactly_once(self):
        ledger = _ledger()
        _sell(ledger)
        _fulfill(ledger)
        _fulfill(ledger)
        changes = ledger.persistence.records(SALES_TRANSACTION_STATUS_CHANGED_V1)
        assert len(changes) == 1
        assert changes[0].payload["previous_status"] == "pending"
        assert changes[0].payload["status"] == "completed"

    def test_cancel_stops_fulfillment(self):
        ledger = _ledger()
        txn = _sell(ledger)
        task = ledger.sales.fulfillment_task("branch-a", txn.transaction_id)
        ledger.sales.advance_status(BRANCH_A, txn.transaction_id, "cancelled")
        assert task.status == TASK_CANCELLED
        _fulfill(ledger)
        assert ledger.sales.get_transaction("branch-a", txn.transaction_id).status == "cancelled"

    def test_operator_progress_takes_over(self):
        ledger = _ledger()
        txn = _sell(ledger)
        ledger.sales.advance_status(BRANCH_A, txn.transaction_id, "preparing")
        _fulfill(ledger)
        assert ledger.sales.get_transaction("branch-a", txn.transaction_id).status == "preparing"

    def test_failed_completion_write_is_retried(self):
        class FlakySink(InMemoryPersistenceSink):
            failing = False

            def append(self, record):
                if self.failing:
                    raise OSError("database unavailable")
                super().append(record)

        clock = FixedClock(T0)
        sink = FlakySink()
        ledger = create_ledger(
            clock=clock, scheduler=ManualScheduler(clock), persistence=sink,
        )
        txn = _sell(ledger)

        sink.failing = True
        assert _fulfill(ledger) == 1
        assert ledger.sales.get_transaction("branch-a", txn.transaction_id).status == "pending"
        task = ledger.sales.fulfillment_task("branch-a", txn.transaction_id)
        assert task is not None
        assert task.status == TASK_PENDING

        sink.failing = False
        ledger.scheduler.run_all()
        assert ledger.sales.get_transaction("branch-a", txn.transaction_id).status == "completed"
        assert ledger.sales.fulfillment_task("branch-a", txn.transaction_id) is None
        assert ledger.sales.daily_revenue("branch-a", DAY) == txn.total

    def test_commit_does_not_block(self):
        ledger = _ledger()
        txn = _sell(ledger)
        assert txn.status == "pending"
        assert ledger.scheduler.pending_count == 1


# ══════════════════════════════════════════════════════════════
# STATUS ADVANCEMENT
# ══════════════════════════════════════════════════════════════

class TestAdvanceStatus:
    @pytest.mark.parametrize("current,requested,allowed", [
        ("pending", "preparing", True),
        ("pending", "completed", True),
        ("preparing", "ready", True),
        ("ready", "cancelled", True),
        ("ready", "pending", False),
        ("preparing", "preparing", False),
        ("completed", "cancelled", False),
        ("cancelled", "pending", False),
        ("pending", "shipped", False),
    ])
    def test_can_transition(self, current, requested, allowed):
        assert can_transition(current, requested) is allowed

    def test_forward_walk(self):
        ledger = _ledger()
        txn = _sell(ledger)
        for status in ("preparing", "ready", "completed"):
            txn = ledger.sales.advance_status(BRANCH_A, txn.transaction_id, status)
        assert txn.status == "completed"

    def test_backward_move_rejected(self):
        ledger = _ledger()
        txn = _sell(ledger)
        ledger.sales.advance_status(BRANCH_A, txn.transaction_id, "ready")
        with pytest.raises(InvalidStatusTransition):
            ledger.sales.advance_status(BRANCH_A, txn.transaction_id, "preparing")

    def test_unknown_transaction(self):
        ledger = _ledger()
        with pytest.raises(TransactionNotFound):
            ledger.sales.advance_status(BRANCH_A, "nope", "ready")

    def test_other_branch_cannot_see_transaction(self):
        ledger = _ledger()
        txn = _sell(ledger, BRANCH_A)
        with pytest.raises(TransactionNotFound):
            ledger.sales.advance_status(BRANCH_B, txn.transaction_id, "ready")

    def test_transactions_never_removed(self):
        ledger = _ledger()
        txn = _sell(ledger)
        ledger.sales.advance_status(BRANCH_A, txn.transaction_id, "cancelled")
        assert len(ledger.sales.transactions("branch-a")) == 1


# ══════════════════════════════════════════════════════════════
# QUERIES
# ══════════════════════════════════════════════════════════════

class TestQueries:
    def test_list_recent_across_branches_newest_first(self):
        ledger = _ledger()
        first = _sell(ledger, BRANCH_A)
        ledger.clock.advance(minutes=1)
        second = _sell(ledger, BRANCH_B)
        ledger.clock.advance(minutes=1)
        third = _sell(ledger, BRANCH_A)

        recent = ledger.sales.list_recent()
        assert [t.transaction_id for t in recent] == [
            third.transaction_id, second.transaction_id, first.transaction_id,
        ]
        only_a = ledger.sales.list_recent(branch_key="branch-a")
        assert [t.transaction_id for t in only_a] == [
            third.transaction_id, first.transaction_id,
        ]

    def test_list_recent_default_limit(self):
        ledger = _ledger()
        for _ in range(12):
            _sell(ledger)
            ledger.clock.advance(1)
        assert len(ledger.sales.list_recent()) == 10
        assert len(ledger.sales.list_recent(limit=3)) == 3

    def test_daily_figures_count_completed_only(self):
        ledger = _ledger()
        _sell(ledger, quantity=2)
        _fulfill(ledger)
        _sell(ledger)  # still pending
        cancelled = _sell(ledger)
        ledger.sales.advance_status(BRANCH_A, cancelled.transaction_id, "cancelled")

        assert ledger.sales.daily_order_count("branch-a", DAY) == 1
        assert ledger.sales.daily_revenue("branch-a", DAY) == Decimal("10.26")

    def test_daily_figures_filter_by_day(self):
        ledger = _ledger()
        _sell(ledger)
        _fulfill(ledger)
        assert ledger.sales.daily_order_count("branch-a", date(2026, 3, 3)) == 0

    def test_daily_sales_summary(self):
        ledger = _ledger()
        _sell(ledger, payment_method="cash")
        _sell(ledger, product=MUFFIN, payment_method="card")
        _sell(ledger, product=MUFFIN, payment_method="mobile")
        ledger.scheduler.run_all()

        summary = ledger.sales.daily_sales_summary("branch-a", DAY)
        assert summary.transaction_count == 3
        assert summary.cash_sales == Decimal("5.13")
        assert summary.card_sales == Decimal("4.59")
        assert summary.mobile_sales == Decimal("4.59")
        assert summary.total_revenue == Decimal("14.31")
        assert summary.average_transaction == Decimal("4.77")

    def test_empty_summary(self):
        summary = _ledger().sales.daily_sales_summary("branch-z", DAY)
        assert summary == SalesSummary()
        assert summary.average_transaction == Decimal(0)

    def test_unknown_branch_reads_do_not_create_partitions(self):
        ledger = _ledger()
        assert ledger.sales.daily_revenue("branch-z", DAY) == Decimal(0)
        assert ledger.sales.list_recent() == ()
