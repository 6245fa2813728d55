"""
Ledger Sales Engine — Application Service
===========================================
Cart → transaction pipeline: commit, receipt identity, fulfillment
scheduling, status advancement, and daily sales figures.

Commit takes the catalog partition lock and then the sales partition
lock of the same branch (always in that order), so snapshotting the
cart, appending the transaction, and clearing the cart happen as one
step per branch.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

from core.config.rules import LedgerConfig
from core.context.operation_context import (
    BranchKey,
    OperationContext,
    require_branch_key,
)
from core.partitions import BranchPartitionStore
from core.persistence import LedgerRecord, PersistenceSink
from core.scheduling import ScheduledTask, Scheduler
from core.time import Clock, business_date
from engines.catalog.services import CatalogCartService
from engines.sales.errors import (
    EmptyCart,
    InvalidStatusTransition,
    TransactionNotFound,
)
from engines.sales.events import (
    SALES_TRANSACTION_COMMITTED_V1,
    SALES_TRANSACTION_STATUS_CHANGED_V1,
    build_status_changed_payload,
    build_transaction_committed_payload,
)
from engines.sales.models import (
    STATUS_COMPLETED,
    STATUS_PENDING,
    SalesSummary,
    Transaction,
    can_transition,
)
from engines.sales.numbering import ReceiptSequence

logger = logging.getLogger("ledger.sales")

SYSTEM_ACTOR = "system"


# ══════════════════════════════════════════════════════════════
# BRANCH STATE
# ══════════════════════════════════════════════════════════════

@dataclass
class SalesLedgerState:
    """Append-only transaction log of one branch."""

    receipts: ReceiptSequence
    transactions: List[Transaction] = field(default_factory=list)
    positions: Dict[str, int] = field(default_factory=dict)
    fulfillment: Dict[str, ScheduledTask] = field(default_factory=dict)

    def append(self, transaction: Transaction) -> None:
        self.positions[transaction.transaction_id] = len(self.transactions)
        self.transactions.append(transaction)

    def find(self, transaction_id: str) -> Optional[Transaction]:
        position = self.positions.get(transaction_id)
        if position is None:
            return None
        return self.transactions[position]

    def replace(self, transaction: Transaction) -> None:
        self.transactions[self.positions[transaction.transaction_id]] = transaction


# ══════════════════════════════════════════════════════════════
# SERVICE
# ══════════════════════════════════════════════════════════════

class TransactionService:
    def __init__(
        self,
        config: LedgerConfig,
        catalog: CatalogCartService,
        clock: Clock,
        scheduler: Scheduler,
        persistence: PersistenceSink,
    ):
        self._config = config
        self._catalog = catalog
        self._clock = clock
        self._scheduler = scheduler
        self._persistence = persistence
        self._store: BranchPartitionStore[SalesLedgerState] = BranchPartitionStore(
            "sales", seed=self._seed,
        )

    def _seed(self, branch_key: BranchKey) -> SalesLedgerState:
        return SalesLedgerState(receipts=ReceiptSequence(self._config.receipt_prefix))

    def _business_date(self, moment) -> date:
        return business_date(moment, self._config.business_timezone)

    def today(self) -> date:
        return self._business_date(self._clock.now_utc())

    # ── commit ────────────────────────────────────────────────

    def commit(self, context: OperationContext) -> Transaction:
        """
        Turn the branch cart into a pending transaction.

        Preconditions (in order): branch selected, operator signed in,
        cart non-empty. The sink write happens before any state change;
        if it raises, the cart and log are left untouched.
        """
        branch_key = context.require_branch()
        actor = context.require_actor()

        cart_partition = self._catalog.partition(branch_key)
        partition = self._store.get(branch_key)
        with cart_partition.lock, partition.lock:
            snapshot = self._catalog.snapshot(context)
            if snapshot.is_empty:
                raise EmptyCart(branch_key)

            state = partition.state
            now = self._clock.now_utc()
            order = snapshot.order
            totals = snapshot.totals
            transaction = Transaction(
                transaction_id=str(uuid.uuid4()),
                branch_key=branch_key,
                receipt_number=state.receipts.next_number(self._business_date(now)),
                items=snapshot.items,
                subtotal=totals.subtotal,
                tax=totals.tax,
                tip=totals.tip,
                total=totals.total,
                payment_method=order.payment_method,
                order_type=order.order_type,
                customer_name=order.customer_name,
                customer_phone=order.customer_phone,
                notes=order.notes,
                cashier_id=actor.actor_id,
                cashier_name=actor.display_name,
                created_at=now,
            )

            self._persistence.append(LedgerRecord(
                record_type=SALES_TRANSACTION_COMMITTED_V1,
                branch_key=branch_key,
                recorded_at=now,
                payload=build_transaction_committed_payload(transaction),
                actor_id=actor.actor_id,
            ))

            state.append(transaction)
            self._catalog.clear_cart(context)
            state.fulfillment[transaction.transaction_id] = self._schedule_fulfillment(
                branch_key, transaction,
            )

        logger.info(
            f"Transaction committed: {transaction.receipt_number} "
            f"branch={branch_key} total={transaction.total} "
            f"cashier={actor.actor_id}"
        )
        return transaction

    def _schedule_fulfillment(
        self, branch_key: BranchKey, transaction: Transaction,
    ) -> ScheduledTask:
        txn_id = transaction.transaction_id
        return self._scheduler.schedule(
            self._config.fulfillment_delay_seconds,
            lambda: self._complete_fulfillment(branch_key, txn_id),
            name=f"fulfillment:{transaction.receipt_number}",
        )

    def _complete_fulfillment(self, branch_key: BranchKey, transaction_id: str) -> None:
        """
        Scheduled pending → completed step. A failed status write leaves
        the transaction pending with a fresh fulfillment task armed, then
        re-raises for the scheduler to log.
        """
        partition = self._store.get(branch_key)
        with partition.lock:
            state = partition.state
            transaction = state.find(transaction_id)
            if transaction is None or transaction.status != STATUS_PENDING:
                state.fulfillment.pop(transaction_id, None)
                return
            try:
                self._apply_status(
                    branch_key, state, transaction, STATUS_COMPLETED, SYSTEM_ACTOR,
                )
            except Exception:
                state.fulfillment[transaction_id] = self._schedule_fulfillment(
                    branch_key, transaction,
                )
                logger.warning(
                    f"Fulfillment of {transaction.receipt_number} failed to record; "
                    f"retrying in {self._config.fulfillment_delay_seconds}s"
                )
                raise
            state.fulfillment.pop(transaction_id, None)

    def _apply_status(
        self,
        branch_key: BranchKey,
        state: SalesLedgerState,
        transaction: Transaction,
        status: str,
        changed_by: str,
    ) -> Transaction:
        updated = transaction.with_status(status)
        self._persistence.append(LedgerRecord(
            record_type=SALES_TRANSACTION_STATUS_CHANGED_V1,
            branch_key=branch_key,
            recorded_at=self._clock.now_utc(),
            payload=build_status_changed_payload(
                updated, transaction.status, changed_by,
            ),
            actor_id=None if changed_by == SYSTEM_ACTOR else changed_by,
        ))
        state.replace(updated)
        logger.info(
            f"Transaction {updated.receipt_number} {transaction.status} → "
            f"{status} (branch={branch_key}, by={changed_by})"
        )
        return updated

    # ── status ────────────────────────────────────────────────

    def advance_status(
        self, context: OperationContext, transaction_id: str, status: str,
    ) -> Transaction:
        """
        Operator-driven status change. Forward only; cancelled from any
        non-terminal status. Any pending fulfillment task is cancelled
        because the operator now drives the order.
        """
        branch_key = context.require_branch()
        actor = context.require_actor()
        partition = self._store.get(branch_key)
        with partition.lock:
            state = partition.state
            transaction = state.find(transaction_id)
            if transaction is None:
                raise TransactionNotFound(transaction_id, branch_key)
            if not can_transition(transaction.status, status):
                raise InvalidStatusTransition(transaction.status, status)

            task = state.fulfillment.pop(transaction_id, None)
            if task is not None:
                task.cancel()
            return self._apply_status(
                branch_key, state, transaction, status, actor.actor_id,
            )

    # ── queries ───────────────────────────────────────────────

    def get_transaction(self, branch_key: BranchKey, transaction_id: str) -> Transaction:
        branch_key = require_branch_key(branch_key)
        if not self._store.has(branch_key):
            raise TransactionNotFound(transaction_id, branch_key)
        partition = self._store.get(branch_key)
        with partition.lock:
            transaction = partition.state.find(transaction_id)
        if transaction is None:
            raise TransactionNotFound(transaction_id, branch_key)
        return transaction

    def transactions(self, branch_key: BranchKey) -> Tuple[Transaction, ...]:
        branch_key = require_branch_key(branch_key)
        if not self._store.has(branch_key):
            return ()
        partition = self._store.get(branch_key)
        with partition.lock:
            return tuple(partition.state.transactions)

    def fulfillment_task(
        self, branch_key: BranchKey, transaction_id: str,
    ) -> Optional[ScheduledTask]:
        partition = self._store.get(branch_key)
        with partition.lock:
            return partition.state.fulfillment.get(transaction_id)

    def list_recent(
        self, limit: Optional[int] = None, branch_key: Optional[BranchKey] = None,
    ) -> Tuple[Transaction, ...]:
        """Newest first across all branches (or one branch)."""
        if limit is None:
            limit = self._config.recent_transactions_limit
        if limit <= 0:
            return ()

        collected: List[Transaction] = []
        for partition in self._store:
            if branch_key is not None and partition.key != branch_key:
                continue
            with partition.lock:
                collected.extend(partition.state.transactions)
        collected.sort(key=lambda txn: txn.created_at, reverse=True)
        return tuple(collected[:limit])

    def _completed_on(self, branch_key: BranchKey, day: date) -> List[Transaction]:
        return [
            txn for txn in self.transactions(branch_key)
            if txn.status == STATUS_COMPLETED
            and self._business_date(txn.created_at) == day
        ]

    def daily_revenue(self, branch_key: BranchKey, day: date):
        return self.daily_sales_summary(branch_key, day).total_revenue

    def daily_order_count(self, branch_key: BranchKey, day: date) -> int:
        return len(self._completed_on(branch_key, day))

    def daily_sales_summary(self, branch_key: BranchKey, day: date) -> SalesSummary:
        return SalesSummary.from_transactions(self._completed_on(branch_key, day))
