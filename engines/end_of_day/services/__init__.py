"""
Ledger End-of-Day — Application Service
=========================================
Closing workflow for one branch:

    idle
      → stock_check_in_progress → stock_check_completed
      → cash_reconciliation_pending → cash_reconciliation_finalized
      → report_generated → idle

The stock check is optional for the report; a finalized cash
reconciliation for the current business day is not. Generating the
report closes the cycle: the next day starts from idle with no
reconciliation and no stock check.

Within a cycle the phase only moves forward: a stock check begun after
the drawer is finalized still counts toward the report, but the phase
stays at cash_reconciliation_finalized.

Sales and labour figures come from the sales and HR services. Lock
order is end-of-day partition first, then whatever those services take.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from core.config.rules import LedgerConfig
from core.context.operation_context import (
    BranchKey,
    OperationContext,
    require_branch_key,
)
from core.partitions import BranchPartitionStore, Partition
from core.persistence import LedgerRecord, PersistenceSink
from core.time import Clock, business_date
from engines.end_of_day.errors import (
    AlreadyInProgress,
    ItemNotFound,
    NoActiveSession,
    NotInitialized,
    ReconciliationRequired,
)
from engines.end_of_day.events import (
    END_OF_DAY_CASH_RECONCILIATION_FINALIZED_V1,
    END_OF_DAY_REPORT_GENERATED_V1,
    END_OF_DAY_STOCK_CHECK_COMPLETED_V1,
    build_reconciliation_finalized_payload,
    build_report_generated_payload,
    build_stock_check_completed_payload,
)
from engines.end_of_day.inventory import InventoryStore
from engines.end_of_day.models import (
    PHASE_CASH_FINALIZED,
    PHASE_CASH_PENDING,
    PHASE_IDLE,
    PHASE_ORDER,
    PHASE_REPORT_GENERATED,
    PHASE_STOCK_CHECK_COMPLETED,
    PHASE_STOCK_CHECK_IN_PROGRESS,
    RECONCILIATION_DISCREPANCY,
    RECONCILIATION_VERIFIED,
    REPORT_COMPLETED,
    REPORT_REQUIRES_ATTENTION,
    CashBreakdown,
    CashReconciliation,
    EndOfDayReport,
    PettyCashEntry,
    PettyCashSummary,
    StockCheckItem,
    StockCheckSession,
    StockCheckSummary,
)
from engines.hr.services import TimeAndPayrollService
from engines.sales.services import TransactionService

logger = logging.getLogger("ledger.end_of_day")

PETTY_CASH_FIELDS = frozenset({
    "description",
    "amount",
    "kind",
    "category",
    "receipt_reference",
    "notes",
})


# ══════════════════════════════════════════════════════════════
# BRANCH STATE
# ══════════════════════════════════════════════════════════════

@dataclass
class EndOfDayState:
    phase: str = PHASE_IDLE
    stock_session: Optional[StockCheckSession] = None
    cycle_stock_check: Optional[StockCheckSession] = None
    stock_checks: List[StockCheckSession] = field(default_factory=list)
    petty_cash: List[PettyCashEntry] = field(default_factory=list)
    cash_draft: Optional[CashReconciliation] = None
    cycle_reconciliation: Optional[CashReconciliation] = None
    reconciliations: List[CashReconciliation] = field(default_factory=list)
    reports: List[EndOfDayReport] = field(default_factory=list)

    @classmethod
    def seed(cls, branch_key: BranchKey) -> EndOfDayState:
        return cls()

    def advance_to(self, phase: str) -> None:
        """Move forward to phase; an earlier phase leaves the current one."""
        if PHASE_ORDER.index(phase) > PHASE_ORDER.index(self.phase):
            self.phase = phase


# ══════════════════════════════════════════════════════════════
# SERVICE
# ══════════════════════════════════════════════════════════════

class EndOfDayService:
    def __init__(
        self,
        config: LedgerConfig,
        clock: Clock,
        persistence: PersistenceSink,
        inventory: InventoryStore,
        sales: TransactionService,
        hr: TimeAndPayrollService,
    ):
        self._config = config
        self._clock = clock
        self._persistence = persistence
        self._inventory = inventory
        self._sales = sales
        self._hr = hr
        self._store: BranchPartitionStore[EndOfDayState] = BranchPartitionStore(
            "end_of_day", seed=EndOfDayState.seed,
        )

    def _partition(self, branch_key: Optional[BranchKey]) -> Partition[EndOfDayState]:
        return self._store.get(branch_key)

    def _today(self) -> date:
        return business_date(self._clock.now_utc(), self._config.business_timezone)

    def _record(self, context: OperationContext, record_type: str, payload: dict) -> None:
        self._persistence.append(LedgerRecord(
            record_type=record_type,
            branch_key=context.require_branch(),
            recorded_at=self._clock.now_utc(),
            payload=payload,
            actor_id=context.actor.actor_id if context.actor else None,
        ))

    def phase(self, branch_key: BranchKey) -> str:
        return self._partition(branch_key).state.phase

    # ── stock check ───────────────────────────────────────────

    def begin_stock_check(self, context: OperationContext) -> StockCheckSession:
        partition = self._partition(context.require_branch())
        with partition.lock:
            state = partition.state
            if state.stock_session is not None:
                raise AlreadyInProgress(partition.key)
            items = {}
            for item in self._inventory.list_items(partition.key):
                level = self._inventory.read_stock_level(partition.key, item.item_id)
                items[item.item_id] = StockCheckItem(
                    item_id=item.item_id,
                    name=item.name,
                    unit=item.unit,
                    unit_cost=item.unit_cost,
                    expected_count=level,
                    actual_count=level,
                )
            session = StockCheckSession(
                session_id=str(uuid.uuid4()),
                branch_key=partition.key,
                started_at=self._clock.now_utc(),
                items=items,
            )
            state.stock_session = session
            state.advance_to(PHASE_STOCK_CHECK_IN_PROGRESS)
        logger.info(
            f"Stock check started: branch={partition.key} "
            f"items={len(session.items)}"
        )
        return session

    def record_count(
        self,
        context: OperationContext,
        item_id: str,
        actual_count: int,
        notes: Optional[str] = None,
    ) -> StockCheckItem:
        if actual_count < 0:
            raise ValueError("actual_count must be non-negative.")
        partition = self._partition(context.require_branch())
        with partition.lock:
            session = partition.state.stock_session
            if session is None:
                raise NoActiveSession(partition.key)
            line = session.items.get(item_id)
            if line is None:
                raise ItemNotFound(item_id)
            line = line.with_count(actual_count, notes)
            partition.state.stock_session = session.with_line(line)
        return line

    def finish_stock_check(self, context: OperationContext) -> StockCheckSession:
        partition = self._partition(context.require_branch())
        with partition.lock:
            state = partition.state
            session = state.stock_session
            if session is None:
                raise NoActiveSession(partition.key)
            session = session.completed(self._clock.now_utc())
            self._record(
                context, END_OF_DAY_STOCK_CHECK_COMPLETED_V1,
                build_stock_check_completed_payload(session),
            )
            for line in session.lines():
                self._inventory.write_stock_level(
                    partition.key, line.item_id, line.actual_count,
                )
            state.stock_checks.append(session)
            state.cycle_stock_check = session
            state.stock_session = None
            state.advance_to(PHASE_STOCK_CHECK_COMPLETED)

        summary = session.summary()
        logger.info(
            f"Stock check completed: branch={partition.key} "
            f"items={summary.total_items} variance={summary.total_stock_variance}"
        )
        if summary.items_with_variance:
            logger.warning(
                f"Stock variance on {summary.items_with_variance} item(s) "
                f"in branch {partition.key}: {summary.total_stock_variance}"
            )
        return session

    def active_stock_check(self, branch_key: BranchKey) -> Optional[StockCheckSession]:
        return self._partition(branch_key).state.stock_session

    def stock_check_history(self, branch_key: BranchKey) -> Tuple[StockCheckSession, ...]:
        partition = self._partition(branch_key)
        with partition.lock:
            return tuple(partition.state.stock_checks)

    # ── petty cash ────────────────────────────────────────────

    def add_petty_cash(
        self,
        context: OperationContext,
        description: str,
        amount: Decimal,
        kind: str,
        category: str = "other",
        receipt_reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> PettyCashEntry:
        partition = self._partition(context.require_branch())
        entry = PettyCashEntry(
            entry_id=str(uuid.uuid4()),
            created_at=self._clock.now_utc(),
            description=description,
            amount=amount,
            kind=kind,
            category=category,
            created_by=context.actor_display_name,
            receipt_reference=receipt_reference,
            notes=notes,
        )
        with partition.lock:
            partition.state.petty_cash.append(entry)
        logger.info(
            f"Petty cash {entry.kind}: branch={partition.key} "
            f"amount={entry.amount} ({entry.description})"
        )
        return entry

    def remove_petty_cash(self, context: OperationContext, entry_id: str) -> bool:
        partition = self._partition(context.require_branch())
        with partition.lock:
            entries = partition.state.petty_cash
            for index, entry in enumerate(entries):
                if entry.entry_id == entry_id:
                    del entries[index]
                    return True
        return False

    def update_petty_cash(
        self, context: OperationContext, entry_id: str, **changes: Any,
    ) -> Optional[PettyCashEntry]:
        """
        Amend an entry in place of its old version. The id, timestamp and
        author are kept; the amended entry is validated like a new one.
        Returns None when no entry has that id.
        """
        unknown = sorted(set(changes) - PETTY_CASH_FIELDS)
        if unknown:
            raise ValueError(f"Unknown petty cash fields: {', '.join(unknown)}.")
        partition = self._partition(context.require_branch())
        with partition.lock:
            entries = partition.state.petty_cash
            for index, entry in enumerate(entries):
                if entry.entry_id == entry_id:
                    updated = replace(entry, **changes)
                    entries[index] = updated
                    break
            else:
                return None
        logger.info(
            f"Petty cash entry {entry_id} amended: branch={partition.key} "
            f"fields={sorted(changes)}"
        )
        return updated

    def petty_cash_entries(
        self, branch_key: BranchKey, day: Optional[date] = None,
    ) -> Tuple[PettyCashEntry, ...]:
        partition = self._partition(branch_key)
        with partition.lock:
            entries = tuple(partition.state.petty_cash)
        if day is None:
            return entries
        tz = self._config.business_timezone
        return tuple(e for e in entries if business_date(e.created_at, tz) == day)

    def petty_cash_summary(self, branch_key: BranchKey, day: date) -> PettyCashSummary:
        return PettyCashSummary.from_entries(self.petty_cash_entries(branch_key, day))

    # ── cash reconciliation ───────────────────────────────────

    def begin_cash_reconciliation(
        self, context: OperationContext, opening_cash: Decimal,
    ) -> CashReconciliation:
        """
        Start (or restart) today's drawer reconciliation. Expected cash is
        fixed from today's completed cash sales and petty cash at this
        moment.
        """
        partition = self._partition(context.require_branch())
        today = self._today()
        with partition.lock:
            sales = self._sales.daily_sales_summary(partition.key, today)
            petty = self.petty_cash_summary(partition.key, today)
            draft = CashReconciliation(
                reconciliation_id=str(uuid.uuid4()),
                branch_key=partition.key,
                business_date=today,
                opening_cash=opening_cash,
                cash_sales=sales.cash_sales,
                card_sales=sales.card_sales,
                mobile_sales=sales.mobile_sales,
                petty_cash_in=petty.total_in,
                petty_cash_out=petty.total_out,
                performed_by=context.actor_display_name,
            )
            if partition.state.cash_draft is not None:
                logger.info(
                    f"Replacing pending cash reconciliation "
                    f"{partition.state.cash_draft.reconciliation_id} "
                    f"in branch {partition.key}"
                )
            partition.state.cash_draft = draft
            partition.state.advance_to(PHASE_CASH_PENDING)
        logger.info(
            f"Cash reconciliation started: branch={partition.key} "
            f"expected={draft.expected_cash}"
        )
        return draft

    def record_cash_count(
        self, context: OperationContext, breakdown: CashBreakdown,
    ) -> CashReconciliation:
        partition = self._partition(context.require_branch())
        with partition.lock:
            draft = partition.state.cash_draft
            if draft is None:
                raise NotInitialized(partition.key)
            draft = replace(draft, breakdown=breakdown, actual_cash=breakdown.total)
            partition.state.cash_draft = draft
        return draft

    def finalize_cash_reconciliation(
        self, context: OperationContext, notes: Optional[str] = None,
    ) -> CashReconciliation:
        partition = self._partition(context.require_branch())
        with partition.lock:
            state = partition.state
            draft = state.cash_draft
            if draft is None:
                raise NotInitialized(partition.key)
            status = (
                RECONCILIATION_DISCREPANCY
                if self._config.cash.is_discrepancy(draft.variance)
                else RECONCILIATION_VERIFIED
            )
            final = replace(
                draft,
                status=status,
                notes=notes if notes is not None else draft.notes,
                finalized_at=self._clock.now_utc(),
            )
            self._record(
                context, END_OF_DAY_CASH_RECONCILIATION_FINALIZED_V1,
                build_reconciliation_finalized_payload(final),
            )
            state.reconciliations.append(final)
            state.cycle_reconciliation = final
            state.cash_draft = None
            state.advance_to(PHASE_CASH_FINALIZED)

        logger.info(
            f"Cash reconciliation finalized: branch={partition.key} "
            f"expected={final.expected_cash} actual={final.actual_cash} "
            f"status={final.status}"
        )
        if status == RECONCILIATION_DISCREPANCY:
            logger.warning(
                f"Cash discrepancy in branch {partition.key}: "
                f"variance={final.variance}"
            )
        return final

    def pending_reconciliation(self, branch_key: BranchKey) -> Optional[CashReconciliation]:
        return self._partition(branch_key).state.cash_draft

    def reconciliation_history(self, branch_key: BranchKey) -> Tuple[CashReconciliation, ...]:
        partition = self._partition(branch_key)
        with partition.lock:
            return tuple(partition.state.reconciliations)

    # ── report ────────────────────────────────────────────────

    def generate_report(self, context: OperationContext) -> EndOfDayReport:
        partition = self._partition(context.require_branch())
        today = self._today()
        with partition.lock:
            state = partition.state
            reconciliation = state.cycle_reconciliation
            if reconciliation is None or reconciliation.business_date != today:
                raise ReconciliationRequired(partition.key)

            stock_check = state.cycle_stock_check
            if stock_check is not None:
                stock_summary = stock_check.summary()
            else:
                stock_summary = StockCheckSummary()

            needs_attention = (
                stock_summary.items_with_variance > 0
                or reconciliation.status == RECONCILIATION_DISCREPANCY
            )
            report = EndOfDayReport(
                report_id=str(uuid.uuid4()),
                branch_key=partition.key,
                business_date=today,
                stock_check=stock_summary,
                cash_reconciliation=reconciliation,
                petty_cash=self.petty_cash_summary(partition.key, today),
                sales=self._sales.daily_sales_summary(partition.key, today),
                labor=self._hr.daily_labor_summary(partition.key, today),
                status=REPORT_REQUIRES_ATTENTION if needs_attention else REPORT_COMPLETED,
                completed_by=context.actor_display_name,
                completed_at=self._clock.now_utc(),
            )
            self._record(
                context, END_OF_DAY_REPORT_GENERATED_V1,
                build_report_generated_payload(report),
            )
            state.reports.append(report)
            state.advance_to(PHASE_REPORT_GENERATED)
            logger.info(
                f"End-of-day report generated: branch={partition.key} "
                f"date={today} status={report.status}"
            )
            self._reset_cycle(state)
        return report

    def _reset_cycle(self, state: EndOfDayState) -> None:
        if state.stock_session is not None:
            logger.info(
                f"Discarding unfinished stock check {state.stock_session.session_id}"
            )
        state.stock_session = None
        state.cycle_stock_check = None
        state.cash_draft = None
        state.cycle_reconciliation = None
        state.phase = PHASE_IDLE

    def todays_report(self, branch_key: BranchKey) -> Optional[EndOfDayReport]:
        branch_key = require_branch_key(branch_key)
        today = self._today()
        partition = self._partition(branch_key)
        with partition.lock:
            for report in reversed(partition.state.reports):
                if report.business_date == today:
                    return report
        return None

    def reports(self, branch_key: BranchKey) -> Tuple[EndOfDayReport, ...]:
        partition = self._partition(branch_key)
        with partition.lock:
            return tuple(partition.state.reports)
