"""
Ledger HR Engine — Application Service
========================================
Per-branch employee roster, shift capture, and payroll.

Shift lifecycle per employee:
    not clocked in → clocked_in → (on_break ⇄ clocked_in) → clocked_out

An employee holds at most one open entry at a time. Total hours are the
wall-clock span from clock-in to clock-out; break time is recorded but
not deducted. Overtime is computed per shift.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from core.config.rules import LedgerConfig
from core.context.operation_context import (
    BranchKey,
    OperationContext,
    require_branch_key,
)
from core.partitions import BranchPartitionStore, Partition
from core.persistence import LedgerRecord, PersistenceSink
from core.time import Clock, DateWindow, business_date, hours_between
from engines.hr.errors import AlreadyClockedIn, NotClockedIn, UnknownEmployee
from engines.hr.events import (
    HR_PAYROLL_COMPUTED_V1,
    HR_TIME_ENTRY_CLOSED_V1,
    build_payroll_computed_payload,
    build_time_entry_closed_payload,
)
from engines.hr.models import (
    ENTRY_CLOCKED_IN,
    ENTRY_CLOCKED_OUT,
    ENTRY_ON_BREAK,
    ZERO,
    Employee,
    LaborSummary,
    Location,
    PayrollEntry,
    PayrollPeriod,
    TimeEntry,
)

logger = logging.getLogger("ledger.hr")


# ══════════════════════════════════════════════════════════════
# ROSTER
# ══════════════════════════════════════════════════════════════

class EmployeeRoster(Protocol):
    def employees_for(self, branch_key: BranchKey) -> Iterable[Employee]:
        """Seed employees for a branch."""
        ...  # pragma: no cover


class StaticEmployeeRoster:
    def __init__(
        self,
        employees: Iterable[Employee] = (),
        per_branch: Optional[Dict[BranchKey, Iterable[Employee]]] = None,
    ):
        self._employees = tuple(employees)
        self._per_branch = {
            key: tuple(items) for key, items in (per_branch or {}).items()
        }

    def employees_for(self, branch_key: BranchKey) -> Tuple[Employee, ...]:
        return self._per_branch.get(branch_key, self._employees)


# ══════════════════════════════════════════════════════════════
# BRANCH STATE
# ══════════════════════════════════════════════════════════════

@dataclass
class HRState:
    employees: Dict[str, Employee] = field(default_factory=dict)
    entries: List[TimeEntry] = field(default_factory=list)
    payroll_periods: List[PayrollPeriod] = field(default_factory=list)

    def open_entry_index(self, employee_id: str) -> Optional[int]:
        for index in range(len(self.entries) - 1, -1, -1):
            entry = self.entries[index]
            if entry.employee_id == employee_id and entry.is_open:
                return index
        return None


# ══════════════════════════════════════════════════════════════
# SERVICE
# ══════════════════════════════════════════════════════════════

class TimeAndPayrollService:
    def __init__(
        self,
        config: LedgerConfig,
        clock: Clock,
        persistence: PersistenceSink,
        roster: Optional[EmployeeRoster] = None,
    ):
        self._config = config
        self._clock = clock
        self._persistence = persistence
        self._roster = roster or StaticEmployeeRoster()
        self._store: BranchPartitionStore[HRState] = BranchPartitionStore(
            "hr", seed=self._seed,
        )

    def _seed(self, branch_key: BranchKey) -> HRState:
        return HRState(employees={
            employee.employee_id: employee
            for employee in self._roster.employees_for(branch_key)
        })

    def _partition(self, branch_key: Optional[BranchKey]) -> Partition[HRState]:
        return self._store.get(branch_key)

    def _business_date(self, moment) -> date:
        return business_date(moment, self._config.business_timezone)

    # ── roster ────────────────────────────────────────────────

    def register_employee(self, context: OperationContext, employee: Employee) -> Employee:
        partition = self._partition(context.require_branch())
        with partition.lock:
            if employee.employee_id in partition.state.employees:
                raise ValueError(
                    f"Employee '{employee.employee_id}' already registered "
                    f"in branch '{partition.key}'."
                )
            partition.state.employees[employee.employee_id] = employee
        logger.info(f"Employee registered: {employee.employee_id} branch={partition.key}")
        return employee

    def employees(self, branch_key: BranchKey) -> Tuple[Employee, ...]:
        partition = self._partition(branch_key)
        with partition.lock:
            return tuple(partition.state.employees.values())

    def _require_employee(self, partition: Partition[HRState], employee_id: str) -> Employee:
        employee = partition.state.employees.get(employee_id)
        if employee is None:
            raise UnknownEmployee(employee_id, partition.key)
        return employee

    # ── shifts ────────────────────────────────────────────────

    def clock_in(
        self,
        context: OperationContext,
        employee_id: str,
        location: Optional[Location] = None,
        notes: Optional[str] = None,
    ) -> TimeEntry:
        partition = self._partition(context.require_branch())
        with partition.lock:
            state = partition.state
            self._require_employee(partition, employee_id)
            if state.open_entry_index(employee_id) is not None:
                raise AlreadyClockedIn(employee_id)
            now = self._clock.now_utc()
            entry = TimeEntry(
                entry_id=str(uuid.uuid4()),
                employee_id=employee_id,
                branch_key=partition.key,
                work_date=self._business_date(now),
                clock_in=now,
                location=location,
                notes=notes,
            )
            state.entries.append(entry)
        logger.info(f"Clock in: employee={employee_id} branch={partition.key}")
        return entry

    def start_break(self, context: OperationContext, employee_id: str) -> TimeEntry:
        partition = self._partition(context.require_branch())
        with partition.lock:
            index = self._open_index(partition, employee_id)
            entry = partition.state.entries[index]
            if entry.status != ENTRY_CLOCKED_IN:
                raise NotClockedIn(employee_id, "already on break")
            updated = replace(
                entry, status=ENTRY_ON_BREAK,
                break_start=self._clock.now_utc(), break_end=None,
            )
            partition.state.entries[index] = updated
        logger.info(f"Break started: employee={employee_id} branch={partition.key}")
        return updated

    def end_break(self, context: OperationContext, employee_id: str) -> TimeEntry:
        partition = self._partition(context.require_branch())
        with partition.lock:
            index = self._open_index(partition, employee_id)
            entry = partition.state.entries[index]
            if entry.status != ENTRY_ON_BREAK:
                raise NotClockedIn(employee_id, "not on break")
            updated = replace(
                entry, status=ENTRY_CLOCKED_IN, break_end=self._clock.now_utc(),
            )
            partition.state.entries[index] = updated
        logger.info(f"Break ended: employee={employee_id} branch={partition.key}")
        return updated

    def clock_out(self, context: OperationContext, employee_id: str) -> TimeEntry:
        partition = self._partition(context.require_branch())
        with partition.lock:
            index = self._open_index(partition, employee_id)
            entry = partition.state.entries[index]
            now = self._clock.now_utc()
            total = hours_between(entry.clock_in, now)
            regular, overtime = self._config.payroll.split_hours(total)
            updated = replace(
                entry,
                clock_out=now,
                break_end=now if entry.status == ENTRY_ON_BREAK else entry.break_end,
                total_hours=total,
                regular_hours=regular,
                overtime_hours=overtime,
                status=ENTRY_CLOCKED_OUT,
            )
            self._persistence.append(LedgerRecord(
                record_type=HR_TIME_ENTRY_CLOSED_V1,
                branch_key=partition.key,
                recorded_at=now,
                payload=build_time_entry_closed_payload(updated),
                actor_id=context.actor.actor_id if context.actor else None,
            ))
            partition.state.entries[index] = updated
        logger.info(
            f"Clock out: employee={employee_id} branch={partition.key} "
            f"hours={total} overtime={overtime}"
        )
        return updated

    def _open_index(self, partition: Partition[HRState], employee_id: str) -> int:
        self._require_employee(partition, employee_id)
        index = partition.state.open_entry_index(employee_id)
        if index is None:
            raise NotClockedIn(employee_id)
        return index

    # ── payroll ───────────────────────────────────────────────

    def compute_payroll(
        self, context: OperationContext, start_date: date, end_date: date,
    ) -> PayrollPeriod:
        """
        Pay every roster employee for clocked-out shifts dated inside
        [start_date, end_date]. Does not touch time entries; calling it
        twice over the same entries yields the same figures.
        """
        window = DateWindow(start_date, end_date)
        rule = self._config.payroll
        partition = self._partition(context.require_branch())
        with partition.lock:
            state = partition.state
            payroll_entries = []
            for employee in state.employees.values():
                regular = ZERO
                overtime = ZERO
                for entry in state.entries:
                    if entry.employee_id != employee.employee_id:
                        continue
                    if entry.status != ENTRY_CLOCKED_OUT:
                        continue
                    if not window.contains(entry.work_date):
                        continue
                    regular += entry.regular_hours
                    overtime += entry.overtime_hours
                payroll_entries.append(
                    _payroll_entry(employee, regular, overtime, rule)
                )

            now = self._clock.now_utc()
            period = PayrollPeriod(
                period_id=str(uuid.uuid4()),
                branch_key=partition.key,
                start_date=start_date,
                end_date=end_date,
                entries=tuple(payroll_entries),
                created_at=now,
            )
            self._persistence.append(LedgerRecord(
                record_type=HR_PAYROLL_COMPUTED_V1,
                branch_key=partition.key,
                recorded_at=now,
                payload=build_payroll_computed_payload(period),
                actor_id=context.actor.actor_id if context.actor else None,
            ))
            state.payroll_periods.append(period)
        logger.info(
            f"Payroll computed: branch={partition.key} {start_date}..{end_date} "
            f"gross={period.total_gross} net={period.total_net}"
        )
        return period

    # ── queries ───────────────────────────────────────────────

    def currently_working(self, branch_key: BranchKey) -> Tuple[TimeEntry, ...]:
        partition = self._partition(branch_key)
        with partition.lock:
            return tuple(e for e in partition.state.entries if e.is_open)

    def time_entries(self, branch_key: BranchKey) -> Tuple[TimeEntry, ...]:
        partition = self._partition(branch_key)
        with partition.lock:
            return tuple(partition.state.entries)

    def payroll_history(self, branch_key: BranchKey) -> Tuple[PayrollPeriod, ...]:
        partition = self._partition(branch_key)
        with partition.lock:
            return tuple(partition.state.payroll_periods)

    def daily_labor_summary(self, branch_key: BranchKey, day: date) -> LaborSummary:
        branch_key = require_branch_key(branch_key)
        if not self._store.has(branch_key):
            return LaborSummary()
        rule = self._config.payroll
        partition = self._partition(branch_key)
        with partition.lock:
            state = partition.state
            closed = [
                e for e in state.entries
                if e.status == ENTRY_CLOCKED_OUT and e.work_date == day
            ]
            cost = ZERO
            for entry in closed:
                employee = state.employees.get(entry.employee_id)
                if employee is not None:
                    cost += _payroll_entry(
                        employee, entry.regular_hours, entry.overtime_hours, rule,
                    ).gross_pay
        return LaborSummary(
            shift_count=len(closed),
            total_hours=sum((e.total_hours for e in closed), ZERO),
            regular_hours=sum((e.regular_hours for e in closed), ZERO),
            overtime_hours=sum((e.overtime_hours for e in closed), ZERO),
            labor_cost=cost,
        )


def _payroll_entry(employee: Employee, regular: Decimal, overtime: Decimal, rule) -> PayrollEntry:
    rate = employee.hourly_rate
    regular_pay = regular * rate
    overtime_pay = overtime * rate * rule.overtime_multiplier
    gross = regular_pay + overtime_pay
    net = gross * (1 - rule.tax_rate)
    return PayrollEntry(
        employee_id=employee.employee_id,
        regular_hours=regular,
        overtime_hours=overtime,
        hourly_rate=rate,
        regular_pay=regular_pay,
        overtime_pay=overtime_pay,
        gross_pay=gross,
        taxes=gross - net,
        net_pay=net,
    )
