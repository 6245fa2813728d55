"""
Ledger HR Engine — Time Tracking and Payroll Tests
====================================================
Shift capture, breaks, regular/overtime split, payroll periods,
labour summary.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from core.config import LedgerConfig
from core.context import ActorContext, OperationContext
from core.errors import NoActiveBranch
from core.persistence import InMemoryPersistenceSink
from core.time import FixedClock
from engines.hr.errors import AlreadyClockedIn, NotClockedIn, UnknownEmployee
from engines.hr.events import HR_PAYROLL_COMPUTED_V1, HR_TIME_ENTRY_CLOSED_V1
from engines.hr.models import Employee, Location, PayrollPeriod
from engines.hr.services import StaticEmployeeRoster, TimeAndPayrollService

T0 = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)
DAY = date(2026, 3, 2)

MANAGER = ActorContext(actor_id="mgr-1", display_name="Shift Manager")
BRANCH_A = OperationContext(branch_key="branch-a", actor=MANAGER)
BRANCH_B = OperationContext(branch_key="branch-b", actor=MANAGER)

BARISTA = Employee("emp-1", "Bo Barista", Decimal("15.00"))
COOK = Employee("emp-2", "Cy Cook", Decimal("18.00"))


def _service(clock=None, per_branch=None):
    clock = clock or FixedClock(T0)
    sink = InMemoryPersistenceSink()
    service = TimeAndPayrollService(
        LedgerConfig(), clock, sink,
        StaticEmployeeRoster((BARISTA, COOK), per_branch=per_branch),
    )
    return service, clock, sink


def _shift(service, clock, employee_id, hours, minutes=0, context=BRANCH_A):
    service.clock_in(context, employee_id)
    clock.advance(hours=hours, minutes=minutes)
    entry = service.clock_out(context, employee_id)
    clock.advance(hours=24 - hours, minutes=-minutes)
    return entry


# ══════════════════════════════════════════════════════════════
# CLOCK IN / OUT
# ══════════════════════════════════════════════════════════════

class TestClockInOut:
    def test_clock_in_opens_entry(self):
        service, _, _ = _service()
        location = Location(-1.2921, 36.8219)
        entry = service.clock_in(BRANCH_A, "emp-1", location=location, notes="opening")
        assert entry.status == "clocked_in"
        assert entry.work_date == DAY
        assert entry.clock_in == T0
        assert entry.total_hours == Decimal(0)
        assert entry.location == location
        assert service.currently_working("branch-a") == (entry,)

    def test_double_clock_in_rejected(self):
        service, _, _ = _service()
        service.clock_in(BRANCH_A, "emp-1")
        with pytest.raises(AlreadyClockedIn) as exc_info:
            service.clock_in(BRANCH_A, "emp-1")
        assert exc_info.value.code == "ALREADY_CLOCKED_IN"

    def test_unknown_employee(self):
        service, _, _ = _service()
        with pytest.raises(UnknownEmployee):
            service.clock_in(BRANCH_A, "emp-404")

    def test_requires_branch(self):
        service, _, _ = _service()
        with pytest.raises(NoActiveBranch):
            service.clock_in(OperationContext(actor=MANAGER), "emp-1")

    def test_clock_out_without_clock_in(self):
        service, _, _ = _service()
        with pytest.raises(NotClockedIn):
            service.clock_out(BRANCH_A, "emp-1")

    def test_nine_and_a_half_hour_shift(self):
        service, clock, sink = _service()
        service.clock_in(BRANCH_A, "emp-1")
        clock.advance(hours=9, minutes=30)
        entry = service.clock_out(BRANCH_A, "emp-1")

        assert entry.status == "clocked_out"
        assert entry.total_hours == Decimal("9.5")
        assert entry.regular_hours == Decimal(8)
        assert entry.overtime_hours == Decimal("1.5")
        assert service.currently_working("branch-a") == ()

        records = sink.records(HR_TIME_ENTRY_CLOSED_V1)
        assert len(records) == 1
        assert records[0].payload["overtime_hours"] == Decimal("1.5")

    def test_short_shift_has_no_overtime(self):
        service, clock, _ = _service()
        entry = _shift(service, clock, "emp-1", 6, 15)
        assert entry.regular_hours == Decimal("6.25")
        assert entry.overtime_hours == Decimal(0)

    def test_clock_in_again_after_clock_out(self):
        service, clock, _ = _service()
        service.clock_in(BRANCH_A, "emp-1")
        clock.advance(hours=4)
        service.clock_out(BRANCH_A, "emp-1")
        clock.advance(hours=1)
        service.clock_in(BRANCH_A, "emp-1")
        assert len(service.time_entries("branch-a")) == 2

    def test_overnight_shift_closes_after_midnight(self):
        clock = FixedClock(datetime(2026, 3, 2, 22, 0, tzinfo=timezone.utc))
        service, _, _ = _service(clock)
        service.clock_in(BRANCH_A, "emp-2")
        clock.advance(hours=8)
        entry = service.clock_out(BRANCH_A, "emp-2")
        assert entry.work_date == DAY
        assert entry.total_hours == Decimal(8)


# ══════════════════════════════════════════════════════════════
# BREAKS
# ══════════════════════════════════════════════════════════════

class TestBreaks:
    def test_break_round_trip(self):
        service, clock, _ = _service()
        service.clock_in(BRANCH_A, "emp-1")
        clock.advance(hours=2)
        on_break = service.start_break(BRANCH_A, "emp-1")
        assert on_break.status == "on_break"
        clock.advance(minutes=30)
        back = service.end_break(BRANCH_A, "emp-1")
        assert back.status == "clocked_in"
        assert back.break_end - back.break_start == clock.now_utc() - on_break.break_start

    def test_break_time_not_deducted(self):
        service, clock, _ = _service()
        service.clock_in(BRANCH_A, "emp-1")
        clock.advance(hours=4)
        service.start_break(BRANCH_A, "emp-1")
        clock.advance(hours=1)
        service.end_break(BRANCH_A, "emp-1")
        clock.advance(hours=4)
        assert service.clock_out(BRANCH_A, "emp-1").total_hours == Decimal(9)

    def test_clock_out_while_on_break_closes_break(self):
        service, clock, _ = _service()
        service.clock_in(BRANCH_A, "emp-1")
        clock.advance(hours=3)
        service.start_break(BRANCH_A, "emp-1")
        clock.advance(minutes=15)
        entry = service.clock_out(BRANCH_A, "emp-1")
        assert entry.status == "clocked_out"
        assert entry.break_end == entry.clock_out

    def test_on_break_blocks_clock_in(self):
        service, _, _ = _service()
        service.clock_in(BRANCH_A, "emp-1")
        service.start_break(BRANCH_A, "emp-1")
        with pytest.raises(AlreadyClockedIn):
            service.clock_in(BRANCH_A, "emp-1")

    def test_break_requires_open_entry(self):
        service, _, _ = _service()
        with pytest.raises(NotClockedIn):
            service.start_break(BRANCH_A, "emp-1")
        with pytest.raises(NotClockedIn):
            service.end_break(BRANCH_A, "emp-1")

    def test_double_break_rejected(self):
        service, _, _ = _service()
        service.clock_in(BRANCH_A, "emp-1")
        service.start_break(BRANCH_A, "emp-1")
        with pytest.raises(NotClockedIn, match="already on break"):
            service.start_break(BRANCH_A, "emp-1")


# ══════════════════════════════════════════════════════════════
# PAYROLL
# ══════════════════════════════════════════════════════════════

class TestPayroll:
    def test_pay_with_overtime(self):
        service, clock, sink = _service()
        _shift(service, clock, "emp-1", 9, 30)
        period = service.compute_payroll(BRANCH_A, DAY, DAY)

        entry = period.entry_for("emp-1")
        assert entry.regular_hours == Decimal(8)
        assert entry.overtime_hours == Decimal("1.5")
        assert entry.regular_pay == Decimal("120.00")
        assert entry.overtime_pay == Decimal("33.75")
        assert entry.gross_pay == Decimal("153.75")
        assert entry.net_pay == Decimal("115.3125")
        assert entry.taxes == Decimal("38.4375")
        assert entry.gross_pay == entry.net_pay + entry.taxes
        assert len(sink.records(HR_PAYROLL_COMPUTED_V1)) == 1

    def test_overtime_is_per_shift(self):
        service, clock, _ = _service()
        _shift(service, clock, "emp-1", 6)
        _shift(service, clock, "emp-1", 6)
        period = service.compute_payroll(BRANCH_A, DAY, date(2026, 3, 3))
        entry = period.entry_for("emp-1")
        assert entry.regular_hours == Decimal(12)
        assert entry.overtime_hours == Decimal(0)

    def test_every_roster_employee_gets_an_entry(self):
        service, clock, _ = _service()
        _shift(service, clock, "emp-1", 4)
        period = service.compute_payroll(BRANCH_A, DAY, DAY)
        assert [e.employee_id for e in period.entries] == ["emp-1", "emp-2"]
        assert period.entry_for("emp-2").gross_pay == Decimal(0)

    def test_window_is_inclusive(self):
        service, clock, _ = _service()
        _shift(service, clock, "emp-1", 8)   # 2026-03-02
        _shift(service, clock, "emp-1", 8)   # 2026-03-03
        _shift(service, clock, "emp-1", 8)   # 2026-03-04
        period = service.compute_payroll(BRANCH_A, date(2026, 3, 3), date(2026, 3, 4))
        assert period.entry_for("emp-1").regular_hours == Decimal(16)

    def test_open_entries_excluded(self):
        service, _, _ = _service()
        service.clock_in(BRANCH_A, "emp-1")
        period = service.compute_payroll(BRANCH_A, DAY, DAY)
        assert period.entry_for("emp-1").regular_hours == Decimal(0)

    def test_totals(self):
        service, clock, _ = _service()
        _shift(service, clock, "emp-1", 8)
        service.clock_in(BRANCH_A, "emp-2")
        clock.advance(hours=10)
        service.clock_out(BRANCH_A, "emp-2")
        period = service.compute_payroll(BRANCH_A, DAY, date(2026, 3, 3))
        # 8 × 15 + (8 × 18 + 2 × 18 × 1.5)
        assert period.total_gross == Decimal("318")
        assert period.total_net == Decimal("238.5")

    def test_recomputation_is_idempotent(self):
        service, clock, _ = _service()
        _shift(service, clock, "emp-1", 9, 30)
        entries_before = service.time_entries("branch-a")
        first = service.compute_payroll(BRANCH_A, DAY, DAY)
        second = service.compute_payroll(BRANCH_A, DAY, DAY)
        assert first.entries == second.entries
        assert first.total_gross == second.total_gross
        assert first.period_id != second.period_id
        assert service.time_entries("branch-a") == entries_before
        assert service.payroll_history("branch-a") == (first, second)

    def test_period_is_immutable(self):
        service, _, _ = _service()
        period = service.compute_payroll(BRANCH_A, DAY, DAY)
        assert isinstance(period, PayrollPeriod)
        with pytest.raises(AttributeError):
            period.total_gross = Decimal(0)

    def test_rejects_inverted_window(self):
        service, _, _ = _service()
        with pytest.raises(ValueError, match="start"):
            service.compute_payroll(BRANCH_A, date(2026, 3, 5), DAY)


# ══════════════════════════════════════════════════════════════
# ROSTER AND SUMMARIES
# ══════════════════════════════════════════════════════════════

class TestRosterAndSummaries:
    def test_register_employee(self):
        service, _, _ = _service()
        extra = Employee("emp-3", "Di Driver", Decimal("14"))
        service.register_employee(BRANCH_A, extra)
        service.clock_in(BRANCH_A, "emp-3")
        assert extra in service.employees("branch-a")
        assert extra not in service.employees("branch-b")

    def test_register_duplicate_rejected(self):
        service, _, _ = _service()
        with pytest.raises(ValueError, match="already registered"):
            service.register_employee(BRANCH_A, BARISTA)

    def test_per_branch_roster(self):
        service, _, _ = _service(per_branch={"branch-b": (COOK,)})
        with pytest.raises(UnknownEmployee):
            service.clock_in(BRANCH_B, "emp-1")

    def test_entries_are_branch_scoped(self):
        service, _, _ = _service()
        service.clock_in(BRANCH_A, "emp-1")
        service.clock_in(BRANCH_B, "emp-1")
        assert len(service.currently_working("branch-a")) == 1
        assert len(service.currently_working("branch-b")) == 1

    def test_daily_labor_summary(self):
        service, clock, _ = _service()
        service.clock_in(BRANCH_A, "emp-1")
        service.clock_in(BRANCH_A, "emp-2")
        clock.advance(hours=9, minutes=30)
        service.clock_out(BRANCH_A, "emp-1")
        summary = service.daily_labor_summary("branch-a", DAY)
        assert summary.shift_count == 1
        assert summary.total_hours == Decimal("9.5")
        assert summary.overtime_hours == Decimal("1.5")
        assert summary.labor_cost == Decimal("153.75")

    def test_labor_summary_for_unknown_branch(self):
        service, _, _ = _service()
        assert service.daily_labor_summary("branch-z", DAY).shift_count == 0
