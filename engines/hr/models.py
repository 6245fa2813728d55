"""
Ledger HR Engine — Value Objects
==================================
Employees, time entries, payroll entries and periods, labour summary.

TimeEntry is replaced (never edited in place) on every transition:
    clocked_in ⇄ on_break → clocked_out
Hours are exact Decimals; regular/overtime are zero while the entry is
open and set once at clock-out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

EMPLOYEE_ACTIVE = "active"
EMPLOYEE_INACTIVE = "inactive"
VALID_EMPLOYEE_STATUSES = frozenset({EMPLOYEE_ACTIVE, EMPLOYEE_INACTIVE})

ENTRY_CLOCKED_IN = "clocked_in"
ENTRY_ON_BREAK = "on_break"
ENTRY_CLOCKED_OUT = "clocked_out"
VALID_ENTRY_STATUSES = frozenset({ENTRY_CLOCKED_IN, ENTRY_ON_BREAK, ENTRY_CLOCKED_OUT})
OPEN_ENTRY_STATUSES = frozenset({ENTRY_CLOCKED_IN, ENTRY_ON_BREAK})

ZERO = Decimal(0)


def _as_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class Employee:
    employee_id: str
    display_name: str
    hourly_rate: Decimal
    status: str = EMPLOYEE_ACTIVE

    def __post_init__(self):
        if not self.employee_id:
            raise ValueError("employee_id must be non-empty.")
        if not self.display_name:
            raise ValueError("display_name must be non-empty.")
        object.__setattr__(self, "hourly_rate", _as_decimal(self.hourly_rate))
        if self.hourly_rate < 0:
            raise ValueError("hourly_rate must be non-negative.")
        if self.status not in VALID_EMPLOYEE_STATUSES:
            raise ValueError(f"status '{self.status}' not valid.")


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


# ══════════════════════════════════════════════════════════════
# TIME ENTRY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TimeEntry:
    entry_id: str
    employee_id: str
    branch_key: str
    work_date: date
    clock_in: datetime
    clock_out: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None
    total_hours: Decimal = ZERO
    regular_hours: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    status: str = ENTRY_CLOCKED_IN
    location: Optional[Location] = None
    notes: Optional[str] = None

    def __post_init__(self):
        if self.status not in VALID_ENTRY_STATUSES:
            raise ValueError(f"status '{self.status}' not valid.")
        if self.clock_out is not None and self.clock_out < self.clock_in:
            raise ValueError("clock_out must not precede clock_in.")
        if self.status == ENTRY_CLOCKED_OUT and self.clock_out is None:
            raise ValueError("A clocked-out entry needs clock_out.")

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_ENTRY_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entry_id": self.entry_id,
            "employee_id": self.employee_id,
            "branch_key": self.branch_key,
            "work_date": self.work_date,
            "clock_in": self.clock_in,
            "clock_out": self.clock_out,
            "break_start": self.break_start,
            "break_end": self.break_end,
            "total_hours": self.total_hours,
            "regular_hours": self.regular_hours,
            "overtime_hours": self.overtime_hours,
            "status": self.status,
            "location": (
                None if self.location is None
                else {"lat": self.location.latitude, "lng": self.location.longitude}
            ),
            "notes": self.notes,
        }


# ══════════════════════════════════════════════════════════════
# PAYROLL
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PayrollEntry:
    employee_id: str
    regular_hours: Decimal
    overtime_hours: Decimal
    hourly_rate: Decimal
    regular_pay: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal
    taxes: Decimal
    net_pay: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "employee_id": self.employee_id,
            "regular_hours": self.regular_hours,
            "overtime_hours": self.overtime_hours,
            "hourly_rate": self.hourly_rate,
            "regular_pay": self.regular_pay,
            "overtime_pay": self.overtime_pay,
            "gross_pay": self.gross_pay,
            "taxes": self.taxes,
            "net_pay": self.net_pay,
        }


@dataclass(frozen=True)
class PayrollPeriod:
    period_id: str
    branch_key: str
    start_date: date
    end_date: date
    entries: Tuple[PayrollEntry, ...]
    created_at: datetime
    total_gross: Decimal = field(init=False)
    total_net: Decimal = field(init=False)

    def __post_init__(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must be <= end_date.")
        object.__setattr__(
            self, "total_gross", sum((e.gross_pay for e in self.entries), ZERO),
        )
        object.__setattr__(
            self, "total_net", sum((e.net_pay for e in self.entries), ZERO),
        )

    def entry_for(self, employee_id: str) -> Optional[PayrollEntry]:
        for entry in self.entries:
            if entry.employee_id == employee_id:
                return entry
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period_id": self.period_id,
            "branch_key": self.branch_key,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "entries": [entry.to_dict() for entry in self.entries],
            "total_gross": self.total_gross,
            "total_net": self.total_net,
            "created_at": self.created_at,
        }


# ══════════════════════════════════════════════════════════════
# LABOUR SUMMARY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LaborSummary:
    """Closed-shift hours and gross labour cost for one business day."""

    shift_count: int = 0
    total_hours: Decimal = ZERO
    regular_hours: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    labor_cost: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shift_count": self.shift_count,
            "total_hours": self.total_hours,
            "regular_hours": self.regular_hours,
            "overtime_hours": self.overtime_hours,
            "labor_cost": self.labor_cost,
        }
