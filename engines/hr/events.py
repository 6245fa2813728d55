"""
Ledger HR Engine — Record Types and Payload Builders
======================================================
Engine: HR (time tracking and payroll)
"""

from __future__ import annotations

from engines.hr.models import PayrollPeriod, TimeEntry

HR_TIME_ENTRY_CLOSED_V1 = "hr.time_entry.closed.v1"
HR_PAYROLL_COMPUTED_V1 = "hr.payroll.computed.v1"

HR_RECORD_TYPES = (
    HR_TIME_ENTRY_CLOSED_V1,
    HR_PAYROLL_COMPUTED_V1,
)


def build_time_entry_closed_payload(entry: TimeEntry) -> dict:
    return entry.to_dict()


def build_payroll_computed_payload(period: PayrollPeriod) -> dict:
    return period.to_dict()
