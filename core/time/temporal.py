"""
Ledger Core Time — Temporal Helpers
=====================================
Pure functions for business-day logic.
All functions take explicit datetime arguments — no hidden clock access.

A "business day" is the calendar date of a timestamp in the configured
business timezone (local date truncated to midnight).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterator
from zoneinfo import ZoneInfo

SECONDS_PER_HOUR = Decimal(3600)


# ══════════════════════════════════════════════════════════════
# DATE WINDOW — Closed interval [start, end]
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DateWindow:
    """
    A closed date interval [start, end].

    Invariant: start <= end (enforced at construction).
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"DateWindow start ({self.start}) must be <= end ({self.end})."
            )

    def contains(self, day: date) -> bool:
        """Check if a date falls within the window (inclusive)."""
        return self.start <= day <= self.end

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)


# ══════════════════════════════════════════════════════════════
# PURE TEMPORAL FUNCTIONS
# ══════════════════════════════════════════════════════════════

def business_date(moment: datetime, timezone_name: str = "UTC") -> date:
    """Return the local calendar date of an aware timestamp."""
    if moment.tzinfo is None:
        raise ValueError("business_date requires timezone-aware datetime.")
    return moment.astimezone(ZoneInfo(timezone_name)).date()


def hours_between(start: datetime, end: datetime) -> Decimal:
    """
    Exact elapsed hours between two timestamps as a Decimal.

    Negative intervals are rejected; a clock-out can never precede
    its clock-in.
    """
    delta = end - start
    if delta < timedelta(0):
        raise ValueError(f"end ({end}) precedes start ({start}).")
    seconds = Decimal(delta.days * 86400 + delta.seconds)
    seconds += Decimal(delta.microseconds) / Decimal(1_000_000)
    return seconds / SECONDS_PER_HOUR
