"""
Ledger Core Time — Public API
===============================
Explicit clock protocol and business-day helpers.
No datetime.now() in engine logic.
"""

from core.time.clock import (
    Clock,
    FixedClock,
    SystemClock,
)
from core.time.temporal import (
    DateWindow,
    business_date,
    hours_between,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "DateWindow",
    "business_date",
    "hours_between",
]
