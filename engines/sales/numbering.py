"""
Ledger Sales Engine — Receipt Numbering
=========================================
Receipt number = prefix + YYMMDD (business date) + 6-digit sequence.

The sequence is one branch-scoped counter that never resets: the date
part only labels the receipt, the suffix alone is strictly increasing
within a branch, across day boundaries and clock corrections alike.
Advancing is atomic under the sequence lock.
"""

from __future__ import annotations

import threading
from datetime import date

SEQUENCE_WIDTH = 6
SEQUENCE_MAX = 10 ** SEQUENCE_WIDTH - 1


def format_receipt_number(prefix: str, business_day: date, sequence: int) -> str:
    if not isinstance(sequence, int) or sequence < 1:
        raise ValueError("sequence must be int >= 1.")
    if sequence > SEQUENCE_MAX:
        raise ValueError(f"sequence {sequence} exceeds {SEQUENCE_WIDTH} digits.")
    return f"{prefix}{business_day:%y%m%d}{sequence:0{SEQUENCE_WIDTH}d}"


def receipt_sequence_of(receipt_number: str) -> int:
    """The numeric suffix of a formatted receipt number."""
    return int(receipt_number[-SEQUENCE_WIDTH:])


class ReceiptSequence:
    """One branch's receipt counter."""

    def __init__(self, prefix: str = ""):
        self._prefix = prefix
        self._lock = threading.Lock()
        self._next = 1

    def next_number(self, business_day: date) -> str:
        """Issue the next receipt number labelled with business_day and advance."""
        with self._lock:
            number = format_receipt_number(self._prefix, business_day, self._next)
            self._next += 1
            return number
