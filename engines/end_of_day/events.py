"""
Ledger End-of-Day — Record Types and Payload Builders
=======================================================
Engine: End-of-Day (stock count, cash drawer, day report)
"""

from __future__ import annotations

from engines.end_of_day.models import (
    CashReconciliation,
    EndOfDayReport,
    StockCheckSession,
)

END_OF_DAY_STOCK_CHECK_COMPLETED_V1 = "end_of_day.stock_check.completed.v1"
END_OF_DAY_CASH_RECONCILIATION_FINALIZED_V1 = "end_of_day.cash_reconciliation.finalized.v1"
END_OF_DAY_REPORT_GENERATED_V1 = "end_of_day.report.generated.v1"

END_OF_DAY_RECORD_TYPES = (
    END_OF_DAY_STOCK_CHECK_COMPLETED_V1,
    END_OF_DAY_CASH_RECONCILIATION_FINALIZED_V1,
    END_OF_DAY_REPORT_GENERATED_V1,
)


def build_stock_check_completed_payload(session: StockCheckSession) -> dict:
    return session.to_dict()


def build_reconciliation_finalized_payload(reconciliation: CashReconciliation) -> dict:
    return reconciliation.to_dict()


def build_report_generated_payload(report: EndOfDayReport) -> dict:
    return report.to_dict()
