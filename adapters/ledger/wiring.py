"""
Branch Ledger Wiring
====================
Composes the four engines over shared collaborators.

create_ledger() takes every collaborator explicitly (tests pass a
FixedClock, ManualScheduler, and InMemoryPersistenceSink).
build_ledger() is the process-wide instance for a Django-configured
deployment: rules from settings.LEDGER, ORM-backed sink, wall clock,
timer-driven fulfillment.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from core.config import LedgerConfig, load_ledger_config
from core.persistence import InMemoryPersistenceSink, PersistenceSink
from core.scheduling import Scheduler, ThreadingScheduler
from core.time import Clock, SystemClock
from engines.catalog.services import (
    CatalogCartService,
    CatalogSource,
    StaticCatalogSource,
)
from engines.end_of_day.inventory import InMemoryInventoryStore, InventoryStore
from engines.end_of_day.services import EndOfDayService
from engines.hr.services import (
    EmployeeRoster,
    StaticEmployeeRoster,
    TimeAndPayrollService,
)
from engines.sales.services import TransactionService

_LEDGER_LOCK = threading.Lock()
_LEDGER: "BranchLedger | None" = None


@dataclass(frozen=True)
class BranchLedger:
    config: LedgerConfig
    clock: Clock
    scheduler: Scheduler
    persistence: PersistenceSink
    catalog: CatalogCartService
    sales: TransactionService
    hr: TimeAndPayrollService
    end_of_day: EndOfDayService


def create_ledger(
    *,
    config: Optional[LedgerConfig] = None,
    clock: Optional[Clock] = None,
    scheduler: Optional[Scheduler] = None,
    persistence: Optional[PersistenceSink] = None,
    catalog_source: Optional[CatalogSource] = None,
    roster: Optional[EmployeeRoster] = None,
    inventory: Optional[InventoryStore] = None,
) -> BranchLedger:
    config = config or LedgerConfig()
    clock = clock or SystemClock()
    scheduler = scheduler or ThreadingScheduler()
    persistence = persistence if persistence is not None else InMemoryPersistenceSink()

    catalog = CatalogCartService(config, catalog_source or StaticCatalogSource())
    sales = TransactionService(config, catalog, clock, scheduler, persistence)
    hr = TimeAndPayrollService(
        config, clock, persistence, roster or StaticEmployeeRoster(),
    )
    end_of_day = EndOfDayService(
        config, clock, persistence,
        inventory if inventory is not None else InMemoryInventoryStore(),
        sales, hr,
    )
    return BranchLedger(
        config=config,
        clock=clock,
        scheduler=scheduler,
        persistence=persistence,
        catalog=catalog,
        sales=sales,
        hr=hr,
        end_of_day=end_of_day,
    )


def _create_from_settings() -> BranchLedger:
    from core.ledger_store.sink import DjangoPersistenceSink

    return create_ledger(
        config=load_ledger_config(),
        persistence=DjangoPersistenceSink(),
    )


def build_ledger() -> BranchLedger:
    global _LEDGER
    with _LEDGER_LOCK:
        if _LEDGER is None:
            _LEDGER = _create_from_settings()
        return _LEDGER
