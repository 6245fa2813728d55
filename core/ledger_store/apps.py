"""
Ledger Core — Ledger Store App Configuration
==============================================
Django app holding the append-only ledger record table.

This app:
- Persists committed ledger facts as immutable rows

This app does NOT:
- Interpret payload meaning
- Hold live branch state (that lives in engine partitions)
"""

from django.apps import AppConfig


class LedgerStoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.ledger_store"
    label = "ledger_store"
    verbose_name = "Ledger Record Store"
