"""
Branch Ledger – Django Settings (Infrastructure Only)
======================================================
Django hosts the ORM-backed persistence sink and the configuration.
Engine state lives in per-branch partitions; Django does not dictate
structure.

LEDGER holds the operational rules read by core.config.load_ledger_config().
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("LEDGER_SECRET_KEY", "ledger-dev-key-replace-before-deployment")

DEBUG = os.environ.get("LEDGER_DEBUG", "1") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "core.ledger_store",
]

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured separately.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("LEDGER_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# ── Default Primary Key ──────────────────────────────────────
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Ledger Rules ─────────────────────────────────────────────
LEDGER = {
    "TAX_RATE": "0.08",
    "OVERTIME_THRESHOLD_HOURS": "8",
    "OVERTIME_MULTIPLIER": "1.5",
    "PAYROLL_TAX_RATE": "0.25",
    "CASH_TOLERANCE": "0.50",
    "FULFILLMENT_DELAY_SECONDS": 1.0,
    "RECEIPT_PREFIX": "",
    "RECENT_TRANSACTIONS_LIMIT": 10,
    "BUSINESS_TIMEZONE": os.environ.get("LEDGER_TIMEZONE", "UTC"),
}

# ── Logging ──────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    },
    "loggers": {
        "ledger": {
            "handlers": ["console"],
            "level": os.environ.get("LEDGER_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}
