"""Configuration management for the finance ledger.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

from .periods import Period

# Base project root - assumes this file is in finance_ledger/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("FINLEDGER_DATA_DIR", _PROJECT_ROOT / "data"))

# Storage keys for the two persisted records
LEDGER_KEY = "ledger-state"
GOALS_KEY = "goals-state"

# Recurring items without an end date stop at December of this year
HORIZON_YEAR = int(os.getenv("FINLEDGER_HORIZON_YEAR", "2099"))
HORIZON = Period(HORIZON_YEAR, 12)

# 'balance'  - deposits move money out of the spendable balance
# 'separate' - savings are tracked without touching the balance
SAVINGS_MODES = ("balance", "separate")
SAVINGS_MODE = os.getenv("FINLEDGER_SAVINGS_MODE", "balance")

CURRENCY_SYMBOL = os.getenv("FINLEDGER_CURRENCY", "kr.")

LOG_LEVEL = os.getenv("FINLEDGER_LOG_LEVEL", "WARNING")


def ensure_data_directories() -> None:
    """Create the data directory if it doesn't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)


def get_data_dir() -> str:
    """Get the data directory as a string."""
    return str(DATA_DIR)
