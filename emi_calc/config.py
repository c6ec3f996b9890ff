"""Configuration for the EMI calculator.

Business rule constants live at module level so the engine, validation layer
and front ends agree on them. Runtime settings are read from environment
variables on demand; nothing here is read at import time by the engine.
"""

from __future__ import annotations

import logging
import os
from decimal import Decimal
from pathlib import Path
from typing import Optional

# Upper tenure bound enforced by the input validation layer (not the engine).
MAX_TENURE_YEARS = 30

# Number of calculations kept in the ledger, most recent first.
HISTORY_LIMIT = 10

# Grace period appended to the course duration for the moratorium.
MORATORIUM_GRACE_YEARS = Decimal("0.5")

# Flat marginal rate used for the Section 80E estimate.
TAX_SAVING_RATE = Decimal("0.20")

# Tenure reduction used for the "pay off faster" comparison.
COMPARISON_TENURE_REDUCTION_YEARS = 5

DEFAULT_HISTORY_PATH = Path.home() / ".emi_calc_history.json"
DEFAULT_AI_MODEL = "gpt-4o-mini"
DEFAULT_LEDGER_DATABASE_URL = "sqlite:///ledger_data.sqlite3"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def history_path() -> Path:
    """Return the JSON ledger path used by the CLI."""
    value = os.environ.get("EMI_CALC_HISTORY_PATH")
    return Path(value).expanduser() if value else DEFAULT_HISTORY_PATH


def ai_model() -> str:
    return os.environ.get("EMI_CALC_AI_MODEL", DEFAULT_AI_MODEL)


def ai_timeout_seconds() -> float:
    return float(os.environ.get("EMI_CALC_AI_TIMEOUT_S", "20"))


def ai_max_retries() -> int:
    return int(os.environ.get("EMI_CALC_AI_MAX_RETRIES", "2"))


def openai_api_key() -> Optional[str]:
    return os.environ.get("OPENAI_API_KEY") or None


def ledger_database_url() -> str:
    return os.environ.get("LEDGER_DATABASE_URL") or DEFAULT_LEDGER_DATABASE_URL


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for the CLI and web entry points.

    ``level`` falls back to ``EMI_CALC_LOG_LEVEL`` and then ``WARNING``.
    """
    name = (level or os.environ.get("EMI_CALC_LOG_LEVEL") or "WARNING").upper()
    logging.basicConfig(level=getattr(logging, name, logging.WARNING), format=LOG_FORMAT)
