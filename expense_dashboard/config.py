"""Configuration management for the expense dashboard.

This module centralizes all configuration values including paths,
display defaults, and environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

# Base project root - assumes this file is in expense_dashboard/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("EXPENSE_DASHBOARD_DATA_DIR", _PROJECT_ROOT / "data"))
EXPORTS_DIR = Path(os.getenv("EXPENSE_DASHBOARD_EXPORTS_DIR", DATA_DIR / "exports"))

# Database
DB_PATH = Path(
    os.getenv("EXPENSE_DASHBOARD_DB_PATH", DATA_DIR / "expenses.db")
).resolve()

# Display
CURRENCY_SYMBOL = os.getenv("EXPENSE_DASHBOARD_CURRENCY_SYMBOL", "₹")
NUMBER_GROUPING = os.getenv("EXPENSE_DASHBOARD_NUMBER_GROUPING", "indian")
DISPLAY_DATE_FORMAT = os.getenv("EXPENSE_DASHBOARD_DATE_FORMAT", "%d/%m/%Y")

# Optional TTF font for PDF exports.  The built-in PDF fonts only cover
# Latin-1, so symbols such as the rupee sign need an embedded font.
_pdf_font = os.getenv("EXPENSE_DASHBOARD_PDF_FONT")
PDF_FONT_PATH: Optional[Path] = Path(_pdf_font) if _pdf_font else None

# Logging
LOG_LEVEL = os.getenv("EXPENSE_DASHBOARD_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("EXPENSE_DASHBOARD_LOG_FORMAT", "text").lower()


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, EXPORTS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)


def get_db_path() -> str:
    """Get the database path as a string."""
    return str(DB_PATH)
