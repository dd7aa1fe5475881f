"""Formatting utilities for currency, dates and table labels."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from . import config
from .models import Vendor


def group_digits(digits: str, grouping: str = "indian") -> str:
    """Insert thousands separators into a string of digits.

    ``"indian"`` grouping keeps the last three digits together and then
    groups by two (lakh/crore); ``"western"`` groups by three.

    Example:
        >>> group_digits("1234567")
        '12,34,567'
        >>> group_digits("1234567", "western")
        '1,234,567'
    """
    if grouping == "western":
        return f"{int(digits):,}"
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_number(amount: Union[float, int], grouping: Optional[str] = None) -> str:
    """Grouped number with exactly two decimals (e.g. ``"1,23,456.70"``)."""
    text = f"{abs(float(amount)):.2f}"
    whole, fraction = text.split(".")
    sign = "-" if float(amount) < 0 and text != "0.00" else ""
    return f"{sign}{group_digits(whole, grouping or config.NUMBER_GROUPING)}.{fraction}"


def format_currency(
    amount: Union[float, int],
    symbol: Optional[str] = None,
    grouping: Optional[str] = None,
) -> str:
    """Format a currency amount as ``<symbol><grouped number>``.

    Example:
        >>> format_currency(1234.5, symbol="₹")
        '₹1,234.50'
    """
    currency = config.CURRENCY_SYMBOL if symbol is None else symbol
    return f"{currency}{format_number(amount, grouping)}"


def format_display_date(iso_date: Optional[str], fmt: Optional[str] = None) -> str:
    """Render an ISO date for display; unparseable values come back as-is."""
    if not iso_date:
        return ""
    try:
        parsed = datetime.strptime(str(iso_date)[:10], "%Y-%m-%d")
    except ValueError:
        return str(iso_date)
    return parsed.strftime(fmt or config.DISPLAY_DATE_FORMAT)


def vendor_label(vendor: Optional[Vendor]) -> str:
    return vendor.label() if vendor else "-"


def amount_severity(amount: float) -> str:
    """Badge text for the expense table: Low below 1000, High from 5000."""
    if amount < 1000:
        return "Low"
    if amount < 5000:
        return "Medium"
    return "High"


def format_percent_change(change: float) -> str:
    return f"{change:+.1f}%"
