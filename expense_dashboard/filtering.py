"""Filter engine for the in-memory expense list.

:func:`apply_filters` narrows an already-loaded list of expenses with a
:class:`FilterCriteria` value.  Every criterion is optional (``None`` means
"not filtering on this"), criteria combine with AND, and the result keeps
the input order.  Nothing here raises for well-formed input; bad user
input such as ``"abc"`` for an amount bound simply leaves that criterion
inactive.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Any, Iterable, List, Optional

from .models import Expense

# Sentinel values used by select boxes for "no filter".
ALL = "all"


def parse_amount(value: Any) -> Optional[float]:
    """Return ``value`` as a float, or ``None`` if it is not a usable number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_iso_date(value: Any) -> Optional[str]:
    """Normalize ``value`` to ``YYYY-MM-DD`` or return ``None``."""
    if value is None:
        return None
    if hasattr(value, "isoformat") and not isinstance(value, str):
        if isinstance(value, datetime):
            value = value.date()
        return value.isoformat()
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.strptime(text, "%Y-%m-%d").date().isoformat()
    except ValueError:
        return None


def _optional_choice(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    if not text.strip() or text == ALL:
        return None
    return text


@dataclass(frozen=True)
class FilterCriteria:
    category: Optional[str] = None
    vendor_id: Optional[str] = None
    vendor_type: Optional[str] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    search: Optional[str] = None

    @classmethod
    def from_inputs(
        cls,
        category: Any = ALL,
        vendor_id: Any = ALL,
        vendor_type: Any = ALL,
        min_amount: Any = "",
        max_amount: Any = "",
        start_date: Any = "",
        end_date: Any = "",
        search: Any = "",
    ) -> "FilterCriteria":
        """Build criteria from raw widget values.

        ``"all"`` and blank strings mean "inactive"; amounts and dates that
        do not parse are dropped rather than reported.
        """
        search_text = str(search).strip() if search is not None else ""
        return cls(
            category=_optional_choice(category),
            vendor_id=_optional_choice(vendor_id),
            vendor_type=_optional_choice(vendor_type),
            min_amount=parse_amount(min_amount),
            max_amount=parse_amount(max_amount),
            start_date=parse_iso_date(start_date),
            end_date=parse_iso_date(end_date),
            search=search_text or None,
        )

    def active_fields(self) -> List[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is not None]

    @property
    def is_empty(self) -> bool:
        return not self.active_fields()

    def with_changes(self, **changes: Any) -> "FilterCriteria":
        return replace(self, **changes)

    def reset(self) -> "FilterCriteria":
        return FilterCriteria()


def matches(expense: Expense, criteria: FilterCriteria) -> bool:
    """Return ``True`` if ``expense`` passes every active criterion."""
    vendor = expense.vendor

    if criteria.category is not None and expense.category != criteria.category:
        return False
    if criteria.vendor_id is not None and (vendor is None or vendor.id != criteria.vendor_id):
        return False
    if criteria.vendor_type is not None and (vendor is None or vendor.type != criteria.vendor_type):
        return False
    if criteria.min_amount is not None and not expense.amount >= criteria.min_amount:
        return False
    if criteria.max_amount is not None and not expense.amount <= criteria.max_amount:
        return False
    # ISO dates sort lexicographically in calendar order
    if criteria.start_date is not None and expense.date < criteria.start_date:
        return False
    if criteria.end_date is not None and expense.date > criteria.end_date:
        return False
    if criteria.search is not None:
        term = criteria.search.lower()
        haystacks = [expense.description, expense.category, vendor.name if vendor else None]
        if not any(text and term in text.lower() for text in haystacks):
            return False
    return True


def apply_filters(expenses: Iterable[Expense], criteria: Optional[FilterCriteria] = None) -> List[Expense]:
    """Return the expenses matching ``criteria`` in their original order."""
    items = list(expenses)
    if criteria is None or criteria.is_empty:
        return items
    return [expense for expense in items if matches(expense, criteria)]
