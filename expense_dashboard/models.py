"""Record types for expenses, vendors and categories.

The dataclasses here are plain snapshots of what the record store
returns.  The filtering, aggregation, search and export helpers only
ever read them; validation happens once, at the store boundary, via the
``validate_*`` helpers at the bottom of this module.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

VENDOR_TYPES = ("engineer", "contractor", "supplier", "labour")

# Fixed cost heads for a home-construction budget.  Users extend this
# list with custom categories.
PREDEFINED_CATEGORIES = (
    "materials",
    "labour",
    "equipment",
    "permits",
    "design",
    "utilities",
    "transport",
    "miscellaneous",
)


class ExpenseValidationError(ValueError):
    """Raised when a record cannot be written to the store."""


@dataclass(frozen=True)
class Vendor:
    id: str
    name: str
    type: str

    def label(self) -> str:
        return f"{self.name} ({self.type})"


@dataclass(frozen=True)
class CustomCategory:
    id: str
    name: str


@dataclass(frozen=True)
class Expense:
    """A single recorded cost.

    ``date`` is kept as an ISO ``YYYY-MM-DD`` string so that date range
    checks can compare strings directly.
    """

    id: str
    amount: float
    category: str
    date: str
    description: Optional[str] = None
    vendor: Optional[Vendor] = None

    @property
    def vendor_id(self) -> Optional[str]:
        return self.vendor.id if self.vendor else None

    def to_record(self) -> Dict[str, Any]:
        """Flat mapping in export column order; ``vendor`` stays composite."""
        return {
            "id": self.id,
            "amount": self.amount,
            "category": self.category,
            "description": self.description,
            "date": self.date,
            "vendor": asdict(self.vendor) if self.vendor else None,
        }


# Column order used by exporters and the DataFrame bridge.
EXPENSE_FIELDS: List[str] = ["id", "amount", "category", "description", "date", "vendor"]


def all_categories(custom: Iterable[Any] = ()) -> List[str]:
    """Predefined categories followed by custom ones, without duplicates.

    ``custom`` may hold :class:`CustomCategory` objects or plain strings.
    """
    names: List[str] = list(PREDEFINED_CATEGORIES)
    seen = set(names)
    for item in custom:
        name = item.name if isinstance(item, CustomCategory) else str(item)
        if name and name not in seen:
            names.append(name)
            seen.add(name)
    return names


# ---------------------------------------------------------------------------
# Validation (store boundary only)
# ---------------------------------------------------------------------------


def validate_amount(value: Any) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ExpenseValidationError(f"Amount must be a number, got {value!r}") from None
    if math.isnan(amount) or math.isinf(amount):
        raise ExpenseValidationError("Amount must be a finite number")
    if amount < 0:
        raise ExpenseValidationError("Amount cannot be negative")
    return amount


def validate_category(value: Any) -> str:
    name = str(value).strip() if value is not None else ""
    if not name:
        raise ExpenseValidationError("Category is required")
    return name


def validate_date(value: Any) -> str:
    """Return ``value`` as an ISO date string; ``None`` means today."""
    if value is None or value == "":
        return date.today().isoformat()
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date().isoformat()
    except ValueError:
        raise ExpenseValidationError(f"Date must be YYYY-MM-DD, got {value!r}") from None


def validate_vendor(name: Any, vendor_type: Any) -> tuple[str, str]:
    clean_name = str(name).strip() if name is not None else ""
    if not clean_name:
        raise ExpenseValidationError("Vendor name cannot be empty")
    clean_type = str(vendor_type).strip().lower() if vendor_type is not None else ""
    if clean_type not in VENDOR_TYPES:
        raise ExpenseValidationError(
            f"Vendor type must be one of {', '.join(VENDOR_TYPES)}; got {vendor_type!r}"
        )
    return clean_name, clean_type
