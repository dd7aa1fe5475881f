"""Summary statistics and chart aggregates for a list of expenses.

These functions are pure reductions over whatever list they are given,
the full expense set or a filtered view.  Degenerate inputs (no
expenses, no spending last month) resolve to zeros; none of them raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd

from .models import Expense

# Slice colours by rank; the last entry is reserved for "Other".
CHART_PALETTE = ("#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4")
OTHER_LABEL = "Other"

FRAME_COLUMNS = [
    "id",
    "amount",
    "category",
    "description",
    "date",
    "vendor_id",
    "vendor_name",
    "vendor_type",
]


@dataclass(frozen=True)
class SummaryStatistics:
    total: float = 0.0
    average: float = 0.0
    highest: float = 0.0
    lowest: float = 0.0
    count: int = 0

    def as_dict(self) -> Dict[str, float]:
        return {
            "total": self.total,
            "average": self.average,
            "highest": self.highest,
            "lowest": self.lowest,
            "count": self.count,
        }


@dataclass(frozen=True)
class ChartSlice:
    name: str
    value: float
    color: str


@dataclass(frozen=True)
class PeriodComparison:
    current_total: float
    previous_total: float
    percent_change: float


def expenses_to_frame(expenses: Iterable[Expense]) -> pd.DataFrame:
    """Flatten expenses into a DataFrame with one row per expense."""
    rows = [
        {
            "id": e.id,
            "amount": float(e.amount),
            "category": e.category,
            "description": e.description,
            "date": e.date,
            "vendor_id": e.vendor.id if e.vendor else None,
            "vendor_name": e.vendor.name if e.vendor else None,
            "vendor_type": e.vendor.type if e.vendor else None,
        }
        for e in expenses
    ]
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    df["amount"] = pd.to_numeric(df["amount"]).astype(float)
    return df


def summary_statistics(expenses: Iterable[Expense]) -> SummaryStatistics:
    amounts = [float(e.amount) for e in expenses]
    if not amounts:
        return SummaryStatistics()
    total = sum(amounts)
    return SummaryStatistics(
        total=total,
        average=total / len(amounts),
        highest=max(amounts),
        lowest=min(amounts),
        count=len(amounts),
    )


def category_breakdown(expenses: Iterable[Expense]) -> Dict[str, float]:
    """Sum amounts per category, keyed in order of first appearance."""
    totals: Dict[str, float] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, 0.0) + float(expense.amount)
    return totals


def category_series(expenses: Iterable[Expense]) -> pd.Series:
    """Category totals as a Series sorted by value, largest first."""
    df = expenses_to_frame(expenses)
    if df.empty:
        return pd.Series(dtype=float, name="amount")
    return df.groupby("category", sort=False)["amount"].sum().sort_values(ascending=False, kind="stable")


def _display_name(category: str) -> str:
    return category[:1].upper() + category[1:]


def top_category_slices(
    source: Union[Iterable[Expense], Mapping[str, float]],
    top_n: int = 3,
    palette: Sequence[str] = CHART_PALETTE,
) -> List[ChartSlice]:
    """Pie-chart data: the ``top_n`` categories plus a combined "Other" slice.

    ``source`` is either a list of expenses or an existing category
    breakdown.  "Other" is only emitted when the remaining categories sum
    to more than zero.
    """
    breakdown = dict(source) if isinstance(source, Mapping) else category_breakdown(source)
    # sorted() is stable, so ties keep first-appearance order
    ranked = sorted(breakdown.items(), key=lambda item: item[1], reverse=True)

    slices = [
        ChartSlice(name=_display_name(category), value=value, color=palette[index])
        for index, (category, value) in enumerate(ranked[:top_n])
    ]
    other = sum(value for _, value in ranked[top_n:])
    if other > 0:
        slices.append(ChartSlice(name=OTHER_LABEL, value=other, color=palette[-1]))
    return slices


def _previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def _year_month(iso_date: str) -> Optional[tuple[int, int]]:
    try:
        parsed = datetime.strptime(iso_date[:10], "%Y-%m-%d")
    except (TypeError, ValueError):
        return None
    return parsed.year, parsed.month


def period_comparison(
    expenses: Iterable[Expense], now: Optional[Union[date, datetime]] = None
) -> PeriodComparison:
    """Compare this calendar month's spending with the previous month's.

    ``percent_change`` is ``0.0`` when there was nothing spent last month.
    """
    today = now or datetime.now()
    current = (today.year, today.month)
    previous = _previous_month(today.year, today.month)

    current_total = 0.0
    previous_total = 0.0
    for expense in expenses:
        key = _year_month(expense.date)
        if key == current:
            current_total += float(expense.amount)
        elif key == previous:
            previous_total += float(expense.amount)

    if previous_total == 0:
        change = 0.0
    else:
        change = (current_total - previous_total) / previous_total * 100
    return PeriodComparison(current_total, previous_total, change)


def monthly_totals(expenses: Iterable[Expense]) -> pd.DataFrame:
    """Total spending per calendar month, oldest month first.

    Returns a DataFrame with ``month`` (``YYYY-MM`` strings) and ``total``
    columns.  Expenses with unparseable dates are skipped.
    """
    empty = pd.DataFrame({"month": pd.Series(dtype=str), "total": pd.Series(dtype=float)})
    df = expenses_to_frame(expenses)
    if df.empty:
        return empty
    df["date"] = pd.to_datetime(df["date"], errors="coerce", format="%Y-%m-%d")
    df = df.dropna(subset=["date"])
    if df.empty:
        return empty
    grouped = df.groupby(df["date"].dt.to_period("M"))["amount"].sum().sort_index()
    return pd.DataFrame({"month": grouped.index.astype(str), "total": grouped.values})


def filtered_total_label(expenses: Sequence[Expense]) -> str:
    count = len(expenses)
    return f"Total of {count} {'expense' if count == 1 else 'expenses'}"
