"""Unit tests for expense_dashboard.filtering."""

from __future__ import annotations

from datetime import date

from expense_dashboard.filtering import (
    FilterCriteria,
    apply_filters,
    parse_amount,
    parse_iso_date,
)
from expense_dashboard.models import Expense


def _ids(items):
    return [e.id for e in items]


def test_empty_criteria_is_identity(expenses) -> None:
    assert apply_filters(expenses, FilterCriteria()) == expenses
    assert apply_filters(expenses, FilterCriteria.from_inputs()) == expenses


def test_result_preserves_input_order(expenses) -> None:
    result = apply_filters(expenses, FilterCriteria(category="materials"))
    assert _ids(result) == ["e1", "e5"]


def test_min_amount_scenario() -> None:
    items = [
        Expense(id="a", amount=100, date="2024-01-15", category="materials"),
        Expense(id="b", amount=200, date="2024-02-10", category="labour"),
    ]
    criteria = FilterCriteria.from_inputs(min_amount="150")
    assert apply_filters(items, criteria) == [items[1]]


def test_amount_bounds_are_inclusive(expenses) -> None:
    criteria = FilterCriteria(min_amount=750, max_amount=1200)
    assert _ids(apply_filters(expenses, criteria)) == ["e1", "e3"]


def test_non_numeric_amount_bound_is_ignored(expenses) -> None:
    criteria = FilterCriteria.from_inputs(min_amount="abc", max_amount="  ")
    assert criteria.min_amount is None
    assert criteria.max_amount is None
    assert apply_filters(expenses, criteria) == expenses


def test_category_match_is_case_sensitive(expenses) -> None:
    assert apply_filters(expenses, FilterCriteria(category="Materials")) == []


def test_vendor_filters_exclude_expenses_without_vendor(expenses) -> None:
    by_type = apply_filters(expenses, FilterCriteria(vendor_type="supplier"))
    assert _ids(by_type) == ["e1", "e5"]
    by_id = apply_filters(expenses, FilterCriteria(vendor_id="v1"))
    assert _ids(by_id) == ["e2"]
    assert "e4" not in _ids(apply_filters(expenses, FilterCriteria(vendor_type="labour")))


def test_date_range_is_inclusive(expenses) -> None:
    criteria = FilterCriteria.from_inputs(start_date="2024-02-10", end_date="2024-03-05")
    assert _ids(apply_filters(expenses, criteria)) == ["e2", "e3", "e4"]


def test_unparseable_date_is_ignored(expenses) -> None:
    criteria = FilterCriteria.from_inputs(start_date="03/01/2024")
    assert criteria.start_date is None
    assert apply_filters(expenses, criteria) == expenses


def test_search_matches_description_category_or_vendor(expenses) -> None:
    assert _ids(apply_filters(expenses, FilterCriteria(search="CEMENT"))) == ["e1"]
    assert _ids(apply_filters(expenses, FilterCriteria(search="transp"))) == ["e4"]
    assert _ids(apply_filters(expenses, FilterCriteria(search="ravi"))) == ["e2"]


def test_search_handles_missing_description_and_vendor(expenses) -> None:
    # e4 has neither description nor vendor and must not raise
    assert apply_filters(expenses, FilterCriteria(search="nothing like this")) == []


def test_predicates_combine_with_and(expenses) -> None:
    criteria = FilterCriteria(category="materials", min_amount=500)
    assert _ids(apply_filters(expenses, criteria)) == ["e1"]


def test_from_inputs_treats_all_sentinel_as_inactive() -> None:
    criteria = FilterCriteria.from_inputs(category="all", vendor_id="all", vendor_type="all", search="  ")
    assert criteria.is_empty
    assert criteria.active_fields() == []


def test_from_inputs_accepts_date_objects() -> None:
    criteria = FilterCriteria.from_inputs(start_date=date(2024, 1, 5))
    assert criteria.start_date == "2024-01-05"
    assert criteria.active_fields() == ["start_date"]


def test_parse_helpers() -> None:
    assert parse_amount("12.5") == 12.5
    assert parse_amount(7) == 7.0
    assert parse_amount("nan") is None
    assert parse_amount("1,000") is None
    assert parse_iso_date("2024-2-3") == "2024-02-03"
    assert parse_iso_date("") is None


def test_reset_clears_everything() -> None:
    criteria = FilterCriteria(category="labour", min_amount=10)
    assert criteria.reset() == FilterCriteria()
