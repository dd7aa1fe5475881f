from datetime import date

from expense_dashboard import dashboard
from expense_dashboard.filtering import ALL, FilterCriteria


def test_widget_state_defaults_for_empty_criteria():
    assert dashboard.criteria_to_widget_state(FilterCriteria()) == dashboard.FILTER_DEFAULTS


def test_widget_state_round_trip():
    criteria = FilterCriteria(
        category="materials",
        vendor_id="v3",
        min_amount=1000.0,
        max_amount=1000.0,
        start_date="2024-02-01",
        search="cement",
    )
    state = dashboard.criteria_to_widget_state(criteria)
    assert state["filter_min_amount"] == "1000"
    assert state["filter_start_date"] == date(2024, 2, 1)
    assert state["filter_vendor_type"] == ALL
    assert dashboard.criteria_from_state(state) == criteria


def test_criteria_from_partial_state():
    criteria = dashboard.criteria_from_state({"filter_max_amount": "abc", "filter_search": "  sand "})
    assert criteria == FilterCriteria(search="sand")


def test_expense_table(expenses):
    table = dashboard.expense_table(expenses)
    assert list(table.columns) == ["Date", "Category", "Description", "Person", "Level", "Amount"]
    assert table.loc[0, "Category"] == "Materials"
    assert table.loc[1, "Level"] == "High"
    assert table.loc[3, "Description"] == "-"
    assert table.loc[3, "Person"] == "-"
    assert dashboard.expense_table([]).empty


def test_amount_suggestion_survives_widget_round_trip(vendors):
    from expense_dashboard.filtering import apply_filters
    from expense_dashboard.models import Expense
    from expense_dashboard.search import apply_suggestion, generate_suggestions

    items = [
        Expense(id="big", amount=1234567.0, category="labour", date="2024-03-01"),
        Expense(id="cents", amount=12345.67, category="materials", date="2024-03-02"),
        Expense(id="near", amount=1234570.0, category="labour", date="2024-03-03"),
    ]
    for query, expected in (("1234567", ["big"]), ("12345.67", ["cents"])):
        suggestion = [s for s in generate_suggestions(query, [], vendors, items) if s.kind == "amount"][0]
        state = dashboard.criteria_to_widget_state(apply_suggestion(FilterCriteria(), suggestion))
        assert state["filter_min_amount"] == query
        assert state["filter_max_amount"] == query
        filtered = apply_filters(items, dashboard.criteria_from_state(state))
        assert [e.id for e in filtered] == expected
