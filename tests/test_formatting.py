from expense_dashboard.formatting import (
    amount_severity,
    format_currency,
    format_display_date,
    format_number,
    format_percent_change,
    group_digits,
    vendor_label,
)
from expense_dashboard.models import Vendor


def test_indian_grouping():
    assert group_digits("1234567") == "12,34,567"
    assert group_digits("123") == "123"
    assert group_digits("1000") == "1,000"
    assert format_number(12345678.9, "indian") == "1,23,45,678.90"


def test_western_grouping():
    assert format_number(1234567.891, "western") == "1,234,567.89"


def test_format_currency_prefix_and_two_decimals():
    assert format_currency(50, symbol="₹", grouping="indian") == "₹50.00"
    assert format_currency(1234.5, symbol="$", grouping="western") == "$1,234.50"
    assert format_currency(-1500, symbol="$", grouping="western") == "$-1,500.00"


def test_format_display_date():
    assert format_display_date("2024-03-05", "%d/%m/%Y") == "05/03/2024"
    assert format_display_date("not a date") == "not a date"
    assert format_display_date(None) == ""


def test_amount_severity_thresholds():
    assert amount_severity(0) == "Low"
    assert amount_severity(999.99) == "Low"
    assert amount_severity(1000) == "Medium"
    assert amount_severity(4999) == "Medium"
    assert amount_severity(5000) == "High"


def test_labels():
    assert vendor_label(None) == "-"
    assert vendor_label(Vendor(id="1", name="Asha", type="engineer")) == "Asha (engineer)"
    assert format_percent_change(12.345) == "+12.3%"
