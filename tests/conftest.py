from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from expense_dashboard.models import Expense, Vendor


@pytest.fixture
def vendors():
    return [
        Vendor(id="v1", name="Ravi Builders", type="contractor"),
        Vendor(id="v2", name="Asha Rao", type="engineer"),
        Vendor(id="v3", name="Stone Depot", type="supplier"),
    ]


@pytest.fixture
def expenses(vendors):
    ravi, asha, depot = vendors
    # Store order: newest date first
    return [
        Expense(id="e1", amount=1200.0, category="materials", date="2024-03-20",
                description="Cement bags", vendor=depot),
        Expense(id="e2", amount=5000.0, category="labour", date="2024-03-05",
                description="Masonry work", vendor=ravi),
        Expense(id="e3", amount=750.0, category="design", date="2024-02-28",
                description="Floor plan revision", vendor=asha),
        Expense(id="e4", amount=50.0, category="transport", date="2024-02-10",
                description=None, vendor=None),
        Expense(id="e5", amount=300.0, category="materials", date="2024-01-15",
                description="Sand delivery", vendor=depot),
    ]
