"""SQLite-backed record store for expenses, vendors and custom categories.

The store is an explicit handle: construct an :class:`ExpenseStore` with a
database path and pass it to whatever needs to read or write records.
Nothing in the filtering, aggregation or export modules touches it; they
operate on the snapshots returned by the ``list_*`` methods.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from .models import (
    CustomCategory,
    Expense,
    Vendor,
    validate_amount,
    validate_category,
    validate_date,
    validate_vendor,
)

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS vendors (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS expenses (
    id TEXT PRIMARY KEY,
    amount REAL NOT NULL,
    category TEXT NOT NULL,
    description TEXT,
    date TEXT NOT NULL,
    vendor_id TEXT REFERENCES vendors(id),
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS custom_categories (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS ix_expense_date ON expenses (date);
CREATE INDEX IF NOT EXISTS ix_expense_category ON expenses (category);
"""

_EXPENSE_SELECT = (
    "SELECT e.id, e.amount, e.category, e.description, e.date, "
    "v.id AS vendor_id, v.name AS vendor_name, v.type AS vendor_type "
    "FROM expenses e LEFT JOIN vendors v ON v.id = e.vendor_id"
)

_UPDATABLE_FIELDS = ("amount", "category", "description", "date", "vendor_id")


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped if stripped else None


def _row_to_expense(row: sqlite3.Row) -> Expense:
    vendor = None
    if row["vendor_id"] is not None:
        vendor = Vendor(id=row["vendor_id"], name=row["vendor_name"], type=row["vendor_type"])
    return Expense(
        id=row["id"],
        amount=float(row["amount"]),
        category=row["category"],
        date=row["date"],
        description=row["description"],
        vendor=vendor,
    )


class ExpenseStore:
    """CRUD access to the three tables behind the dashboard."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        try:
            yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        with self.connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()

    # ----- reads -----------------------------------------------------------

    def list_expenses(self) -> List[Expense]:
        """All expenses with vendors resolved, newest date first."""
        sql = _EXPENSE_SELECT + " ORDER BY e.date DESC, e.created_at DESC, e.rowid DESC"
        with self.connect() as conn:
            rows = conn.execute(sql).fetchall()
        return [_row_to_expense(r) for r in rows]

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        with self.connect() as conn:
            row = conn.execute(_EXPENSE_SELECT + " WHERE e.id = ?", (expense_id,)).fetchone()
        return _row_to_expense(row) if row else None

    def list_vendors(self) -> List[Vendor]:
        with self.connect() as conn:
            rows = conn.execute("SELECT id, name, type FROM vendors ORDER BY name COLLATE NOCASE").fetchall()
        return [Vendor(id=r["id"], name=r["name"], type=r["type"]) for r in rows]

    def list_custom_categories(self) -> List[CustomCategory]:
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT id, name FROM custom_categories ORDER BY created_at, rowid"
            ).fetchall()
        return [CustomCategory(id=r["id"], name=r["name"]) for r in rows]

    # ----- writes ----------------------------------------------------------

    def add_expense(
        self,
        amount: Any,
        category: str,
        date: Any = None,
        description: Optional[str] = None,
        vendor_id: Optional[str] = None,
    ) -> Expense:
        record = (
            _new_id(),
            validate_amount(amount),
            validate_category(category),
            _clean_text(description),
            validate_date(date),
            _clean_text(vendor_id),
            _now(),
        )
        with self.connect() as conn:
            self._check_vendor(conn, record[5])
            conn.execute(
                "INSERT INTO expenses (id, amount, category, description, date, vendor_id, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                record,
            )
            conn.commit()
        logger.info("Added expense", extra={"expense_id": record[0]})
        return self.get_expense(record[0])

    def update_expense(self, expense_id: str, **changes: Any) -> Expense:
        """Replace any of amount, category, description, date or vendor_id.

        Raises:
            KeyError: if no expense has ``expense_id``
            ExpenseValidationError: if a new value is invalid
        """
        unknown = set(changes) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise TypeError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        values: Dict[str, Any] = {}
        if "amount" in changes:
            values["amount"] = validate_amount(changes["amount"])
        if "category" in changes:
            values["category"] = validate_category(changes["category"])
        if "description" in changes:
            values["description"] = _clean_text(changes["description"])
        if "date" in changes:
            values["date"] = validate_date(changes["date"])
        if "vendor_id" in changes:
            values["vendor_id"] = _clean_text(changes["vendor_id"])

        with self.connect() as conn:
            exists = conn.execute("SELECT 1 FROM expenses WHERE id = ?", (expense_id,)).fetchone()
            if not exists:
                raise KeyError(expense_id)
            if "vendor_id" in values:
                self._check_vendor(conn, values["vendor_id"])
            if values:
                assignments = ", ".join(f"{column} = ?" for column in values)
                conn.execute(
                    f"UPDATE expenses SET {assignments} WHERE id = ?",
                    [*values.values(), expense_id],
                )
                conn.commit()
        logger.info("Updated expense", extra={"expense_id": expense_id})
        return self.get_expense(expense_id)

    def delete_expense(self, expense_id: str) -> bool:
        with self.connect() as conn:
            cur = conn.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
            conn.commit()
            deleted = cur.rowcount > 0
        if deleted:
            logger.info("Deleted expense", extra={"expense_id": expense_id})
        return deleted

    def add_vendor(self, name: str, vendor_type: str) -> Vendor:
        clean_name, clean_type = validate_vendor(name, vendor_type)
        vendor = Vendor(id=_new_id(), name=clean_name, type=clean_type)
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO vendors (id, name, type, created_at) VALUES (?, ?, ?, ?)",
                (vendor.id, vendor.name, vendor.type, _now()),
            )
            conn.commit()
        return vendor

    def add_custom_category(self, name: str) -> CustomCategory:
        """Create a custom category; an existing name is returned unchanged."""
        clean = validate_category(name)
        with self.connect() as conn:
            row = conn.execute(
                "SELECT id, name FROM custom_categories WHERE name = ?", (clean,)
            ).fetchone()
            if row:
                return CustomCategory(id=row["id"], name=row["name"])
            category = CustomCategory(id=_new_id(), name=clean)
            conn.execute(
                "INSERT INTO custom_categories (id, name, created_at) VALUES (?, ?, ?)",
                (category.id, category.name, _now()),
            )
            conn.commit()
        return category

    @staticmethod
    def _check_vendor(conn: sqlite3.Connection, vendor_id: Optional[str]) -> None:
        if vendor_id is None:
            return
        if not conn.execute("SELECT 1 FROM vendors WHERE id = ?", (vendor_id,)).fetchone():
            raise KeyError(f"Unknown vendor id: {vendor_id}")
