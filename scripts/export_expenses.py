#!/usr/bin/env python3
"""Export filtered expenses from the store to CSV or PDF."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from expense_dashboard import config
from expense_dashboard.aggregation import category_breakdown, summary_statistics
from expense_dashboard.db import ExpenseStore
from expense_dashboard.export import default_export_filename, export_csv, export_pdf, save_export
from expense_dashboard.filtering import FilterCriteria, apply_filters
from expense_dashboard.formatting import format_currency
from expense_dashboard.logging_setup import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Export construction expenses to CSV or PDF.')
    parser.add_argument('--format', choices=['csv', 'pdf'], default='csv', help='Export format')
    parser.add_argument('--db', type=Path, default=config.DB_PATH, help='SQLite database path')
    parser.add_argument('--out-dir', type=Path, default=config.EXPORTS_DIR, help='Directory for the export file')
    parser.add_argument('--filename', help='Export file name (default: date-stamped)')
    parser.add_argument('--category', help='Only this category')
    parser.add_argument('--vendor-type', help='Only expenses with a person of this type')
    parser.add_argument('--min', dest='min_amount', default='', help='Minimum amount (inclusive)')
    parser.add_argument('--max', dest='max_amount', default='', help='Maximum amount (inclusive)')
    parser.add_argument('--from', dest='start_date', default='', help='Start date YYYY-MM-DD (inclusive)')
    parser.add_argument('--to', dest='end_date', default='', help='End date YYYY-MM-DD (inclusive)')
    parser.add_argument('--search', default='', help='Text to match in description, category or person')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    store = ExpenseStore(args.db)
    store.init_db()
    criteria = FilterCriteria.from_inputs(
        category=args.category,
        vendor_type=args.vendor_type,
        min_amount=args.min_amount,
        max_amount=args.max_amount,
        start_date=args.start_date,
        end_date=args.end_date,
        search=args.search,
    )
    expenses = apply_filters(store.list_expenses(), criteria)

    stats = summary_statistics(expenses)
    print(f"Expenses: {stats.count}  Total: {format_currency(stats.total)}  Average: {format_currency(stats.average)}")
    for category, total in category_breakdown(expenses).items():
        print(f"  {category}: {format_currency(total)}")

    filename = args.filename or default_export_filename(args.format)
    exporter = export_pdf if args.format == 'pdf' else export_csv
    result = save_export(exporter(expenses, filename), args.out_dir)
    if not result.ok:
        print(f"Export failed: {result.error}", file=sys.stderr)
        return 1
    print(f"Wrote {result.path}")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
