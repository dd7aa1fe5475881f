"""Unit tests for expense_dashboard.export."""

from __future__ import annotations

import asyncio
import csv
import io
import logging
import threading
from datetime import date, datetime

from expense_dashboard import export
from expense_dashboard.models import Expense, Vendor


def test_csv_quotes_commas_and_doubles_quotes() -> None:
    item = Expense(id="1", amount=10, category="materials", date="2024-01-01", description='a, "b"')
    text = export.expenses_to_csv([item])
    header, row = text.strip("\n").split("\n")
    assert header == "id,amount,category,description,date,vendor"
    assert row == '1,10,materials,"a, ""b""",2024-01-01,'


def test_csv_writes_vendor_name(expenses) -> None:
    rows = list(csv.reader(io.StringIO(export.expenses_to_csv(expenses))))
    assert rows[1][5] == "Stone Depot"
    assert rows[4] == ["e4", "50", "transport", "", "2024-02-10", ""]
    assert len(rows) == len(expenses) + 1


def test_csv_vendor_without_name_falls_back_to_json() -> None:
    item = Expense(id="1", amount=1.5, category="labour", date="2024-01-01",
                   vendor=Vendor(id="v9", name="", type="labour"))
    row = export.expenses_to_csv([item]).strip("\n").split("\n")[1]
    assert '""id"": ""v9""' in row
    assert row.startswith("1,1.5,labour,")


def test_csv_empty_list_is_header_only() -> None:
    assert export.expenses_to_csv([]) == "id,amount,category,description,date,vendor\n"
    result = export.export_csv([], "empty.csv")
    assert result.ok
    assert result.data == b"id,amount,category,description,date,vendor\n"


def test_export_csv_result(expenses) -> None:
    result = export.export_csv(expenses, "out.csv")
    assert result.ok
    assert result.filename == "out.csv"
    assert result.mime_type == "text/csv"
    assert result.data.decode("utf-8").startswith("id,amount")


def test_render_pdf_produces_pdf_bytes(expenses) -> None:
    data = export.render_pdf(expenses, generated_at=datetime(2024, 3, 25, 10, 30))
    assert data.startswith(b"%PDF")


def test_render_pdf_handles_many_rows_and_long_text() -> None:
    items = [
        Expense(id=str(i), amount=123456.789, category="materials", date="2024-01-01",
                description="A very long description that will not fit inside the column " * 3)
        for i in range(120)
    ]
    assert export.render_pdf(items, currency_symbol="₹").startswith(b"%PDF")


def test_export_pdf_empty_selection_is_failure(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="expense_dashboard.export"):
        result = export.export_pdf([], "x.pdf")
    assert not result.ok
    assert result.error == "Nothing to export"
    assert "nothing to export" in caplog.text


def test_export_pdf_missing_font_is_reported(expenses, tmp_path, caplog) -> None:
    with caplog.at_level(logging.ERROR, logger="expense_dashboard.export"):
        result = export.export_pdf(expenses, "x.pdf", font_path=tmp_path / "missing.ttf")
    assert not result.ok
    assert "font not found" in result.error
    assert result.data == b""
    record = caplog.records[-1]
    assert record.export_kind == "pdf"
    assert record.export_filename == "x.pdf"


def test_pdf_preview_selection(expenses) -> None:
    preview = export.PdfPreview(expenses)
    assert len(preview.selected()) == 5
    preview.toggle("e2")
    assert [e.id for e in preview.selected()] == ["e1", "e3", "e4", "e5"]
    assert preview.summary() == "Selected: 4 of 5 entries"
    preview.deselect_all()
    assert not preview.can_export
    assert not preview.export("x.pdf").ok
    preview.select_all()
    assert preview.can_export
    assert preview.shaded_rows() == [True, False, True, False, True]


def test_preview_export_only_writes_included_rows(expenses, monkeypatch) -> None:
    captured = {}

    def fake_render(items, **_):
        captured["ids"] = [e.id for e in items]
        return b"%PDF-fake"

    monkeypatch.setattr(export, "render_pdf", fake_render)
    preview = export.PdfPreview(expenses)
    preview.set_included("e1", False)
    result = preview.export("report.pdf")
    assert result.ok
    assert captured["ids"] == ["e2", "e3", "e4", "e5"]


def test_save_export_writes_file(tmp_path, expenses) -> None:
    result = export.save_export(export.export_csv(expenses, "saved.csv"), tmp_path / "exports")
    assert result.ok
    assert result.path == tmp_path / "exports" / "saved.csv"
    assert result.path.read_bytes().startswith(b"id,amount")
    assert [p.name for p in (tmp_path / "exports").iterdir()] == ["saved.csv"]


def test_save_export_passes_failures_through(tmp_path) -> None:
    failed = export.ExportResult.failure("x.pdf", export.PDF_MIME, "boom")
    assert export.save_export(failed, tmp_path) is failed
    assert list(tmp_path.iterdir()) == []


def test_export_guard_rejects_concurrent_export(expenses) -> None:
    guard = export.ExportGuard()
    started = threading.Event()
    release = threading.Event()
    outcome = {}

    def slow_export(items, filename):
        started.set()
        release.wait(timeout=5)
        return export.export_csv(items, filename)

    worker = threading.Thread(target=lambda: outcome.setdefault("first", guard.run(slow_export, expenses, "a.csv")))
    worker.start()
    assert started.wait(timeout=5)
    assert guard.busy
    second = guard.run(export.export_csv, expenses, "b.csv")
    release.set()
    worker.join(timeout=5)

    assert not second.ok
    assert second.error == "An export is already in progress"
    assert outcome["first"].ok
    assert not guard.busy


def test_export_async(expenses) -> None:
    result = asyncio.run(export.export_async(export.export_csv, expenses, "async.csv", guard=export.ExportGuard()))
    assert result.ok
    assert result.filename == "async.csv"


def test_default_export_filename() -> None:
    assert export.default_export_filename("pdf", date(2024, 3, 1)) == "expenses-2024-03-01.pdf"


def test_exports_log_their_target_at_info(expenses, caplog) -> None:
    with caplog.at_level(logging.INFO):
        csv_result = export.export_csv(expenses, "a.csv")
        pdf_result = export.export_pdf(expenses, "a.pdf", generated_at=datetime(2024, 3, 25, 10, 30))
    assert csv_result.ok
    assert pdf_result.ok
    ready = [r for r in caplog.records if r.getMessage().endswith("export ready")]
    assert [(r.export_kind, r.export_filename, r.rows) for r in ready] == [
        ("csv", "a.csv", 5),
        ("pdf", "a.pdf", 5),
    ]


def test_save_export_failure_is_logged_not_raised(tmp_path, caplog) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    with caplog.at_level(logging.INFO):
        result = export.save_export(export.ExportResult.success("a.csv", "text/csv", b"x"), blocker)
    assert not result.ok
    assert "Could not save a.csv" in result.error
    assert caplog.records[-1].export_filename.endswith("a.csv")


def test_render_pdf_writes_headers_and_amounts() -> None:
    item = Expense(id="1", amount=123456.789, category="materials", date="2024-03-05",
                   description="Steel rods", vendor=Vendor(id="v", name="Stone Depot", type="supplier"))
    data = export.render_pdf([item], generated_at=datetime(2024, 3, 25, 10, 30),
                             currency_symbol="₹", compress=False)
    for heading in export.PDF_COLUMNS:
        assert f"({heading})".encode("latin-1") in data
    assert b"Rs. 1,23,456.79" in data
    assert b"05/03/2024" in data
