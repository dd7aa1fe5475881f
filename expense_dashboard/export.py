"""CSV and PDF export of an expense selection.

The public entry points :func:`export_csv` and :func:`export_pdf` never
raise: they return an :class:`ExportResult` that is either a success
carrying the encoded file or a failure carrying a message.  Failures are
logged with structured ``extra`` fields as well as returned, so the log
stream is never the only signal of a failed export.

Rendering the PDF uses fpdf2.  Its built-in fonts only cover Latin-1;
configure ``EXPENSE_DASHBOARD_PDF_FONT`` with a TTF file to render
other scripts and currency symbols such as ``₹`` natively.
"""

from __future__ import annotations

import asyncio
import csv
import io
import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, replace
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from . import config
from .formatting import format_display_date, format_number
from .models import EXPENSE_FIELDS, Expense

logger = logging.getLogger(__name__)

CSV_MIME = "text/csv"
PDF_MIME = "application/pdf"

PDF_TITLE = "Expense Report"
PDF_COLUMNS = ["Date", "Category", "Description", "Person", "Amount"]
# Widths in mm for an A4 portrait page with 10 mm margins.
PDF_COLUMN_WIDTHS = [25, 30, 65, 40, 30]

_LATIN1_SYMBOL_FALLBACKS = {"₹": "Rs. ", "€": "EUR ", "₦": "NGN ", "₱": "PHP "}


class ExportError(Exception):
    """Raised internally when an export artifact cannot be produced."""


@dataclass(frozen=True)
class ExportResult:
    ok: bool
    filename: str
    mime_type: str
    data: bytes = b""
    error: Optional[str] = None
    path: Optional[Path] = None

    @classmethod
    def success(cls, filename: str, mime_type: str, data: bytes) -> "ExportResult":
        return cls(ok=True, filename=filename, mime_type=mime_type, data=data)

    @classmethod
    def failure(cls, filename: str, mime_type: str, error: str) -> "ExportResult":
        return cls(ok=False, filename=filename, mime_type=mime_type, error=error)


def default_export_filename(kind: str, today: Optional[date] = None) -> str:
    """Date-stamped file name, e.g. ``expenses-2024-03-01.pdf``."""
    stamp = (today or date.today()).isoformat()
    return f"expenses-{stamp}.{kind}"


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


def _csv_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, dict):
        return str(value.get("name") or json.dumps(value, sort_keys=True))
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def expenses_to_csv(expenses: Iterable[Expense]) -> str:
    """Serialize expenses to CSV text with a header row of field names.

    Vendors are written as their name.  Cells containing a comma, quote or
    newline are quoted, with embedded quotes doubled.  An empty list gives
    just the header.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(EXPENSE_FIELDS)
    for expense in expenses:
        record = expense.to_record()
        writer.writerow([_csv_cell(record[name]) for name in EXPENSE_FIELDS])
    return buffer.getvalue()


def export_csv(expenses: Sequence[Expense], filename: Optional[str] = None) -> ExportResult:
    target = filename or default_export_filename("csv")
    try:
        data = expenses_to_csv(expenses).encode("utf-8")
    except (UnicodeError, ValueError, TypeError) as exc:
        logger.error(
            "CSV export failed",
            exc_info=True,
            extra={"export_kind": "csv", "export_filename": target, "rows": len(expenses),
                   "error_type": type(exc).__name__},
        )
        return ExportResult.failure(target, CSV_MIME, f"CSV export failed: {exc}")
    logger.info("CSV export ready", extra={"export_kind": "csv", "export_filename": target, "rows": len(expenses)})
    return ExportResult.success(target, CSV_MIME, data)


# ---------------------------------------------------------------------------
# PDF
# ---------------------------------------------------------------------------


class _ExpensePDF(FPDF):
    def __init__(self, font_path: Optional[Path] = None):
        super().__init__(orientation="P", unit="mm", format="A4")
        self.set_auto_page_break(auto=True, margin=15)
        self.set_margins(10, 10, 10)
        self.unicode_font = font_path is not None
        if font_path is not None:
            if not Path(font_path).exists():
                raise ExportError(f"PDF font not found: {font_path}")
            self.add_font("ReportFont", "", str(font_path))
            self.add_font("ReportFont", "B", str(font_path))
            self.report_font = "ReportFont"
        else:
            self.report_font = "Helvetica"

    def text_safe(self, text: str) -> str:
        if self.unicode_font:
            return text
        return text.encode("latin-1", "replace").decode("latin-1")

    def fit(self, text: str, width: float) -> str:
        """Trim ``text`` with an ellipsis so it fits inside a cell."""
        text = self.text_safe(" ".join(text.split()))
        limit = width - 2
        if self.get_string_width(text) <= limit:
            return text
        while text and self.get_string_width(text + "...") > limit:
            text = text[:-1]
        return text + "..."


def _pdf_symbol(symbol: str, unicode_font: bool) -> str:
    if unicode_font:
        return symbol
    try:
        symbol.encode("latin-1")
    except UnicodeEncodeError:
        return _LATIN1_SYMBOL_FALLBACKS.get(symbol, "")
    return symbol


def _pdf_row(expense: Expense, symbol: str) -> List[str]:
    person = f"{expense.vendor.name} ({expense.vendor.type})" if expense.vendor else "-"
    return [
        format_display_date(expense.date),
        expense.category.capitalize(),
        expense.description or "-",
        person,
        f"{symbol}{format_number(expense.amount)}",
    ]


def _table_header(pdf: _ExpensePDF) -> None:
    pdf.set_font(pdf.report_font, "B", 10)
    pdf.set_fill_color(230, 230, 230)
    for width, heading in zip(PDF_COLUMN_WIDTHS, PDF_COLUMNS):
        align = "R" if heading == "Amount" else "L"
        pdf.cell(width, 8, heading, border=1, align=align, fill=True)
    pdf.ln()
    pdf.set_font(pdf.report_font, "", 9)


def render_pdf(
    expenses: Sequence[Expense],
    title: str = PDF_TITLE,
    generated_at: Optional[datetime] = None,
    currency_symbol: Optional[str] = None,
    font_path: Optional[Path] = None,
    compress: bool = True,
) -> bytes:
    """Render the expense table as a PDF document and return its bytes.

    Pass ``compress=False`` to keep the page content streams readable.

    Raises:
        ExportError: if the font cannot be loaded or the document cannot
            be encoded.
    """
    stamp = generated_at or datetime.now()
    pdf = _ExpensePDF(font_path if font_path is not None else config.PDF_FONT_PATH)
    pdf.set_compression(compress)
    symbol = _pdf_symbol(
        config.CURRENCY_SYMBOL if currency_symbol is None else currency_symbol,
        pdf.unicode_font,
    )

    pdf.add_page()
    pdf.set_font(pdf.report_font, "B", 16)
    pdf.cell(0, 10, pdf.text_safe(title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font(pdf.report_font, "", 10)
    pdf.cell(
        0, 8,
        f"Generated on: {format_display_date(stamp.date().isoformat())} {stamp:%H:%M}",
        new_x=XPos.LMARGIN, new_y=YPos.NEXT,
    )
    pdf.ln(4)

    _table_header(pdf)
    for expense in expenses:
        if pdf.will_page_break(7):
            pdf.add_page()
            _table_header(pdf)
        for width, heading, value in zip(PDF_COLUMN_WIDTHS, PDF_COLUMNS, _pdf_row(expense, symbol)):
            align = "R" if heading == "Amount" else "L"
            pdf.cell(width, 7, pdf.fit(value, width), border=1, align=align)
        pdf.ln()

    try:
        return bytes(pdf.output())
    except Exception as exc:
        raise ExportError(f"Unable to encode PDF: {exc}") from exc


def export_pdf(
    expenses: Sequence[Expense],
    filename: Optional[str] = None,
    **render_options: Any,
) -> ExportResult:
    """Render ``expenses`` to a PDF and wrap the outcome in an ExportResult.

    An empty selection is reported as a failure; the UI is expected to
    disable the export button before it gets that far.
    """
    target = filename or default_export_filename("pdf")
    log_extra: Dict[str, Any] = {"export_kind": "pdf", "export_filename": target, "rows": len(expenses)}
    if not expenses:
        logger.warning("PDF export skipped: nothing to export", extra=log_extra)
        return ExportResult.failure(target, PDF_MIME, "Nothing to export")
    try:
        data = render_pdf(expenses, **render_options)
    except Exception as exc:
        logger.error("PDF export failed", exc_info=True,
                     extra={**log_extra, "error_type": type(exc).__name__})
        return ExportResult.failure(target, PDF_MIME, f"PDF export failed: {exc}")
    logger.info("PDF export ready", extra=log_extra)
    return ExportResult.success(target, PDF_MIME, data)


# ---------------------------------------------------------------------------
# Preview selection
# ---------------------------------------------------------------------------


class PdfPreview:
    """Per-row include toggles shown before a PDF export is committed."""

    def __init__(self, expenses: Sequence[Expense]):
        self.expenses = list(expenses)
        self.included: Dict[str, bool] = {e.id: True for e in self.expenses}

    def toggle(self, expense_id: str) -> None:
        if expense_id in self.included:
            self.included[expense_id] = not self.included[expense_id]

    def set_included(self, expense_id: str, value: bool) -> None:
        if expense_id in self.included:
            self.included[expense_id] = bool(value)

    def select_all(self) -> None:
        self.included = {key: True for key in self.included}

    def deselect_all(self) -> None:
        self.included = {key: False for key in self.included}

    def selected(self) -> List[Expense]:
        return [e for e in self.expenses if self.included.get(e.id)]

    @property
    def can_export(self) -> bool:
        return any(self.included.values())

    def summary(self) -> str:
        return f"Selected: {len(self.selected())} of {len(self.expenses)} entries"

    def shaded_rows(self) -> List[bool]:
        """Alternate row shading for the preview table only."""
        return [index % 2 == 0 for index in range(len(self.expenses))]

    def export(self, filename: Optional[str] = None, **render_options: Any) -> ExportResult:
        return export_pdf(self.selected(), filename, **render_options)


# ---------------------------------------------------------------------------
# Delivery helpers
# ---------------------------------------------------------------------------


def save_export(result: ExportResult, directory: Union[str, Path]) -> ExportResult:
    """Write a successful export to ``directory`` without exposing partial files.

    The data goes to a temporary file in the same directory which is then
    renamed into place.  Returns the result with ``path`` set, or a
    failure if the write did not complete.
    """
    if not result.ok:
        return result
    target_dir = Path(directory)
    target = target_dir / Path(result.filename).name
    tmp_name = None
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=target_dir, prefix=".export-", delete=False) as handle:
            tmp_name = handle.name
            handle.write(result.data)
        os.replace(tmp_name, target)
    except OSError as exc:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        logger.error("Failed to save export", exc_info=True,
                     extra={"export_filename": str(target), "error_type": type(exc).__name__})
        return replace(result, ok=False, data=b"", error=f"Could not save {target.name}: {exc}")
    return replace(result, path=target)


class ExportGuard:
    """Allow one export at a time per UI surface.

    A trigger that arrives while another export is running gets a failure
    result instead of starting a second export.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def run(self, export_fn: Callable[..., ExportResult], *args: Any, **kwargs: Any) -> ExportResult:
        if not self._lock.acquire(blocking=False):
            filename = kwargs.get("filename") or (args[1] if len(args) > 1 else "")
            return ExportResult.failure(str(filename or ""), "", "An export is already in progress")
        try:
            return export_fn(*args, **kwargs)
        finally:
            self._lock.release()


async def export_async(
    export_fn: Callable[..., ExportResult],
    *args: Any,
    guard: Optional[ExportGuard] = None,
    **kwargs: Any,
) -> ExportResult:
    """Await an exporter on a worker thread so the caller's loop stays free."""
    if guard is not None:
        return await asyncio.to_thread(guard.run, export_fn, *args, **kwargs)
    return await asyncio.to_thread(export_fn, *args, **kwargs)
