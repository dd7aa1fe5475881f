"""Streamlit app for the construction expense dashboard.

This module is the only place that talks to both the record store and
Streamlit.  Each run loads a fresh snapshot of expenses, vendors and
custom categories from the store, narrows it with the sidebar filters,
and renders summary metrics, charts, the expense table, entry forms and
the export controls.  Every write is followed by a rerun, so the page
always shows the store's current state rather than a merged local copy.

To run the dashboard from the command line::

    streamlit run expense_dashboard/Home.py
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import date
from typing import Any, Dict, List, Sequence

import pandas as pd
import streamlit as st

# Conditional imports to support execution both as part of a package
# and directly as a standalone script.
if __package__:
    from . import aggregation as agg
    from . import config
    from . import visualization as viz
    from .db import ExpenseStore
    from .export import ExportGuard, PdfPreview, default_export_filename, export_csv
    from .filtering import ALL, FilterCriteria, apply_filters
    from .formatting import (
        amount_severity,
        format_currency,
        format_display_date,
        format_percent_change,
        vendor_label,
    )
    from .logging_setup import configure_logging
    from .models import VENDOR_TYPES, Expense, ExpenseValidationError, Vendor, all_categories
    from .search import SearchPanel, apply_suggestion, find_suggestion
else:
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from expense_dashboard import aggregation as agg  # type: ignore
    from expense_dashboard import config  # type: ignore
    from expense_dashboard import visualization as viz  # type: ignore
    from expense_dashboard.db import ExpenseStore  # type: ignore
    from expense_dashboard.export import ExportGuard, PdfPreview, default_export_filename, export_csv  # type: ignore
    from expense_dashboard.filtering import ALL, FilterCriteria, apply_filters  # type: ignore
    from expense_dashboard.formatting import (  # type: ignore
        amount_severity,
        format_currency,
        format_display_date,
        format_percent_change,
        vendor_label,
    )
    from expense_dashboard.logging_setup import configure_logging  # type: ignore
    from expense_dashboard.models import (  # type: ignore
        VENDOR_TYPES,
        Expense,
        ExpenseValidationError,
        Vendor,
        all_categories,
    )
    from expense_dashboard.search import SearchPanel, apply_suggestion, find_suggestion  # type: ignore

logger = logging.getLogger(__name__)

# Session-state keys backing the sidebar filter widgets.
FILTER_KEYS: Dict[str, str] = {
    "category": "filter_category",
    "vendor_id": "filter_vendor",
    "vendor_type": "filter_vendor_type",
    "min_amount": "filter_min_amount",
    "max_amount": "filter_max_amount",
    "start_date": "filter_start_date",
    "end_date": "filter_end_date",
    "search": "filter_search",
}

FILTER_DEFAULTS: Dict[str, Any] = {
    "filter_category": ALL,
    "filter_vendor": ALL,
    "filter_vendor_type": ALL,
    "filter_min_amount": "",
    "filter_max_amount": "",
    "filter_start_date": None,
    "filter_end_date": None,
    "filter_search": "",
}


@st.cache_resource
def get_store() -> ExpenseStore:
    config.ensure_data_directories()
    store = ExpenseStore(config.get_db_path())
    store.init_db()
    return store


def load_snapshot(store: ExpenseStore) -> Dict[str, Any]:
    """Read everything the page needs from the store in one go."""
    custom = store.list_custom_categories()
    return {
        "expenses": store.list_expenses(),
        "vendors": store.list_vendors(),
        "categories": all_categories(custom),
    }


def _amount_text(value: float) -> str:
    # repr round-trips through float() exactly
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


def criteria_to_widget_state(criteria: FilterCriteria) -> Dict[str, Any]:
    """Map criteria back onto widget values so the sidebar reflects them."""
    state = dict(FILTER_DEFAULTS)
    for field_name, key in FILTER_KEYS.items():
        value = getattr(criteria, field_name)
        if value is None:
            continue
        if field_name in ("min_amount", "max_amount"):
            value = _amount_text(value)
        elif field_name in ("start_date", "end_date"):
            value = date.fromisoformat(value)
        state[key] = value
    return state


def criteria_from_state(state: Any) -> FilterCriteria:
    return FilterCriteria.from_inputs(
        **{field_name: state.get(key, FILTER_DEFAULTS[key]) for field_name, key in FILTER_KEYS.items()}
    )


def expense_table(expenses: Sequence[Expense]) -> pd.DataFrame:
    """Display frame for the expense table."""
    return pd.DataFrame(
        [
            {
                "Date": format_display_date(e.date),
                "Category": e.category.capitalize(),
                "Description": e.description or "-",
                "Person": vendor_label(e.vendor),
                "Level": amount_severity(e.amount),
                "Amount": format_currency(e.amount),
            }
            for e in expenses
        ],
        columns=["Date", "Category", "Description", "Person", "Level", "Amount"],
    )


def expense_option_label(expense: Expense) -> str:
    return f"{expense.date} · {expense.category} · {format_currency(expense.amount)} · {expense.description or '-'}"


def _ensure_session_state() -> None:
    for key, value in FILTER_DEFAULTS.items():
        st.session_state.setdefault(key, value)
    st.session_state.setdefault("search_panel", SearchPanel())
    st.session_state.setdefault("export_guard", ExportGuard())


def _set_flash(kind: str, message: str) -> None:
    st.session_state["flash"] = (kind, message)


def _show_flash() -> None:
    flash = st.session_state.pop("flash", None)
    if flash:
        kind, message = flash
        getattr(st, kind)(message)


def _reset_filters() -> None:
    st.session_state.update(FILTER_DEFAULTS)


def _apply_search_selection(choice_key: str) -> None:
    panel: SearchPanel = st.session_state["search_panel"]
    suggestion = find_suggestion(panel.suggestions, st.session_state.get(choice_key, ""))
    if suggestion is None:
        return
    criteria = apply_suggestion(criteria_from_state(st.session_state), suggestion)
    st.session_state.update(criteria_to_widget_state(criteria))
    panel.close()
    st.session_state["search_query"] = ""


# ---------------------------------------------------------------------------
# Page sections
# ---------------------------------------------------------------------------


def render_filters(categories: Sequence[str], vendors: Sequence[Vendor]) -> FilterCriteria:
    sidebar = st.sidebar
    sidebar.header("Filters")
    vendor_names = {v.id: vendor_label(v) for v in vendors}
    sidebar.selectbox("Category", options=[ALL, *categories], key=FILTER_KEYS["category"])
    sidebar.selectbox(
        "Person",
        options=[ALL, *vendor_names],
        format_func=lambda value: "All" if value == ALL else vendor_names.get(value, value),
        key=FILTER_KEYS["vendor_id"],
    )
    sidebar.selectbox("Person type", options=[ALL, *VENDOR_TYPES], key=FILTER_KEYS["vendor_type"])
    col_min, col_max = sidebar.columns(2)
    col_min.text_input("Min amount", key=FILTER_KEYS["min_amount"])
    col_max.text_input("Max amount", key=FILTER_KEYS["max_amount"])
    col_start, col_end = sidebar.columns(2)
    col_start.date_input("From", key=FILTER_KEYS["start_date"])
    col_end.date_input("To", key=FILTER_KEYS["end_date"])
    sidebar.text_input("Search", key=FILTER_KEYS["search"])
    sidebar.button("Reset filters", on_click=_reset_filters)
    return criteria_from_state(st.session_state)


def render_search(snapshot: Dict[str, Any]) -> None:
    panel: SearchPanel = st.session_state["search_panel"]
    if st.button("🔍 Quick search", key="toggle_search"):
        panel.toggle()
    if not panel.is_open:
        return
    query = st.text_input("Search categories, people, amounts or descriptions", key="search_query")
    suggestions = panel.update(query, snapshot["categories"], snapshot["vendors"], snapshot["expenses"])
    if not query:
        return
    if not suggestions:
        st.caption("No matches.")
        return
    st.radio(
        "Suggestions",
        options=[s.label for s in suggestions],
        key="search_choice",
        index=None,
        on_change=_apply_search_selection,
        args=("search_choice",),
    )


def render_summary(all_expenses: Sequence[Expense], filtered: Sequence[Expense]) -> None:
    overall = agg.summary_statistics(all_expenses)
    comparison = agg.period_comparison(all_expenses)
    stats = agg.summary_statistics(filtered)

    col1, col2, col3 = st.columns(3)
    col1.metric("Total spent", format_currency(overall.total))
    col2.metric(
        "This month",
        format_currency(comparison.current_total),
        delta=format_percent_change(comparison.percent_change),
        delta_color="inverse",
    )
    col3.metric("Expenses recorded", overall.count)

    with st.expander("Statistics for the current view"):
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Total", format_currency(stats.total))
        c2.metric("Average", format_currency(stats.average))
        c3.metric("Highest", format_currency(stats.highest))
        c4.metric("Lowest", format_currency(stats.lowest))


def render_charts(expenses: Sequence[Expense], filtered: Sequence[Expense]) -> None:
    left, right = st.columns(2)
    left.plotly_chart(viz.create_monthly_trend_chart(agg.monthly_totals(expenses)), use_container_width=True)
    right.plotly_chart(viz.create_category_pie_chart(agg.top_category_slices(expenses)), use_container_width=True)
    if filtered:
        st.plotly_chart(
            viz.create_category_bar_chart(agg.category_series(filtered), title="Categories in the current view"),
            use_container_width=True,
        )


def render_table(filtered: Sequence[Expense]) -> None:
    st.subheader("Expenses")
    if not filtered:
        st.info("No expenses match the current filters.")
        return
    st.dataframe(expense_table(filtered), hide_index=True, use_container_width=True)
    total = agg.summary_statistics(filtered).total
    st.markdown(f"**Filtered total: {format_currency(total)}**")
    st.caption(agg.filtered_total_label(filtered))


def render_add_forms(store: ExpenseStore, snapshot: Dict[str, Any]) -> None:
    vendors: List[Vendor] = snapshot["vendors"]
    vendor_options = [None, *[v.id for v in vendors]]
    vendor_names = {v.id: vendor_label(v) for v in vendors}

    with st.expander("➕ Add expense"):
        with st.form("add_expense", clear_on_submit=True):
            amount = st.number_input("Amount", min_value=0.0, step=100.0, format="%.2f")
            category = st.selectbox("Category", options=snapshot["categories"])
            description = st.text_input("Description")
            vendor_id = st.selectbox(
                "Person",
                options=vendor_options,
                format_func=lambda value: "No person" if value is None else vendor_names[value],
            )
            expense_date = st.date_input("Date", value=date.today())
            if st.form_submit_button("Add expense"):
                try:
                    store.add_expense(amount, category, expense_date, description, vendor_id)
                except (ExpenseValidationError, KeyError) as exc:
                    st.error(f"Failed to add expense: {exc}")
                else:
                    _set_flash("success", "Expense added successfully")
                    st.rerun()

    with st.expander("👷 Add person"):
        with st.form("add_vendor", clear_on_submit=True):
            name = st.text_input("Name")
            vendor_type = st.selectbox("Type", options=VENDOR_TYPES, index=VENDOR_TYPES.index("contractor"))
            if st.form_submit_button("Add person"):
                try:
                    store.add_vendor(name, vendor_type)
                except ExpenseValidationError as exc:
                    st.error(str(exc))
                else:
                    _set_flash("success", f"Added {name.strip()}")
                    st.rerun()

    with st.expander("🏷️ Add category"):
        with st.form("add_category", clear_on_submit=True):
            name = st.text_input("Category name")
            if st.form_submit_button("Add category"):
                try:
                    store.add_custom_category(name)
                except ExpenseValidationError as exc:
                    st.error(str(exc))
                else:
                    _set_flash("success", f"Added category {name.strip()}")
                    st.rerun()


def render_edit_delete(store: ExpenseStore, filtered: Sequence[Expense], snapshot: Dict[str, Any]) -> None:
    if not filtered:
        return
    with st.expander("✏️ Edit or delete an expense"):
        by_id = {e.id: e for e in filtered}
        selected_id = st.selectbox(
            "Expense", options=list(by_id), format_func=lambda value: expense_option_label(by_id[value])
        )
        expense = by_id[selected_id]
        categories = list(snapshot["categories"])
        if expense.category not in categories:
            categories.append(expense.category)
        vendors: List[Vendor] = snapshot["vendors"]
        vendor_options = [None, *[v.id for v in vendors]]
        vendor_names = {v.id: vendor_label(v) for v in vendors}

        with st.form(f"edit_{expense.id}"):
            amount = st.number_input("Amount", min_value=0.0, value=float(expense.amount), format="%.2f")
            category = st.selectbox("Category", options=categories, index=categories.index(expense.category))
            description = st.text_input("Description", value=expense.description or "")
            vendor_id = st.selectbox(
                "Person",
                options=vendor_options,
                index=vendor_options.index(expense.vendor_id) if expense.vendor_id in vendor_options else 0,
                format_func=lambda value: "No person" if value is None else vendor_names[value],
            )
            expense_date = st.date_input("Date", value=date.fromisoformat(expense.date))
            if st.form_submit_button("Save changes"):
                try:
                    store.update_expense(
                        expense.id,
                        amount=amount,
                        category=category,
                        description=description,
                        vendor_id=vendor_id,
                        date=expense_date,
                    )
                except (ExpenseValidationError, KeyError) as exc:
                    st.error(f"Failed to update expense: {exc}")
                else:
                    _set_flash("success", "Expense updated")
                    st.rerun()

        confirm = st.checkbox("I understand this cannot be undone", key=f"confirm_delete_{expense.id}")
        if st.button("Delete expense", disabled=not confirm, type="primary"):
            if store.delete_expense(expense.id):
                _set_flash("success", "Expense deleted")
            else:
                _set_flash("warning", "Expense was already deleted")
            st.rerun()


def _preview_frame(preview: PdfPreview) -> pd.DataFrame:
    table = expense_table(preview.expenses)
    table.insert(0, "Include", [preview.included[e.id] for e in preview.expenses])
    return table.drop(columns=["Level"])


def render_exports(filtered: Sequence[Expense]) -> None:
    st.subheader("Export")
    if not filtered:
        st.caption("Nothing to export for the current filters.")
        return

    csv_result = export_csv(filtered, default_export_filename("csv"))
    if csv_result.ok:
        st.download_button("⬇️ Download CSV", data=csv_result.data, file_name=csv_result.filename, mime=csv_result.mime_type)
    else:
        st.error(csv_result.error)

    with st.expander("📄 PDF export preview"):
        preview = PdfPreview(filtered)
        edited = st.data_editor(
            _preview_frame(preview),
            hide_index=True,
            disabled=["Date", "Category", "Description", "Person", "Amount"],
            key="pdf_preview_editor",
            use_container_width=True,
        )
        for expense, include in zip(preview.expenses, edited["Include"].tolist()):
            preview.set_included(expense.id, include)
        st.caption(preview.summary())

        guard: ExportGuard = st.session_state["export_guard"]
        clicked = st.button(
            f"Generate PDF ({len(preview.selected())})",
            disabled=guard.busy or not preview.can_export,
        )
        if clicked:
            with st.spinner("Exporting..."):
                result = guard.run(preview.export, filename=default_export_filename("pdf"))
            st.session_state["pdf_result"] = result

        result = st.session_state.get("pdf_result")
        if result is not None:
            if result.ok:
                st.download_button("⬇️ Download PDF", data=result.data, file_name=result.filename, mime=result.mime_type)
            else:
                st.error(f"PDF export failed. Please try again. ({result.error})")


def main() -> None:
    """Entry point for the Streamlit app."""
    configure_logging()
    st.set_page_config(page_title="Construction Expenses", layout="wide", initial_sidebar_state="expanded")
    st.title("Construction Expenses")
    _ensure_session_state()
    _show_flash()

    store = get_store()
    try:
        snapshot = load_snapshot(store)
    except Exception as exc:  # pragma: no cover - UI display only
        logger.exception("Failed to load expenses")
        st.error(f"Failed to load expenses: {exc}")
        st.stop()

    criteria = render_filters(snapshot["categories"], snapshot["vendors"])
    filtered = apply_filters(snapshot["expenses"], criteria)

    render_search(snapshot)
    render_summary(snapshot["expenses"], filtered)
    render_charts(snapshot["expenses"], filtered)
    render_table(filtered)
    render_add_forms(store, snapshot)
    render_edit_delete(store, filtered, snapshot)
    render_exports(filtered)


if __name__ == "__main__":  # pragma: no cover
    main()
