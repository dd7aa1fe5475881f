"""Plotly visualisation helpers for the expense dashboard.

Each function accepts the output of one of the helpers in
:mod:`aggregation` and returns a ``plotly.graph_objects.Figure`` that
Streamlit renders via ``st.plotly_chart``.  Empty inputs produce an
empty figure titled "No data to display" rather than an error.
"""

from __future__ import annotations

from typing import Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .aggregation import ChartSlice


def _empty_figure(title: str = "No data to display") -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=title)
    return fig


def create_category_pie_chart(slices: Sequence[ChartSlice], title: str | None = None) -> go.Figure:
    """Pie chart of the top categories with an optional "Other" slice.

    Parameters
    ----------
    slices : sequence of ChartSlice
        Output of :func:`aggregation.top_category_slices`.  Each slice
        keeps the colour assigned to its rank.
    title : str, optional
        Chart title.
    """
    if not slices:
        return _empty_figure()
    fig = go.Figure(
        go.Pie(
            labels=[s.name for s in slices],
            values=[s.value for s in slices],
            marker=dict(colors=[s.color for s in slices]),
            sort=False,
            hole=0.3,
        )
    )
    fig.update_layout(title=title or "Spending by category")
    return fig


def create_category_bar_chart(series: pd.Series, title: str | None = None) -> go.Figure:
    """Bar chart of category totals.

    Parameters
    ----------
    series : pandas.Series
        Series indexed by category with summed amounts, as returned by
        :func:`aggregation.category_series`.
    title : str, optional
        Chart title.
    """
    if series.empty:
        return _empty_figure()
    df = series.reset_index()
    df.columns = ["Category", "Amount"]
    fig = px.bar(df, x="Category", y="Amount")
    fig.update_layout(
        title=title or "Category breakdown",
        xaxis_title="Category",
        yaxis_title="Amount",
    )
    return fig


def create_monthly_trend_chart(monthly: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Bar chart of total spending per month.

    ``monthly`` is the frame returned by :func:`aggregation.monthly_totals`
    with ``month`` and ``total`` columns.
    """
    if monthly.empty:
        return _empty_figure()
    fig = px.bar(monthly, x="month", y="total")
    fig.update_layout(
        title=title or "Monthly spending",
        xaxis_title="Month",
        yaxis_title="Total",
    )
    return fig
