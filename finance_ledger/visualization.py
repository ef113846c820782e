"""Plotly visualisation helpers for ledger summaries.

Each function accepts an object produced by :mod:`analytics` and
returns a ``plotly.graph_objects.Figure``.  Empty input yields an empty
figure titled "No data to display" rather than raising, so callers can
render whatever comes back.
"""

from __future__ import annotations

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

RATING_COLORS = {
    'good': '#22c55e',
    'neutral': '#eab308',
    'bad': '#ef4444',
}
PIE_COLORS = ['#60a5fa', '#34d399', '#fbbf24', '#f87171', '#a78bfa', '#2dd4bf']


def _empty_figure(title: str = "No data to display") -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=title)
    return fig


def create_distribution_pie(series: pd.Series, title: str | None = None) -> go.Figure:
    """Pie chart of a period's incomes or expenses by item name.

    Parameters
    ----------
    series : pandas.Series
        Amounts indexed by item name, as returned by
        :func:`analytics.distribution`.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Pie chart.
    """
    if series.empty:
        return _empty_figure()
    df = series.reset_index()
    df.columns = ["Name", "Amount"]
    fig = px.pie(df, names="Name", values="Amount", color_discrete_sequence=PIE_COLORS)
    fig.update_traces(textinfo="label+percent")
    fig.update_layout(title=title or "Distribution")
    return fig


def create_balance_chart(frame: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Line chart of the running balance and savings per period."""
    if frame.empty:
        return _empty_figure()
    long_df = frame.melt(
        id_vars="Period", value_vars=["Balance", "Savings"], var_name="Metric", value_name="Amount"
    )
    fig = px.line(long_df, x="Period", y="Amount", color="Metric", markers=True)
    fig.update_layout(
        title=title or "Balance and savings over time",
        xaxis_title="Period",
        yaxis_title="Amount",
    )
    return fig


def create_income_expense_chart(frame: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Grouped bars of income and expenses per period, with net as a line."""
    if frame.empty:
        return _empty_figure()
    fig = go.Figure()
    fig.add_trace(go.Bar(x=frame["Period"], y=frame["Income"], name="Income", marker_color="#34d399"))
    fig.add_trace(go.Bar(x=frame["Period"], y=frame["Expenses"], name="Expenses", marker_color="#f87171"))
    fig.add_trace(go.Scatter(x=frame["Period"], y=frame["Net"], name="Net", mode="lines+markers"))
    fig.update_layout(
        title=title or "Income vs expenses",
        barmode="group",
        xaxis_title="Period",
        yaxis_title="Amount",
    )
    return fig


def create_rating_chart(frame: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Bar per period coloured by its rating, height is the ending balance."""
    if frame.empty:
        return _empty_figure()
    fig = px.bar(
        frame,
        x="Period",
        y="Balance",
        color="Rating",
        color_discrete_map=RATING_COLORS,
        category_orders={"Rating": list(RATING_COLORS)},
    )
    fig.update_layout(
        title=title or "Monthly rating",
        xaxis_title="Period",
        yaxis_title="Balance",
    )
    return fig
