"""Plotly visualisation helpers for expense insights.

Each function accepts one of the derived values produced by
:mod:`expense_insights.aggregation` or :mod:`expense_insights.budgets`
and returns an interactive ``plotly.graph_objects.Figure``.  An empty
input yields a blank figure titled "No data to display" so that callers
never need a special case before rendering.
"""

from __future__ import annotations

from typing import Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .models import AggregationResult, MonthlyTotal

NO_DATA_TITLE = "No data to display"

STATUS_COLORS = {
    'On Track': 'seagreen',
    'Watch': 'gold',
    'Near Limit': 'darkorange',
    'Over Budget': 'crimson',
}


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=NO_DATA_TITLE)
    return fig


def create_monthly_trend_chart(series: Sequence[MonthlyTotal], title: str | None = None) -> go.Figure:
    """Generate a line chart of total spend per month.

    Parameters
    ----------
    series : sequence of MonthlyTotal
        Output of :func:`~expense_insights.aggregation.monthly_series`,
        oldest month first.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Line chart with one marker per month.
    """
    if not series:
        return _empty_figure()
    df = pd.DataFrame([{"Period": m.period, "Amount": m.amount} for m in series])
    fig = px.line(df, x="Period", y="Amount", markers=True)
    fig.update_layout(
        title=title or "Monthly spending",
        xaxis_title="Month",
        yaxis_title="Amount",
    )
    fig.update_xaxes(type="category")
    return fig


def _category_frame(aggregation: AggregationResult) -> pd.DataFrame:
    return pd.DataFrame(
        list(aggregation.category_totals.items()), columns=["Category", "Amount"]
    )


def create_category_bar_chart(aggregation: AggregationResult, title: str | None = None) -> go.Figure:
    """Generate a bar chart of spend per category for one period.

    Parameters
    ----------
    aggregation : AggregationResult
        Aggregated expenses; bars follow the canonical category order.
    title : str, optional
        Title for the chart.

    Returns
    -------
    plotly.graph_objects.Figure
        Bar chart of categories vs amount.
    """
    if aggregation.is_empty or not aggregation.category_totals:
        return _empty_figure()
    df = _category_frame(aggregation)
    fig = px.bar(df, x="Category", y="Amount")
    fig.update_layout(
        title=title or f"Spending by category ({aggregation.period_label})",
        xaxis_title="Category",
        yaxis_title="Amount",
    )
    return fig


def create_category_pie_chart(aggregation: AggregationResult, title: str | None = None) -> go.Figure:
    """Generate a pie chart showing each category's share of the period total."""
    if aggregation.is_empty or not aggregation.category_totals:
        return _empty_figure()
    df = _category_frame(aggregation)
    fig = px.pie(df, names="Category", values="Amount")
    fig.update_layout(title=title or "Category breakdown")
    return fig


def create_budget_progress_chart(status: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Render per-category budget usage as horizontal bars.

    Parameters
    ----------
    status : pandas.DataFrame
        Output of :func:`~expense_insights.budgets.category_budget_status`.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Bar chart of percentage used per category, coloured by status,
        with a reference line at 100%.
    """
    if status.empty:
        return _empty_figure()
    fig = px.bar(
        status,
        x="Percentage_Used",
        y="Category",
        orientation="h",
        color="Status",
        color_discrete_map=STATUS_COLORS,
        hover_data=["Spent", "Limit", "Remaining"],
    )
    fig.add_vline(x=100, line_dash="dash", line_color="grey")
    fig.update_layout(
        title=title or "Budget usage by category",
        xaxis_title="Percentage used",
        yaxis_title="Category",
    )
    return fig
