"""Budget-vs-actual calculations.

This module compares a month's aggregated spending against the overall
limit and the per-category limits of that month's budget.
"""

from __future__ import annotations

from typing import Dict, Optional

import pandas as pd

from .models import AggregationResult, Budget, validate_category_limits

__all__ = [
    'validate_category_limits',
    'budget_overview',
    'category_budget_status',
    'classify_usage',
]

STATUS_COLUMNS = ['Category', 'Limit', 'Spent', 'Remaining', 'Percentage_Used', 'Status']


def classify_usage(percentage_used: float) -> str:
    """Label how much of a limit has been used."""
    if percentage_used > 100:
        return 'Over Budget'
    if percentage_used > 90:
        return 'Near Limit'
    if percentage_used > 70:
        return 'Watch'
    return 'On Track'


def budget_overview(budget: Optional[Budget], aggregation: AggregationResult) -> Dict[str, float]:
    """Summarize overall spending against the total limit.

    Args:
        budget: The month's budget, or ``None`` if none is set
        aggregation: Aggregated expenses for the same month

    Returns:
        Dictionary with ``total_limit``, ``spent``, ``remaining`` and
        ``percentage_used`` (0 when no budget is set)
    """
    limit = budget.total_limit if budget is not None else 0.0
    spent = aggregation.period_total
    return {
        'total_limit': limit,
        'spent': spent,
        'remaining': limit - spent,
        'percentage_used': (spent / limit * 100) if limit > 0 else 0.0,
    }


def category_budget_status(budget: Optional[Budget], aggregation: AggregationResult) -> pd.DataFrame:
    """Calculate per-category limit usage for a month.

    Only categories that carry a limit in ``budget`` are reported; a
    category without spending shows 0 spent.

    Args:
        budget: The month's budget, or ``None``
        aggregation: Aggregated expenses for the same month

    Returns:
        DataFrame with columns ``Category, Limit, Spent, Remaining,
        Percentage_Used, Status`` in the budget's category order

    Example:
        >>> status = category_budget_status(budget, aggregate_month(expenses, 2025, 6))
        >>> status.loc[status['Category'] == 'Food', 'Status'].item()
        'Near Limit'
    """
    if budget is None or not budget.category_limits:
        return pd.DataFrame(columns=STATUS_COLUMNS)

    rows = []
    for entry in budget.category_limits:
        spent = aggregation.category_totals.get(entry.category, 0.0)
        percentage_used = spent / entry.limit * 100
        rows.append({
            'Category': entry.category,
            'Limit': entry.limit,
            'Spent': spent,
            'Remaining': entry.limit - spent,
            'Percentage_Used': percentage_used,
            'Status': classify_usage(percentage_used),
        })
    return pd.DataFrame(rows, columns=STATUS_COLUMNS)
