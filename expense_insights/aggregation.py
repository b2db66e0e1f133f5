"""Period aggregation of expense records.

Turns raw expense records into period-scoped totals, category breakdowns
and month-over-month series.  All functions are pure: they take records
and return new values without touching the store.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Sequence, Tuple

import pandas as pd

from .errors import ValidationError
from .models import CATEGORIES, AggregationResult, Expense, MonthlyTotal, to_date

FRAME_COLUMNS = ['id', 'description', 'amount', 'category', 'payment_method', 'date']


def expenses_to_frame(expenses: Iterable[Expense]) -> pd.DataFrame:
    """Build a DataFrame with one row per expense and a datetime ``date`` column."""
    rows = [
        {
            'id': e.id,
            'description': e.description,
            'amount': e.amount,
            'category': e.category,
            'payment_method': e.payment_method,
            'date': e.date,
        }
        for e in expenses
    ]
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    df['date'] = pd.to_datetime(df['date'])
    df['amount'] = pd.to_numeric(df['amount']).astype(float)
    return df


def category_order(categories: Iterable[str]) -> List[str]:
    """Sort categories by canonical position; unknown names go last, alphabetically."""
    rank = {name: i for i, name in enumerate(CATEGORIES)}
    return sorted(set(categories), key=lambda c: (rank.get(c, len(rank)), c))


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """Return ``(first day, first day of next month)`` for a calendar month."""
    year, month = int(year), int(month)
    if not 1 <= month <= 12:
        raise ValidationError(f"month must be between 1 and 12, got {month!r}")
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def period_label(period_start: date, period_end: date) -> str:
    """``YYYY-MM`` for exactly one calendar month, else an explicit date range."""
    start, end = month_bounds(period_start.year, period_start.month)
    if period_start == start and period_end == end:
        return f"{period_start.year}-{period_start.month:02d}"
    return f"{period_start.isoformat()} to {period_end.isoformat()}"


def aggregate(expenses: Sequence[Expense], period_start: Any, period_end: Any) -> AggregationResult:
    """Aggregate expenses dated in ``[period_start, period_end)``.

    Args:
        expenses: Expense records, in any order
        period_start: Inclusive start of the period
        period_end: Exclusive end of the period

    Returns:
        ``AggregationResult`` with the period total, per-category totals
        (only categories that occur, in canonical order) and the number of
        matching expenses. An empty period is not an error.

    Raises:
        ValidationError: If the period bounds are invalid
    """
    start = to_date(period_start, 'period_start')
    end = to_date(period_end, 'period_end')
    if end < start:
        raise ValidationError(f"period_end {end} is before period_start {start}")

    df = expenses_to_frame(expenses)
    mask = (df['date'] >= pd.Timestamp(start)) & (df['date'] < pd.Timestamp(end))
    in_period = df[mask]

    grouped = in_period.groupby('category', sort=False)['amount'].sum()
    category_totals: Dict[str, float] = {
        category: float(grouped[category]) for category in category_order(grouped.index)
    }
    # Summing the category totals keeps period_total == sum(category_totals) exact.
    period_total = float(sum(category_totals.values()))

    return AggregationResult(
        period_total=period_total,
        category_totals=category_totals,
        transaction_count=int(len(in_period)),
        period_label=period_label(start, end),
    )


def aggregate_month(expenses: Sequence[Expense], year: int, month: int) -> AggregationResult:
    start, end = month_bounds(year, month)
    return aggregate(expenses, start, end)


def monthly_series(expenses: Sequence[Expense], months_back: int) -> List[MonthlyTotal]:
    """Total spend per calendar month, oldest first.

    Only months with at least one expense appear; gaps are not zero-filled.
    The result is limited to the ``months_back`` most recent of those months.
    """
    if isinstance(months_back, bool) or not isinstance(months_back, int) or months_back < 1:
        raise ValidationError(f"months_back must be a positive integer, got {months_back!r}")

    df = expenses_to_frame(expenses)
    if df.empty:
        return []

    df['Period'] = df['date'].dt.to_period('M')
    monthly = df.groupby('Period')['amount'].sum().sort_index().tail(months_back)
    return [MonthlyTotal(period=str(period), amount=float(amount)) for period, amount in monthly.items()]
