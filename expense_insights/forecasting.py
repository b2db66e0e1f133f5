"""End-of-month spend projection from a partial month of expenses."""

from __future__ import annotations

import logging
import math
from typing import Any, Optional, Sequence

import pandas as pd

from .errors import ValidationError
from .formatting import format_currency
from .models import (
    STATUS_OVERBUDGET,
    STATUS_SAFE,
    STATUS_WARNING,
    Expense,
    PredictionResult,
    to_date,
)

logger = logging.getLogger(__name__)

# Share of the budget above which a projection is flagged as a warning.
WARNING_THRESHOLD = 0.8

NO_BUDGET_MESSAGE = "⚠️ Set a budget to track your spending predictions!"


def _budget_value(budget_total: Any) -> float:
    if budget_total is None:
        return 0.0
    if isinstance(budget_total, bool):
        raise ValidationError(f"Invalid budget total: {budget_total!r}")
    try:
        value = float(budget_total)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid budget total: {budget_total!r}") from exc
    if not math.isfinite(value) or value < 0:
        raise ValidationError(f"Budget total must be zero or positive, got {budget_total!r}")
    return value


def predict(
    expenses_this_month: Sequence[Expense],
    budget_total: Any,
    as_of: Any,
    currency_symbol: Optional[str] = None,
) -> PredictionResult:
    """Project full-month spend from the daily run rate so far.

    Args:
        expenses_this_month: Expenses of the month containing ``as_of``;
            entries dated after ``as_of`` are ignored
        budget_total: Overall monthly limit, ``0``/``None`` when no budget is set
        as_of: Day the projection is made on (counted as elapsed)
        currency_symbol: Symbol used in the message; defaults to config

    Returns:
        ``PredictionResult`` with unrounded figures and a status of
        ``safe``, ``warning`` or ``overbudget``

    Raises:
        ValidationError: If ``as_of`` or ``budget_total`` is invalid

    Example:
        Spending 180 by day 10 of a 30-day month projects 540; against a
        budget of 200 the status is ``overbudget``.
    """
    as_of_date = to_date(as_of, 'as_of')
    budget = _budget_value(budget_total)

    days_elapsed = as_of_date.day
    days_in_month = int(pd.Timestamp(as_of_date).days_in_month)
    days_remaining = days_in_month - days_elapsed

    total_spent = float(sum(e.amount for e in expenses_this_month if e.date <= as_of_date))
    daily_average = total_spent / days_elapsed if days_elapsed > 0 else 0.0
    predicted_total = total_spent + daily_average * days_remaining

    def money(value: float) -> str:
        return format_currency(value, symbol=currency_symbol)

    if budget == 0:
        status = STATUS_WARNING
        difference = 0.0
        message = NO_BUDGET_MESSAGE
    elif predicted_total > budget:
        status = STATUS_OVERBUDGET
        difference = predicted_total - budget
        message = f"⚠️ You are likely to exceed your budget by {money(difference)} this month!"
    elif predicted_total > budget * WARNING_THRESHOLD:
        status = STATUS_WARNING
        difference = budget - predicted_total
        message = (
            f"⚠️ You're on track to spend {money(predicted_total)} out of {money(budget)}. "
            "Watch your spending!"
        )
    else:
        status = STATUS_SAFE
        difference = budget - predicted_total
        message = (
            f"✅ You're doing great! Predicted spending: {money(predicted_total)} "
            f"out of {money(budget)}."
        )

    logger.debug(
        "Forecast for %s: spent=%.2f predicted=%.2f budget=%.2f status=%s",
        as_of_date, total_spent, predicted_total, budget, status,
    )
    return PredictionResult(
        total_spent=total_spent,
        daily_average=daily_average,
        days_elapsed=days_elapsed,
        days_in_month=days_in_month,
        days_remaining=days_remaining,
        predicted_total=predicted_total,
        total_budget=budget,
        difference=difference,
        status=status,
        message=message,
    )
