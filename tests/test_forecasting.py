"""Unit tests for expense_insights.forecasting."""

from __future__ import annotations

from datetime import date

import pytest

from expense_insights.errors import ValidationError
from expense_insights.forecasting import NO_BUDGET_MESSAGE, predict
from expense_insights.models import Expense


def _expense(amount, when):
    return Expense(owner='alice', description='spend', amount=amount, date=when)


def test_overbudget_projection() -> None:
    # 180 spent by day 10 of a 30-day month
    expenses = [_expense(60, '2025-06-01'), _expense(120, '2025-06-10')]

    result = predict(expenses, 200, date(2025, 6, 10), currency_symbol='₹')

    assert result.total_spent == 180
    assert result.daily_average == 18
    assert result.days_remaining == 20
    assert result.predicted_total == 540
    assert result.status == 'overbudget'
    assert result.difference == 340
    assert result.message == "⚠️ You are likely to exceed your budget by ₹340.00 this month!"


def test_warning_when_above_eighty_percent() -> None:
    expenses = [_expense(90, '2025-06-10')]

    result = predict(expenses, 300, date(2025, 6, 10), currency_symbol='$')

    assert result.predicted_total == 270
    assert result.status == 'warning'
    assert result.difference == 30
    assert 'Watch your spending' in result.message


def test_safe_projection() -> None:
    expenses = [_expense(50, '2025-06-10')]

    result = predict(expenses, 1000, date(2025, 6, 10), currency_symbol='$')

    assert result.status == 'safe'
    assert result.message.startswith('✅')
    assert result.difference == pytest.approx(850)


def test_zero_budget_is_warning() -> None:
    result = predict([_expense(10, '2025-06-05')], 0, date(2025, 6, 5))

    assert result.status == 'warning'
    assert result.message == NO_BUDGET_MESSAGE
    assert result.difference == 0
    assert result.total_budget == 0


def test_missing_budget_treated_as_zero() -> None:
    assert predict([], None, date(2025, 6, 5)).status == 'warning'


def test_last_day_of_month_has_no_projection() -> None:
    expenses = [_expense(300, '2025-06-01'), _expense(150, '2025-06-30')]

    result = predict(expenses, 1000, date(2025, 6, 30))

    assert result.days_remaining == 0
    assert result.predicted_total == result.total_spent == 450


def test_leap_year_february() -> None:
    result = predict([_expense(290, '2024-02-10')], 1000, date(2024, 2, 10))

    assert result.days_in_month == 29
    assert result.days_remaining == 19
    assert result.predicted_total == pytest.approx(290 + 29 * 19)


def test_leap_day_is_last_day_of_february() -> None:
    expenses = [_expense(400, '2024-02-01'), _expense(180, '2024-02-29')]

    result = predict(expenses, 1000, date(2024, 2, 29))

    assert result.days_in_month == 29
    assert result.days_elapsed == 29
    assert result.days_remaining == 0
    assert result.predicted_total == result.total_spent == 580
    assert result.daily_average == pytest.approx(20)


def test_expenses_after_as_of_are_ignored() -> None:
    expenses = [_expense(100, '2025-06-05'), _expense(500, '2025-06-20')]

    result = predict(expenses, 1000, date(2025, 6, 10))

    assert result.total_spent == 100


def test_prediction_never_below_spent() -> None:
    result = predict([_expense(42.5, '2025-06-01')], 10, date(2025, 6, 1))

    assert result.predicted_total >= result.total_spent


def test_as_dict_rounds_money() -> None:
    result = predict([_expense(100, '2025-06-03')], 1000, date(2025, 6, 3))
    data = result.as_dict()

    assert data['daily_average'] == 33.33
    assert data['days_in_month'] == 30
    assert set(data) >= {'total_spent', 'predicted_total', 'total_budget', 'status', 'message'}


@pytest.mark.parametrize('budget', [-1, 'abc', float('nan')])
def test_invalid_budget_raises(budget) -> None:
    with pytest.raises(ValidationError):
        predict([], budget, date(2025, 6, 1))


def test_invalid_as_of_raises() -> None:
    with pytest.raises(ValidationError):
        predict([], 100, None)
