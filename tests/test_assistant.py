"""Tests for the question answerer."""

from __future__ import annotations

import json
from datetime import date

import pytest

from expense_insights.assistant import NO_EXPENSES_ANSWER, answer, build_context, rule_based_answer
from expense_insights.errors import AIUnavailableError, ValidationError
from expense_insights.models import Budget, Expense

TODAY = date(2025, 6, 20)


def _expenses():
    return [
        Expense(owner='alice', description='Electricity', amount=500, date='2025-05-05', category='Bills'),
        Expense(owner='alice', description='Swiggy dinner', amount=300, date='2025-06-02', category='Food'),
        Expense(owner='alice', description='Grocery run', amount=150, date='2025-06-15', category='Food'),
        Expense(owner='alice', description='Uber', amount=200, date='2025-06-10', category='Transport'),
    ]


def _budget(total):
    return Budget(owner='alice', month=6, year=2025, total_limit=total)


def _ask(question, budgets=(), expenses=None):
    return rule_based_answer(
        question, _expenses() if expenses is None else expenses, list(budgets), today=TODAY, currency_symbol='$'
    )


def test_budget_on_track() -> None:
    text = _ask("What's my remaining budget?", [_budget(1000)])

    assert text == (
        "You're on track! You've spent $650.00 out of $1,000.00 budget (65.0% used). "
        "You have $350.00 remaining for this month."
    )


def test_budget_warning() -> None:
    text = _ask('How much budget do I have left?', [_budget(700)])

    assert text.startswith("Warning: You've used 92.9% of your budget!")


def test_budget_exceeded() -> None:
    text = _ask('Am I over budget?', [_budget(500)])

    assert text.startswith("You've exceeded your budget!")
    assert "You're over budget by $150.00." in text


def test_budget_question_without_budget() -> None:
    text = _ask('Any budget left?')

    assert text.startswith("You haven't set a budget for this month yet. You've spent $650.00 so far.")


def test_budget_from_other_month_is_ignored() -> None:
    may = Budget(owner='alice', month=5, year=2025, total_limit=10)

    assert _ask('remaining budget?', [may]).startswith("You haven't set a budget")


def test_category_question() -> None:
    text = _ask('How much did I spend on food?')

    assert text == (
        'You spent $450.00 on Food across 2 transactions. '
        'Your most recent Food expense was $150.00 for "Grocery run".'
    )


def test_category_alias() -> None:
    assert _ask('What about my bill payments?').startswith('You spent $500.00 on Bills across 1 transaction.')


def test_category_without_expenses() -> None:
    assert _ask('Tell me about education') == "You haven't recorded any Education expenses yet."


def test_total_question() -> None:
    text = _ask('What is my total?')

    assert text == (
        "You've spent a total of $1,150.00 across 4 transactions. "
        "Your highest spending category is Bills with $500.00."
    )


def test_recent_question() -> None:
    text = _ask('Show my recent activity')

    assert text.startswith('Your 4 most recent expenses total $1,150.00.')
    assert 'The latest was $150.00 for "Grocery run" in Food.' in text


def test_default_answer_includes_hint() -> None:
    text = _ask('hello there')

    assert 'Based on your 4 transactions' in text
    assert 'average expense of $287.50' in text
    assert 'Try asking about specific categories' in text


def test_no_expenses_answer() -> None:
    assert _ask('What is my budget?', [_budget(100)], expenses=[]) == NO_EXPENSES_ANSWER


def test_build_context_serializes_records() -> None:
    context = build_context(_expenses()[:1], [_budget(1000)])

    transactions_part, budgets_part = context.split('\n\nBudgets (JSON):\n')
    transactions = json.loads(transactions_part.replace('Transactions (JSON):\n', ''))
    assert transactions == [
        {'date': '2025-05-05', 'description': 'Electricity', 'amount': 500.0, 'category': 'Bills'}
    ]
    assert json.loads(budgets_part)[0]['totalLimit'] == 1000.0


def test_answer_prefers_ai() -> None:
    calls = []

    def ask(question, context):
        calls.append((question, context))
        return 'From the AI'

    result = answer('  Where does my money go?  ', _expenses(), [], ask, today=TODAY)

    assert result == 'From the AI'
    assert calls[0][0] == 'Where does my money go?'
    assert 'Swiggy dinner' in calls[0][1]


def test_answer_falls_back_to_rules() -> None:
    def ask(question, context):
        raise AIUnavailableError('quota exceeded')

    result = answer('How much did I spend on food?', _expenses(), [], ask, today=TODAY, currency_symbol='$')

    assert result.startswith('You spent $450.00 on Food')


def test_answer_without_ai_and_without_expenses() -> None:
    assert answer('anything', [], [], None) == NO_EXPENSES_ANSWER


@pytest.mark.parametrize('question', ['', '   ', None])
def test_blank_question_rejected(question) -> None:
    with pytest.raises(ValidationError):
        answer(question, _expenses(), [], None)
