"""Free-text questions about spending and budgets.

The AI gets the question together with the serialized transactions and
budgets.  When it is unavailable, a keyword-driven answerer computes a
reply from the same records.
"""

from __future__ import annotations

import json
import re
from datetime import date
from functools import partial
from typing import Callable, List, Optional, Sequence

from .ai_client import call_with_fallback
from .errors import ValidationError
from .formatting import format_currency, format_percent, pluralize
from .models import Budget, Expense

NO_EXPENSES_ANSWER = (
    "You don't have any expenses recorded yet. Start adding expenses to get insights!"
)
USAGE_HINT = (
    'Try asking about specific categories like "How much did I spend on food?" '
    'or "What\'s my remaining budget?".'
)
RECENT_COUNT = 5
BUDGET_WARNING_PERCENT = 80.0

BUDGET_PATTERN = re.compile(
    r"\b(budgets?|remaining|left|over|overspe\w*|still spend|can spend|can i spend)\b"
)
CATEGORY_ALIASES = {
    'food': 'Food',
    'transport': 'Transport',
    'shopping': 'Shopping',
    'bill': 'Bills',
    'bills': 'Bills',
    'entertainment': 'Entertainment',
    'health': 'Health',
    'education': 'Education',
    'other': 'Others',
    'others': 'Others',
}
CATEGORY_PATTERN = re.compile(
    r"\b(" + '|'.join(sorted(CATEGORY_ALIASES, key=len, reverse=True)) + r")\b"
)
TOTAL_KEYWORDS = ('total', 'how much', 'spent')
RECENT_KEYWORDS = ('recent', 'last')


def build_context(expenses: Sequence[Expense], budgets: Sequence[Budget]) -> str:
    """Serialize transactions and budgets for the AI prompt."""
    transactions = [
        {
            'date': e.date.isoformat(),
            'description': e.description,
            'amount': e.amount,
            'category': e.category,
        }
        for e in expenses
    ]
    budget_rows = [
        {
            'totalLimit': b.total_limit,
            'categoryLimits': [c.as_dict() for c in b.category_limits],
            'month': b.month,
            'year': b.year,
        }
        for b in budgets
    ]
    return (
        f"Transactions (JSON):\n{json.dumps(transactions)}\n\n"
        f"Budgets (JSON):\n{json.dumps(budget_rows)}"
    )


def _budget_answer(expenses: List[Expense], budgets: Sequence[Budget], today: date, money) -> str:
    spent = sum(e.amount for e in expenses if e.date.year == today.year and e.date.month == today.month)
    budget = next((b for b in budgets if b.month == today.month and b.year == today.year), None)
    if budget is None:
        return (
            f"You haven't set a budget for this month yet. You've spent {money(spent)} so far. "
            "Consider setting a budget to track your spending better!"
        )

    limit = budget.total_limit
    remaining = limit - spent
    used = format_percent(spent / limit * 100)
    if remaining < 0:
        return (
            f"You've exceeded your budget! You've spent {money(spent)} out of {money(limit)} "
            f"budget ({used} used). You're over budget by {money(abs(remaining))}."
        )
    if spent / limit * 100 > BUDGET_WARNING_PERCENT:
        return (
            f"Warning: You've used {used} of your budget! Spent {money(spent)} out of "
            f"{money(limit)}. You have {money(remaining)} remaining for this month."
        )
    return (
        f"You're on track! You've spent {money(spent)} out of {money(limit)} budget "
        f"({used} used). You have {money(remaining)} remaining for this month."
    )


def _category_answer(expenses: List[Expense], category: str, money) -> str:
    matching = [e for e in expenses if e.category == category]
    if not matching:
        return f"You haven't recorded any {category} expenses yet."
    total = sum(e.amount for e in matching)
    latest = matching[0]
    return (
        f"You spent {money(total)} on {category} across {pluralize(len(matching), 'transaction')}. "
        f"Your most recent {category} expense was {money(latest.amount)} for \"{latest.description}\"."
    )


def _total_answer(expenses: List[Expense], money) -> str:
    totals = {}
    for e in expenses:
        totals[e.category] = totals.get(e.category, 0.0) + e.amount
    top_category, top_amount = max(totals.items(), key=lambda item: item[1])
    return (
        f"You've spent a total of {money(sum(totals.values()))} across "
        f"{pluralize(len(expenses), 'transaction')}. Your highest spending category is "
        f"{top_category} with {money(top_amount)}."
    )


def _recent_answer(expenses: List[Expense], money) -> str:
    recent = expenses[:RECENT_COUNT]
    latest = recent[0]
    return (
        f"Your {len(recent)} most recent expenses total {money(sum(e.amount for e in recent))}. "
        f"The latest was {money(latest.amount)} for \"{latest.description}\" in {latest.category}."
    )


def rule_based_answer(
    question: str,
    expenses: Sequence[Expense],
    budgets: Sequence[Budget],
    today: Optional[date] = None,
    currency_symbol: Optional[str] = None,
) -> str:
    """Answer a question from the records using keyword intent matching.

    Intents are tried in order: budget status, a named category, totals,
    recent spending, and finally a general summary with a usage hint.
    """
    if not expenses:
        return NO_EXPENSES_ANSWER

    def money(value: float) -> str:
        return format_currency(value, symbol=currency_symbol)

    ordered = sorted(expenses, key=lambda e: e.date, reverse=True)
    lowered = question.lower()

    if BUDGET_PATTERN.search(lowered):
        return _budget_answer(ordered, budgets, today or date.today(), money)

    category_match = CATEGORY_PATTERN.search(lowered)
    if category_match:
        return _category_answer(ordered, CATEGORY_ALIASES[category_match.group(1)], money)

    if any(keyword in lowered for keyword in TOTAL_KEYWORDS):
        return _total_answer(ordered, money)

    if any(keyword in lowered for keyword in RECENT_KEYWORDS):
        return _recent_answer(ordered, money)

    total = sum(e.amount for e in ordered)
    return (
        f"Based on your {pluralize(len(ordered), 'transaction')}, you've spent {money(total)} "
        f"in total, with an average expense of {money(total / len(ordered))}. {USAGE_HINT}"
    )


def answer(
    question: str,
    recent_expenses: Sequence[Expense],
    budgets: Sequence[Budget],
    ask: Optional[Callable[[str, str], str]],
    today: Optional[date] = None,
    currency_symbol: Optional[str] = None,
) -> str:
    """Answer a spending question, preferring the AI and falling back to rules.

    Args:
        question: Free-text question from the user
        recent_expenses: The user's recent expenses (any order)
        budgets: All of the user's budgets
        ask: AI capability taking ``(question, context)``; ``None`` when unavailable
        today: Reference date for "this month" questions; defaults to today
        currency_symbol: Symbol used in rule-based answers

    Returns:
        Non-empty answer text

    Raises:
        ValidationError: If the question is blank
    """
    if question is None or not str(question).strip():
        raise ValidationError("Question is required")
    question = str(question).strip()

    primary = None
    if ask is not None:
        primary = partial(ask, question, build_context(recent_expenses, budgets))
    return call_with_fallback(
        primary,
        partial(rule_based_answer, question, recent_expenses, budgets, today, currency_symbol),
        label='Question answering',
    )
