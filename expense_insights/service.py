"""High-level facade wiring the record store, the core and the AI client.

Example:
    >>> tracker = ExpenseTracker.from_environment()
    >>> tracker.add_expense('alice', 'Swiggy dinner', 450, '2025-06-03')
    >>> print(tracker.forecast('alice').message)
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Callable, Iterable, List, Optional

import pandas as pd

from .aggregation import aggregate_month, month_bounds, monthly_series
from .ai_client import OpenAIClient, create_ai_client
from .assistant import answer
from .budgets import budget_overview, category_budget_status
from .categorizer import suggest_category
from .config import load_ai_settings
from .db import RecordStore
from .forecasting import predict
from .insights import build_insight, build_prediction_insight, compose
from .models import (
    AggregationResult,
    Budget,
    Expense,
    Insight,
    MonthlyTotal,
    PredictionResult,
    to_date,
)

logger = logging.getLogger(__name__)

# Number of most recent expenses handed to the question answerer.
ASK_EXPENSE_LIMIT = 100
DEFAULT_TREND_MONTHS = 6


class ExpenseTracker:
    """Per-owner expense tracking with AI-assisted insights."""

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        ai_client: Optional[OpenAIClient] = None,
        currency_symbol: Optional[str] = None,
        today: Callable[[], date] = date.today,
    ):
        """Create the tracker.

        Args:
            store: Record store; defaults to one at the configured DB path
            ai_client: AI capability, or ``None`` to use rule-based text only
            currency_symbol: Display symbol; defaults to the configured one
            today: Clock used for "current month" operations
        """
        self.store = store or RecordStore()
        self.ai_client = ai_client
        self.currency_symbol = currency_symbol
        self.today = today

    @classmethod
    def from_environment(cls, store: Optional[RecordStore] = None) -> 'ExpenseTracker':
        """Build a tracker with the AI client configured from env / ``.env``."""
        return cls(store=store, ai_client=create_ai_client(load_ai_settings()))

    def _month(self, year: Optional[int], month: Optional[int]):
        current = self.today()
        return (year or current.year), (month or current.month)

    def _month_expenses(self, owner: str, year: int, month: int) -> List[Expense]:
        start, end = month_bounds(year, month)
        return self.store.find_expenses(owner, start=start, end=end)

    def add_expense(
        self,
        owner: str,
        description: str,
        amount: Any,
        expense_date: Any = None,
        category: Optional[str] = None,
        payment_method: Optional[str] = None,
    ) -> Expense:
        """Record an expense, suggesting a category when none is given."""
        expense = Expense(
            owner=owner,
            description=description,
            amount=amount,
            date=expense_date if expense_date is not None else self.today(),
            category=category,
            payment_method=payment_method,
        )
        if category is None or not str(category).strip():
            categorize = self.ai_client.categorize if self.ai_client is not None else None
            suggested, ai_used, notes = suggest_category(expense.description, expense.amount, categorize)
            expense = replace(expense, category=suggested, ai_categorized=ai_used, ai_notes=notes)
        return self.store.add_expense(expense)

    def create_budget(
        self,
        owner: str,
        month: int,
        year: int,
        total_limit: Any,
        category_limits: Optional[Iterable[Any]] = None,
    ) -> Budget:
        budget = Budget(
            owner=owner,
            month=month,
            year=year,
            total_limit=total_limit,
            category_limits=category_limits or (),
        )
        return self.store.create_budget(budget)

    def month_summary(
        self, owner: str, year: Optional[int] = None, month: Optional[int] = None
    ) -> AggregationResult:
        year, month = self._month(year, month)
        return aggregate_month(self._month_expenses(owner, year, month), year, month)

    def generate_insight(self, owner: str, save: bool = True) -> Insight:
        """Compose the current month's summary and store it as an insight."""
        aggregation = self.month_summary(owner)
        narrate = self.ai_client.summarize if self.ai_client is not None else None
        text = compose(aggregation, narrate, currency_symbol=self.currency_symbol)
        insight = build_insight(owner, aggregation, text)
        if save:
            insight = self.store.add_insight(insight)
            logger.info("Saved %s insight for %s (%s)", insight.type, owner, insight.period)
        return insight

    def forecast(self, owner: str, as_of: Any = None, save: bool = False) -> PredictionResult:
        """Project the month containing ``as_of`` (default today) against its budget."""
        as_of_date = to_date(as_of, 'as_of') if as_of is not None else self.today()
        expenses = self._month_expenses(owner, as_of_date.year, as_of_date.month)
        budget = self.store.find_budget(owner, as_of_date.month, as_of_date.year)
        prediction = predict(
            expenses,
            budget.total_limit if budget is not None else 0,
            as_of_date,
            currency_symbol=self.currency_symbol,
        )
        if save:
            period = f"{as_of_date.year}-{as_of_date.month:02d}"
            self.store.add_insight(build_prediction_insight(owner, period, prediction))
        return prediction

    def ask(self, owner: str, question: str) -> str:
        """Answer a free-text question over recent expenses and all budgets."""
        recent = self.store.find_expenses(owner, limit=ASK_EXPENSE_LIMIT)
        budgets = self.store.find_budgets(owner)
        ask = self.ai_client.answer_free_text if self.ai_client is not None else None
        return answer(
            question,
            recent,
            budgets,
            ask,
            today=self.today(),
            currency_symbol=self.currency_symbol,
        )

    def monthly_trend(self, owner: str, months_back: int = DEFAULT_TREND_MONTHS) -> List[MonthlyTotal]:
        return monthly_series(self.store.find_expenses(owner), months_back)

    def budget_overview(self, owner: str, year: Optional[int] = None, month: Optional[int] = None) -> dict:
        year, month = self._month(year, month)
        return budget_overview(
            self.store.find_budget(owner, month, year), self.month_summary(owner, year, month)
        )

    def category_status(
        self, owner: str, year: Optional[int] = None, month: Optional[int] = None
    ) -> pd.DataFrame:
        """Per-category budget usage for a month (default: current month)."""
        year, month = self._month(year, month)
        return category_budget_status(
            self.store.find_budget(owner, month, year), self.month_summary(owner, year, month)
        )
