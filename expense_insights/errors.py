"""Exception types raised by the expense insights core."""

from __future__ import annotations


class ExpenseInsightsError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(ExpenseInsightsError, ValueError):
    """Raised when an amount, date, period or other input is invalid."""


class BudgetConflictError(ExpenseInsightsError):
    """Raised when a budget already exists for the same owner and period."""

    def __init__(self, owner: str, month: int, year: int):
        self.owner = owner
        self.month = month
        self.year = year
        super().__init__(f"Budget already exists for {year}-{month:02d}")


class RecordNotFoundError(ExpenseInsightsError, LookupError):
    """Raised when a record does not exist or belongs to another owner."""


class AIUnavailableError(ExpenseInsightsError):
    """Raised by AI clients on timeouts, quota errors or malformed replies."""
