"""Top-level package for expense insights.

Personal expense tracking with period aggregation, end-of-month
forecasting and AI-assisted summaries and answers.  The primary modules
are:

* ``aggregation`` – period totals, category breakdowns and monthly series
* ``forecasting`` – projected month-end spend against a budget
* ``insights`` – natural-language spending summaries
* ``assistant`` – free-text questions over expenses and budgets
* ``db`` – the SQLite record store
* ``service`` – ``ExpenseTracker``, which ties everything together
* ``visualization`` – Plotly figures for trends, categories and budgets

Every AI-backed feature degrades to a deterministic rule-based answer
when the AI is disabled or failing.  From the command line:

```bash
python scripts/expense_report.py --owner alice summary --html summary.html
```
"""

from .errors import (  # noqa: F401
    AIUnavailableError,
    BudgetConflictError,
    ExpenseInsightsError,
    RecordNotFoundError,
    ValidationError,
)
from .models import (  # noqa: F401
    CATEGORIES,
    AggregationResult,
    Budget,
    CategoryLimit,
    Expense,
    Insight,
    MonthlyTotal,
    PredictionResult,
)
from .aggregation import aggregate, monthly_series  # noqa: F401
from .forecasting import predict  # noqa: F401
from .insights import compose  # noqa: F401
from .assistant import answer  # noqa: F401
from .db import RecordStore  # noqa: F401
from .service import ExpenseTracker  # noqa: F401
from . import visualization  # noqa: F401  # re-exported for convenience

__version__ = "0.1.0"

__all__ = [
    "AIUnavailableError",
    "BudgetConflictError",
    "ExpenseInsightsError",
    "RecordNotFoundError",
    "ValidationError",
    "CATEGORIES",
    "AggregationResult",
    "Budget",
    "CategoryLimit",
    "Expense",
    "Insight",
    "MonthlyTotal",
    "PredictionResult",
    "aggregate",
    "monthly_series",
    "predict",
    "compose",
    "answer",
    "RecordStore",
    "ExpenseTracker",
    "visualization",
]
