"""Record types shared by the store, the aggregation engine and the AI layer.

Expenses, budgets and insights are persisted records owned by a single
user.  ``AggregationResult``, ``PredictionResult`` and ``MonthlyTotal`` are
derived values that are recomputed on demand and never stored except as
part of an insight snapshot.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional, Tuple

import pandas as pd

from .errors import ValidationError

# Canonical category order.  Ties between categories are always broken by
# position in this tuple.
CATEGORIES: Tuple[str, ...] = (
    'Food',
    'Transport',
    'Shopping',
    'Bills',
    'Entertainment',
    'Health',
    'Education',
    'Others',
)
DEFAULT_CATEGORY = 'Others'

PAYMENT_METHODS: Tuple[str, ...] = ('Cash', 'UPI', 'Card', 'NetBanking', 'Other')
DEFAULT_PAYMENT_METHOD = 'Other'

INSIGHT_TYPES: Tuple[str, ...] = ('summary', 'overspending_alert', 'saving_tips', 'prediction')

STATUS_SAFE = 'safe'
STATUS_WARNING = 'warning'
STATUS_OVERBUDGET = 'overbudget'

PERIOD_PATTERN = re.compile(r'\d{4}-(0[1-9]|1[0-2])')


def to_date(value: Any, field_name: str = 'date') -> date:
    """Normalize dates, datetimes, timestamps and ISO strings to ``date``."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid {field_name}: {value!r}") from exc
    if pd.isna(ts):
        raise ValidationError(f"Invalid {field_name}: {value!r}")
    return ts.date()


def to_amount(value: Any, field_name: str = 'amount') -> float:
    """Parse a strictly positive, finite monetary amount."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} is required")
    try:
        amount = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid {field_name}: {value!r}") from exc
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError(f"{field_name} must be a positive number, got {value!r}")
    return amount


def normalize_category(value: Optional[str]) -> str:
    """Map a category name onto its canonical spelling."""
    if value is None or not str(value).strip():
        return DEFAULT_CATEGORY
    lookup = {c.lower(): c for c in CATEGORIES}
    canonical = lookup.get(str(value).strip().lower())
    if canonical is None:
        raise ValidationError(
            f"Unknown category {value!r}; expected one of {', '.join(CATEGORIES)}"
        )
    return canonical


def _normalize_payment_method(value: Optional[str]) -> str:
    if value is None or not str(value).strip():
        return DEFAULT_PAYMENT_METHOD
    lookup = {m.lower(): m for m in PAYMENT_METHODS}
    canonical = lookup.get(str(value).strip().lower())
    if canonical is None:
        raise ValidationError(
            f"Unknown payment method {value!r}; expected one of {', '.join(PAYMENT_METHODS)}"
        )
    return canonical


def _require_owner(owner: Any) -> str:
    if owner is None or not str(owner).strip():
        raise ValidationError("owner is required")
    return str(owner)


@dataclass(frozen=True)
class Expense:
    owner: str
    description: str
    amount: float
    date: date
    category: str = DEFAULT_CATEGORY
    payment_method: str = DEFAULT_PAYMENT_METHOD
    ai_categorized: bool = False
    ai_notes: Optional[str] = None
    id: Optional[int] = None

    def __post_init__(self) -> None:
        description = (self.description or '').strip() if isinstance(self.description, str) else ''
        if not description:
            raise ValidationError("description is required")
        object.__setattr__(self, 'owner', _require_owner(self.owner))
        object.__setattr__(self, 'description', description)
        object.__setattr__(self, 'amount', to_amount(self.amount))
        object.__setattr__(self, 'date', to_date(self.date))
        object.__setattr__(self, 'category', normalize_category(self.category))
        object.__setattr__(self, 'payment_method', _normalize_payment_method(self.payment_method))
        object.__setattr__(self, 'ai_categorized', bool(self.ai_categorized))

    def as_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'description': self.description,
            'amount': self.amount,
            'category': self.category,
            'payment_method': self.payment_method,
            'date': self.date.isoformat(),
            'ai_categorized': self.ai_categorized,
            'ai_notes': self.ai_notes,
        }


@dataclass(frozen=True)
class CategoryLimit:
    category: str
    limit: float

    def __post_init__(self) -> None:
        if self.category is None or not str(self.category).strip():
            raise ValidationError("category limit requires a category")
        object.__setattr__(self, 'category', normalize_category(self.category))
        object.__setattr__(self, 'limit', to_amount(self.limit, 'limit'))

    def as_dict(self) -> Dict[str, Any]:
        return {'category': self.category, 'limit': self.limit}


def validate_category_limits(limits: Any) -> Tuple[CategoryLimit, ...]:
    """Normalize per-category limits and reject duplicate categories.

    Args:
        limits: Iterable of ``CategoryLimit`` objects or ``{category, limit}`` dicts

    Returns:
        Tuple of ``CategoryLimit`` in the order given

    Raises:
        ValidationError: If an entry is malformed or a category repeats
    """
    if limits is None:
        return ()
    normalized = []
    seen = set()
    for entry in limits:
        if isinstance(entry, CategoryLimit):
            item = entry
        elif isinstance(entry, dict):
            item = CategoryLimit(category=entry.get('category'), limit=entry.get('limit'))
        else:
            raise ValidationError(f"Invalid category limit: {entry!r}")
        if item.category in seen:
            raise ValidationError(f"Duplicate limit for category {item.category!r}")
        seen.add(item.category)
        normalized.append(item)
    return tuple(normalized)


@dataclass(frozen=True)
class Budget:
    owner: str
    month: int
    year: int
    total_limit: float
    category_limits: Tuple[CategoryLimit, ...] = ()
    id: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'owner', _require_owner(self.owner))
        month = _to_int(self.month, 'month')
        year = _to_int(self.year, 'year')
        if not 1 <= month <= 12:
            raise ValidationError(f"month must be between 1 and 12, got {self.month!r}")
        if not 1900 <= year <= 9999:
            raise ValidationError(f"year out of range: {self.year!r}")
        object.__setattr__(self, 'month', month)
        object.__setattr__(self, 'year', year)
        object.__setattr__(self, 'total_limit', to_amount(self.total_limit, 'total_limit'))
        object.__setattr__(self, 'category_limits', validate_category_limits(self.category_limits))

    @property
    def period(self) -> str:
        return f"{self.year}-{self.month:02d}"

    def limit_for(self, category: str) -> Optional[float]:
        for entry in self.category_limits:
            if entry.category == category:
                return entry.limit
        return None

    def as_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'month': self.month,
            'year': self.year,
            'total_limit': self.total_limit,
            'category_limits': [c.as_dict() for c in self.category_limits],
        }


def _to_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field_name}: {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid {field_name}: {value!r}") from exc
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"Invalid {field_name}: {value!r}")
    return number


@dataclass(frozen=True)
class Insight:
    owner: str
    period: str
    type: str
    data: Dict[str, Any]
    ai_text: str
    id: Optional[int] = None
    created_at: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'owner', _require_owner(self.owner))
        if self.type not in INSIGHT_TYPES:
            raise ValidationError(f"Unknown insight type {self.type!r}")
        if not isinstance(self.period, str) or not PERIOD_PATTERN.fullmatch(self.period):
            raise ValidationError(f"period must look like YYYY-MM, got {self.period!r}")


@dataclass(frozen=True)
class AggregationResult:
    period_total: float
    category_totals: Dict[str, float] = field(default_factory=dict)
    transaction_count: int = 0
    period_label: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.transaction_count == 0

    def ranked_categories(self) -> Iterable[Tuple[str, float]]:
        """Categories by descending amount; ties keep canonical order."""
        return sorted(self.category_totals.items(), key=lambda item: -item[1])

    def as_dict(self) -> Dict[str, Any]:
        return {
            'period': self.period_label,
            'total': self.period_total,
            'by_category': dict(self.category_totals),
            'transaction_count': self.transaction_count,
        }


@dataclass(frozen=True)
class PredictionResult:
    total_spent: float
    daily_average: float
    days_elapsed: int
    days_in_month: int
    days_remaining: int
    predicted_total: float
    total_budget: float
    difference: float
    status: str
    message: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            'total_spent': round(self.total_spent, 2),
            'daily_average': round(self.daily_average, 2),
            'days_elapsed': self.days_elapsed,
            'days_in_month': self.days_in_month,
            'days_remaining': self.days_remaining,
            'predicted_total': round(self.predicted_total, 2),
            'total_budget': round(self.total_budget, 2),
            'difference': round(self.difference, 2),
            'status': self.status,
            'message': self.message,
        }


@dataclass(frozen=True)
class MonthlyTotal:
    period: str
    amount: float
