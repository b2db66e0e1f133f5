"""Natural-language spending summaries.

``compose`` asks the AI narrator first and falls back to a deterministic
template built from the same aggregation, so callers always get text back.
"""

from __future__ import annotations

from functools import partial
from typing import Callable, Optional

from .ai_client import call_with_fallback
from .formatting import format_currency, format_percent, pluralize
from .models import STATUS_OVERBUDGET, AggregationResult, Insight, PredictionResult

NO_EXPENSES_SUMMARY = (
    "No expenses recorded this period. Start tracking your spending to get personalized insights!"
)

TOP_SHARE_TIP_THRESHOLD = 40.0
BUSY_MONTH_TIP_THRESHOLD = 20

TIP_CATEGORY_BUDGET = (
    "💡 Tip: Your {category} spending is quite high. Consider setting a budget limit "
    "to track this category better."
)
TIP_CONSOLIDATE = (
    "💡 Tip: You made {count} transactions this period. Try consolidating purchases "
    "to save on fees and reduce impulse spending."
)
TIP_ENCOURAGE = (
    "💡 Tip: Great job tracking your expenses! Keep monitoring your spending patterns "
    "to identify savings opportunities."
)


def rule_based_summary(aggregation: AggregationResult, currency_symbol: Optional[str] = None) -> str:
    """Deterministic summary naming the top categories plus one tip."""
    ranked = list(aggregation.ranked_categories())
    if aggregation.transaction_count == 0 or not ranked:
        return NO_EXPENSES_SUMMARY

    def money(value: float) -> str:
        return format_currency(value, symbol=currency_symbol)

    def share(value: float) -> float:
        return value / aggregation.period_total * 100 if aggregation.period_total > 0 else 0.0

    total = aggregation.period_total
    count = aggregation.transaction_count
    top_category, top_amount = ranked[0]
    top_share = share(top_amount)

    opener = f"For {aggregation.period_label}" if aggregation.period_label else "This period"
    parts = [
        f"{opener}, you spent {money(total)} across {pluralize(count, 'transaction')}.",
        f"Your biggest expense was {top_category} ({money(top_amount)}, "
        f"{format_percent(top_share)} of total spending).",
    ]
    if len(ranked) > 1:
        second_category, second_amount = ranked[1]
        parts.append(f"Followed by {second_category} at {format_percent(share(second_amount))}.")

    if top_share > TOP_SHARE_TIP_THRESHOLD:
        parts.append(TIP_CATEGORY_BUDGET.format(category=top_category))
    elif count > BUSY_MONTH_TIP_THRESHOLD:
        parts.append(TIP_CONSOLIDATE.format(count=count))
    else:
        parts.append(TIP_ENCOURAGE)
    return ' '.join(parts)


def compose(
    aggregation: AggregationResult,
    narrate: Optional[Callable[[AggregationResult], str]],
    currency_symbol: Optional[str] = None,
) -> str:
    """Narrate an aggregation with the AI, or with the template if that fails.

    Never raises; the rule-based summary is the failure boundary.
    """
    primary = partial(narrate, aggregation) if narrate is not None else None
    return call_with_fallback(
        primary,
        partial(rule_based_summary, aggregation, currency_symbol),
        label='Insight narration',
    )


def build_insight(
    owner: str,
    aggregation: AggregationResult,
    text: str,
    insight_type: str = 'summary',
    period: Optional[str] = None,
) -> Insight:
    """Create the append-only insight record holding the aggregation snapshot."""
    return Insight(
        owner=owner,
        period=period or aggregation.period_label,
        type=insight_type,
        data=aggregation.as_dict(),
        ai_text=text,
    )


def build_prediction_insight(owner: str, period: str, prediction: PredictionResult) -> Insight:
    insight_type = 'overspending_alert' if prediction.status == STATUS_OVERBUDGET else 'prediction'
    return Insight(
        owner=owner,
        period=period,
        type=insight_type,
        data=prediction.as_dict(),
        ai_text=prediction.message,
    )
