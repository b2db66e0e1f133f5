"""Expense categorization from free-text descriptions."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Tuple

from .models import CATEGORIES, DEFAULT_CATEGORY

logger = logging.getLogger(__name__)

# Checked in order; the first category with a matching keyword wins.
CATEGORY_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    'Food': (
        'food', 'restaurant', 'lunch', 'dinner', 'breakfast', 'cafe', 'coffee', 'pizza',
        'burger', 'meal', 'grocery', 'snack', 'dominos', 'mcdonalds', 'kfc', 'subway',
        'starbucks', 'swiggy', 'zomato', 'delivery', 'kitchen', 'bakery',
    ),
    'Transport': (
        'uber', 'ola', 'taxi', 'bus', 'train', 'metro', 'fuel', 'gas', 'petrol', 'diesel',
        'parking', 'toll', 'flight', 'ticket', 'cab', 'auto', 'rickshaw', 'bike', 'car',
    ),
    'Shopping': (
        'amazon', 'flipkart', 'shop', 'clothing', 'clothes', 'shoes', 'mall', 'store',
        'purchase', 'buy', 'online', 'myntra', 'ajio',
    ),
    'Bills': (
        'bill', 'electricity', 'water', 'internet', 'phone', 'mobile', 'rent', 'utility',
        'subscription', 'recharge', 'broadband', 'wifi',
    ),
    'Entertainment': (
        'movie', 'cinema', 'game', 'concert', 'netflix', 'spotify', 'amazon prime',
        'hotstar', 'music', 'show', 'theatre', 'youtube',
    ),
    'Health': (
        'medicine', 'doctor', 'hospital', 'pharmacy', 'medical', 'health', 'clinic',
        'therapy', 'dental', 'apollo', 'gym', 'fitness',
    ),
    'Education': (
        'book', 'course', 'tuition', 'school', 'college', 'class', 'education', 'learning',
        'udemy', 'coursera', 'training',
    ),
}

AI_NOTE = 'AI suggested category based on description'
KEYWORD_NOTE = 'Category suggested by keyword match'


def categorize_by_keywords(description: Optional[str]) -> str:
    """Categorize a transaction description using keyword rules.

    Args:
        description: The transaction description or merchant name

    Returns:
        One of the canonical categories; ``Others`` when nothing matches
    """
    if not description:
        return DEFAULT_CATEGORY

    desc_lower = str(description).lower()
    for category, words in CATEGORY_KEYWORDS.items():
        if any(word in desc_lower for word in words):
            logger.debug("Keyword categorization: %r -> %s", description, category)
            return category

    logger.debug("Keyword categorization: %r -> %s (no match)", description, DEFAULT_CATEGORY)
    return DEFAULT_CATEGORY


def suggest_category(
    description: str,
    amount: float,
    categorize: Optional[Callable[[str, float], str]] = None,
) -> Tuple[str, bool, str]:
    """Suggest a category, asking the AI first when available.

    Returns:
        ``(category, ai_used, notes)``; ``ai_used`` is False when the
        keyword rules produced the answer
    """
    if categorize is not None:
        try:
            category = categorize(description, amount)
        except Exception as exc:
            logger.warning("AI categorization failed, using keywords: %s", exc)
        else:
            if category in CATEGORIES:
                return category, True, AI_NOTE
            logger.warning("AI returned unknown category %r, using keywords", category)
    return categorize_by_keywords(description), False, KEYWORD_NOTE
