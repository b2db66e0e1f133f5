"""Formatting utilities for currency and percentage display."""

from __future__ import annotations

from typing import Optional, Union

from .config import CURRENCY_SYMBOL


def format_currency(amount: Union[float, int], symbol: Optional[str] = None, include_sign: bool = True) -> str:
    """Format a currency amount with two decimals and thousands separators.

    Args:
        amount: The amount to format
        symbol: Currency symbol; defaults to the configured preference
        include_sign: Whether to include the currency symbol

    Returns:
        Formatted currency string (e.g., "₹1,234.56" or "1,234.56")

    Example:
        >>> format_currency(1234.56, symbol='$')
        '$1,234.56'
        >>> format_currency(1234.56, include_sign=False)
        '1,234.56'
    """
    formatted = f"{amount:,.2f}"
    if not include_sign:
        return formatted
    return f"{CURRENCY_SYMBOL if symbol is None else symbol}{formatted}"


def format_percent(value: float) -> str:
    """Format a percentage with one decimal, e.g. ``'42.5%'``."""
    return f"{value:.1f}%"


def pluralize(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"
