"""Formatting utilities for currency and rating display."""

from __future__ import annotations

from decimal import Decimal
from typing import Union

from . import config

Number = Union[Decimal, float, int]


def format_currency(amount: Number, symbol: str | None = None, include_sign: bool = True) -> str:
    """Format a currency amount with thousands separators and two decimals.

    Example:
        >>> format_currency(1234.5, symbol='kr.')
        '1,234.50 kr.'
        >>> format_currency(-20, symbol='$')
        '-$20.00'
        >>> format_currency(1234.5, include_sign=False)
        '1,234.50'
    """
    formatted = f"{abs(float(amount)):,.2f}"
    sign = '-' if amount < 0 else ''
    if not include_sign:
        return f"{sign}{formatted}"
    symbol = config.CURRENCY_SYMBOL if symbol is None else symbol
    if symbol == '$':
        return f"{sign}${formatted}"
    return f"{sign}{formatted} {symbol}".rstrip()


def format_percent(value: float, digits: int = 2) -> str:
    return f"{value:.{digits}f}%"


def format_rating(rating) -> str:
    """'good' -> 'Good'; accepts a Rating or its string value."""
    value = getattr(rating, 'value', rating)
    return str(value).capitalize()
