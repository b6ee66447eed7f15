"""Small shared helpers."""

from vittas.utils.currency import (
    CURRENCIES,
    Currency,
    format_currency,
    get_currency,
    get_currency_by_country,
    get_currency_symbol,
)

__all__ = [
    "CURRENCIES",
    "Currency",
    "format_currency",
    "get_currency",
    "get_currency_by_country",
    "get_currency_symbol",
]
