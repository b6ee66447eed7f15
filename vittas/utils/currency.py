"""Supported display currencies and amount formatting."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from pydantic import BaseModel, ConfigDict


class Currency(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    symbol: str
    name: str
    country: str


CURRENCIES: list[Currency] = [
    Currency(code="USD", symbol="$", name="US Dollar", country="USA"),
    Currency(code="RUB", symbol="₽", name="Russian Ruble", country="Russia"),
    Currency(code="INR", symbol="₹", name="Indian Rupee", country="India"),
    Currency(code="CNY", symbol="¥", name="Chinese Yuan", country="China"),
    Currency(code="JPY", symbol="¥", name="Japanese Yen", country="Japan"),
    Currency(code="EUR", symbol="€", name="Euro", country="Europe"),
    Currency(code="GBP", symbol="£", name="British Pound", country="GBR"),
]

# Unknown codes and countries fall back to the first entry (USD)
_FALLBACK = CURRENCIES[0]


def get_currency(code: str = "USD") -> Currency:
    return next((c for c in CURRENCIES if c.code == code), _FALLBACK)


def format_currency(amount: Union[Decimal, int, float, str], code: str = "USD") -> str:
    """
    Format an amount with its currency symbol and two decimals.

    >>> format_currency(Decimal("1234.5"), "INR")
    '₹1234.50'
    """
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{get_currency(code).symbol}{value}"


def get_currency_symbol(code: str = "USD") -> str:
    return get_currency(code).symbol


def get_currency_by_country(country: str) -> Currency:
    return next((c for c in CURRENCIES if c.country == country), _FALLBACK)
