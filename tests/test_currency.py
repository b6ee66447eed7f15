"""Tests for currency lookup and formatting."""

from decimal import Decimal

import pytest

from vittas.utils.currency import (
    CURRENCIES,
    format_currency,
    get_currency,
    get_currency_by_country,
    get_currency_symbol,
)


class TestCurrency:

    def test_codes_are_unique(self):
        codes = [c.code for c in CURRENCIES]
        assert len(codes) == len(set(codes))

    def test_lookup(self):
        assert get_currency("INR").symbol == "₹"
        assert get_currency_symbol("GBP") == "£"

    def test_unknown_code_falls_back_to_usd(self):
        assert get_currency("XYZ").code == "USD"

    def test_by_country(self):
        assert get_currency_by_country("Japan").code == "JPY"
        assert get_currency_by_country("Atlantis").code == "USD"

    @pytest.mark.parametrize(
        "amount,code,expected",
        [
            (Decimal("1234.5"), "INR", "₹1234.50"),
            (10, "USD", "$10.00"),
            ("0.005", "EUR", "€0.01"),
            (99.999, "GBP", "£100.00"),
        ],
    )
    def test_format(self, amount, code, expected):
        assert format_currency(amount, code) == expected

    def test_currency_is_immutable(self):
        with pytest.raises(ValueError):
            get_currency("USD").symbol = "US$"
