"""
Currency conversion and display formatting.

Rates are expressed as units of currency per 1 unit of the base
currency, so the base currency always has rate 1.0.
"""

import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from types import MappingProxyType
from typing import Dict, Mapping

from .errors import UnknownCurrency


@dataclass(frozen=True)
class CurrencyRateTable:
    """Fixed conversion rates relative to a base currency."""
    base: str
    rates: Mapping[str, float]

    def __post_init__(self):
        """Validate the base entry and rate signs, then freeze the rates."""
        rates = dict(self.rates)
        if self.base not in rates:
            raise ValueError(f"Base currency {self.base} missing from rate table")
        if rates[self.base] != 1.0:
            raise ValueError(f"Base currency {self.base} must have rate 1.0")
        for code, rate in rates.items():
            if not (math.isfinite(rate) and rate > 0):
                raise ValueError(f"Rate for {code} must be > 0")
        object.__setattr__(self, "rates", MappingProxyType(rates))

    def supports(self, currency: str) -> bool:
        return currency in self.rates

    def rate_for(self, currency: str) -> float:
        """Get the rate for a currency code.

        Args:
            currency: ISO currency code

        Returns:
            Units of currency per 1 unit of base currency

        Raises:
            UnknownCurrency: If the code is not in the table
        """
        if currency not in self.rates:
            raise UnknownCurrency(currency)
        return self.rates[currency]


DEFAULT_RATE_TABLE = CurrencyRateTable(
    base="EUR",
    rates={
        "EUR": 1.0,
        "SEK": 11.5,
        "USD": 1.09,
        "NOK": 11.8,
        "DKK": 7.45,
        "GBP": 0.86,
    },
)

CURRENCY_SYMBOLS: Dict[str, str] = {
    "EUR": "€",
    "SEK": "kr",
    "USD": "$",
    "NOK": "kr",
    "DKK": "kr",
    "GBP": "£",
}

# Currencies whose symbol follows the amount
SUFFIX_CURRENCIES = frozenset({"SEK", "NOK", "DKK"})


def convert(
    amount: float,
    from_currency: str,
    to_currency: str,
    rate_table: CurrencyRateTable = DEFAULT_RATE_TABLE,
) -> float:
    """Convert an amount between two currencies in the rate table.

    Args:
        amount: Amount in from_currency
        from_currency: Source currency code
        to_currency: Target currency code
        rate_table: Rates to convert with

    Returns:
        Amount in to_currency, unrounded

    Raises:
        UnknownCurrency: If either code is absent from the table
    """
    from_rate = rate_table.rate_for(from_currency)
    to_rate = rate_table.rate_for(to_currency)
    return amount / from_rate * to_rate


def format_currency(amount: float, currency: str = "EUR") -> str:
    """Format an amount as a whole number with its currency symbol.

    Unknown currencies fall back to the raw ISO code as a prefix.

    Raises:
        ValueError: If amount is infinite or NaN
    """
    if not math.isfinite(amount):
        raise ValueError(f"Cannot format non-finite amount: {amount}")
    rounded = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    formatted = f"{int(rounded):,}"
    symbol = CURRENCY_SYMBOLS.get(currency, currency)

    if currency in SUFFIX_CURRENCIES:
        return f"{formatted} {symbol}"
    return f"{symbol}{formatted}"
