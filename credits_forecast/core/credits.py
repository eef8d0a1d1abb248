"""
Credits to money conversion.

Prices per credit are always expressed in the base currency of the
rate table; amounts are converted to and from other currencies.
"""

from .currency import CurrencyRateTable, DEFAULT_RATE_TABLE, convert
from .errors import DivisionByZero, InvalidPeriod


def credits_to_money(
    credits: float,
    price_per_credit: float,
    target_currency: str = "EUR",
    rate_table: CurrencyRateTable = DEFAULT_RATE_TABLE,
) -> float:
    """Convert a credit quantity to money in the target currency.

    Args:
        credits: Number of credits (non-negative, fractional allowed)
        price_per_credit: Price of one credit in base currency
        target_currency: Currency to express the result in
        rate_table: Rates to convert with

    Returns:
        Monetary value in target_currency, unrounded

    Raises:
        InvalidPeriod: If credits or price is negative
        UnknownCurrency: If target_currency is not in the rate table
    """
    if credits < 0:
        raise InvalidPeriod("credits cannot be negative")
    if price_per_credit < 0:
        raise InvalidPeriod("price_per_credit cannot be negative")

    base_value = credits * price_per_credit
    return convert(base_value, rate_table.base, target_currency, rate_table)


def money_to_credits(
    amount: float,
    price_per_credit: float,
    source_currency: str = "EUR",
    rate_table: CurrencyRateTable = DEFAULT_RATE_TABLE,
) -> float:
    """Convert money in the source currency to a credit quantity.

    Raises:
        DivisionByZero: If price_per_credit is zero
        UnknownCurrency: If source_currency is not in the rate table
    """
    if price_per_credit == 0:
        raise DivisionByZero("price_per_credit is zero; cannot convert money to credits")

    base_amount = convert(amount, source_currency, rate_table.base, rate_table)
    return base_amount / price_per_credit


def discount_versus_baseline(price_per_credit: float, baseline_price: float) -> float:
    """Percentage discount of a price per credit against a baseline price.

    Returns zero or a negative value when price_per_credit is not below
    the baseline.

    Raises:
        DivisionByZero: If baseline_price is zero
    """
    if baseline_price == 0:
        raise DivisionByZero("baseline_price is zero; discount is undefined")
    return (baseline_price - price_per_credit) / baseline_price * 100


def calculate_mrr(
    monthly_credits: float,
    price_per_credit: float,
    currency: str = "EUR",
    rate_table: CurrencyRateTable = DEFAULT_RATE_TABLE,
) -> float:
    """Monthly recurring revenue for a credit allocation."""
    return credits_to_money(monthly_credits, price_per_credit, currency, rate_table)
