"""
Error taxonomy for credit calculations.

All errors propagate to the direct caller; nothing here retries.
"""


class CreditsForecastError(Exception):
    """Base class for calculation errors."""


class UnknownCurrency(CreditsForecastError, ValueError):
    """Raised when a currency code is absent from the rate table."""
    def __init__(self, currency: str):
        super().__init__(f"Unknown currency: {currency}")
        self.currency = currency


class DivisionByZero(CreditsForecastError, ZeroDivisionError):
    """Raised when a conversion would divide by a zero price."""


class InvalidPeriod(CreditsForecastError, ValueError):
    """Raised when period bookkeeping or quantities violate preconditions."""
