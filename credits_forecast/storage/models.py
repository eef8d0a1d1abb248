"""
Data models for the data-access boundary.

Validated, immutable input records. Loosely typed rows from an external
store are turned into these before any calculation sees them.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from credits_forecast.core.errors import InvalidPeriod


@dataclass(frozen=True)
class TimeEntry:
    """A single logged block of partner work against a customer."""
    hours: float
    credits_consumed: float = 0.0
    internal_cost: float = 0.0
    billable: bool = True
    entry_date: Optional[date] = None
    customer_id: Optional[str] = None
    partner_id: Optional[str] = None

    def __post_init__(self):
        """Validate quantities are non-negative."""
        if self.hours < 0:
            raise InvalidPeriod("hours cannot be negative")
        if self.credits_consumed < 0:
            raise InvalidPeriod("credits_consumed cannot be negative")
        if self.internal_cost < 0:
            raise InvalidPeriod("internal_cost cannot be negative")


@dataclass(frozen=True)
class CustomerAccount:
    """Customer credit position and plan assignment."""
    customer_id: str
    name: str
    plan: str
    credits_balance: float
    monthly_allocation: float
    price_per_credit: Optional[float] = None  # Overrides the plan price when set
    currency: str = "EUR"

    def __post_init__(self):
        if self.credits_balance < 0:
            raise InvalidPeriod(f"credits_balance cannot be negative for {self.customer_id}")
        if self.monthly_allocation < 0:
            raise InvalidPeriod(f"monthly_allocation cannot be negative for {self.customer_id}")
        if self.price_per_credit is not None and self.price_per_credit < 0:
            raise InvalidPeriod(f"price_per_credit cannot be negative for {self.customer_id}")


@dataclass(frozen=True)
class PartnerAccount:
    """Partner delivering work, with monthly capacity."""
    partner_id: str
    name: str
    capacity_hours_per_month: float = 160.0


@dataclass(frozen=True)
class ConsumptionPeriod:
    """Consumption facts for a reporting period.

    Supplied by the caller from time-entry aggregates. Both period
    bounds are inclusive.
    """
    period_start: date
    period_end: date
    credits_consumed_to_date: float
    days_elapsed: int

    def __post_init__(self):
        """Validate period bookkeeping."""
        if self.period_end < self.period_start:
            raise InvalidPeriod("period_end must not be before period_start")
        if self.credits_consumed_to_date < 0:
            raise InvalidPeriod("credits_consumed_to_date cannot be negative")
        if self.days_elapsed < 0:
            raise InvalidPeriod("days_elapsed cannot be negative")
        if self.days_elapsed > self.days_in_period:
            raise InvalidPeriod(
                f"days_elapsed ({self.days_elapsed}) exceeds days in period ({self.days_in_period})"
            )

    @property
    def days_in_period(self) -> int:
        return (self.period_end - self.period_start).days + 1

    @classmethod
    def as_of(
        cls,
        period_start: date,
        period_end: date,
        today: date,
        credits_consumed_to_date: float = 0.0,
    ) -> "ConsumptionPeriod":
        """Build a period whose elapsed days count up to and including today.

        Dates before the period give zero elapsed days; dates after it
        are capped at the full period length.
        """
        if today < period_start:
            elapsed = 0
        elif today > period_end:
            elapsed = (period_end - period_start).days + 1
        else:
            elapsed = (today - period_start).days + 1
        return cls(
            period_start=period_start,
            period_end=period_end,
            credits_consumed_to_date=credits_consumed_to_date,
            days_elapsed=elapsed,
        )
