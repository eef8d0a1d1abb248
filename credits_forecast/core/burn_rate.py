"""
Burn rate estimation.

Linear extrapolation of credit consumption within a period. No
rounding happens here; rounding is a presentation concern.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import InvalidPeriod
from credits_forecast.storage.models import ConsumptionPeriod


@dataclass(frozen=True)
class BurnRateResult:
    """Projected consumption for the rest of a period."""
    daily_rate: float
    projected_total_for_period: float
    projected_remaining_balance: float
    days_remaining_in_period: int
    days_until_depleted: Optional[float]  # None: never depleted at current rate


def estimate_burn_rate(
    consumed_to_date: float,
    days_elapsed: int,
    days_in_period: int,
    current_balance: float,
) -> BurnRateResult:
    """Estimate daily burn rate and project the period end.

    Zero elapsed days means no burn observed yet and yields a zero rate.

    Args:
        consumed_to_date: Credits consumed so far in the period
        days_elapsed: Days elapsed in the period
        days_in_period: Total days in the period
        current_balance: Credits remaining now

    Returns:
        BurnRateResult with unrounded projections

    Raises:
        InvalidPeriod: If any quantity is negative or days_elapsed
            exceeds days_in_period
    """
    if consumed_to_date < 0:
        raise InvalidPeriod("consumed_to_date cannot be negative")
    if days_elapsed < 0:
        raise InvalidPeriod("days_elapsed cannot be negative")
    if days_in_period < 0:
        raise InvalidPeriod("days_in_period cannot be negative")
    if current_balance < 0:
        raise InvalidPeriod("current_balance cannot be negative")
    if days_elapsed > days_in_period:
        raise InvalidPeriod(
            f"days_elapsed ({days_elapsed}) exceeds days_in_period ({days_in_period})"
        )

    daily_rate = consumed_to_date / days_elapsed if days_elapsed > 0 else 0.0
    days_remaining = days_in_period - days_elapsed

    return BurnRateResult(
        daily_rate=daily_rate,
        projected_total_for_period=daily_rate * days_in_period,
        projected_remaining_balance=current_balance - daily_rate * days_remaining,
        days_remaining_in_period=days_remaining,
        days_until_depleted=current_balance / daily_rate if daily_rate > 0 else None,
    )


def estimate_for_period(period: ConsumptionPeriod, current_balance: float) -> BurnRateResult:
    """Estimate burn rate from a ConsumptionPeriod."""
    return estimate_burn_rate(
        consumed_to_date=period.credits_consumed_to_date,
        days_elapsed=period.days_elapsed,
        days_in_period=period.days_in_period,
        current_balance=current_balance,
    )
